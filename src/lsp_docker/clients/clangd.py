"""C/C++ client definitions (clangd)."""

from .base import native_client

CLIENTS = (
    native_client(
        "clangd",
        "clangd",
        (".c", ".h", ".cc", ".cpp", ".cxx", ".hh", ".hpp", ".hxx"),
    ),
)
