"""Go client definitions (gopls)."""

from .base import native_client

CLIENTS = (
    native_client(
        "gopls",
        "gopls",
        (".go",),
    ),
)
