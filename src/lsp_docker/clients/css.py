"""CSS client definitions (vscode-css-languageserver)."""

from .base import native_client

CLIENTS = (
    native_client(
        "css-ls",
        "css-languageserver --stdio",
        (".css", ".scss", ".sass", ".less"),
    ),
)
