"""HTML client definitions (vscode-html-languageserver)."""

from .base import native_client

CLIENTS = (
    native_client(
        "html-ls",
        "html-languageserver --stdio",
        (".html", ".htm"),
    ),
)
