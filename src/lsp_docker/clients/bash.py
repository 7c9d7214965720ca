"""Bash client definitions (bash-language-server)."""

from .base import native_client

CLIENTS = (
    native_client(
        "bash-ls",
        "bash-language-server start",
        (".sh", ".bash"),
    ),
)
