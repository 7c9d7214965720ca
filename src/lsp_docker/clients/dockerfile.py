"""Dockerfile client definitions (dockerfile-language-server-nodejs)."""

from .base import native_client

CLIENTS = (
    native_client(
        "dockerfile-ls",
        "docker-langserver --stdio",
        ("dockerfile", ".dockerfile"),
    ),
)
