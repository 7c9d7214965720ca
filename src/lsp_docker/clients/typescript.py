"""JavaScript/TypeScript client definitions (typescript-language-server)."""

from .base import native_client

CLIENTS = (
    native_client(
        "ts-ls",
        "typescript-language-server --stdio",
        (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs"),
    ),
)
