"""Python client definitions.

``pyls`` is the original python-language-server; ``pylsp`` is its maintained
fork (python-lsp-server) and is what most current images ship.
"""

from .base import native_client

CLIENTS = (
    native_client("pyls", "pyls", (".py", ".pyi")),
    native_client("pylsp", "pylsp", (".py", ".pyi"), priority=-2),
)
