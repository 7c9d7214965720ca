"""lsp-docker - run language servers inside containers while the editor works on host paths."""

__version__ = "0.3.0"
