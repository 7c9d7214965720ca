"""Client descriptors, the client registry, and bundled client packages."""

from .base import ClientDescriptor, StdioConnection, native_client, stdio_connection
from .plugin_loader import DEFAULT_CLIENT_PACKAGES, load_client_packages
from .registry import ClientRegistry

__all__ = [
    "DEFAULT_CLIENT_PACKAGES",
    "ClientDescriptor",
    "ClientRegistry",
    "StdioConnection",
    "load_client_packages",
    "native_client",
    "stdio_connection",
]
