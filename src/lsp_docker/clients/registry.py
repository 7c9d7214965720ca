"""
Client registry.

Singleton mapping server ids to client descriptors.  Native clients are
loaded from client packages; container-backed variants are registered next
to them under their own ids, so both can serve the same language.
"""

import logging
import threading

from ..errors import UnknownServerId
from .base import ClientDescriptor


class ClientRegistry:
    """
    Singleton registry of language-server client descriptors.

    Usage:
        registry = ClientRegistry.get()
        clients = registry.clients_for_file("/home/me/project/main.py")
    """

    _instance: "ClientRegistry | None" = None
    _lock = threading.Lock()

    def __init__(self) -> None:
        self._clients: dict[str, ClientDescriptor] = {}  # server_id -> descriptor
        self._clients_lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    @classmethod
    def get(cls) -> "ClientRegistry":
        """Get the singleton registry instance."""
        inst = cls._instance
        if inst is None:
            with cls._lock:
                inst = cls._instance
                if inst is None:
                    inst = cls()
                    cls._instance = inst
        return inst

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton (for testing)."""
        with cls._lock:
            cls._instance = None

    def register(self, client: ClientDescriptor) -> None:
        """Register a descriptor, replacing any previous one with the same id."""
        with self._clients_lock:
            if client.server_id in self._clients:
                self._logger.debug("Replacing client registration '%s'", client.server_id)
            self._clients[client.server_id] = client

    def get_client(self, server_id: str) -> ClientDescriptor | None:
        """Get a descriptor by server id."""
        return self._clients.get(server_id)

    def require_client(self, server_id: str) -> ClientDescriptor:
        """Get a descriptor by server id, raising UnknownServerId if absent."""
        client = self._clients.get(server_id)
        if client is None:
            raise UnknownServerId(server_id, self.server_ids)
        return client

    def clients_for_file(self, file_path: str) -> list[ClientDescriptor]:
        """Descriptors that activate for *file_path*, highest priority first."""
        with self._clients_lock:
            clients = list(self._clients.values())
        matching = [client for client in clients if client.is_activated(file_path)]
        matching.sort(key=lambda client: (-client.priority, client.server_id))
        return matching

    def __contains__(self, server_id: object) -> bool:
        return server_id in self._clients

    @property
    def server_ids(self) -> list[str]:
        """Registered server ids in stable sorted order."""
        ids = list(self._clients)
        ids.sort()
        return ids
