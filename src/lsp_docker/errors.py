"""Error types for lsp-docker.

All errors inherit from LspDockerError so configuration code can catch them
as a family while still letting unrelated failures propagate.
"""


class LspDockerError(Exception):
    """Base class for all lsp-docker errors."""

    pass


class PathNotMapped(LspDockerError, ValueError):
    """Raised when a host path lies outside every configured mapping root."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Path '{path}' is not under any mapped host root")


class UnknownServerId(LspDockerError, LookupError):
    """Raised when a native client definition is not registered."""

    def __init__(self, server_id: str, available: list[str] | None = None) -> None:
        self.server_id = server_id
        self.available = available or []
        msg = f"No client registered for server id '{server_id}'"
        if self.available:
            msg += f". Available: {', '.join(self.available[:5])}"
            if len(self.available) > 5:
                msg += f" (and {len(self.available) - 5} more)"
        super().__init__(msg)


class InvalidServerSpec(LspDockerError, ValueError):
    """Raised when a server spec cannot be resolved into a container client."""

    def __init__(self, server_id: str, reason: str) -> None:
        self.server_id = server_id
        self.reason = reason
        super().__init__(f"Invalid server spec '{server_id}': {reason}")
