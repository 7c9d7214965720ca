"""
Client descriptor interface and stdio connections.

A ClientDescriptor is the registry-facing description of one language-server
integration: which files it handles, how paths are translated for the server,
and how a connection to the server is created.  Descriptors are frozen;
variants are derived with ``dataclasses.replace``.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import PurePosixPath

import anyio
from anyio.abc import Process

from ..containers import format_command, parse_command
from ..path_mapping import path_to_uri, uri_to_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StdioConnection:
    """A server process whose stdin/stdout carry the protocol stream."""

    command: tuple[str, ...]

    @asynccontextmanager
    async def open(self) -> AsyncIterator[Process]:
        """Spawn the server process; its pipes are closed and it is reaped on exit."""
        if not self.command:
            raise ValueError("Cannot start server: empty command")
        logger.debug("Starting server process: %s", format_command(self.command))
        process = await anyio.open_process(
            list(self.command),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=None,
        )
        async with process:
            yield process


ConnectionFactory = Callable[[], StdioConnection]
ActivationFn = Callable[[str], bool]


def stdio_connection(command_fn: Callable[[], Sequence[str] | str]) -> ConnectionFactory:
    """Connection factory that computes the command when the connection starts."""

    def _connect() -> StdioConnection:
        return StdioConnection(command=tuple(parse_command(command_fn())))

    return _connect


@dataclass(frozen=True)
class ClientDescriptor:
    """One language-server integration as seen by the client registry."""

    server_id: str
    file_extensions: frozenset[str]
    new_connection: ConnectionFactory
    server_command: tuple[str, ...] = ()
    priority: int = 0
    activation_fn: ActivationFn | None = None
    uri_to_path: Callable[[str], str] = uri_to_path
    path_to_uri: Callable[[str], str] = path_to_uri

    def handles_extension(self, file_path: str) -> bool:
        """Match by suffix, or by whole file name for entries like ``dockerfile``."""
        path = PurePosixPath(file_path)
        return (
            path.suffix.lower() in self.file_extensions
            or path.name.lower() in self.file_extensions
        )

    def is_activated(self, file_path: str) -> bool:
        """Extension match plus the activation predicate, when one is set."""
        if not self.handles_extension(file_path):
            return False
        if self.activation_fn is None:
            return True
        return bool(self.activation_fn(file_path))


def native_client(
    server_id: str,
    command: Sequence[str] | str,
    file_extensions: Sequence[str],
    *,
    priority: int = -1,
) -> ClientDescriptor:
    """Descriptor for a server executed directly on the host."""
    argv = tuple(parse_command(command))
    return ClientDescriptor(
        server_id=server_id,
        file_extensions=frozenset(ext.lower() for ext in file_extensions),
        new_connection=stdio_connection(lambda: argv),
        server_command=argv,
        priority=priority,
    )
