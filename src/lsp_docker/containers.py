"""Container identities and runtime command lines.

Two lifecycles are supported:

* cold start: ``docker run --name NAME-N --rm -i -v HOST:CONTAINER ... IMAGE CMD...``
  starts a fresh container per connection, removed when the server exits;
* attach: ``docker exec -i NAME CMD...`` runs the server inside a container
  that is already up.

Every builder returns a tokenized argv.  Nothing here goes through a shell.
"""

from __future__ import annotations

import itertools
import logging
import os
import shlex
import threading
from collections.abc import Sequence
from dataclasses import dataclass

from .path_mapping import PathMapping

DEFAULT_RUNTIME = "docker"
RUNTIME_ENV_VAR = "LSP_DOCKER_COMMAND"

logger = logging.getLogger(__name__)


def parse_command(command: Sequence[str] | str | None) -> list[str]:
    """Normalize command input into a tokenized argv list."""
    if command is None:
        return []

    if isinstance(command, str):
        return [part for part in shlex.split(command) if part]

    parsed: list[str] = []
    for part in command:
        text = str(part).strip()
        if text:
            parsed.append(text)
    return parsed


def format_command(command: Sequence[str] | str) -> str:
    """Return shell-safe command rendering for user-facing output."""
    return " ".join(shlex.quote(part) for part in parse_command(command))


def resolve_runtime(runtime: Sequence[str] | str | None = None) -> list[str]:
    """Resolve the runtime argv prefix: explicit value -> env -> ``docker``."""
    parsed = parse_command(runtime)
    if parsed:
        return parsed
    env_runtime = parse_command(os.getenv(RUNTIME_ENV_VAR, ""))
    if env_runtime:
        return env_runtime
    return [DEFAULT_RUNTIME]


@dataclass(frozen=True)
class ContainerIdentity:
    """Name of one launched container: ``<base_name>-<instance_suffix>``."""

    base_name: str
    instance_suffix: int

    @property
    def name(self) -> str:
        return f"{self.base_name}-{self.instance_suffix}"


class ContainerIdentityAllocator:
    """
    Thread-safe, monotonically increasing container-name suffixes.

    One allocator lives for the whole process; its counter is never persisted,
    so suffixes restart at 1 after a restart.  Names only need to be unique
    among containers running at the same time, and ``--rm`` removes each
    container when its server exits.
    """

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next(self, base_name: str) -> ContainerIdentity:
        """Allocate the next identity for *base_name*."""
        with self._lock:
            suffix = next(self._counter)
        return ContainerIdentity(base_name=base_name, instance_suffix=suffix)


_process_allocator = ContainerIdentityAllocator()


def process_allocator() -> ContainerIdentityAllocator:
    """Return the allocator shared by every launcher in this process."""
    return _process_allocator


def volume_flags(mapping: PathMapping) -> list[str]:
    """One ``-v HOST:CONTAINER`` pair per mapping entry, in mapping order."""
    flags: list[str] = []
    for host_root, container_root in mapping:
        flags.extend(["-v", f"{host_root}:{container_root}"])
    return flags


def build_launch(
    identity: ContainerIdentity,
    mapping: PathMapping,
    image_id: str,
    server_command: Sequence[str] | str,
    *,
    runtime: Sequence[str] | str | None = None,
) -> list[str]:
    """Build argv that starts a fresh, self-removing container running the server."""
    return [
        *resolve_runtime(runtime),
        "run",
        "--name",
        identity.name,
        "--rm",
        "-i",
        *volume_flags(mapping),
        image_id,
        *parse_command(server_command),
    ]


def build_exec(
    container_name: str,
    server_command: Sequence[str] | str,
    *,
    runtime: Sequence[str] | str | None = None,
) -> list[str]:
    """Build argv that runs the server inside an already-running container."""
    return [*resolve_runtime(runtime), "exec", "-i", container_name, *parse_command(server_command)]


class NewContainerLauncher:
    """Launch function that cold-starts a new container per connection.

    The identity is drawn when the launcher is called, i.e. when the
    connection starts, not when the client is registered.
    """

    def __init__(
        self,
        allocator: ContainerIdentityAllocator | None = None,
        *,
        runtime: Sequence[str] | str | None = None,
    ) -> None:
        self._allocator = allocator or process_allocator()
        self._runtime = runtime

    def __call__(
        self,
        container_name: str,
        mapping: PathMapping,
        image_id: str,
        server_command: Sequence[str] | str,
    ) -> list[str]:
        identity = self._allocator.next(container_name)
        command = build_launch(identity, mapping, image_id, server_command, runtime=self._runtime)
        logger.debug("Launching container %s: %s", identity.name, format_command(command))
        return command


class ContainerExecLauncher:
    """Launch function that attaches to a running container via ``exec``."""

    def __init__(self, *, runtime: Sequence[str] | str | None = None) -> None:
        self._runtime = runtime

    def __call__(
        self,
        container_name: str,
        mapping: PathMapping,
        image_id: str,
        server_command: Sequence[str] | str,
    ) -> list[str]:
        del mapping, image_id
        command = build_exec(container_name, server_command, runtime=self._runtime)
        logger.debug("Attaching to container %s: %s", container_name, format_command(command))
        return command
