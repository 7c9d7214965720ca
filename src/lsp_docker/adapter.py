"""Derive container-backed clients from native client descriptors."""

from __future__ import annotations

import dataclasses
import functools
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .clients.base import ClientDescriptor, stdio_connection
from .clients.registry import ClientRegistry
from .containers import NewContainerLauncher, parse_command
from .errors import InvalidServerSpec
from .path_mapping import (
    PathMapping,
    is_path_mapped,
    parse_path_mappings,
    to_container_uri,
    to_host_path,
)

LaunchFn = Callable[[str, PathMapping, str, Sequence[str] | str], Sequence[str]]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DockerClientBinding:
    """Everything a derived client closes over."""

    server_id: str
    docker_server_id: str
    server_command: tuple[str, ...]
    path_mappings: PathMapping
    container_name: str
    image_id: str
    priority: int


def derive_docker_client(
    native: ClientDescriptor,
    binding: DockerClientBinding,
    launch_fn: LaunchFn,
) -> ClientDescriptor:
    """Return a copy of *native* routed through a container.

    Identity, path translation, connection factory, activation predicate and
    priority are replaced; *native* itself is left untouched.
    """
    mapping = binding.path_mappings

    def _command() -> Sequence[str]:
        return launch_fn(binding.container_name, mapping, binding.image_id, binding.server_command)

    return dataclasses.replace(
        native,
        server_id=binding.docker_server_id,
        server_command=binding.server_command,
        priority=binding.priority,
        uri_to_path=functools.partial(to_host_path, mapping, binding.container_name),
        path_to_uri=functools.partial(to_container_uri, mapping),
        new_connection=stdio_connection(_command),
        activation_fn=functools.partial(is_path_mapped, mapping),
    )


def register_docker_client(
    *,
    server_id: str,
    docker_server_id: str,
    server_command: Sequence[str] | str,
    path_mappings: PathMapping,
    container_name: str,
    image_id: str,
    priority: int,
    launch_fn: LaunchFn | None = None,
    registry: ClientRegistry | None = None,
) -> ClientDescriptor:
    """Register the container-backed variant of the native client *server_id*.

    Raises InvalidServerSpec when *docker_server_id* equals *server_id*, and
    UnknownServerId when no native client with that id is registered.
    """
    if docker_server_id == server_id:
        raise InvalidServerSpec(server_id, "docker_server_id must differ from server_id")
    if registry is None:
        registry = ClientRegistry.get()
    native = registry.require_client(server_id)

    binding = DockerClientBinding(
        server_id=server_id,
        docker_server_id=docker_server_id,
        server_command=tuple(parse_command(server_command)),
        path_mappings=parse_path_mappings(path_mappings),
        container_name=container_name,
        image_id=image_id,
        priority=priority,
    )
    client = derive_docker_client(native, binding, launch_fn or NewContainerLauncher())
    registry.register(client)
    logger.debug(
        "Registered '%s' (from '%s') in container '%s' using image '%s'",
        docker_server_id,
        server_id,
        container_name,
        image_id,
    )
    return client
