"""Catalog initialization: load client packages and register container clients.

``init_clients`` is the entry point.  It loads the configured client packages
(best-effort), then registers one container-backed client per server spec,
resolving each spec's image and container name against the catalog defaults.
A spec that fails only drops its own registration.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .adapter import LaunchFn, register_docker_client
from .clients.plugin_loader import DEFAULT_CLIENT_PACKAGES, load_client_packages
from .clients.registry import ClientRegistry
from .errors import InvalidServerSpec, LspDockerError
from .path_mapping import PathMapping, parse_path_mappings

DEFAULT_IMAGE_ID = "emacslsp/lsp-docker-langservers"
DEFAULT_CONTAINER_NAME = "lsp-container"
DEFAULT_PRIORITY = 10

IMAGE_ENV_VAR = "LSP_DOCKER_IMAGE"
CONTAINER_NAME_ENV_VAR = "LSP_DOCKER_CONTAINER_NAME"
PRIORITY_ENV_VAR = "LSP_DOCKER_PRIORITY"
PATH_MAPPINGS_ENV_VAR = "LSP_DOCKER_PATH_MAPPINGS"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServerSpec:
    """One native server to expose through a container."""

    server_id: str
    docker_server_id: str
    server_command: str | tuple[str, ...]
    docker_image_id: str | None = None
    docker_container_name: str | None = None
    priority: int | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ServerSpec:
        """Build a spec from a dict using snake_case or camelCase keys."""

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in data:
                    return data[key]
            return None

        server_id = pick("server_id", "serverId")
        docker_server_id = pick("docker_server_id", "dockerServerId")
        server_command = pick("server_command", "serverCommand")
        if not server_id or not docker_server_id or not server_command:
            raise InvalidServerSpec(
                str(server_id or docker_server_id or "<unnamed>"),
                "server_id, docker_server_id and server_command are required",
            )
        priority = pick("priority")
        return cls(
            server_id=str(server_id),
            docker_server_id=str(docker_server_id),
            server_command=(
                server_command if isinstance(server_command, str) else tuple(server_command)
            ),
            docker_image_id=pick("docker_image_id", "dockerImageId"),
            docker_container_name=pick("docker_container_name", "dockerContainerName"),
            priority=int(priority) if priority is not None else None,
        )


DEFAULT_SERVER_SPECS: tuple[ServerSpec, ...] = (
    ServerSpec("bash-ls", "bashls-docker", "bash-language-server start"),
    ServerSpec("clangd", "clangd-docker", "clangd"),
    ServerSpec("css-ls", "cssls-docker", "css-languageserver --stdio"),
    ServerSpec("dockerfile-ls", "dockerfilels-docker", "docker-langserver --stdio"),
    ServerSpec("gopls", "gopls-docker", "gopls"),
    ServerSpec("html-ls", "htmls-docker", "html-languageserver --stdio"),
    ServerSpec("pyls", "pyls-docker", "pyls"),
    ServerSpec("ts-ls", "tsls-docker", "typescript-language-server --stdio"),
)


@dataclass(frozen=True)
class CatalogConfig:
    """Options for ``init_clients``; ``path_mappings`` is required."""

    path_mappings: PathMapping
    docker_image_id: str = DEFAULT_IMAGE_ID
    docker_container_name: str = DEFAULT_CONTAINER_NAME
    priority: int = DEFAULT_PRIORITY
    client_packages: tuple[str, ...] = DEFAULT_CLIENT_PACKAGES
    server_specs: tuple[ServerSpec, ...] = DEFAULT_SERVER_SPECS

    def __post_init__(self) -> None:
        object.__setattr__(self, "path_mappings", parse_path_mappings(self.path_mappings))
        object.__setattr__(self, "client_packages", tuple(self.client_packages))
        object.__setattr__(self, "server_specs", tuple(self.server_specs))
        if not self.path_mappings:
            raise ValueError("path_mappings must contain at least one HOST:CONTAINER pair")

    @classmethod
    def from_env(
        cls,
        *,
        path_mappings: Iterable[Any] | None = None,
        **overrides: Any,
    ) -> CatalogConfig:
        """Build config from explicit values, falling back to environment then defaults."""
        mappings = parse_path_mappings(path_mappings) or parse_path_mappings(
            _split_env_list(os.getenv(PATH_MAPPINGS_ENV_VAR, ""))
        )
        values: dict[str, Any] = {}
        image = overrides.pop("docker_image_id", None) or os.getenv(IMAGE_ENV_VAR, "").strip()
        if image:
            values["docker_image_id"] = image
        name = (
            overrides.pop("docker_container_name", None)
            or os.getenv(CONTAINER_NAME_ENV_VAR, "").strip()
        )
        if name:
            values["docker_container_name"] = name
        priority = overrides.pop("priority", None)
        if priority is None:
            priority = _env_int(PRIORITY_ENV_VAR)
        if priority is not None:
            values["priority"] = priority
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(path_mappings=mappings, **values)


@dataclass
class InitReport:
    """Outcome of one ``init_clients`` pass."""

    registered: list[str] = field(default_factory=list)
    failures: dict[str, LspDockerError] = field(default_factory=dict)
    packages: dict[str, bool] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass(frozen=True)
class ResolvedServer:
    """A server spec with catalog defaults applied."""

    spec: ServerSpec
    image_id: str
    container_name: str
    priority: int


def _split_env_list(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _env_int(name: str) -> int | None:
    text = os.getenv(name, "").strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, text)
        return None


def resolve_server_spec(spec: ServerSpec, config: CatalogConfig) -> ResolvedServer:
    """Apply catalog defaults to *spec*.

    An image override without a container-name override is rejected: the
    default container name would then refer to a container of another image.
    """
    if spec.docker_server_id == spec.server_id:
        raise InvalidServerSpec(spec.server_id, "docker_server_id must differ from server_id")
    if spec.docker_image_id and not spec.docker_container_name:
        raise InvalidServerSpec(
            spec.docker_server_id,
            f"image '{spec.docker_image_id}' is overridden without a container name",
        )
    return ResolvedServer(
        spec=spec,
        image_id=spec.docker_image_id or config.docker_image_id,
        container_name=spec.docker_container_name or config.docker_container_name,
        priority=spec.priority if spec.priority is not None else config.priority,
    )


def init_clients(
    config: CatalogConfig,
    *,
    registry: ClientRegistry | None = None,
    launch_fn: LaunchFn | None = None,
    include_env: bool = True,
    include_entry_points: bool = True,
) -> InitReport:
    """Load client packages, then register a container client per server spec."""
    if registry is None:
        registry = ClientRegistry.get()

    report = InitReport()
    report.packages = load_client_packages(
        config.client_packages,
        registry,
        include_env=include_env,
        include_entry_points=include_entry_points,
    )

    for spec in config.server_specs:
        try:
            resolved = resolve_server_spec(spec, config)
            register_docker_client(
                server_id=spec.server_id,
                docker_server_id=spec.docker_server_id,
                server_command=spec.server_command,
                path_mappings=config.path_mappings,
                container_name=resolved.container_name,
                image_id=resolved.image_id,
                priority=resolved.priority,
                launch_fn=launch_fn,
                registry=registry,
            )
        except LspDockerError as exc:
            logger.warning("Skipping container client '%s': %s", spec.docker_server_id, exc)
            report.failures[spec.docker_server_id] = exc
            continue
        report.failures.pop(spec.docker_server_id, None)
        if spec.docker_server_id not in report.registered:
            report.registered.append(spec.docker_server_id)

    return report
