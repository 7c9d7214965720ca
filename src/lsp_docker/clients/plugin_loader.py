"""Client package discovery and loading utilities.

A client package is any importable module exposing ``CLIENTS``: an iterable of
native ClientDescriptor objects.  Loading is best-effort: a package that fails
to import, or exposes nothing usable, is logged and recorded as failed, and the
remaining packages still load.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from importlib import import_module
from importlib.metadata import EntryPoints, entry_points

from .base import ClientDescriptor
from .registry import ClientRegistry

PLUGIN_ENTRYPOINT_GROUP = "lsp_docker.clients"
PLUGIN_PATHS_ENV_VAR = "LSP_DOCKER_CLIENT_PACKAGES"
BUILTIN_PACKAGE_PREFIX = "lsp_docker.clients."
DEFAULT_CLIENT_PACKAGES = (
    "bash",
    "clangd",
    "css",
    "dockerfile",
    "go",
    "html",
    "python",
    "typescript",
)

logger = logging.getLogger(__name__)


def _module_name(package: str) -> str:
    """Short names resolve to the bundled ``lsp_docker.clients`` modules."""
    return package if "." in package else BUILTIN_PACKAGE_PREFIX + package


def _valid_clients(source: str, clients: object) -> list[ClientDescriptor] | None:
    if clients is None:
        logger.warning("Client package '%s' does not define CLIENTS; skipping", source)
        return None
    try:
        items = list(clients)  # type: ignore[call-overload]
    except TypeError:
        logger.warning("CLIENTS in '%s' is not iterable; skipping", source)
        return None

    valid = [item for item in items if isinstance(item, ClientDescriptor)]
    if len(valid) != len(items):
        logger.warning(
            "Client package '%s' exposes %d non-descriptor item(s); ignoring them",
            source,
            len(items) - len(valid),
        )
    return valid


def load_client_package(package: str, registry: ClientRegistry) -> bool:
    """Import one client package and register its clients. Returns success."""
    module_name = _module_name(package)
    try:
        module = import_module(module_name)
    except Exception as exc:
        logger.warning("Failed to load client package '%s': %s", module_name, exc)
        return False

    clients = _valid_clients(module_name, getattr(module, "CLIENTS", None))
    if clients is None:
        return False
    for client in clients:
        registry.register(client)
    logger.debug("Loaded %d client(s) from '%s'", len(clients), module_name)
    return True


def _entry_points_for_group(group: str) -> EntryPoints:
    """Return entry points for a group across Python versions."""
    try:
        return entry_points().select(group=group)
    except Exception as exc:
        logger.warning("Failed reading entry points for '%s': %s", group, exc)
        return EntryPoints(())


def load_entry_point_clients(
    registry: ClientRegistry, group: str = PLUGIN_ENTRYPOINT_GROUP
) -> dict[str, bool]:
    """Register clients exposed through installed distributions' entry points."""
    results: dict[str, bool] = {}
    for ep in _entry_points_for_group(group):
        try:
            loaded = ep.load()
        except Exception as exc:
            logger.warning("Failed loading client entry point '%s': %s", ep.name, exc)
            results[ep.name] = False
            continue
        clients = _valid_clients(ep.name, getattr(loaded, "CLIENTS", loaded))
        if clients is None:
            results[ep.name] = False
            continue
        for client in clients:
            registry.register(client)
        results[ep.name] = True
    return results


def env_client_packages() -> list[str]:
    """Return extra client packages from LSP_DOCKER_CLIENT_PACKAGES."""
    value = os.getenv(PLUGIN_PATHS_ENV_VAR, "")
    if not value.strip():
        return []
    return [p.strip() for p in value.split(",") if p.strip()]


def load_client_packages(
    packages: Iterable[str],
    registry: ClientRegistry | None = None,
    *,
    include_env: bool = True,
    include_entry_points: bool = True,
) -> dict[str, bool]:
    """Load every package into *registry*, recording success per package."""
    if registry is None:
        registry = ClientRegistry.get()
    results: dict[str, bool] = {}
    extra = env_client_packages() if include_env else []
    for package in [*packages, *extra]:
        if package in results:
            continue
        results[package] = load_client_package(package, registry)

    if include_entry_points:
        results.update(load_entry_point_clients(registry))
    return results
