"""Bidirectional translation between host paths and container paths.

A mapping is an ordered tuple of ``(host_root, container_root)`` pairs, one
per bind mount.  Both directions scan the pairs in order and use the first
pair whose root occurs anywhere in the path (substring match), so a path
that matched pair ``i`` on the way in is translated back through pair ``i``.

Container paths with no host counterpart are not an error: they come back
as a TRAMP-style ``/docker:<container>:<path>`` tag so the editor can still
show the file read-only.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from pathlib import PurePosixPath
from typing import Any
from urllib.parse import quote, unquote, urlparse

from .errors import PathNotMapped

PathMapping = tuple[tuple[str, str], ...]

REMOTE_PATH_PREFIX = "/docker:"
_URI_SAFE_CHARS = "/:@!$&'()*+,;=~"


def parse_path_mappings(
    mappings: Iterable[str | Sequence[str] | Mapping[str, Any]] | None,
) -> PathMapping:
    """Normalize user mapping input into an immutable ``PathMapping``.

    Accepts ``"HOST:CONTAINER"`` strings, ``(host, container)`` pairs, or
    dicts with ``source``/``destination`` keys.  Order is preserved.
    """
    if mappings is None:
        return ()

    pairs: list[tuple[str, str]] = []
    for item in mappings:
        if isinstance(item, str):
            host, sep, container = item.rpartition(":")
            if not sep:
                raise ValueError(f"Invalid path mapping '{item}' (expected HOST:CONTAINER)")
        elif isinstance(item, Mapping):
            host = str(item.get("source", ""))
            container = str(item.get("destination", ""))
        else:
            if len(item) != 2:
                raise ValueError(f"Invalid path mapping {item!r} (expected a pair)")
            host, container = (str(part) for part in item)

        host = _strip_trailing_slash(host.strip())
        container = _strip_trailing_slash(container.strip())
        if not host or not container:
            raise ValueError(f"Invalid path mapping {item!r}: roots cannot be empty")
        pairs.append((host, container))
    return tuple(pairs)


def _strip_trailing_slash(root: str) -> str:
    stripped = root.rstrip("/")
    return stripped or root


def uri_to_path(uri: str) -> str:
    """Decode a ``file://`` URI (or a bare path) to a raw path string."""
    if "://" not in uri:
        return unquote(uri)
    parsed = urlparse(uri)
    return unquote(parsed.path)


def path_to_uri(path: str) -> str:
    """Encode a raw absolute path as a ``file://`` URI."""
    return "file://" + quote(path, safe=_URI_SAFE_CHARS)


def remote_path(container_name: str, path: str) -> str:
    """Tag a container-only path with the container it lives in."""
    return f"{REMOTE_PATH_PREFIX}{container_name}:{path}"


def is_remote_path(path: str) -> bool:
    return path.startswith(REMOTE_PATH_PREFIX)


def to_host_path(mapping: PathMapping, container_name: str, uri: str) -> str:
    """Translate a server-side URI into a path the editor can open."""
    path = uri_to_path(uri)
    for host_root, container_root in mapping:
        if container_root in path:
            return path.replace(container_root, host_root, 1)
    return remote_path(container_name, path)


def to_container_uri(mapping: PathMapping, host_path: str) -> str:
    """Translate a host path into the URI the containerized server sees.

    Raises PathNotMapped when no host root matches.
    """
    for host_root, container_root in mapping:
        if host_root in host_path:
            return path_to_uri(host_path.replace(host_root, container_root, 1))
    raise PathNotMapped(host_path)


def is_path_mapped(mapping: PathMapping, file_path: str | None) -> bool:
    """Return True when *file_path* is one of the host roots or lies beneath one."""
    if not file_path:
        return False
    path = PurePosixPath(file_path)
    return any(path.is_relative_to(host_root) for host_root, _container_root in mapping)
