"""Global pytest fixtures for deterministic test behavior."""

import pytest

from lsp_docker.clients.registry import ClientRegistry

_ENV_VARS = (
    "LSP_DOCKER_COMMAND",
    "LSP_DOCKER_IMAGE",
    "LSP_DOCKER_CONTAINER_NAME",
    "LSP_DOCKER_PRIORITY",
    "LSP_DOCKER_PATH_MAPPINGS",
    "LSP_DOCKER_CLIENT_PACKAGES",
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch):
    """Clear lsp-docker env overrides so host configuration cannot leak in."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _fresh_registry():
    """Give every test an empty client registry singleton."""
    ClientRegistry.reset()
    yield
    ClientRegistry.reset()


@pytest.fixture
def registry():
    return ClientRegistry.get()


@pytest.fixture
def mapping():
    return (("/home/dev/project", "/projects/app"), ("/home/dev/lib", "/projects/lib"))
