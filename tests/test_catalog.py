"""Tests for catalog initialization."""

from unittest.mock import patch

import pytest

from lsp_docker import adapter
from lsp_docker.catalog import (
    DEFAULT_CONTAINER_NAME,
    DEFAULT_IMAGE_ID,
    DEFAULT_PRIORITY,
    DEFAULT_SERVER_SPECS,
    CatalogConfig,
    ServerSpec,
    init_clients,
    resolve_server_spec,
)
from lsp_docker.containers import ContainerIdentityAllocator, NewContainerLauncher
from lsp_docker.errors import InvalidServerSpec, UnknownServerId


def _init(config, registry, **kwargs):
    kwargs.setdefault("launch_fn", NewContainerLauncher(ContainerIdentityAllocator()))
    return init_clients(
        config, registry=registry, include_env=False, include_entry_points=False, **kwargs
    )


class TestCatalogConfig:
    def test_defaults(self, mapping):
        config = CatalogConfig(path_mappings=mapping)
        assert config.docker_image_id == DEFAULT_IMAGE_ID
        assert config.docker_container_name == DEFAULT_CONTAINER_NAME
        assert config.priority == DEFAULT_PRIORITY
        assert config.server_specs == DEFAULT_SERVER_SPECS

    def test_mappings_are_required(self):
        with pytest.raises(ValueError):
            CatalogConfig(path_mappings=())

    def test_mappings_are_normalized(self):
        config = CatalogConfig(path_mappings=["/h:/c", ["/a", "/b"]])  # type: ignore[arg-type]
        assert config.path_mappings == (("/h", "/c"), ("/a", "/b"))

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("LSP_DOCKER_PATH_MAPPINGS", "/h:/c, /a:/b")
        monkeypatch.setenv("LSP_DOCKER_IMAGE", "env-image")
        monkeypatch.setenv("LSP_DOCKER_CONTAINER_NAME", "env-box")
        monkeypatch.setenv("LSP_DOCKER_PRIORITY", "3")
        config = CatalogConfig.from_env()
        assert config.path_mappings == (("/h", "/c"), ("/a", "/b"))
        assert config.docker_image_id == "env-image"
        assert config.docker_container_name == "env-box"
        assert config.priority == 3

    def test_explicit_values_beat_env(self, monkeypatch):
        monkeypatch.setenv("LSP_DOCKER_PATH_MAPPINGS", "/env:/c")
        monkeypatch.setenv("LSP_DOCKER_IMAGE", "env-image")
        config = CatalogConfig.from_env(
            path_mappings=["/arg:/c"], docker_image_id="arg-image", priority=0
        )
        assert config.path_mappings == (("/arg", "/c"),)
        assert config.docker_image_id == "arg-image"
        assert config.priority == 0

    def test_bad_env_priority_is_ignored(self, monkeypatch):
        monkeypatch.setenv("LSP_DOCKER_PRIORITY", "high")
        config = CatalogConfig.from_env(path_mappings=["/h:/c"])
        assert config.priority == DEFAULT_PRIORITY


class TestServerSpec:
    def test_from_camel_case_mapping(self):
        spec = ServerSpec.from_mapping(
            {
                "serverId": "gopls",
                "dockerServerId": "gopls-docker",
                "serverCommand": "gopls",
                "dockerImageId": "golang-lsp",
                "dockerContainerName": "go-box",
                "priority": "7",
            }
        )
        assert spec == ServerSpec("gopls", "gopls-docker", "gopls", "golang-lsp", "go-box", 7)

    def test_from_mapping_requires_ids(self):
        with pytest.raises(InvalidServerSpec):
            ServerSpec.from_mapping({"server_id": "gopls"})


class TestResolveServerSpec:
    def test_defaults_applied(self, mapping):
        config = CatalogConfig(path_mappings=mapping, priority=4)
        resolved = resolve_server_spec(ServerSpec("pyls", "pyls-docker", "pyls"), config)
        assert resolved.image_id == DEFAULT_IMAGE_ID
        assert resolved.container_name == DEFAULT_CONTAINER_NAME
        assert resolved.priority == 4

    def test_overrides_applied(self, mapping):
        config = CatalogConfig(path_mappings=mapping)
        spec = ServerSpec("pyls", "pyls-docker", "pyls", "py-image", "py-box", priority=1)
        resolved = resolve_server_spec(spec, config)
        assert (resolved.image_id, resolved.container_name, resolved.priority) == (
            "py-image",
            "py-box",
            1,
        )

    def test_container_name_override_alone_is_fine(self, mapping):
        config = CatalogConfig(path_mappings=mapping)
        spec = ServerSpec("pyls", "pyls-docker", "pyls", docker_container_name="py-box")
        resolved = resolve_server_spec(spec, config)
        assert resolved.image_id == DEFAULT_IMAGE_ID
        assert resolved.container_name == "py-box"

    def test_image_without_container_name_rejected(self, mapping):
        config = CatalogConfig(path_mappings=mapping)
        spec = ServerSpec("pyls", "pyls-docker", "pyls", docker_image_id="py-image")
        with pytest.raises(InvalidServerSpec) as exc_info:
            resolve_server_spec(spec, config)
        assert exc_info.value.server_id == "pyls-docker"

    def test_docker_id_must_differ(self, mapping):
        config = CatalogConfig(path_mappings=mapping)
        with pytest.raises(InvalidServerSpec):
            resolve_server_spec(ServerSpec("pyls", "pyls", "pyls"), config)


class TestInitClients:
    def test_default_catalog_registers_every_server(self, registry, mapping):
        report = _init(CatalogConfig(path_mappings=mapping), registry)
        assert report.ok
        assert report.registered == [spec.docker_server_id for spec in DEFAULT_SERVER_SPECS]
        for spec in DEFAULT_SERVER_SPECS:
            assert spec.server_id in registry
            assert spec.docker_server_id in registry
        assert all(report.packages.values())

    def test_clients_use_catalog_defaults(self, registry, mapping):
        _init(CatalogConfig(path_mappings=mapping, priority=3), registry)
        client = registry.require_client("gopls-docker")
        assert client.priority == 3
        command = client.new_connection().command
        assert command[:4] == ("docker", "run", "--name", "lsp-container-1")
        assert command[-2:] == (DEFAULT_IMAGE_ID, "gopls")

    def test_invalid_spec_fails_before_any_spawn(self, registry, mapping):
        specs = (
            ServerSpec("pyls", "pyls-docker", "pyls", docker_image_id="py-image"),
            ServerSpec("gopls", "gopls-docker", "gopls"),
        )
        config = CatalogConfig(path_mappings=mapping, server_specs=specs)
        with patch("subprocess.Popen") as popen, patch("anyio.open_process") as open_process:
            report = _init(config, registry)
        popen.assert_not_called()
        open_process.assert_not_called()
        assert isinstance(report.failures["pyls-docker"], InvalidServerSpec)
        assert "pyls-docker" not in registry
        assert report.registered == ["gopls-docker"]

    def test_unknown_server_does_not_stop_others(self, registry, mapping):
        specs = (
            ServerSpec("rust-analyzer", "rust-docker", "rust-analyzer"),
            ServerSpec("pyls", "pyls-docker", "pyls"),
        )
        config = CatalogConfig(path_mappings=mapping, server_specs=specs)
        report = _init(config, registry)
        assert isinstance(report.failures["rust-docker"], UnknownServerId)
        assert report.registered == ["pyls-docker"]
        assert not report.ok

    def test_missing_package_leaves_its_spec_unresolved(self, registry, mapping):
        config = CatalogConfig(
            path_mappings=mapping,
            client_packages=("python", "no_such_language"),
            server_specs=(
                ServerSpec("pyls", "pyls-docker", "pyls"),
                ServerSpec("gopls", "gopls-docker", "gopls"),
            ),
        )
        report = _init(config, registry)
        assert report.packages == {"python": True, "no_such_language": False}
        assert report.registered == ["pyls-docker"]
        assert isinstance(report.failures["gopls-docker"], UnknownServerId)

    def test_later_duplicate_overwrites_earlier(self, registry, mapping):
        specs = (
            ServerSpec("pyls", "py-docker", "pyls"),
            ServerSpec("pylsp", "py-docker", "pylsp"),
        )
        config = CatalogConfig(path_mappings=mapping, server_specs=specs)
        report = _init(config, registry)
        assert report.registered == ["py-docker"]
        assert registry.require_client("py-docker").server_command == ("pylsp",)

    def test_later_success_clears_earlier_failure(self, registry, mapping):
        specs = (
            ServerSpec("rust-analyzer", "py-docker", "rust-analyzer"),
            ServerSpec("pyls", "py-docker", "pyls"),
        )
        config = CatalogConfig(path_mappings=mapping, server_specs=specs)
        report = _init(config, registry)
        assert report.registered == ["py-docker"]
        assert report.failures == {}
        assert report.ok

    def test_processing_follows_input_order(self, registry, mapping):
        specs = (
            ServerSpec("ts-ls", "tsls-docker", "typescript-language-server --stdio"),
            ServerSpec("bash-ls", "bashls-docker", "bash-language-server start"),
        )
        config = CatalogConfig(path_mappings=mapping, server_specs=specs)
        with patch.object(
            adapter, "derive_docker_client", wraps=adapter.derive_docker_client
        ) as derive:
            _init(config, registry)
        derived_ids = [call.args[1].docker_server_id for call in derive.call_args_list]
        assert derived_ids == ["tsls-docker", "bashls-docker"]

    def test_default_launcher_is_used_when_none_given(self, registry, mapping):
        config = CatalogConfig(
            path_mappings=mapping, server_specs=(ServerSpec("pyls", "pyls-docker", "pyls"),)
        )
        init_clients(config, registry=registry, include_env=False, include_entry_points=False)
        command = registry.require_client("pyls-docker").new_connection().command
        assert command[3].startswith("lsp-container-")
