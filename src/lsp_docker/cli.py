#!/usr/bin/env python3
"""CLI tool for running language servers inside containers."""

import argparse
import json
import logging
import os
import shutil
import subprocess
import sys
from dataclasses import dataclass

from . import __version__
from .bridge import run_bridge
from .catalog import PATH_MAPPINGS_ENV_VAR, CatalogConfig, InitReport, init_clients
from .clients.base import ClientDescriptor
from .clients.plugin_loader import DEFAULT_CLIENT_PACKAGES, load_client_packages
from .clients.registry import ClientRegistry
from .containers import (
    ContainerExecLauncher,
    NewContainerLauncher,
    format_command,
    resolve_runtime,
)
from .errors import LspDockerError
from .path_mapping import to_container_uri, to_host_path


@dataclass
class RuntimeStatus:
    """Availability of the container runtime CLI."""

    command: list[str]
    executable: str | None
    available: bool
    version: str | None = None
    reason: str | None = None


def _runtime_status(runtime: list[str]) -> RuntimeStatus:
    """Check that the runtime executable exists and answers ``--version``."""
    executable = shutil.which(runtime[0])
    if executable is None:
        return RuntimeStatus(
            command=runtime,
            executable=None,
            available=False,
            reason=f"'{runtime[0]}' was not found on PATH",
        )

    try:
        completed = subprocess.run(
            [*runtime, "--version"],
            capture_output=True,
            text=True,
            check=False,
            timeout=5,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        return RuntimeStatus(
            command=runtime, executable=executable, available=False, reason=str(exc)
        )

    output = (completed.stdout or completed.stderr or "").strip()
    version = output.splitlines()[0][:200] if output else None
    if completed.returncode != 0:
        return RuntimeStatus(
            command=runtime,
            executable=executable,
            available=False,
            version=version,
            reason=f"exit code {completed.returncode}",
        )
    return RuntimeStatus(command=runtime, executable=executable, available=True, version=version)


def _print_doctor(status: RuntimeStatus, as_json: bool) -> None:
    """Render `doctor` command output."""
    if as_json:
        payload = {
            "ready": status.available,
            "runtime": {
                "command": status.command,
                "executable": status.executable,
                "available": status.available,
                "version": status.version,
                "reason": status.reason,
            },
        }
        print(json.dumps(payload, indent=2))
        return

    print("lsp-docker doctor")
    state = "OK" if status.available else "MISSING"
    print(f"[{state}] runtime: {format_command(status.command)}")
    if status.version:
        print(f"      version: {status.version}")
    if status.reason:
        print(f"      note: {status.reason}")


def _build_config(args: argparse.Namespace) -> CatalogConfig:
    return CatalogConfig.from_env(
        path_mappings=args.map,
        docker_image_id=args.image,
        docker_container_name=args.name,
        priority=args.priority,
    )


def _init_catalog(args: argparse.Namespace, registry: ClientRegistry) -> InitReport:
    runtime = args.runtime
    launch_fn = (
        ContainerExecLauncher(runtime=runtime)
        if getattr(args, "exec", False)
        else NewContainerLauncher(runtime=runtime)
    )
    return init_clients(_build_config(args), registry=registry, launch_fn=launch_fn)


def _describe(client: ClientDescriptor, docker_ids: set[str]) -> dict[str, object]:
    return {
        "server_id": client.server_id,
        "kind": "docker" if client.server_id in docker_ids else "native",
        "priority": client.priority,
        "command": list(client.server_command),
        "file_extensions": sorted(client.file_extensions),
    }


def _fail(message: str, code: int = 1) -> None:
    print(f"error: {message}", file=sys.stderr)
    sys.exit(code)


def _add_catalog_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--map",
        action="append",
        metavar="HOST:CONTAINER",
        help="Bind-mount pair; repeat for several roots (first match wins)",
    )
    parser.add_argument("--image", help="Default image for container clients")
    parser.add_argument("--name", help="Default container base name")
    parser.add_argument("--priority", type=int, help="Default registration priority")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Run editor language servers inside containers, translating host paths"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    parser.add_argument("--runtime", help="Container runtime command (default: docker)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    clients_parser = subparsers.add_parser("clients", help="List registered clients")
    _add_catalog_arguments(clients_parser)
    clients_parser.add_argument("--json", action="store_true", help="Output as JSON")

    command_parser = subparsers.add_parser(
        "command", help="Print the runtime command for a container client"
    )
    command_parser.add_argument("server_id", help="Container client id, e.g. pyls-docker")
    _add_catalog_arguments(command_parser)
    command_parser.add_argument(
        "--exec", action="store_true", help="Attach to a running container instead of starting one"
    )
    command_parser.add_argument("--json", action="store_true", help="Output argv as JSON")

    translate_parser = subparsers.add_parser("translate", help="Translate a path across the mount")
    translate_parser.add_argument("path", help="Host path, or server URI with --to-host")
    _add_catalog_arguments(translate_parser)
    translate_parser.add_argument(
        "--to-host", action="store_true", help="Translate a container URI to a host path"
    )

    run_parser = subparsers.add_parser(
        "run", help="Start a container client and bridge it to this process's stdio"
    )
    run_parser.add_argument("server_id", help="Container client id, e.g. pyls-docker")
    _add_catalog_arguments(run_parser)
    run_parser.add_argument(
        "--exec", action="store_true", help="Attach to a running container instead of starting one"
    )

    doctor_parser = subparsers.add_parser("doctor", help="Check container runtime readiness")
    doctor_parser.add_argument("--json", action="store_true", help="Output as JSON")

    args = parser.parse_args(argv)

    # stdout carries the bridged protocol stream; logs go to stderr only.
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "doctor":
        status = _runtime_status(resolve_runtime(args.runtime))
        _print_doctor(status, as_json=args.json)
        if not status.available:
            sys.exit(1)
        return

    if args.command is None:
        parser.print_help()
        return

    registry = ClientRegistry.get()

    try:
        if args.command == "clients":
            docker_ids: set[str] = set()
            if args.map or os.getenv(PATH_MAPPINGS_ENV_VAR, "").strip():
                docker_ids = set(_init_catalog(args, registry).registered)
            else:
                # Without mappings only the native clients exist.
                load_client_packages(DEFAULT_CLIENT_PACKAGES, registry)

            clients = [registry.require_client(sid) for sid in registry.server_ids]
            if args.json:
                described = [_describe(client, docker_ids) for client in clients]
                print(json.dumps({"clients": described}, indent=2))
            else:
                for client in clients:
                    kind = "docker" if client.server_id in docker_ids else "native"
                    command = format_command(client.server_command) or "<none>"
                    print(f"{client.server_id} [{kind}, priority {client.priority}]: {command}")

        elif args.command == "translate":
            config = _build_config(args)
            if args.to_host:
                print(to_host_path(config.path_mappings, config.docker_container_name, args.path))
            else:
                print(to_container_uri(config.path_mappings, args.path))

        elif args.command == "command":
            _init_catalog(args, registry)
            client = registry.require_client(args.server_id)
            connection = client.new_connection()
            if args.json:
                print(json.dumps(list(connection.command)))
            else:
                print(format_command(connection.command))

        elif args.command == "run":
            _init_catalog(args, registry)
            client = registry.require_client(args.server_id)
            sys.exit(run_bridge(client.new_connection()))

    except LspDockerError as exc:
        _fail(str(exc))
    except ValueError as exc:
        _fail(str(exc), code=2)


if __name__ == "__main__":
    main()
