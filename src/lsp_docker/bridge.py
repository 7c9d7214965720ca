"""
Stdio bridge between an editor and a containerized language server.

The editor talks to this process over stdin/stdout; the bridge spawns the
connection's argv and copies bytes both ways until the server closes its
stdout.  Messages are not parsed: framing and protocol belong to the editor
and the server.
"""

from __future__ import annotations

import contextlib
import logging
import sys
from typing import BinaryIO

import anyio
import anyio.to_thread
from anyio import AsyncFile
from anyio.abc import Process

from .clients.base import StdioConnection

_CHUNK_SIZE = 65536

logger = logging.getLogger(__name__)


async def _pump_input(source: BinaryIO, process: Process) -> None:
    """Copy editor input to the server until the editor closes its end."""
    if process.stdin is None:
        raise RuntimeError("Server process stdin is not available")

    read = getattr(source, "read1", source.read)
    try:
        while True:
            # Blocking read in a worker thread; abandoned if the server exits first.
            chunk = await anyio.to_thread.run_sync(read, _CHUNK_SIZE, abandon_on_cancel=True)
            if not chunk:
                break
            await process.stdin.send(chunk)
    except (anyio.BrokenResourceError, anyio.ClosedResourceError):
        logger.debug("Server stopped reading before editor input ended")
    finally:
        with contextlib.suppress(anyio.BrokenResourceError, anyio.ClosedResourceError):
            await process.stdin.aclose()


async def _pump_output(process: Process, sink: AsyncFile[bytes]) -> None:
    """Copy server output to the editor until the server closes stdout."""
    if process.stdout is None:
        raise RuntimeError("Server process stdout is not available")

    async for chunk in process.stdout:
        await sink.write(chunk)
        await sink.flush()


async def bridge_stdio(
    connection: StdioConnection,
    stdin: BinaryIO | None = None,
    stdout: BinaryIO | None = None,
) -> int:
    """Run *connection* with its stdio bridged to ours; return the server's exit code."""
    source = stdin if stdin is not None else sys.stdin.buffer
    sink = anyio.wrap_file(stdout if stdout is not None else sys.stdout.buffer)

    async with connection.open() as process:
        async with anyio.create_task_group() as tg:
            tg.start_soon(_pump_input, source, process)
            await _pump_output(process, sink)
            tg.cancel_scope.cancel()
        returncode = await process.wait()

    logger.debug("Server process exited with code %s", returncode)
    return returncode


def run_bridge(connection: StdioConnection) -> int:
    """Blocking entry point for ``bridge_stdio`` on the process's own stdio."""
    return anyio.run(bridge_stdio, connection)
