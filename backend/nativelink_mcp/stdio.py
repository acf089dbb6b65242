"""Newline-delimited JSON-RPC binding over stdin/stdout."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import signal
import sys
from typing import Any, Protocol

from .mcp.schema import JsonRpcErrorCode, encode_json
from .mcp.server import MCPServer, MCPServerError, rpc_error

logger = logging.getLogger(__name__)

MAX_LINE_BYTES = 16 * 1024 * 1024


class LineWriter(Protocol):
    def write(self, data: bytes) -> Any: ...

    async def drain(self) -> None: ...


class StdioTransport:
    """Reads one JSON-RPC message per line and writes one response per line.

    Messages are served to completion in arrival order. A malformed line is
    answered with a parse error and never stops the loop.
    """

    def __init__(self, server: MCPServer):
        self.server = server

    async def serve(
        self,
        reader: asyncio.StreamReader,
        writer: LineWriter,
        *,
        stop_event: asyncio.Event | None = None,
    ) -> None:
        stop = stop_event or asyncio.Event()
        logger.info("stdio transport ready", extra={"request_id": "system"})
        while not stop.is_set():
            try:
                line = await self._next_line(reader, stop)
            except ValueError:
                logger.warning(
                    "dropping oversized message limit=%s",
                    MAX_LINE_BYTES,
                    extra={"request_id": "system"},
                )
                await self._write(
                    writer,
                    rpc_error(
                        None,
                        MCPServerError(
                            "Parse error: message too large",
                            code=JsonRpcErrorCode.PARSE_ERROR,
                        ),
                    ),
                )
                continue
            if line is None:
                break
            response = await self.handle_line(line)
            if response is not None:
                await self._write(writer, response)
        logger.info("stdio transport stopped", extra={"request_id": "system"})

    async def handle_line(self, line: bytes) -> dict[str, Any] | None:
        text = line.decode("utf-8", errors="replace").strip()
        if not text:
            return None
        try:
            message = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("unparseable message error=%s", exc, extra={"request_id": "system"})
            return rpc_error(
                None, MCPServerError("Parse error", code=JsonRpcErrorCode.PARSE_ERROR)
            )
        try:
            return await self.server.handle(message)
        except Exception:
            logger.exception("unhandled error serving message", extra={"request_id": "system"})
            message_id = message.get("id") if isinstance(message, dict) else None
            return rpc_error(message_id, MCPServerError("Internal error"))

    async def _next_line(
        self, reader: asyncio.StreamReader, stop: asyncio.Event
    ) -> bytes | None:
        """Return the next line, or ``None`` on EOF or when ``stop`` is set."""

        read_task = asyncio.ensure_future(reader.readline())
        stop_task = asyncio.ensure_future(stop.wait())
        done, _ = await asyncio.wait(
            {read_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
        )
        if read_task not in done:
            read_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await read_task
            return None
        stop_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await stop_task
        line = read_task.result()
        return line or None

    @staticmethod
    async def _write(writer: LineWriter, payload: dict[str, Any]) -> None:
        writer.write((encode_json(payload) + "\n").encode("utf-8"))
        await writer.drain()


async def run_stdio(server: MCPServer) -> None:
    """Serve ``server`` on the process stdin/stdout until EOF or a signal."""

    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=MAX_LINE_BYTES)
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    write_transport, write_protocol = await loop.connect_write_pipe(
        asyncio.streams.FlowControlMixin, sys.stdout
    )
    writer = asyncio.StreamWriter(write_transport, write_protocol, reader, loop)

    stop = asyncio.Event()
    installed: list[signal.Signals] = []
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, stop.set)
        except (NotImplementedError, RuntimeError):
            logger.debug("signal handler unavailable signal=%s", signum, extra={"request_id": "system"})
            continue
        installed.append(signum)

    try:
        await StdioTransport(server).serve(reader, writer, stop_event=stop)
    finally:
        for signum in installed:
            loop.remove_signal_handler(signum)
        write_transport.close()
