"""Shared fixtures: a fully wired server whose outbound network is stubbed."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from nativelink_mcp.mcp.bootstrap import build_registry
from nativelink_mcp.mcp.dispatcher import ToolDispatcher
from nativelink_mcp.mcp.server import MCPServer
from nativelink_mcp.nativelink_api import NativelinkAPI
from nativelink_mcp.settings import Settings


def unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("network unreachable", request=request)


def api_factory_for(handler):
    """Build an api factory whose clients talk to ``handler`` instead of the network."""

    def factory(settings: Settings) -> NativelinkAPI:
        return NativelinkAPI(settings, transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def dispatcher(registry, settings):
    return ToolDispatcher(registry, settings, api_factory=api_factory_for(unreachable))


@pytest.fixture
def server(registry, dispatcher, settings):
    return MCPServer(registry, dispatcher, settings)


class RecordingWriter:
    """Collects written lines in place of stdout."""

    def __init__(self):
        self.buffer = bytearray()

    def write(self, data):
        self.buffer.extend(data)

    async def drain(self):
        return None

    @property
    def messages(self):
        return [json.loads(line) for line in self.buffer.decode("utf-8").splitlines()]


def stream_of(*lines):
    """A closed stream that yields ``lines`` one per newline."""
    reader = asyncio.StreamReader()
    for line in lines:
        reader.feed_data(line.encode("utf-8") + b"\n")
    reader.feed_eof()
    return reader
