"""Tests for the JSON-RPC server and the stdio stream binding."""

import asyncio
import json

import pytest

from conftest import RecordingWriter, stream_of
from nativelink_mcp.stdio import StdioTransport


@pytest.mark.asyncio
class TestProtocol:
    """MCPServer.handle"""

    async def test_initialize(self, server):
        response = await server.handle(
            {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "initialize",
                "params": {"protocolVersion": "2025-03-26"},
            }
        )
        result = response["result"]
        assert response["id"] == 1
        assert result["protocolVersion"] == "2025-03-26"
        assert result["capabilities"] == {"tools": {}}
        assert result["serverInfo"]["name"] == "nativelink-mcp"

    async def test_ping(self, server):
        assert await server.handle({"jsonrpc": "2.0", "id": "p", "method": "ping"}) == {
            "jsonrpc": "2.0",
            "id": "p",
            "result": {},
        }

    async def test_tools_list(self, server):
        response = await server.handle({"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
        tools = response["result"]["tools"]
        assert tools[0]["name"] == "get-bazel-config"
        assert all("inputSchema" in tool for tool in tools)

    async def test_tools_call_success(self, server):
        response = await server.handle(
            {
                "jsonrpc": "2.0",
                "id": 3,
                "method": "tools/call",
                "params": {"name": "get-nativelink-docs", "arguments": {"topic": "setup"}},
            }
        )
        content = response["result"]["content"]
        assert content[0]["type"] == "text"
        assert "Nativelink Cloud Setup Guide" in content[0]["text"]

    async def test_tool_errors_travel_in_result(self, server):
        response = await server.handle(
            {
                "jsonrpc": "2.0",
                "id": 4,
                "method": "tools/call",
                "params": {"name": "nonexistent", "arguments": {}},
            }
        )
        assert "error" not in response
        assert response["result"] == {
            "error": {"code": "MethodNotFound", "message": "Tool not found: nonexistent"}
        }

    async def test_unknown_method(self, server):
        response = await server.handle({"jsonrpc": "2.0", "id": 5, "method": "resources/list"})
        assert response["error"]["code"] == -32601
        assert response["error"]["message"] == "Method not found: resources/list"
        assert response["error"]["data"] == {"method": "resources/list"}

    async def test_invalid_request(self, server):
        assert (await server.handle([1, 2]))["error"]["code"] == -32600
        assert (await server.handle({"jsonrpc": "2.0", "id": 6}))["error"]["code"] == -32600

    async def test_notifications_get_no_response(self, server):
        assert await server.handle({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None
        assert await server.handle({"jsonrpc": "2.0", "method": "unknown/thing"}) is None


@pytest.mark.asyncio
class TestStdioTransport:
    """Line framing over a stream."""

    async def test_one_response_per_request_in_order(self, server):
        reader = stream_of(
            json.dumps({"jsonrpc": "2.0", "id": 1, "method": "ping"}),
            "",
            json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
            json.dumps({"jsonrpc": "2.0", "id": 2, "method": "tools/list"}),
        )
        writer = RecordingWriter()
        await StdioTransport(server).serve(reader, writer)

        messages = writer.messages
        assert [message["id"] for message in messages] == [1, 2]
        assert len(messages[1]["result"]["tools"]) == 5

    async def test_malformed_line_does_not_stop_the_loop(self, server):
        reader = stream_of(
            "{not json",
            json.dumps({"jsonrpc": "2.0", "id": 7, "method": "ping"}),
        )
        writer = RecordingWriter()
        await StdioTransport(server).serve(reader, writer)

        parse_error, pong = writer.messages
        assert parse_error["id"] is None
        assert parse_error["error"]["code"] == -32700
        assert pong == {"jsonrpc": "2.0", "id": 7, "result": {}}

    async def test_compact_single_line_output(self, server):
        reader = stream_of(json.dumps({"jsonrpc": "2.0", "id": 1, "method": "ping"}))
        writer = RecordingWriter()
        await StdioTransport(server).serve(reader, writer)
        assert bytes(writer.buffer) == b'{"jsonrpc":"2.0","id":1,"result":{}}\n'

    async def test_stop_event_abandons_pending_read(self, server):
        reader = asyncio.StreamReader()
        writer = RecordingWriter()
        stop = asyncio.Event()
        serving = asyncio.create_task(
            StdioTransport(server).serve(reader, writer, stop_event=stop)
        )
        await asyncio.sleep(0)
        stop.set()
        await asyncio.wait_for(serving, timeout=1)
        assert writer.buffer == bytearray()

    async def test_infinity_token_is_rejected_as_invalid_params(self, server):
        reader = stream_of(
            '{"jsonrpc":"2.0","id":9,"method":"tools/call","params":{"name":'
            '"get-nativelink-docs","arguments":{"topic":"setup","maxTokens":Infinity}}}'
        )
        writer = RecordingWriter()
        await StdioTransport(server).serve(reader, writer)

        (response,) = writer.messages
        assert response["id"] == 9
        assert response["result"] == {
            "error": {
                "code": "InvalidParams",
                "message": "Invalid parameters: maxTokens: Number must be finite",
            }
        }
