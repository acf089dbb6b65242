"""JSON-RPC facing MCP server shared by the stream and HTTP bindings."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .. import SERVER_NAME, __version__
from ..settings import Settings
from .dispatcher import ToolDispatcher
from .registry import ToolRegistry
from .schema import JsonRpcErrorCode, ToolCallResult, ToolDescriptor

logger = logging.getLogger(__name__)

DEFAULT_PROTOCOL_VERSION = "2024-11-05"


class MCPServerError(Exception):
    """Raised when a protocol message cannot be served."""

    def __init__(
        self,
        message: str,
        *,
        code: JsonRpcErrorCode = JsonRpcErrorCode.INTERNAL_ERROR,
        details: Mapping[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.details = dict(details or {})

    def to_error(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": int(self.code), "message": str(self)}
        if self.details:
            error["data"] = self.details
        return error


def rpc_result(message_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": message_id, "result": result}


def rpc_error(message_id: Any, error: MCPServerError) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": message_id, "error": error.to_error()}


def call_params(params: Any) -> tuple[Any, Any]:
    """Split ``tools/call`` params into tool name and raw arguments."""

    if not isinstance(params, Mapping):
        return None, None
    return params.get("name"), params.get("arguments")


class MCPServer:
    """Maps protocol methods onto the tool registry and dispatcher."""

    def __init__(self, registry: ToolRegistry, dispatcher: ToolDispatcher, settings: Settings):
        self.registry = registry
        self.dispatcher = dispatcher
        self.settings = settings

    async def list_tools(self) -> list[ToolDescriptor]:
        return self.registry.list_all()

    async def call_tool(
        self,
        *,
        tool_name: Any,
        arguments: Any,
        settings: Settings | None = None,
        request_id: str = "system",
    ) -> ToolCallResult:
        return await self.dispatcher.dispatch(
            tool_name, arguments, settings=settings, request_id=request_id
        )

    async def tools_list_payload(self) -> dict[str, Any]:
        return {"tools": [descriptor.to_wire() for descriptor in await self.list_tools()]}

    def initialize_payload(self, params: Any) -> dict[str, Any]:
        requested = params.get("protocolVersion") if isinstance(params, Mapping) else None
        return {
            "protocolVersion": requested if isinstance(requested, str) else DEFAULT_PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
        }

    async def handle(self, message: Any) -> dict[str, Any] | None:
        """Serve one decoded JSON-RPC message.

        Returns the response object, or ``None`` for notifications.
        """

        if not isinstance(message, Mapping):
            return rpc_error(
                None,
                MCPServerError("Invalid Request", code=JsonRpcErrorCode.INVALID_REQUEST),
            )

        message_id = message.get("id")
        is_notification = "id" not in message
        method = message.get("method")
        if not isinstance(method, str):
            if is_notification:
                return None
            return rpc_error(
                message_id,
                MCPServerError("Invalid Request", code=JsonRpcErrorCode.INVALID_REQUEST),
            )

        request_id = "system" if is_notification else f"rpc-{message_id}"
        logger.debug("rpc message method=%s", method, extra={"request_id": request_id})
        try:
            result = await self._invoke(method, message.get("params"), request_id)
        except MCPServerError as exc:
            if is_notification:
                logger.info(
                    "ignored notification method=%s", method, extra={"request_id": request_id}
                )
                return None
            return rpc_error(message_id, exc)

        if is_notification:
            return None
        return rpc_result(message_id, result)

    async def _invoke(self, method: str, params: Any, request_id: str) -> Any:
        if method == "initialize":
            return self.initialize_payload(params)
        if method == "ping":
            return {}
        if method == "tools/list":
            return await self.tools_list_payload()
        if method == "tools/call":
            tool_name, arguments = call_params(params)
            result = await self.call_tool(
                tool_name=tool_name, arguments=arguments, request_id=request_id
            )
            return result.to_payload()
        if method.startswith("notifications/"):
            return None
        raise MCPServerError(
            f"Method not found: {method}",
            code=JsonRpcErrorCode.METHOD_NOT_FOUND,
            details={"method": method},
        )
