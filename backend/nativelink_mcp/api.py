"""HTTP routes for the MCP server.

This module is safe to import: routes are built against the server handed to
:func:`get_router` and nothing is constructed at import time.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from typing import Any, Mapping

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from .mcp.server import MCPServer, call_params
from .settings import Settings

logger = logging.getLogger(__name__)

BEARER_PATTERN = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)
API_KEY_HEADERS = ("nativelink-api-key", "nativelink_api_key", "x-api-key", "x_api_key")
CATCH_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"]


def extract_api_key(headers: Mapping[str, str]) -> str | None:
    """Return the first credential found, honouring header priority.

    A bearer ``Authorization`` header wins, then the dedicated API key headers
    in order. Header names are compared case-insensitively.
    """

    normalized = {name.lower(): value for name, value in headers.items()}
    authorization = normalized.get("authorization")
    if authorization:
        match = BEARER_PATTERN.match(authorization.strip())
        if match:
            return match.group(1).strip()
    for name in API_KEY_HEADERS:
        value = (normalized.get(name) or "").strip()
        if value:
            return value
    return None


def _log(message: str, request_id: str, *args: object) -> None:
    logger.info(message, *args, extra={"request_id": request_id})


def get_router(server: MCPServer, settings: Settings) -> APIRouter:
    """Build HTTP routes that front ``server``."""

    router = APIRouter()

    @router.get("/ping")
    async def ping() -> PlainTextResponse:
        return PlainTextResponse("pong")

    @router.post("/mcp")
    async def mcp_endpoint(request: Request) -> JSONResponse:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        try:
            body: Any = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.exception("malformed request body", extra={"request_id": request_id})
            return JSONResponse(
                {"error": "Internal server error"},
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        method = body.get("method") if isinstance(body, dict) else None
        _log("mcp request method=%s", request_id, method)

        if method == "tools/list":
            return JSONResponse(await server.tools_list_payload())

        if method == "tools/call":
            tool_name, arguments = call_params(body.get("params"))
            scoped = settings.with_api_key(extract_api_key(request.headers))
            try:
                result = await server.call_tool(
                    tool_name=tool_name,
                    arguments=arguments,
                    settings=scoped,
                    request_id=request_id,
                )
            except Exception:
                logger.exception("tool call failed", extra={"request_id": request_id})
                return JSONResponse(
                    {"error": "Internal server error"},
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                )
            return JSONResponse(result.to_payload())

        return JSONResponse({"error": "Method not found"}, status_code=status.HTTP_404_NOT_FOUND)

    @router.api_route("/{path:path}", methods=CATCH_ALL_METHODS, include_in_schema=False)
    async def not_found(path: str) -> PlainTextResponse:
        return PlainTextResponse("Not found", status_code=status.HTTP_404_NOT_FOUND)

    return router
