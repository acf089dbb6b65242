"""FastAPI application bootstrap and process logging setup."""

from __future__ import annotations

import logging
import sys

from fastapi import FastAPI, Request, Response, status

from . import __version__
from .api import get_router
from .mcp.bootstrap import build_server
from .mcp.server import MCPServer
from .settings import Settings

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "*",
}


class _RequestIdFilter(logging.Filter):
    """Ensure every log record has a request_id attribute."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "system"
        return True


def configure_logging(debug: bool = False) -> None:
    """Send all logging to stderr; stdout carries protocol traffic."""

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s [request_id=%(request_id)s] %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )
    root_logger = logging.getLogger()
    request_filter = _RequestIdFilter()
    for handler in root_logger.handlers:
        handler.addFilter(request_filter)


def create_app(settings: Settings, *, server: MCPServer | None = None) -> FastAPI:
    """Construct the FastAPI application serving the HTTP binding."""

    server = server or build_server(settings)

    app = FastAPI(
        title="nativelink-mcp",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.server = server
    app.state.settings = settings

    @app.middleware("http")
    async def _cors(request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=status.HTTP_204_NO_CONTENT, headers=CORS_HEADERS)
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    app.include_router(get_router(server, settings))
    return app
