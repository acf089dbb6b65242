"""Registry and server wiring shared by both transports."""

from __future__ import annotations

import logging

from ..settings import Settings
from ..tools import ALL_TOOLS
from .dispatcher import ToolDispatcher
from .registry import ToolRegistry
from .server import MCPServer

logger = logging.getLogger(__name__)


def build_registry() -> ToolRegistry:
    """Register the built-in tools in their fixed discovery order."""

    registry = ToolRegistry(ALL_TOOLS)
    logger.info("tools registered names=%s", registry.names(), extra={"request_id": "system"})
    return registry


def build_server(settings: Settings) -> MCPServer:
    registry = build_registry()
    return MCPServer(registry, ToolDispatcher(registry, settings), settings)
