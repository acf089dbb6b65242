"""MCP server exposing Nativelink build tooling helpers."""

__version__ = "1.0.0"

SERVER_NAME = "nativelink-mcp"
