"""Command-line entrypoint for the Nativelink MCP server."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Sequence

import uvicorn

from . import __version__
from .main import configure_logging, create_app
from .mcp.bootstrap import build_server
from .settings import Settings, load_dotenv_if_present
from .stdio import run_stdio

logger = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="nativelink-mcp",
        description="Serve Nativelink build tooling over the Model Context Protocol.",
    )
    parser.add_argument("--api-key", help="Nativelink API key (default: $NATIVELINK_API_KEY).")
    parser.add_argument(
        "--anthropic-key", help="Anthropic key for AI build analysis (default: $ANTHROPIC_API_KEY)."
    )
    parser.add_argument(
        "--gemini-key", help="Gemini key for AI build analysis (default: $GEMINI_API_KEY)."
    )
    parser.add_argument("--nativelink-url", help="Nativelink API base URL (default: $NATIVELINK_URL).")
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Enable debug logging (default: $DEBUG).",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        help="Transport to serve (default: $MCP_TRANSPORT or stdio).",
    )
    parser.add_argument("--host", help="HTTP bind host (default: $MCP_HOST or 0.0.0.0).")
    parser.add_argument("--port", type=int, help="HTTP port (default: $PORT or 3000).")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(list(argv) if argv is not None else None)


def resolve_settings(args: argparse.Namespace) -> Settings:
    """Environment first, then any flags given on the command line."""

    load_dotenv_if_present()
    return Settings.from_env().with_overrides(
        api_key=args.api_key,
        anthropic_key=args.anthropic_key,
        gemini_key=args.gemini_key,
        nativelink_url=args.nativelink_url,
        debug=args.debug,
        transport=args.transport,
        host=args.host,
        port=args.port,
    )


async def _serve_http(settings: Settings) -> int:
    config = uvicorn.Config(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
        log_level="debug" if settings.debug else "info",
    )
    server = uvicorn.Server(config)
    logger.info(
        "starting http transport host=%s port=%s",
        settings.host,
        settings.port,
        extra={"request_id": "system"},
    )
    await server.serve()
    return 0 if server.started else 1


async def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = resolve_settings(args)
    configure_logging(settings.debug)
    logger.info(
        "nativelink-mcp %s transport=%s ai_provider=%s",
        __version__,
        settings.transport,
        settings.ai_provider or "none",
        extra={"request_id": "system"},
    )
    try:
        if settings.transport == "http":
            return await _serve_http(settings)
        await run_stdio(build_server(settings))
        return 0
    except KeyboardInterrupt:
        return 0
    except Exception:
        logger.exception("server failed to start", extra={"request_id": "system"})
        return 1


def entrypoint() -> None:
    """Synchronously run the async CLI for convenience."""
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":  # pragma: no cover
    entrypoint()
