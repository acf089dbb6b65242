"""Process configuration sourced from the environment and CLI flags.

Settings are built once by the entrypoint and passed explicitly to the
transports and tool handlers. Nothing in this module runs at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Literal

from dotenv import find_dotenv, load_dotenv

DEFAULT_NATIVELINK_URL = "https://api.nativelink.com"

TransportMode = Literal["stdio", "http"]


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    return normalized in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_str(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip()
    return normalized or default


def load_dotenv_if_present() -> None:
    """Load environment variables from a .env file if one can be found."""

    dotenv_path = find_dotenv(filename=".env", usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path=dotenv_path)


@dataclass(frozen=True)
class Settings:
    """Immutable server configuration.

    Credentials may be overridden for a single HTTP call through
    :meth:`with_api_key`, which returns a copy and leaves this instance intact.
    """

    api_key: str | None = None
    anthropic_key: str | None = None
    gemini_key: str | None = None
    nativelink_url: str = DEFAULT_NATIVELINK_URL
    debug: bool = False
    request_timeout_seconds: float = 10.0
    transport: TransportMode = "stdio"
    host: str = "0.0.0.0"
    port: int = 3000

    @classmethod
    def from_env(cls) -> "Settings":
        raw_transport = (_env_str("MCP_TRANSPORT", "stdio") or "stdio").lower()
        transport: TransportMode = "http" if raw_transport == "http" else "stdio"
        return cls(
            api_key=_env_str("NATIVELINK_API_KEY"),
            anthropic_key=_env_str("ANTHROPIC_API_KEY"),
            gemini_key=_env_str("GEMINI_API_KEY"),
            nativelink_url=_env_str("NATIVELINK_URL", DEFAULT_NATIVELINK_URL)
            or DEFAULT_NATIVELINK_URL,
            debug=_env_bool("DEBUG", False),
            request_timeout_seconds=max(1.0, _env_float("NATIVELINK_TIMEOUT_SECONDS", 10.0)),
            transport=transport,
            host=_env_str("MCP_HOST", "0.0.0.0") or "0.0.0.0",
            port=_env_int("PORT", 3000),
        )

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with every non-empty override applied."""
        applied = {key: value for key, value in overrides.items() if value not in (None, "")}
        if not applied:
            return self
        return replace(self, **applied)

    def with_api_key(self, api_key: str | None) -> "Settings":
        """Return settings scoped to one request's credential."""
        if not api_key:
            return self
        return replace(self, api_key=api_key)

    @property
    def ai_provider(self) -> str | None:
        if self.anthropic_key:
            return "anthropic"
        if self.gemini_key:
            return "gemini"
        return None

    @property
    def ai_key(self) -> str | None:
        return self.anthropic_key or self.gemini_key


__all__ = ["DEFAULT_NATIVELINK_URL", "Settings", "TransportMode", "load_dotenv_if_present"]
