"""Small text helpers shared by the tool handlers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

AVG_CHARS_PER_TOKEN = 4
TRUNCATION_MARKER = "\n\n[Response truncated for length]"


def iso_timestamp() -> str:
    """Return an ISO-8601 timestamp string (UTC)."""
    return datetime.now(timezone.utc).isoformat()


def format_bazelrc(lines: Iterable[str]) -> str:
    """Strip each line and drop the empty ones."""
    return "\n".join(stripped for stripped in (line.strip() for line in lines) if stripped)


def truncate_response(text: str, max_tokens: int) -> str:
    max_chars = max_tokens * AVG_CHARS_PER_TOKEN
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


def json_number(value: float) -> int | float:
    """Render integral numbers without a trailing ``.0``."""
    if float(value).is_integer():
        return int(value)
    return value
