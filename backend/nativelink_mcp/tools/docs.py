"""Nativelink documentation lookup."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, StrictStr

from ..mcp.registry import RegisteredTool, ToolContext
from ..mcp.validation import Number, ToolInput
from .formatting import truncate_response

TOOL_NAME = "get-nativelink-docs"

Topic = Literal["setup", "migration", "optimization", "troubleshooting", "api"]
DEFAULT_MAX_TOKENS = 5000
MIN_MAX_TOKENS = 1000


class DocsInput(ToolInput):
    topic: Topic = Field(description="Documentation topic")
    context: StrictStr = Field(
        default=None, description="Additional context or specific question"
    )
    max_tokens: Number = Field(
        default=DEFAULT_MAX_TOKENS,
        ge=MIN_MAX_TOKENS,
        alias="maxTokens",
        description="Maximum tokens to return (min 1000, default 5000)",
    )


async def handle(args: DocsInput, context: ToolContext) -> str:
    outcome = await context.api.fetch_documentation(args.topic, args.context)
    return truncate_response(outcome.text, int(args.max_tokens))


TOOL = RegisteredTool(
    name=TOOL_NAME,
    description="Fetch Nativelink documentation and best practices",
    input_model=DocsInput,
    handler=handle,
)
