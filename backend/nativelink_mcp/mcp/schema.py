"""Shared MCP schema models and wire helpers."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ErrorCode(str, Enum):
    """Stable error codes carried inside tool result envelopes."""

    INVALID_PARAMS = "InvalidParams"
    METHOD_NOT_FOUND = "MethodNotFound"
    INTERNAL_ERROR = "InternalError"


class JsonRpcErrorCode(int, Enum):
    """Protocol level error codes used by the stream binding."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INTERNAL_ERROR = -32603


class ToolDescriptor(BaseModel):
    """Discovery metadata for a registered tool."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    description: str
    input_schema: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class TextContent(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["text"] = "text"
    text: str


class ToolError(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: ErrorCode
    message: str


class ToolCallResult(BaseModel):
    """Uniform envelope returned by every dispatch."""

    model_config = ConfigDict(extra="forbid")

    content: list[TextContent] | None = None
    error: ToolError | None = None

    @model_validator(mode="after")
    def _validate_payloads(self) -> "ToolCallResult":
        if self.content is None and self.error is None:
            raise ValueError("tool call result requires content or error payload")
        if self.content is not None and self.error is not None:
            raise ValueError("tool call result cannot include both content and error")
        return self

    @classmethod
    def success(cls, text: str) -> "ToolCallResult":
        return cls(content=[TextContent(text=text)])

    @classmethod
    def failure(cls, code: ErrorCode, message: str) -> "ToolCallResult":
        return cls(error=ToolError(code=code, message=message))

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def text(self) -> str | None:
        if not self.content:
            return None
        return "".join(item.text for item in self.content)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


def encode_json(payload: Any) -> str:
    """Serialize a payload the same way for every transport."""
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
