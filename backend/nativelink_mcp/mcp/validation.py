"""Tool argument models and the validator that applies them.

Each tool declares its inputs as a :class:`ToolInput` subclass. The same model
renders the JSON schema advertised during discovery and validates incoming
arguments, so the two can never disagree. Pydantic error records are rewritten
into the short ``<path>: <reason>`` messages callers see.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Annotated, Any, Mapping, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

Number = Annotated[float, Field(strict=True)]

InputT = TypeVar("InputT", bound="ToolInput")


class ToolInput(BaseModel):
    """Base class with common config for tool argument models.

    Unknown fields are dropped, infinities and NaN are rejected, and validated
    instances are read-only.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)


@dataclass(frozen=True)
class FieldIssue:
    """One failing field path and the reason it failed."""

    path: str
    message: str

    def render(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


def format_issues(issues: Sequence[FieldIssue]) -> str:
    return ", ".join(issue.render() for issue in issues)


class SchemaValidationError(ValueError):
    """Raised when arguments violate a model; carries every violation."""

    def __init__(self, issues: Sequence[FieldIssue]):
        self.issues = list(issues)
        super().__init__(format_issues(self.issues))

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "SchemaValidationError":
        return cls([_issue(error) for error in exc.errors()])


def validate(model: type[InputT], raw_args: Any) -> InputT:
    """Validate ``raw_args`` against ``model``.

    ``None`` counts as an empty object. All violations are collected in field
    declaration order before raising :class:`SchemaValidationError`.
    """
    if raw_args is None:
        raw_args = {}
    try:
        return model.model_validate(raw_args)
    except ValidationError as exc:
        raise SchemaValidationError.from_pydantic(exc) from None


def _issue(error: Mapping[str, Any]) -> FieldIssue:
    path = ".".join(str(part) for part in error["loc"])
    return FieldIssue(path, _message(error))


_EXPECTED_TYPES = {
    "string_type": "string",
    "float_type": "number",
    "int_type": "integer",
    "bool_type": "boolean",
    "list_type": "array",
    "model_type": "object",
    "model_attributes_type": "object",
    "dict_type": "object",
}


def _message(error: Mapping[str, Any]) -> str:
    kind = error["type"]
    ctx = error.get("ctx") or {}
    value = error.get("input")

    if kind == "missing":
        return "Required"
    if kind in _EXPECTED_TYPES:
        return f"Expected {_EXPECTED_TYPES[kind]}, received {_type_name(value)}"
    if kind == "literal_error":
        if not isinstance(value, str):
            return f"Expected string, received {_type_name(value)}"
        options = re.findall(r"'([^']*)'", str(ctx.get("expected", "")))
        expected = " | ".join(f"'{option}'" for option in options)
        return f"Invalid enum value. Expected {expected}, received '{value}'"
    if kind == "greater_than_equal":
        return f"Number must be greater than or equal to {_format_number(ctx['ge'])}"
    if kind == "less_than_equal":
        return f"Number must be less than or equal to {_format_number(ctx['le'])}"
    if kind == "finite_number":
        return "Number must be finite"
    return str(error.get("msg", "Invalid input"))


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, float) and math.isnan(value):
        return "nan"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


__all__ = [
    "FieldIssue",
    "Number",
    "SchemaValidationError",
    "ToolInput",
    "format_issues",
    "validate",
]
