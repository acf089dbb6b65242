"""Registry that stores tool descriptors, input models and handlers."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, Union

from .schema import ToolDescriptor
from .validation import ToolInput

if TYPE_CHECKING:
    from ..nativelink_api import NativelinkAPI
    from ..settings import Settings


@dataclass(frozen=True)
class ToolContext:
    """Per-dispatch collaborators handed to a tool handler."""

    settings: Settings
    api: NativelinkAPI


ToolHandler = Callable[[Any, ToolContext], Union[str, Awaitable[str]]]


@dataclass(frozen=True)
class RegisteredTool:
    """Declarative definition of a tool."""

    name: str
    description: str
    input_model: type[ToolInput]
    handler: ToolHandler

    @property
    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=self.input_model.model_json_schema(),
        )


class ToolRegistry:
    """Read-only mapping of tool name to definition, in registration order.

    The tool set is fixed at construction. A repeated name replaces the
    earlier definition but keeps its original position.
    """

    def __init__(self, tools: Iterable[RegisteredTool] = ()) -> None:
        entries: dict[str, RegisteredTool] = {}
        for tool in tools:
            entries[tool.name] = tool
        self._tools = MappingProxyType(entries)

    def lookup(self, name: str) -> RegisteredTool | None:
        return self._tools.get(name)

    def list_all(self) -> list[ToolDescriptor]:
        """Return discovery descriptors in registration order."""
        return [tool.descriptor for tool in self._tools.values()]

    def names(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
