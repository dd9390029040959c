"""Immutable tool registration primitives."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass
from types import MappingProxyType

from mcp_boilerplate.tools.errors import ToolError
from mcp_boilerplate.tools.models import ToolResult, ToolSummary
from mcp_boilerplate.tools.validation import ObjectSchema

ToolExecutor = Callable[[dict[str, object]], Awaitable[ToolResult | ToolError]]


class ToolRegistrationError(ValueError):
    """Raised at startup when a set of tool definitions is inconsistent."""


@dataclass(slots=True, frozen=True)
class ToolDefinition:
    """One invocable operation: name, description, schema and executor."""

    name: str
    description: str
    input_schema: ObjectSchema
    execute: ToolExecutor

    def summary(self) -> ToolSummary:
        return ToolSummary(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema.to_json_schema(),
        )


class ToolRegistry:
    """Write-once tool registry preserving registration order."""

    __slots__ = ("_tools", "_by_name")

    def __init__(self, definitions: Iterable[ToolDefinition] = ()) -> None:
        tools = tuple(definitions)
        by_name: dict[str, ToolDefinition] = {}
        for definition in tools:
            if not definition.name:
                raise ToolRegistrationError("Tool name must be a non-empty string.")
            if definition.name in by_name:
                raise ToolRegistrationError(f"Duplicate tool name detected: {definition.name}")
            by_name[definition.name] = definition
        self._tools = tools
        self._by_name = MappingProxyType(by_name)

    def find(self, name: str) -> ToolDefinition | None:
        """Return a definition by name."""
        return self._by_name.get(name)

    def list(self) -> tuple[ToolSummary, ...]:
        """Return tool summaries in registration order."""
        return tuple(definition.summary() for definition in self._tools)

    def names(self) -> tuple[str, ...]:
        """Return registered tool names in registration order."""
        return tuple(definition.name for definition in self._tools)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name
