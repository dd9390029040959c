"""Built-in tool set shipped with the server."""

from __future__ import annotations

from collections.abc import Iterable

from mcp_boilerplate.tools.calculator import calculator_add
from mcp_boilerplate.tools.registry import ToolDefinition, ToolRegistry


def builtin_tools() -> tuple[ToolDefinition, ...]:
    """Return the built-in tool definitions in listing order."""
    return (calculator_add,)


def build_registry(extra_tools: Iterable[ToolDefinition] = ()) -> ToolRegistry:
    """Build the process registry from built-in tools plus any extras.

    Raises ToolRegistrationError when an extra tool reuses a built-in name.
    """
    return ToolRegistry((*builtin_tools(), *extra_tools))
