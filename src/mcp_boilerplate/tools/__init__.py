"""Tool registry, validation and dispatch."""

from .builtin import build_registry, builtin_tools
from .dispatcher import ToolDispatcher
from .errors import ErrorKind, ToolError, internal_error, invalid_params, method_not_found
from .models import TextContent, ToolResult, ToolSummary, text_result
from .registry import ToolDefinition, ToolExecutor, ToolRegistrationError, ToolRegistry

__all__ = [
    "ErrorKind",
    "TextContent",
    "ToolDefinition",
    "ToolDispatcher",
    "ToolError",
    "ToolExecutor",
    "ToolRegistrationError",
    "ToolRegistry",
    "ToolResult",
    "ToolSummary",
    "build_registry",
    "builtin_tools",
    "internal_error",
    "invalid_params",
    "method_not_found",
    "text_result",
]
