"""Tool dispatch: lookup, validation, execution and error normalization."""

from __future__ import annotations

import asyncio
import inspect
import logging

from mcp_boilerplate.tools.errors import (
    ToolError,
    from_validation_failure,
    internal_error,
    is_tool_error,
    method_not_found,
)
from mcp_boilerplate.tools.models import ToolResult, ToolSummary
from mcp_boilerplate.tools.registry import ToolDefinition, ToolRegistry
from mcp_boilerplate.tools.validation import ValidationFailure, validate

logger = logging.getLogger(__name__)


class ToolDispatcher:
    """Route tool calls against an injected, read-only registry.

    The dispatcher holds no per-call state, so concurrent ``call_tool``
    coroutines need no locking. Every call ends in exactly one ``ToolResult``
    or one raised ``ToolError``.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        include_error_detail: bool = False,
        timeout_seconds: float | None = None,
    ) -> None:
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be a positive number.")
        self._registry = registry
        self._include_error_detail = include_error_detail
        self._timeout_seconds = timeout_seconds

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def list_tools(self) -> tuple[ToolSummary, ...]:
        """Return tool summaries in registration order."""
        try:
            return self._registry.list()
        except Exception as error:
            logger.exception("Error listing tools")
            raise internal_error(
                "Failed to list available tools",
                error,
                include_detail=self._include_error_detail,
            ) from error

    async def call_tool(self, name: str, arguments: dict[str, object] | None) -> ToolResult:
        """Resolve, validate and execute one tool call."""
        definition = self._registry.find(name)
        if definition is None:
            raise method_not_found(f"Tool '{name}' not found")

        outcome = validate(definition.input_schema, {} if arguments is None else arguments)
        if isinstance(outcome, ValidationFailure):
            logger.debug("Validation failed for tool %s: %d issue(s)", name, len(outcome.issues))
            raise from_validation_failure(outcome)

        if self._timeout_seconds is None:
            result = await self._execute(definition, outcome.value)
        else:
            try:
                result = await asyncio.wait_for(
                    self._execute(definition, outcome.value),
                    timeout=self._timeout_seconds,
                )
            except TimeoutError as error:
                logger.error("Tool %s timed out after %ss", name, self._timeout_seconds)
                raise internal_error(
                    f"Tool '{name}' timed out after {self._timeout_seconds}s",
                    error,
                    include_detail=self._include_error_detail,
                ) from error

        if is_tool_error(result):
            raise result
        return result

    async def _execute(
        self,
        definition: ToolDefinition,
        arguments: dict[str, object],
    ) -> ToolResult | ToolError:
        # Any non-cancellation failure is folded into a ToolError here, so a
        # TimeoutError seen by the caller always means the deadline expired.
        try:
            if _is_async_callable(definition.execute):
                outcome = definition.execute(arguments)
            else:
                # A worker thread cannot be interrupted; on timeout it is
                # abandoned and left to finish on its own.
                outcome = await asyncio.to_thread(definition.execute, arguments)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except ToolError as error:
            return error
        except Exception as error:
            logger.exception("Unexpected error executing tool %s", definition.name)
            return internal_error(
                f"Failed to execute tool '{definition.name}'",
                error,
                include_detail=self._include_error_detail,
            )
        if isinstance(outcome, (ToolResult, ToolError)):
            return outcome
        logger.error(
            "Tool %s returned unsupported type %s", definition.name, type(outcome).__name__
        )
        return internal_error(
            f"Failed to execute tool '{definition.name}'",
            TypeError(f"unsupported result type {type(outcome).__name__}"),
            include_detail=self._include_error_detail,
        )


def _is_async_callable(func: object) -> bool:
    return inspect.iscoroutinefunction(func) or inspect.iscoroutinefunction(
        getattr(func, "__call__", None)
    )
