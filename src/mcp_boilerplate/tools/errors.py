"""Closed error taxonomy for tool dispatch failures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, TypeGuard

if TYPE_CHECKING:
    from mcp_boilerplate.tools.validation import ValidationFailure

PARSE_ERROR_CODE = -32700
INVALID_REQUEST_CODE = -32600


class ErrorKind(Enum):
    """Error kinds a tool call may terminate with, mapped to JSON-RPC codes."""

    INVALID_PARAMS = -32602
    METHOD_NOT_FOUND = -32601
    INTERNAL_ERROR = -32603

    @property
    def code(self) -> int:
        return self.value


@dataclass(slots=True, frozen=True, eq=False)
class ToolError(Exception):
    """Terminal failure of a single tool call.

    Raised or returned by execution functions and propagated unchanged to the
    transport boundary.
    """

    kind: ErrorKind
    message: str
    detail: dict[str, object] | None = None

    def __str__(self) -> str:
        return f"{self.kind.name}: {self.message}"

    @property
    def code(self) -> int:
        return self.kind.code

    def to_wire(self) -> dict[str, object]:
        """Render the JSON-RPC error object."""
        payload: dict[str, object] = {"code": self.code, "message": self.message}
        if self.detail is not None:
            payload["data"] = self.detail
        return payload


def is_tool_error(value: object) -> TypeGuard[ToolError]:
    """Return True when a value is already expressed in the taxonomy."""
    return isinstance(value, ToolError)


def invalid_params(message: str, field: str | None = None) -> ToolError:
    """Build an INVALID_PARAMS error, optionally prefixed by a field name."""
    full_message = f"{field}: {message}" if field else message
    return ToolError(kind=ErrorKind.INVALID_PARAMS, message=full_message)


def method_not_found(message: str) -> ToolError:
    """Build a METHOD_NOT_FOUND error with a caller-facing message."""
    return ToolError(kind=ErrorKind.METHOD_NOT_FOUND, message=message)


def internal_error(
    message: str,
    original: BaseException | object | None = None,
    include_detail: bool = False,
) -> ToolError:
    """Build an INTERNAL_ERROR.

    The original failure only ever reaches ``detail`` when ``include_detail``
    is set, which the server derives from the non-production configuration.
    """
    detail: dict[str, object] | None = None
    if include_detail and original is not None:
        detail = {
            "original_error": str(original),
            "original_type": type(original).__name__,
        }
    return ToolError(kind=ErrorKind.INTERNAL_ERROR, message=message, detail=detail)


def from_validation_failure(failure: ValidationFailure) -> ToolError:
    """Summarize validation issues into one INVALID_PARAMS error.

    The message is built from the first issue; the detail keeps all of them.
    """
    issues = [issue.to_dict() for issue in failure.issues]
    if not failure.issues:
        return ToolError(
            kind=ErrorKind.INVALID_PARAMS,
            message="Validation failed: Unknown error",
            detail={"issues": issues},
        )
    first = failure.issues[0]
    location = f" at '{first.dotted_path}'" if first.path else ""
    return ToolError(
        kind=ErrorKind.INVALID_PARAMS,
        message=f"Validation failed: {first.message}{location}",
        detail={"issues": issues},
    )
