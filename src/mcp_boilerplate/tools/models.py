"""Typed result and listing models for tool calls."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class TextContent:
    """Single text content block."""

    text: str
    type: str = "text"

    def to_dict(self) -> dict[str, object]:
        return {"type": self.type, "text": self.text}


@dataclass(slots=True, frozen=True)
class ToolResult:
    """Successful tool outcome as an ordered sequence of content blocks."""

    content: tuple[TextContent, ...]

    def to_dict(self) -> dict[str, object]:
        return {"content": [block.to_dict() for block in self.content]}


@dataclass(slots=True, frozen=True)
class ToolSummary:
    """Listing view of a tool; never carries the execute capability."""

    name: str
    description: str
    input_schema: dict[str, object]

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


def text_result(text: str) -> ToolResult:
    """Build the minimal single-text-block result."""
    return ToolResult(content=(TextContent(text=text),))
