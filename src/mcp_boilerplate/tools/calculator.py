"""Addition calculator tool."""

from __future__ import annotations

import math

from mcp_boilerplate.tools.errors import ToolError, invalid_params
from mcp_boilerplate.tools.models import ToolResult, text_result
from mcp_boilerplate.tools.registry import ToolDefinition
from mcp_boilerplate.tools.validation import (
    DEFAULT_NUMBER_MAX,
    DEFAULT_NUMBER_MIN,
    NumberField,
    ObjectSchema,
    is_safe_number,
)

CALCULATOR_ADD_NAME = "calculator_add"

CALCULATOR_ADD_SCHEMA = ObjectSchema(
    fields=(
        (
            "a",
            NumberField(
                description="First number to add",
                minimum=DEFAULT_NUMBER_MIN,
                maximum=DEFAULT_NUMBER_MAX,
            ),
        ),
        (
            "b",
            NumberField(
                description="Second number to add",
                minimum=DEFAULT_NUMBER_MIN,
                maximum=DEFAULT_NUMBER_MAX,
            ),
        ),
    ),
    additional_properties=False,
)


def format_number(value: int | float) -> str:
    """Render a number the way a JSON client wrote it (``8`` rather than ``8.0``)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = repr(value)
    mantissa, _, exponent = text.partition("e")
    if not exponent:
        return text
    power = int(exponent)
    if power >= 0:
        return f"{mantissa}e+{power}"
    if power < -6:
        return f"{mantissa}e{power}"
    # JSON clients only switch to exponent form below 1e-6.
    sign = "-" if mantissa.startswith("-") else ""
    digits = mantissa.lstrip("-").replace(".", "")
    return f"{sign}0.{'0' * (-power - 1)}{digits}"


async def execute_addition(arguments: dict[str, object]) -> ToolResult | ToolError:
    """Add validated ``a`` and ``b``.

    The sum is held to the same bound as the inputs; anything past it is
    reported as an overflow rather than returned.
    """
    a = arguments["a"]
    b = arguments["b"]
    if not isinstance(a, (int, float)) or not isinstance(b, (int, float)):
        return invalid_params("Numbers must be finite values (no NaN or Infinity)")

    total = a + b
    if not math.isfinite(total) or not is_safe_number(total):
        return invalid_params("Result overflow: numbers too large to add safely")

    return text_result(f"{format_number(a)} + {format_number(b)} = {format_number(total)}")


calculator_add = ToolDefinition(
    name=CALCULATOR_ADD_NAME,
    description=(
        "Add two numbers together and return the result. "
        "Supports integers and decimal numbers within safe bounds."
    ),
    input_schema=CALCULATOR_ADD_SCHEMA,
    execute=execute_addition,
)
