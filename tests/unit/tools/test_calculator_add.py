from __future__ import annotations

import asyncio

import pytest

from mcp_boilerplate.tools import ErrorKind, ToolDispatcher, ToolError, build_registry, text_result
from mcp_boilerplate.tools.calculator import calculator_add, execute_addition, format_number


def _call(arguments: dict[str, object]):
    dispatcher = ToolDispatcher(build_registry())
    return asyncio.run(dispatcher.call_tool("calculator_add", arguments))


def _text(arguments: dict[str, object]) -> str:
    return _call(arguments).content[0].text


def test_adds_integers() -> None:
    assert _text({"a": 5, "b": 3}) == "5 + 3 = 8"


def test_adds_decimals() -> None:
    assert _text({"a": 1.5, "b": 2.7}) == "1.5 + 2.7 = 4.2"


def test_adds_negative_numbers() -> None:
    assert _text({"a": -10, "b": 4.5}) == "-10 + 4.5 = -5.5"


def test_integral_floats_render_without_fraction() -> None:
    assert _text({"a": 5.0, "b": 3.0}) == "5 + 3 = 8"


def test_result_is_single_text_block() -> None:
    result = _call({"a": 1, "b": 2})

    assert result.to_dict() == {"content": [{"type": "text", "text": "1 + 2 = 3"}]}


def test_string_input_references_field() -> None:
    with pytest.raises(ToolError) as caught:
        _call({"a": "x", "b": 3})

    assert caught.value.kind is ErrorKind.INVALID_PARAMS
    assert "'a'" in caught.value.message


def test_unknown_field_rejected() -> None:
    with pytest.raises(ToolError) as caught:
        _call({"a": 1, "b": 2, "c": 3})

    assert caught.value.kind is ErrorKind.INVALID_PARAMS
    assert "Unrecognized key(s) in object: 'c'" in caught.value.message


def test_sum_past_bound_is_overflow() -> None:
    with pytest.raises(ToolError) as caught:
        _call({"a": 1e10, "b": 1e10})

    assert caught.value.kind is ErrorKind.INVALID_PARAMS
    assert caught.value.message == "Result overflow: numbers too large to add safely"


def test_sum_at_bound_is_allowed() -> None:
    assert _text({"a": 1e10, "b": 0}) == "10000000000 + 0 = 10000000000"


def test_repeated_calls_are_idempotent() -> None:
    first = _call({"a": 2, "b": 2})
    second = _call({"a": 2, "b": 2})

    assert first == second == text_result("2 + 2 = 4")


def test_executor_returns_error_instead_of_raising() -> None:
    outcome = asyncio.run(execute_addition({"a": 1e10, "b": 1}))

    assert isinstance(outcome, ToolError)
    assert outcome.kind is ErrorKind.INVALID_PARAMS


def test_definition_metadata() -> None:
    assert calculator_add.name == "calculator_add"
    assert calculator_add.description.startswith("Add two numbers together")
    assert calculator_add.summary().input_schema["additionalProperties"] is False


def test_format_number() -> None:
    assert format_number(8) == "8"
    assert format_number(8.0) == "8"
    assert format_number(4.2) == "4.2"
    assert format_number(-0.5) == "-0.5"


def test_format_number_small_magnitudes_match_json_clients() -> None:
    assert format_number(1e-7) == "1e-7"
    assert format_number(-1.5e-7) == "-1.5e-7"
    assert format_number(1e-5) == "0.00001"
    assert format_number(1.5e-5) == "0.000015"
    assert format_number(2.5e-6) == "0.0000025"
    assert format_number(0.0001) == "0.0001"


def test_small_sum_uses_json_number_text() -> None:
    outcome = asyncio.run(execute_addition({"a": 1e-7, "b": 0}))

    assert outcome == text_result("1e-7 + 0 = 1e-7")
