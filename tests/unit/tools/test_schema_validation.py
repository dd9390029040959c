from __future__ import annotations

import math

from mcp_boilerplate.tools.calculator import CALCULATOR_ADD_SCHEMA
from mcp_boilerplate.tools.validation import (
    BooleanField,
    IntegerField,
    NumberField,
    ObjectSchema,
    StringField,
    Validated,
    ValidationFailure,
    is_safe_number,
    safe_validate,
    validate,
)


def _issues(outcome: Validated | ValidationFailure) -> list[tuple[str, str]]:
    assert isinstance(outcome, ValidationFailure)
    return [(issue.dotted_path, issue.message) for issue in outcome.issues]


def test_valid_numbers_pass_through_unchanged() -> None:
    outcome = validate(CALCULATOR_ADD_SCHEMA, {"a": 5, "b": 2.5})

    assert outcome == Validated(value={"a": 5, "b": 2.5})


def test_string_value_reports_field_path() -> None:
    outcome = validate(CALCULATOR_ADD_SCHEMA, {"a": "x", "b": 3})

    assert _issues(outcome) == [("a", "Expected number, received string")]


def test_boolean_is_not_a_number() -> None:
    outcome = validate(CALCULATOR_ADD_SCHEMA, {"a": True, "b": 3})

    assert _issues(outcome) == [("a", "Expected number, received boolean")]


def test_missing_fields_are_required() -> None:
    outcome = validate(CALCULATOR_ADD_SCHEMA, {})

    assert _issues(outcome) == [("a", "Required"), ("b", "Required")]


def test_unknown_key_rejected_under_closed_policy() -> None:
    outcome = validate(CALCULATOR_ADD_SCHEMA, {"a": 1, "b": 2, "c": 3})

    assert isinstance(outcome, ValidationFailure)
    assert len(outcome.issues) == 1
    issue = outcome.issues[0]
    assert issue.path == ()
    assert issue.code == "unrecognized_keys"
    assert issue.message == "Unrecognized key(s) in object: 'c'"


def test_open_policy_keeps_unknown_keys() -> None:
    schema = ObjectSchema(fields=(("a", NumberField()),), additional_properties=True)

    outcome = validate(schema, {"a": 1, "extra": "kept"})

    assert outcome == Validated(value={"a": 1, "extra": "kept"})


def test_non_finite_numbers_rejected() -> None:
    outcome = validate(CALCULATOR_ADD_SCHEMA, {"a": math.nan, "b": math.inf})

    assert _issues(outcome) == [
        ("a", "Number must be finite (no NaN or Infinity)"),
        ("b", "Number must be finite (no NaN or Infinity)"),
    ]


def test_range_bounds_are_inclusive() -> None:
    assert isinstance(validate(CALCULATOR_ADD_SCHEMA, {"a": 1e10, "b": -1e10}), Validated)

    outcome = validate(CALCULATOR_ADD_SCHEMA, {"a": 1e10 + 1, "b": -1e10 - 1})

    assert _issues(outcome) == [
        ("a", "Number too large (must be <= 10,000,000,000)"),
        ("b", "Number too small (must be >= -10,000,000,000)"),
    ]


def test_unsafe_integer_rejected_before_range() -> None:
    schema = ObjectSchema(fields=(("n", NumberField()),))

    outcome = validate(schema, {"n": 2**60})

    assert _issues(outcome) == [("n", "Number must be within safe integer range")]


def test_non_object_input_rejected() -> None:
    outcome = validate(CALCULATOR_ADD_SCHEMA, [1, 2])

    assert _issues(outcome) == [("", "Expected object, received array")]


def test_nested_object_paths_are_dot_joined() -> None:
    schema = ObjectSchema(
        fields=(
            (
                "options",
                ObjectSchema(
                    fields=(
                        ("precision", IntegerField(minimum=0, maximum=10)),
                        ("label", StringField(min_length=1)),
                        ("verbose", BooleanField(required=False)),
                    )
                ),
            ),
        )
    )

    outcome = validate(schema, {"options": {"precision": 11, "label": ""}})

    assert _issues(outcome) == [
        ("options.precision", "Number must be less than or equal to 10"),
        ("options.label", "String must contain at least 1 character(s)"),
    ]


def test_optional_fields_may_be_absent() -> None:
    schema = ObjectSchema(
        fields=(("name", StringField()), ("verbose", BooleanField(required=False)))
    )

    assert validate(schema, {"name": "x"}) == Validated(value={"name": "x"})
    assert validate(schema, {"name": "x", "verbose": False}) == Validated(
        value={"name": "x", "verbose": False}
    )


def test_integer_field_accepts_integral_float() -> None:
    schema = ObjectSchema(fields=(("count", IntegerField()),))

    assert validate(schema, {"count": 3.0}) == Validated(value={"count": 3})
    assert _issues(validate(schema, {"count": 3.5})) == [
        ("count", "Expected integer, received number")
    ]


def test_safe_validate_flattens_first_issue() -> None:
    assert safe_validate(CALCULATOR_ADD_SCHEMA, {"a": 1, "b": 2}) == (True, {"a": 1, "b": 2})
    assert safe_validate(CALCULATOR_ADD_SCHEMA, {"a": "x", "b": "y"}) == (
        False,
        "Expected number, received string at 'a'",
    )


def test_is_safe_number_guards() -> None:
    assert is_safe_number(0)
    assert is_safe_number(1e10)
    assert not is_safe_number(2e10)
    assert not is_safe_number(math.nan)
    assert not is_safe_number(True)
    assert not is_safe_number("1")
    assert is_safe_number(50, minimum=0, maximum=100)


def test_schema_renders_json_schema() -> None:
    assert CALCULATOR_ADD_SCHEMA.to_json_schema() == {
        "type": "object",
        "properties": {
            "a": {
                "type": "number",
                "minimum": -1e10,
                "maximum": 1e10,
                "description": "First number to add",
            },
            "b": {
                "type": "number",
                "minimum": -1e10,
                "maximum": 1e10,
                "description": "Second number to add",
            },
        },
        "required": ["a", "b"],
        "additionalProperties": False,
    }
