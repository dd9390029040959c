"""Declarative input schemas and the generic validator that interprets them."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Final, Union

MAX_SAFE_INTEGER: Final[int] = 2**53 - 1
DEFAULT_NUMBER_MIN: Final[float] = -1e10
DEFAULT_NUMBER_MAX: Final[float] = 1e10


@dataclass(slots=True, frozen=True)
class ValidationIssue:
    """One problem found in an argument bag."""

    path: tuple[str, ...]
    message: str
    code: str

    @property
    def dotted_path(self) -> str:
        return ".".join(self.path)

    def to_dict(self) -> dict[str, object]:
        return {"path": list(self.path), "message": self.message, "code": self.code}


@dataclass(slots=True, frozen=True)
class ValidationFailure:
    """Ordered, non-empty collection of validation issues."""

    issues: tuple[ValidationIssue, ...]


@dataclass(slots=True, frozen=True)
class Validated:
    """Arguments that satisfy every constraint of their schema."""

    value: dict[str, object]


@dataclass(slots=True, frozen=True)
class NumberField:
    """Finite numeric field with an inclusive range."""

    description: str = ""
    minimum: float | None = None
    maximum: float | None = None
    safe: bool = True
    required: bool = True

    def to_json_schema(self) -> dict[str, object]:
        schema: dict[str, object] = {"type": "number"}
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        if self.description:
            schema["description"] = self.description
        return schema


@dataclass(slots=True, frozen=True)
class IntegerField:
    """Whole-number field with an inclusive range."""

    description: str = ""
    minimum: int | None = None
    maximum: int | None = None
    required: bool = True

    def to_json_schema(self) -> dict[str, object]:
        schema: dict[str, object] = {"type": "integer"}
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        if self.description:
            schema["description"] = self.description
        return schema


@dataclass(slots=True, frozen=True)
class StringField:
    description: str = ""
    min_length: int = 0
    max_length: int | None = None
    required: bool = True

    def to_json_schema(self) -> dict[str, object]:
        schema: dict[str, object] = {"type": "string"}
        if self.min_length:
            schema["minLength"] = self.min_length
        if self.max_length is not None:
            schema["maxLength"] = self.max_length
        if self.description:
            schema["description"] = self.description
        return schema


@dataclass(slots=True, frozen=True)
class BooleanField:
    description: str = ""
    required: bool = True

    def to_json_schema(self) -> dict[str, object]:
        schema: dict[str, object] = {"type": "boolean"}
        if self.description:
            schema["description"] = self.description
        return schema


@dataclass(slots=True, frozen=True)
class ObjectSchema:
    """Object shape with named fields and an unknown-key policy.

    ``additional_properties=False`` rejects unknown keys outright instead of
    dropping them.
    """

    fields: tuple[tuple[str, FieldSpec], ...]
    additional_properties: bool = False
    description: str = ""
    required: bool = True

    def field_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.fields)

    def to_json_schema(self) -> dict[str, object]:
        schema: dict[str, object] = {
            "type": "object",
            "properties": {name: rule.to_json_schema() for name, rule in self.fields},
            "required": [name for name, rule in self.fields if rule.required],
            "additionalProperties": self.additional_properties,
        }
        if self.description:
            schema["description"] = self.description
        return schema


FieldSpec = Union[NumberField, IntegerField, StringField, BooleanField, ObjectSchema]


@dataclass(slots=True)
class _IssueCollector:
    issues: list[ValidationIssue] = field(default_factory=list)

    def add(self, path: tuple[str, ...], message: str, code: str) -> None:
        self.issues.append(ValidationIssue(path=path, message=message, code=code))


def validate(schema: ObjectSchema, raw: object) -> Validated | ValidationFailure:
    """Check an untyped argument bag against a schema.

    Every field is checked so the failure lists all issues in declaration
    order; unknown keys are reported after declared fields.
    """
    collector = _IssueCollector()
    value = _validate_object(schema, raw, (), collector)
    if collector.issues or value is None:
        return ValidationFailure(issues=tuple(collector.issues))
    return Validated(value=value)


def safe_validate(schema: ObjectSchema, raw: object) -> tuple[bool, object]:
    """Validate and flatten the outcome to ``(ok, data_or_message)``."""
    outcome = validate(schema, raw)
    if isinstance(outcome, Validated):
        return True, outcome.value
    first = outcome.issues[0]
    location = f" at '{first.dotted_path}'" if first.path else ""
    return False, f"{first.message}{location}"


def is_safe_number(
    value: object,
    minimum: float = DEFAULT_NUMBER_MIN,
    maximum: float = DEFAULT_NUMBER_MAX,
) -> bool:
    """Return True for a finite, non-boolean number within ``[minimum, maximum]``."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return minimum <= value <= maximum


def _type_name(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _validate_object(
    schema: ObjectSchema,
    raw: object,
    path: tuple[str, ...],
    collector: _IssueCollector,
) -> dict[str, object] | None:
    if not isinstance(raw, Mapping):
        collector.add(path, f"Expected object, received {_type_name(raw)}", "invalid_type")
        return None

    output: dict[str, object] = {}
    for name, rule in schema.fields:
        field_path = (*path, name)
        if name not in raw:
            if rule.required:
                collector.add(field_path, "Required", "invalid_type")
            continue
        checked = _validate_field(rule, raw[name], field_path, collector)
        if checked is not None:
            output[name] = checked

    known = set(schema.field_names())
    unknown = [str(key) for key in raw.keys() if key not in known]
    if unknown:
        if schema.additional_properties:
            for key in unknown:
                output[key] = raw[key]
        else:
            listed = ", ".join(f"'{key}'" for key in unknown)
            collector.add(path, f"Unrecognized key(s) in object: {listed}", "unrecognized_keys")
    return output


def _validate_field(
    rule: FieldSpec,
    raw: object,
    path: tuple[str, ...],
    collector: _IssueCollector,
) -> object | None:
    if isinstance(rule, ObjectSchema):
        return _validate_object(rule, raw, path, collector)
    if isinstance(rule, NumberField):
        return _validate_number(rule, raw, path, collector)
    if isinstance(rule, IntegerField):
        return _validate_integer(rule, raw, path, collector)
    if isinstance(rule, StringField):
        return _validate_string(rule, raw, path, collector)
    if isinstance(rule, BooleanField):
        if not isinstance(raw, bool):
            collector.add(path, f"Expected boolean, received {_type_name(raw)}", "invalid_type")
            return None
        return raw
    raise TypeError(f"Unsupported field type: {type(rule).__name__}")


def _validate_number(
    rule: NumberField,
    raw: object,
    path: tuple[str, ...],
    collector: _IssueCollector,
) -> int | float | None:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        collector.add(path, f"Expected number, received {_type_name(raw)}", "invalid_type")
        return None
    if isinstance(raw, float) and not math.isfinite(raw):
        collector.add(path, "Number must be finite (no NaN or Infinity)", "not_finite")
        return None
    if rule.safe and abs(raw) > MAX_SAFE_INTEGER:
        collector.add(path, "Number must be within safe integer range", "too_big")
        return None
    if rule.minimum is not None and raw < rule.minimum:
        collector.add(path, f"Number too small (must be >= {rule.minimum:,.0f})", "too_small")
        return None
    if rule.maximum is not None and raw > rule.maximum:
        collector.add(path, f"Number too large (must be <= {rule.maximum:,.0f})", "too_big")
        return None
    return raw


def _validate_integer(
    rule: IntegerField,
    raw: object,
    path: tuple[str, ...],
    collector: _IssueCollector,
) -> int | None:
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    if isinstance(raw, bool) or not isinstance(raw, int):
        collector.add(path, f"Expected integer, received {_type_name(raw)}", "invalid_type")
        return None
    if rule.minimum is not None and raw < rule.minimum:
        collector.add(path, f"Number must be greater than or equal to {rule.minimum}", "too_small")
        return None
    if rule.maximum is not None and raw > rule.maximum:
        collector.add(path, f"Number must be less than or equal to {rule.maximum}", "too_big")
        return None
    return raw


def _validate_string(
    rule: StringField,
    raw: object,
    path: tuple[str, ...],
    collector: _IssueCollector,
) -> str | None:
    if not isinstance(raw, str):
        collector.add(path, f"Expected string, received {_type_name(raw)}", "invalid_type")
        return None
    if len(raw) < rule.min_length:
        collector.add(
            path,
            f"String must contain at least {rule.min_length} character(s)",
            "too_small",
        )
        return None
    if rule.max_length is not None and len(raw) > rule.max_length:
        collector.add(
            path,
            f"String must contain at most {rule.max_length} character(s)",
            "too_big",
        )
        return None
    return raw
