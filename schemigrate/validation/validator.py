"""Validation of values against fields and schemas.

Validation is pure and total: it never mutates the value, never raises for a
non-conforming value, and always terminates because field trees are finite.
Every problem is reported as a :class:`Violation` with the path where it
was found.
"""

import uuid
from dataclasses import dataclass
from typing import Any

from pydantic import EmailStr, TypeAdapter, ValidationError

from schemigrate.core.exceptions import InvalidValueError, ValidationFailedError
from schemigrate.core.paths import ROOT, JsonPath
from schemigrate.core.settings import SchemigrateSettings
from schemigrate.core.values import MISSING, ValueKind, check_value, describe, is_number, kind_of
from schemigrate.schema.fields import (
    AnyField,
    ArrayField,
    BoolField,
    CustomField,
    DefaultField,
    Field,
    LiteralField,
    NullField,
    NumberField,
    ObjectField,
    OptionalField,
    StringField,
    TupleField,
    UnionField,
)
from schemigrate.validation.violations import Violation, ViolationKind

_EMAIL = TypeAdapter(EmailStr)


@dataclass(frozen=True)
class _Options:
    strict: bool = True
    unambiguous_unions: bool = True


def _kind(value: Any) -> ValueKind | None:
    try:
        return kind_of(value)
    except InvalidValueError:
        return None


def _type_mismatch(path: JsonPath, expected: str, value: Any) -> list[Violation]:
    actual = _kind(value)
    actual_name = actual.value if actual is not None else type(value).__name__
    return [
        Violation(
            path,
            ViolationKind.TYPE_MISMATCH,
            f"expected {expected}, got {actual_name}",
        )
    ]


def validate_field(
    field: Field,
    value: Any,
    strict: bool = True,
    unambiguous_unions: bool = True,
    path: JsonPath = ROOT,
) -> list[Violation]:
    """Validate a value against a field.

    Args:
        field: The field to validate against
        value: The value, or ``MISSING`` for structural absence
        strict: Report object keys the object field does not declare
        unambiguous_unions: Report values matched by more than one variant
        path: Path of the value, used as the prefix of violation paths

    Returns:
        List of violations in document order, empty when the value conforms
    """
    return _validate(field, value, path, _Options(strict, unambiguous_unions))


def _validate(field: Field, value: Any, path: JsonPath, options: _Options) -> list[Violation]:
    if value is MISSING:
        return _validate_absent(field, path, options)

    if isinstance(field, StringField):
        return _validate_string(field, value, path)
    if isinstance(field, NumberField):
        return _validate_number(field, value, path)
    if isinstance(field, BoolField):
        return [] if isinstance(value, bool) else _type_mismatch(path, "boolean", value)
    if isinstance(field, NullField):
        return [] if value is None else _type_mismatch(path, "null", value)
    if isinstance(field, AnyField):
        try:
            check_value(value)
        except InvalidValueError as e:
            return [Violation(path, ViolationKind.TYPE_MISMATCH, e.message)]
        return []
    if isinstance(field, LiteralField):
        return _validate_literal(field, value, path)
    if isinstance(field, ArrayField):
        return _validate_array(field, value, path, options)
    if isinstance(field, TupleField):
        return _validate_tuple(field, value, path, options)
    if isinstance(field, ObjectField):
        return _validate_object(field, value, path, options)
    if isinstance(field, OptionalField):
        if value is None:
            return []
        return _validate(field.inner, value, path, options)
    if isinstance(field, DefaultField):
        return _validate(field.inner, value, path, options)
    if isinstance(field, UnionField):
        if field.discriminant is not None:
            return _validate_discriminated(field, value, path, options)
        return _validate_union(field, value, path, options)
    if isinstance(field, CustomField):
        return _validate_custom(field, value, path)

    raise TypeError(f"Unknown field type {type(field).__name__}")


def _validate_absent(field: Field, path: JsonPath, options: _Options) -> list[Violation]:
    if isinstance(field, DefaultField):
        return _validate(field.inner, field.default, path, options)
    if isinstance(field, OptionalField):
        return []
    return [Violation(path, ViolationKind.MISSING_REQUIRED_FIELD, "value is required")]


def _validate_string(field: StringField, value: Any, path: JsonPath) -> list[Violation]:
    if not isinstance(value, str):
        return _type_mismatch(path, "string", value)

    violations = []
    if field.min_len is not None and len(value) < field.min_len:
        violations.append(
            Violation(
                path,
                ViolationKind.OUT_OF_RANGE,
                f"string length {len(value)} is shorter than {field.min_len}",
            )
        )
    if field.max_len is not None and len(value) > field.max_len:
        violations.append(
            Violation(
                path,
                ViolationKind.OUT_OF_RANGE,
                f"string length {len(value)} is longer than {field.max_len}",
            )
        )
    if field.pattern is not None and not field.regex.fullmatch(value):
        violations.append(
            Violation(
                path,
                ViolationKind.PATTERN_MISMATCH,
                f"{describe(value)} does not match {field.pattern!r}",
            )
        )
    if field.format is not None and not _matches_format(field.format, value):
        violations.append(
            Violation(
                path,
                ViolationKind.FORMAT_MISMATCH,
                f"{describe(value)} is not a valid {field.format}",
            )
        )
    return violations


def _matches_format(name: str, value: str) -> bool:
    if name == "email":
        try:
            _EMAIL.validate_python(value)
        except ValidationError:
            return False
        return True
    if name == "uuid":
        try:
            uuid.UUID(value)
        except ValueError:
            return False
        return True
    raise ValueError(f"Unknown string format {name!r}")


def _validate_number(field: NumberField, value: Any, path: JsonPath) -> list[Violation]:
    if not is_number(value):
        return _type_mismatch(path, "number", value)
    if field.integer_only and not (isinstance(value, int) or value.is_integer()):
        return _type_mismatch(path, "integer", value)

    violations = []
    if field.min is not None and value < field.min:
        violations.append(
            Violation(path, ViolationKind.OUT_OF_RANGE, f"{value} is less than {field.min}")
        )
    if field.max is not None and value > field.max:
        violations.append(
            Violation(path, ViolationKind.OUT_OF_RANGE, f"{value} is greater than {field.max}")
        )
    return violations


def _validate_literal(field: LiteralField, value: Any, path: JsonPath) -> list[Violation]:
    expected_kind = kind_of(field.value)
    if _kind(value) is expected_kind and value == field.value:
        return []
    return [
        Violation(
            path,
            ViolationKind.LITERAL_MISMATCH,
            f"expected {describe(field.value)}, got {describe(value)}",
        )
    ]


def _validate_array(field: ArrayField, value: Any, path: JsonPath, options: _Options) -> list[Violation]:
    if not isinstance(value, list):
        return _type_mismatch(path, "array", value)

    violations = []
    if len(value) < field.min_items:
        violations.append(
            Violation(
                path,
                ViolationKind.OUT_OF_RANGE,
                f"array has {len(value)} items, at least {field.min_items} required",
            )
        )
    if field.max_items is not None and len(value) > field.max_items:
        violations.append(
            Violation(
                path,
                ViolationKind.OUT_OF_RANGE,
                f"array has {len(value)} items, at most {field.max_items} allowed",
            )
        )
    for index, item in enumerate(value):
        violations += _validate(field.element, item, path.child(index), options)
    return violations


def _validate_tuple(field: TupleField, value: Any, path: JsonPath, options: _Options) -> list[Violation]:
    if not isinstance(value, list):
        return _type_mismatch(path, "array", value)
    if len(value) != len(field.items):
        return [
            Violation(
                path,
                ViolationKind.OUT_OF_RANGE,
                f"expected {len(field.items)} items, got {len(value)}",
            )
        ]

    violations = []
    for index, (item_field, item) in enumerate(zip(field.items, value)):
        violations += _validate(item_field, item, path.child(index), options)
    return violations


def _validate_object(field: ObjectField, value: Any, path: JsonPath, options: _Options) -> list[Violation]:
    if not isinstance(value, dict):
        return _type_mismatch(path, "object", value)

    violations = []
    for name, child in field.fields.items():
        if name in value:
            violations += _validate(child, value[name], path.child(name), options)
        elif name in field.required:
            violations.append(
                Violation(
                    path.child(name),
                    ViolationKind.MISSING_REQUIRED_FIELD,
                    f"required field '{name}' is missing",
                )
            )
        elif child.accepts_absence:
            violations += _validate_absent(child, path.child(name), options)

    if options.strict:
        for name in value:
            if name not in field.fields:
                violations.append(
                    Violation(
                        path.child(name),
                        ViolationKind.UNEXPECTED_FIELD,
                        f"field '{name}' is not declared",
                    )
                )
    return violations


def _validate_union(field: UnionField, value: Any, path: JsonPath, options: _Options) -> list[Violation]:
    results = [_validate(variant, value, path, options) for variant in field.variants]
    matches = [index for index, violations in enumerate(results) if not violations]

    if len(matches) == 1 or (matches and not options.unambiguous_unions):
        return []
    if matches:
        return [
            Violation(
                path,
                ViolationKind.UNION_AMBIGUOUS,
                f"value matches variants {matches}",
            )
        ]

    # min() keeps the first of equally near variants
    nearest = min(range(len(results)), key=lambda index: len(results[index]))
    return [
        Violation(
            path,
            ViolationKind.UNION_NO_MATCH,
            f"value matches none of {len(field.variants)} variants "
            f"(nearest is variant {nearest})",
            tuple(results[nearest]),
        )
    ]


def _validate_discriminated(
    field: UnionField, value: Any, path: JsonPath, options: _Options
) -> list[Violation]:
    key = field.discriminant
    if not isinstance(value, dict) or key not in value:
        return [
            Violation(
                path,
                ViolationKind.UNION_NO_MATCH,
                f"expected an object with discriminant '{key}'",
            )
        ]

    index = field.variant_for(value[key])
    if index is None:
        return [
            Violation(
                path.child(key),
                ViolationKind.UNION_NO_MATCH,
                f"unknown discriminant value {describe(value[key])}",
            )
        ]
    return _validate(field.variants[index], value, path, options)


def _validate_custom(field: CustomField, value: Any, path: JsonPath) -> list[Violation]:
    try:
        result = field.check(value)
    except (ValueError, TypeError) as e:
        result = str(e) or type(e).__name__
    if not result:
        return []
    messages = [result] if isinstance(result, str) else list(result)
    return [
        Violation(path, ViolationKind.CUSTOM, f"{field.name}: {message}")
        for message in messages
    ]


class Validator:
    """Validates values against schemas.

    Schemas carry their own strictness; ``settings`` supplies the defaults
    used when validating a bare field.
    """

    def __init__(self, settings: SchemigrateSettings | None = None):
        """Initialize the validator.

        Args:
            settings: Settings providing defaults for bare field validation
        """
        self.settings = settings or SchemigrateSettings()

    def validate(self, schema, value: Any) -> list[Violation]:
        """Validate a value against a schema.

        Args:
            schema: The Schema to validate against
            value: The value to check

        Returns:
            List of violations, empty when the value conforms
        """
        return validate_field(
            schema.root,
            value,
            strict=schema.strict,
            unambiguous_unions=schema.unambiguous_unions,
        )

    def validate_field(self, field: Field, value: Any, strict: bool | None = None) -> list[Violation]:
        if strict is None:
            strict = self.settings.strict_objects
        return validate_field(
            field,
            value,
            strict=strict,
            unambiguous_unions=self.settings.unambiguous_unions,
        )

    def is_valid(self, schema, value: Any) -> bool:
        return not self.validate(schema, value)

    def check(self, schema, value: Any) -> None:
        """Validate and raise on failure.

        Raises:
            ValidationFailedError: Carrying the violations
        """
        violations = self.validate(schema, value)
        if violations:
            raise ValidationFailedError(violations)
