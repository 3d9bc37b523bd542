"""Structural comparison of field trees.

Used by the migration engine to prove that a migration's steps produce the
destination schema its author declared. The comparison is deep over every
field attribute, ignores object key order, and reports each difference with
the path where it occurs.
"""

from dataclasses import dataclass
from typing import Any

from schemigrate.core.paths import ROOT, WILDCARD, JsonPath
from schemigrate.core.values import describe, values_equal
from schemigrate.schema.fields import (
    ArrayField,
    CustomField,
    DefaultField,
    Field,
    LiteralField,
    NumberField,
    ObjectField,
    OptionalField,
    StringField,
    TupleField,
    UnionField,
)


@dataclass(frozen=True)
class FieldDifference:
    """One divergence between an expected and an actual field tree."""

    path: JsonPath
    reason: str
    expected: Any = None
    actual: Any = None

    def __str__(self) -> str:
        return f"{self.path}: {self.reason} (expected {self.expected}, got {self.actual})"

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "reason": self.reason,
            "expected": str(self.expected),
            "actual": str(self.actual),
        }


_ATTRIBUTES = {
    StringField: ("min_len", "max_len", "pattern", "format"),
    NumberField: ("min", "max", "integer_only"),
    ArrayField: ("min_items", "max_items"),
    UnionField: ("discriminant",),
}


def describe_field(field: Field) -> str:
    """Compact one-line description of a field, e.g. ``string(max_len=10)``."""
    if isinstance(field, StringField):
        return _with_attributes("string", field, _ATTRIBUTES[StringField])
    if isinstance(field, NumberField):
        name = "integer" if field.integer_only else "number"
        return _with_attributes(name, field, ("min", "max"))
    if isinstance(field, LiteralField):
        return f"literal({describe(field.value)})"
    if isinstance(field, ArrayField):
        bounds = _attribute_text(field, ("min_items", "max_items"), skip={"min_items": 0})
        suffix = f", {bounds}" if bounds else ""
        return f"array({describe_field(field.element)}{suffix})"
    if isinstance(field, TupleField):
        return "tuple(" + ", ".join(describe_field(item) for item in field.items) + ")"
    if isinstance(field, ObjectField):
        names = ", ".join(
            name if name in field.required else f"{name}?" for name in field.fields
        )
        return f"object({names})"
    if isinstance(field, OptionalField):
        return f"optional({describe_field(field.inner)})"
    if isinstance(field, DefaultField):
        return f"default({describe_field(field.inner)}, {describe(field.default)})"
    if isinstance(field, UnionField):
        variants = " | ".join(describe_field(variant) for variant in field.variants)
        if field.discriminant:
            return f"union[{field.discriminant}]({variants})"
        return f"union({variants})"
    if isinstance(field, CustomField):
        return f"custom({field.name})"
    return type(field).__name__.replace("Field", "").lower()


def _attribute_text(field: Field, names: tuple, skip: dict | None = None) -> str:
    skip = skip or {}
    parts = []
    for name in names:
        value = getattr(field, name)
        if value is None or (name in skip and value == skip[name]):
            continue
        parts.append(f"{name}={value!r}")
    return ", ".join(parts)


def _with_attributes(name: str, field: Field, attributes: tuple) -> str:
    text = _attribute_text(field, attributes)
    return f"{name}({text})" if text else name


def compare_fields(expected: Field, actual: Field, path: JsonPath = ROOT) -> list[FieldDifference]:
    """Deeply compare two field trees.

    Args:
        expected: The declared field tree
        actual: The field tree to check against it
        path: Path of the two fields, used as the prefix of reported paths

    Returns:
        List of differences, empty when the trees are structurally equal
    """
    if type(expected) is not type(actual):
        return [
            FieldDifference(
                path, "field type differs", describe_field(expected), describe_field(actual)
            )
        ]

    differences = []
    for attribute in _ATTRIBUTES.get(type(expected), ()):
        left, right = getattr(expected, attribute), getattr(actual, attribute)
        if left != right or isinstance(left, bool) != isinstance(right, bool):
            differences.append(FieldDifference(path, f"{attribute} differs", left, right))

    if isinstance(expected, LiteralField):
        if not values_equal(expected.value, actual.value):
            differences.append(
                FieldDifference(path, "literal differs", describe(expected.value), describe(actual.value))
            )
    elif isinstance(expected, ArrayField):
        differences += compare_fields(expected.element, actual.element, path.child(WILDCARD))
    elif isinstance(expected, TupleField):
        if len(expected.items) != len(actual.items):
            differences.append(
                FieldDifference(path, "tuple length differs", len(expected.items), len(actual.items))
            )
        else:
            for index, (left, right) in enumerate(zip(expected.items, actual.items)):
                differences += compare_fields(left, right, path.child(index))
    elif isinstance(expected, ObjectField):
        differences += _compare_objects(expected, actual, path)
    elif isinstance(expected, OptionalField):
        differences += compare_fields(expected.inner, actual.inner, path)
    elif isinstance(expected, DefaultField):
        if not values_equal(expected.default, actual.default):
            differences.append(
                FieldDifference(
                    path, "default differs", describe(expected.default), describe(actual.default)
                )
            )
        differences += compare_fields(expected.inner, actual.inner, path)
    elif isinstance(expected, UnionField):
        if len(expected.variants) != len(actual.variants):
            differences.append(
                FieldDifference(
                    path, "variant count differs", len(expected.variants), len(actual.variants)
                )
            )
        else:
            for index, (left, right) in enumerate(zip(expected.variants, actual.variants)):
                differences += compare_fields(left, right, path.child(f"<variant {index}>"))
    elif isinstance(expected, CustomField):
        if expected != actual:
            differences.append(
                FieldDifference(path, "custom check differs", expected.name, actual.name)
            )

    return differences


def _compare_objects(expected: ObjectField, actual: ObjectField, path: JsonPath) -> list[FieldDifference]:
    differences = []
    for name, child in expected.fields.items():
        if name not in actual.fields:
            differences.append(
                FieldDifference(path.child(name), "field missing", describe_field(child), "<absent>")
            )
            continue
        if (name in expected.required) != (name in actual.required):
            differences.append(
                FieldDifference(
                    path.child(name),
                    "required differs",
                    name in expected.required,
                    name in actual.required,
                )
            )
        differences += compare_fields(child, actual.fields[name], path.child(name))

    for name, child in actual.fields.items():
        if name not in expected.fields:
            differences.append(
                FieldDifference(path.child(name), "unexpected field", "<absent>", describe_field(child))
            )
    return differences


def fields_equivalent(expected: Field, actual: Field) -> bool:
    return not compare_fields(expected, actual)
