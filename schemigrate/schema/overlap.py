"""Static mutual-exclusivity analysis for union variants.

``fields_may_overlap`` answers "could some value satisfy both fields?". It is
conservative: when exclusivity cannot be proven it reports an overlap, so a
union it accepts never has two variants matching the same value. Patterns
and integer-only flags are not analysed; distinct string formats are
disjoint. Custom fields cannot be analysed at all; unions containing them
rely on the validator's runtime ambiguity check instead.
"""

import math

from schemigrate.core.values import ValueKind, kind_of
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

ALL_KINDS = frozenset(ValueKind)


def accepted_kinds(field: Field) -> frozenset:
    """The value kinds a field can possibly accept."""
    if isinstance(field, StringField):
        return frozenset({ValueKind.STRING})
    if isinstance(field, NumberField):
        return frozenset({ValueKind.NUMBER})
    if isinstance(field, BoolField):
        return frozenset({ValueKind.BOOL})
    if isinstance(field, NullField):
        return frozenset({ValueKind.NULL})
    if isinstance(field, LiteralField):
        return frozenset({kind_of(field.value)})
    if isinstance(field, (ArrayField, TupleField)):
        return frozenset({ValueKind.SEQUENCE})
    if isinstance(field, ObjectField):
        return frozenset({ValueKind.MAPPING})
    if isinstance(field, OptionalField):
        return accepted_kinds(field.inner) | {ValueKind.NULL}
    if isinstance(field, DefaultField):
        return accepted_kinds(field.inner)
    if isinstance(field, UnionField):
        kinds = frozenset()
        for variant in field.variants:
            kinds |= accepted_kinds(variant)
        return kinds
    # AnyField, CustomField
    return ALL_KINDS


def _ranges_disjoint(low_a, high_a, low_b, high_b) -> bool:
    low_a = -math.inf if low_a is None else low_a
    low_b = -math.inf if low_b is None else low_b
    high_a = math.inf if high_a is None else high_a
    high_b = math.inf if high_b is None else high_b
    return high_a < low_b or high_b < low_a


def fields_may_overlap(left: Field, right: Field) -> bool:
    """Whether some value might satisfy both fields."""
    if isinstance(left, CustomField) or isinstance(right, CustomField):
        return False

    if isinstance(left, DefaultField):
        return fields_may_overlap(left.inner, right)
    if isinstance(right, DefaultField):
        return fields_may_overlap(left, right.inner)

    if isinstance(left, OptionalField):
        return ValueKind.NULL in accepted_kinds(right) or fields_may_overlap(left.inner, right)
    if isinstance(right, OptionalField):
        return fields_may_overlap(right, left)

    if isinstance(left, UnionField):
        return any(fields_may_overlap(variant, right) for variant in left.variants)
    if isinstance(right, UnionField):
        return fields_may_overlap(right, left)

    if isinstance(left, AnyField) or isinstance(right, AnyField):
        return True

    if isinstance(left, LiteralField) or isinstance(right, LiteralField):
        literal, other = (left, right) if isinstance(left, LiteralField) else (right, left)
        return not other.validate(literal.value)

    if not accepted_kinds(left) & accepted_kinds(right):
        return False

    if isinstance(left, StringField) and isinstance(right, StringField):
        # no string is both an email address and a uuid
        if left.format and right.format and left.format != right.format:
            return False
        return not _ranges_disjoint(left.min_len, left.max_len, right.min_len, right.max_len)
    if isinstance(left, NumberField) and isinstance(right, NumberField):
        return not _ranges_disjoint(left.min, left.max, right.min, right.max)
    if isinstance(left, ObjectField) and isinstance(right, ObjectField):
        return _objects_may_overlap(left, right)
    if isinstance(left, ArrayField) and isinstance(right, ArrayField):
        return _arrays_may_overlap(left, right)
    if isinstance(left, TupleField) and isinstance(right, TupleField):
        return _tuples_may_overlap(left, right)
    if isinstance(left, TupleField) and isinstance(right, ArrayField):
        return _tuple_array_may_overlap(left, right)
    if isinstance(left, ArrayField) and isinstance(right, TupleField):
        return _tuple_array_may_overlap(right, left)

    # BoolField/BoolField, NullField/NullField
    return True


def _objects_may_overlap(left: ObjectField, right: ObjectField) -> bool:
    for name in left.required & right.required:
        if not fields_may_overlap(left.fields[name], right.fields[name]):
            return False
    return True


def _arrays_may_overlap(left: ArrayField, right: ArrayField) -> bool:
    if _ranges_disjoint(left.min_items, left.max_items, right.min_items, right.max_items):
        return False
    # the empty array satisfies both
    if left.min_items == 0 and right.min_items == 0:
        return True
    return fields_may_overlap(left.element, right.element)


def _tuples_may_overlap(left: TupleField, right: TupleField) -> bool:
    if len(left.items) != len(right.items):
        return False
    return all(fields_may_overlap(a, b) for a, b in zip(left.items, right.items))


def _tuple_array_may_overlap(tuple_field: TupleField, array_field: ArrayField) -> bool:
    length = len(tuple_field.items)
    if _ranges_disjoint(length, length, array_field.min_items, array_field.max_items):
        return False
    return all(fields_may_overlap(item, array_field.element) for item in tuple_field.items)
