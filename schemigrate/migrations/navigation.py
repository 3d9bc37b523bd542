"""Copy-on-write updates at a path, over values and over field trees.

Both walkers rebuild only the containers on the path they change. The value
walker can follow a field tree in lockstep: where the field says a location
may be absent or null (OptionalField, DefaultField) and the document has
nothing there, the update is skipped for that document.
"""

from typing import Any, Callable

from schemigrate.core.exceptions import (
    PathSyntaxError,
    SchemaDefinitionError,
    StepError,
    StepErrorKind,
)
from schemigrate.core.paths import ROOT, WILDCARD, JsonPath, resolve_index
from schemigrate.core.values import kind_of
from schemigrate.schema.fields import (
    ArrayField,
    DefaultField,
    Field,
    ObjectField,
    OptionalField,
    TupleField,
)

ValueUpdate = Callable[[Any, Field | None, JsonPath], Any]
FieldUpdate = Callable[[Field, JsonPath], Field]


def _skippable(field: Field | None, value: Any) -> bool:
    return isinstance(field, (OptionalField, DefaultField)) and value is None


def _unwrap(field: Field | None) -> Field | None:
    while isinstance(field, (OptionalField, DefaultField)):
        field = field.inner
    return field


def _index(segment, length: int, at: JsonPath) -> int:
    try:
        index = resolve_index(segment, length)
    except PathSyntaxError as e:
        raise StepError(
            StepErrorKind.WRONG_SHAPE_AT_PATH,
            f"expected an index or selector at {at}, got '{segment}'",
            str(at),
        ) from e
    if index is None:
        raise StepError(
            StepErrorKind.PATH_NOT_FOUND,
            f"index '{segment}' not found at {at} (length {length})",
            str(at),
        )
    return index


def update_value_at(
    value: Any,
    path: JsonPath,
    update: ValueUpdate,
    field: Field | None = None,
    look_through: bool = True,
    at: JsonPath = ROOT,
) -> Any:
    """Return a copy of ``value`` with ``update`` applied at ``path``.

    Args:
        value: The value to update (never mutated)
        path: Where to apply the update
        update: Called with the value, its field (or None) and its path
        field: Field describing ``value`` for lockstep traversal, if known
        look_through: Unwrap optional/default fields at the target itself
        at: Path of ``value`` within the document

    Raises:
        StepError: PATH_NOT_FOUND or WRONG_SHAPE_AT_PATH
    """
    if not path.segments:
        if look_through:
            if _skippable(field, value):
                return value
            field = _unwrap(field)
        return update(value, field, at)

    if _skippable(field, value):
        return value
    field = _unwrap(field)

    segment, rest = path.segments[0], JsonPath(path.segments[1:])

    if isinstance(value, dict):
        key = str(segment)
        child_field = field.fields.get(key) if isinstance(field, ObjectField) else None
        if key not in value:
            if child_field is not None and child_field.accepts_absence:
                return value
            raise StepError(
                StepErrorKind.PATH_NOT_FOUND,
                f"key '{key}' not found at {at}",
                str(at.child(key)),
            )
        result = dict(value)
        result[key] = update_value_at(
            value[key], rest, update, child_field, look_through, at.child(key)
        )
        return result

    if isinstance(value, list):
        if segment == WILDCARD:
            element = field.element if isinstance(field, ArrayField) else None
            return [
                update_value_at(
                    item,
                    rest,
                    update,
                    (
                        field.items[index]
                        if isinstance(field, TupleField) and index < len(field.items)
                        else element
                    ),
                    look_through,
                    at.child(index),
                )
                for index, item in enumerate(value)
            ]
        index = _index(segment, len(value), at)
        if isinstance(field, ArrayField):
            child_field = field.element
        elif isinstance(field, TupleField) and index < len(field.items):
            child_field = field.items[index]
        else:
            child_field = None
        result = list(value)
        result[index] = update_value_at(
            value[index], rest, update, child_field, look_through, at.child(index)
        )
        return result

    raise StepError(
        StepErrorKind.WRONG_SHAPE_AT_PATH,
        f"cannot descend into {kind_of(value).value} at {at}",
        str(at),
    )


def update_field_at(
    field: Field,
    path: JsonPath,
    update: FieldUpdate,
    look_through: bool = True,
    at: JsonPath = ROOT,
    value_update: ValueUpdate | None = None,
) -> Field:
    """Return a copy of the field tree with ``update`` applied at ``path``.

    Optional and default wrappers on the way are looked through and rebuilt
    around the updated inner field. The default of a rebuilt DefaultField is
    rewritten with ``value_update``, the step's change to values, so that it
    keeps fitting the new inner field.

    Raises:
        StepError: PATH_NOT_FOUND or WRONG_SHAPE_AT_PATH, or any StepError
            ``value_update`` raises on a default
    """
    if isinstance(field, OptionalField) and (path.segments or look_through):
        return OptionalField(
            update_field_at(field.inner, path, update, look_through, at, value_update)
        )
    if isinstance(field, DefaultField) and (path.segments or look_through):
        inner = update_field_at(field.inner, path, update, look_through, at, value_update)
        default = field.default
        if value_update is not None:
            default = update_value_at(default, path, value_update, field.inner, look_through, at)
        try:
            return DefaultField(inner, default)
        except SchemaDefinitionError as e:
            raise StepError(
                StepErrorKind.WRONG_SHAPE_AT_PATH,
                f"default at {at} no longer fits its field: {e.message}",
                str(at),
            ) from e

    if not path.segments:
        return update(field, at)

    segment, rest = path.segments[0], JsonPath(path.segments[1:])

    if isinstance(field, ObjectField):
        key = str(segment)
        if key not in field.fields:
            raise StepError(
                StepErrorKind.PATH_NOT_FOUND,
                f"field '{key}' is not declared at {at}",
                str(at.child(key)),
            )
        child = update_field_at(
            field.fields[key], rest, update, look_through, at.child(key), value_update
        )
        return field.replaced(key, child)

    if isinstance(field, ArrayField):
        if segment != WILDCARD:
            raise StepError(
                StepErrorKind.WRONG_SHAPE_AT_PATH,
                f"array elements at {at} share one field; address them with '*'",
                str(at),
            )
        element = update_field_at(
            field.element, rest, update, look_through, at.child(WILDCARD), value_update
        )
        return ArrayField(element, field.min_items, field.max_items)

    if isinstance(field, TupleField):
        if segment == WILDCARD:
            return TupleField(
                tuple(
                    update_field_at(item, rest, update, look_through, at.child(index), value_update)
                    for index, item in enumerate(field.items)
                )
            )
        index = _index(segment, len(field.items), at)
        item = update_field_at(
            field.items[index], rest, update, look_through, at.child(index), value_update
        )
        return field.with_item(index, item)

    raise StepError(
        StepErrorKind.WRONG_SHAPE_AT_PATH,
        f"cannot descend into {type(field).__name__} at {at}",
        str(at),
    )
