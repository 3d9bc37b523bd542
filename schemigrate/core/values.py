"""JSON-like values.

Values are plain Python data: ``None``, ``bool``, ``int``/``float``, ``str``,
``list`` and ``dict`` with string keys. Nothing in schemigrate mutates a
value it is given; transformations build new containers along the path they
change and share everything else.
"""

import json
import math
from enum import Enum
from typing import Any, Union

from schemigrate.core.exceptions import InvalidValueError

Value = Union[None, bool, int, float, str, list, dict]


class _Missing:
    """Marker for structural absence, distinct from a JSON null."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Missing, ())


MISSING = _Missing()


class ValueKind(str, Enum):
    """The variant of a JSON value."""

    NULL = "null"
    BOOL = "boolean"
    NUMBER = "number"
    STRING = "string"
    SEQUENCE = "array"
    MAPPING = "object"


def kind_of(value: Any) -> ValueKind:
    """Return the kind of a value.

    Raises:
        InvalidValueError: If the object is not a JSON value
    """
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int and must be checked first
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, list):
        return ValueKind.SEQUENCE
    if isinstance(value, dict):
        return ValueKind.MAPPING

    raise InvalidValueError(value)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_value(value: Any, path: str = "$") -> None:
    """Check that an object is a well-formed value tree.

    Args:
        value: The object to check
        path: Path prefix used in the error message

    Raises:
        InvalidValueError: On the first non-JSON object found
    """
    kind = kind_of(value) if _is_json_scalar_or_container(value) else None
    if kind is None:
        raise InvalidValueError(value, path)
    if kind is ValueKind.NUMBER and isinstance(value, float) and not math.isfinite(value):
        raise InvalidValueError(value, path)
    if kind is ValueKind.SEQUENCE:
        for index, item in enumerate(value):
            check_value(item, f"{path}.{index}")
    elif kind is ValueKind.MAPPING:
        for key, item in value.items():
            if not isinstance(key, str):
                raise InvalidValueError(key, path)
            check_value(item, f"{path}.{key}")


def _is_json_scalar_or_container(value: Any) -> bool:
    return value is None or isinstance(value, (bool, int, float, str, list, dict))


def values_equal(left: Any, right: Any) -> bool:
    """Strict structural equality.

    Unlike ``==``, booleans never equal numbers. Numbers compare by value,
    so ``1`` equals ``1.0``. Mapping order is ignored, sequence order is not.
    """
    left_kind = kind_of(left)
    if left_kind is not kind_of(right):
        return False
    if left_kind is ValueKind.SEQUENCE:
        return len(left) == len(right) and all(
            values_equal(a, b) for a, b in zip(left, right)
        )
    if left_kind is ValueKind.MAPPING:
        if left.keys() != right.keys():
            return False
        return all(values_equal(item, right[key]) for key, item in left.items())
    return left == right


def copy_value(value: Value) -> Value:
    """Deep-copy the containers of a value. Scalars are shared."""
    if isinstance(value, list):
        return [copy_value(item) for item in value]
    if isinstance(value, dict):
        return {key: copy_value(item) for key, item in value.items()}
    return value


def from_json(text: str | bytes) -> Value:
    """Decode JSON text into a value."""
    return json.loads(text)


def to_json(value: Value, indent: int | None = None) -> str:
    """Encode a value as JSON text."""
    check_value(value)
    return json.dumps(value, indent=indent, ensure_ascii=False)


def describe(value: Any, limit: int = 40) -> str:
    """Short printable form of a value for error messages."""
    if value is MISSING:
        return "<absent>"
    try:
        text = json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        text = repr(value)
    if len(text) > limit:
        text = text[: limit - 3] + "..."
    return text
