"""Field definitions.

A field describes the permissible shape of one piece of data. The set of
field types is closed: the validator, the overlap analysis, the comparison
and the schema documents all dispatch over exactly these classes, so a new
shape means touching each of those sites together.

Fields are frozen and own their children, which keeps every field tree
finite and acyclic. Construction invariants are checked eagerly and raise
:class:`SchemaDefinitionError`.
"""

import re
from dataclasses import dataclass, field as dataclass_field
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from schemigrate.core.exceptions import InvalidValueError, SchemaDefinitionError
from schemigrate.core.values import MISSING, ValueKind, check_value, kind_of

# Formats a StringField can require, checked by the validator
STRING_FORMATS = ("email", "uuid")


class Field:
    """Base class of every field type."""

    def default_value(self) -> Any:
        """Value substituted when the field is absent, or ``MISSING``."""
        return MISSING

    @property
    def accepts_absence(self) -> bool:
        """Whether an object may omit a key declared with this field."""
        return False

    def validate(self, value: Any, strict: bool = True) -> list:
        """Validate a value against this field.

        Returns:
            List of Violation objects, empty when the value conforms
        """
        from schemigrate.validation.validator import validate_field

        return validate_field(self, value, strict=strict)


def _check_bounds(owner: str, low: Any, high: Any, allow_negative: bool = False) -> None:
    for bound in (low, high):
        if bound is None:
            continue
        if isinstance(bound, bool) or not isinstance(bound, (int, float)):
            raise SchemaDefinitionError(f"{owner} bounds must be numbers, got {bound!r}")
        if not allow_negative and bound < 0:
            raise SchemaDefinitionError(f"{owner} bounds must not be negative, got {bound}")
    if low is not None and high is not None and low > high:
        raise SchemaDefinitionError(f"{owner} lower bound {low} exceeds upper bound {high}")


def _check_field(owner: str, candidate: Any) -> None:
    if not isinstance(candidate, Field):
        raise SchemaDefinitionError(
            f"{owner} expects Field instances, got {type(candidate).__name__}"
        )


@dataclass(frozen=True)
class StringField(Field):
    """A string with optional length bounds and a full-match regex pattern.

    ``format`` names a well-known string format (one of ``STRING_FORMATS``):
    ``"email"`` addresses or ``"uuid"`` identifiers.
    """

    min_len: int | None = None
    max_len: int | None = None
    pattern: str | None = None
    format: str | None = None

    def __post_init__(self):
        _check_bounds("StringField", self.min_len, self.max_len)
        if self.format is not None and self.format not in STRING_FORMATS:
            raise SchemaDefinitionError(
                f"StringField format {self.format!r} is not supported",
                f"Use one of: {', '.join(STRING_FORMATS)}",
            )
        if self.pattern is not None:
            try:
                re.compile(self.pattern)
            except re.error as e:
                raise SchemaDefinitionError(
                    f"StringField pattern {self.pattern!r} does not compile: {e}"
                ) from e

    @property
    def regex(self) -> "re.Pattern | None":
        return re.compile(self.pattern) if self.pattern is not None else None


@dataclass(frozen=True)
class NumberField(Field):
    """A number with optional inclusive bounds."""

    min: float | None = None
    max: float | None = None
    integer_only: bool = False

    def __post_init__(self):
        _check_bounds("NumberField", self.min, self.max, allow_negative=True)


@dataclass(frozen=True)
class BoolField(Field):
    pass


@dataclass(frozen=True)
class NullField(Field):
    pass


@dataclass(frozen=True)
class AnyField(Field):
    """Accepts every value."""


@dataclass(frozen=True)
class LiteralField(Field):
    """Accepts exactly one scalar value. Used as a union discriminant."""

    value: Any = None

    def __post_init__(self):
        try:
            kind = kind_of(self.value)
        except InvalidValueError as e:
            raise SchemaDefinitionError(f"LiteralField value is not a JSON value: {e.message}") from e
        if kind in (ValueKind.SEQUENCE, ValueKind.MAPPING):
            raise SchemaDefinitionError("LiteralField value must be a scalar")


@dataclass(frozen=True)
class ArrayField(Field):
    """A variable-length array whose elements share one field."""

    element: Field = dataclass_field(default_factory=AnyField)
    min_items: int = 0
    max_items: int | None = None

    def __post_init__(self):
        _check_field("ArrayField", self.element)
        _check_bounds("ArrayField", self.min_items, self.max_items)


@dataclass(frozen=True)
class TupleField(Field):
    """A fixed-length array; item ``i`` is validated against ``items[i]``."""

    items: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))
        for item in self.items:
            _check_field("TupleField", item)

    def with_item(self, index: int, item: Field) -> "TupleField":
        items = list(self.items)
        items[index] = item
        return TupleField(tuple(items))


@dataclass(frozen=True)
class OptionalField(Field):
    """Wraps a field so that null or structural absence is also valid."""

    inner: Field = dataclass_field(default_factory=AnyField)

    def __post_init__(self):
        _check_field("OptionalField", self.inner)

    @property
    def accepts_absence(self) -> bool:
        return True


@dataclass(frozen=True)
class DefaultField(Field):
    """Absence of the value is filled by ``default`` during validation.

    The default itself must validate against ``inner``; that is checked once
    here, not on every validation.
    """

    inner: Field = dataclass_field(default_factory=AnyField)
    default: Any = None

    def __post_init__(self):
        _check_field("DefaultField", self.inner)
        try:
            check_value(self.default)
        except InvalidValueError as e:
            raise SchemaDefinitionError(f"DefaultField default is not a JSON value: {e.message}") from e
        violations = self.inner.validate(self.default)
        if violations:
            raise SchemaDefinitionError(
                f"DefaultField default does not validate against its field: {violations[0]}"
            )

    def default_value(self) -> Any:
        return self.default

    @property
    def accepts_absence(self) -> bool:
        return True


@dataclass(frozen=True)
class UnionField(Field):
    """The value must satisfy exactly one variant.

    Without a discriminant, variants must be provably mutually exclusive.
    With a discriminant, every variant is an object that requires that key
    as a distinct :class:`LiteralField`, and the key selects the variant.
    """

    variants: tuple = ()
    discriminant: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "variants", tuple(self.variants))
        if len(self.variants) < 2:
            raise SchemaDefinitionError("UnionField needs at least two variants")
        for variant in self.variants:
            _check_field("UnionField", variant)

        if self.discriminant is not None:
            self._check_discriminant()
        else:
            self._check_exclusive()

    def _check_discriminant(self) -> None:
        seen = []
        for index, variant in enumerate(self.variants):
            tag = discriminant_literal(variant, self.discriminant)
            if tag is None:
                raise SchemaDefinitionError(
                    f"UnionField variant {index} must be an ObjectField requiring "
                    f"'{self.discriminant}' as a LiteralField"
                )
            if any(type(tag.value) is type(other) and tag.value == other for other in seen):
                raise SchemaDefinitionError(
                    f"UnionField discriminant value {tag.value!r} is ambiguous: "
                    "used by more than one variant"
                )
            seen.append(tag.value)

    def _check_exclusive(self) -> None:
        from schemigrate.schema.overlap import fields_may_overlap

        for i, left in enumerate(self.variants):
            for j in range(i + 1, len(self.variants)):
                if fields_may_overlap(left, self.variants[j]):
                    raise SchemaDefinitionError(
                        f"UnionField variants {i} and {j} are ambiguous: "
                        "some value could satisfy both"
                    )

    def variant_for(self, tag: Any) -> int | None:
        """Index of the variant whose discriminant literal equals ``tag``."""
        for index, variant in enumerate(self.variants):
            literal = discriminant_literal(variant, self.discriminant)
            if type(literal.value) is type(tag) and literal.value == tag:
                return index
        return None


@dataclass(frozen=True, eq=False)
class CustomField(Field):
    """Wraps an author-supplied check.

    ``check`` receives the value and returns None (or an empty iterable)
    when it is valid, otherwise a message or an iterable of messages.
    Custom fields compare by identity of their check and name.
    """

    check: Callable[[Any], Any] = None
    name: str = "custom"

    def __post_init__(self):
        if not callable(self.check):
            raise SchemaDefinitionError("CustomField check must be callable")

    def __eq__(self, other):
        if not isinstance(other, CustomField):
            return NotImplemented
        return self.check is other.check and self.name == other.name

    def __hash__(self):
        return hash((id(self.check), self.name))


@dataclass(frozen=True)
class ObjectField(Field):
    """A mapping of named fields.

    When ``required`` is omitted, every field that does not accept absence
    (i.e. is not an OptionalField or DefaultField) is required.
    """

    fields: Mapping[str, Field] = dataclass_field(default_factory=dict)
    required: frozenset | None = None

    def __post_init__(self):
        fields = dict(self.fields)
        for name, child in fields.items():
            if not isinstance(name, str):
                raise SchemaDefinitionError(f"ObjectField names must be strings, got {name!r}")
            _check_field("ObjectField", child)
        object.__setattr__(self, "fields", MappingProxyType(fields))

        if self.required is None:
            required = frozenset(
                name for name, child in fields.items() if not child.accepts_absence
            )
        else:
            required = frozenset(self.required)
            unknown = sorted(required - fields.keys())
            if unknown:
                raise SchemaDefinitionError(
                    f"ObjectField required names {unknown} are not declared fields"
                )
        object.__setattr__(self, "required", required)

    def __repr__(self) -> str:
        return f"ObjectField(fields={dict(self.fields)!r}, required={set(self.required)!r})"

    def __contains__(self, name: str) -> bool:
        return name in self.fields

    def with_field(self, name: str, child: Field) -> "ObjectField":
        """Return a copy with ``name`` appended."""
        fields = dict(self.fields)
        fields[name] = child
        required = set(self.required)
        if not child.accepts_absence:
            required.add(name)
        return ObjectField(fields, frozenset(required))

    def without_field(self, name: str) -> "ObjectField":
        fields = {key: child for key, child in self.fields.items() if key != name}
        return ObjectField(fields, self.required - {name})

    def renamed(self, old_name: str, new_name: str) -> "ObjectField":
        """Return a copy with ``old_name`` renamed in place."""
        fields = {
            (new_name if key == old_name else key): child
            for key, child in self.fields.items()
        }
        required = frozenset(new_name if key == old_name else key for key in self.required)
        return ObjectField(fields, required)

    def replaced(self, name: str, child: Field) -> "ObjectField":
        """Return a copy with the field for ``name`` swapped.

        Required-ness follows the new field when its optionality differs from
        the old one, otherwise it is kept as declared.
        """
        previous = self.fields[name]
        fields = dict(self.fields)
        fields[name] = child
        required = set(self.required)
        if child.accepts_absence:
            required.discard(name)
        elif previous.accepts_absence:
            required.add(name)
        return ObjectField(fields, frozenset(required))


def discriminant_literal(variant: Field, key: str) -> LiteralField | None:
    if not isinstance(variant, ObjectField):
        return None
    tag = variant.fields.get(key)
    if not isinstance(tag, LiteralField) or key not in variant.required:
        return None
    return tag


def obj(required: Iterable[str] | None = None, **fields: Field) -> ObjectField:
    """Shorthand builder: ``obj(name=StringField(), age=NumberField())``."""
    return ObjectField(fields, None if required is None else frozenset(required))
