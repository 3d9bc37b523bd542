"""Built-in migration steps for schemigrate.

Steps that add, remove or rename keys take the path of the object that
holds the key; steps that convert a value take the path of the value
itself. ``$`` (or ``[]``) is the document root and ``*`` addresses every
element of an array.

A DefaultField on the way to a step's target keeps its default in step with
the new field: the step's change to values is applied to the default too.
"""

from dataclasses import dataclass, field as dataclass_field
from typing import Any, Callable, Mapping

from schemigrate.core.exceptions import (
    ConversionError,
    InvalidValueError,
    SchemaDefinitionError,
    StepError,
    StepErrorKind,
)
from schemigrate.core.paths import JsonPath
from schemigrate.core.values import MISSING, check_value, copy_value, describe
from schemigrate.migrations.base import MigrationStep
from schemigrate.migrations.navigation import update_field_at, update_value_at
from schemigrate.schema.fields import DefaultField, Field, ObjectField, OptionalField

# Exceptions from author code that mean "this value cannot be converted"
CONVERTER_ERRORS = (ConversionError, ValueError, TypeError)


def _mapping(value: Any, at: JsonPath) -> dict:
    if not isinstance(value, dict):
        raise StepError(
            StepErrorKind.WRONG_SHAPE_AT_PATH,
            f"expected an object at {at}, got {describe(value)}",
            str(at),
        )
    return value


def _object(field: Field, at: JsonPath) -> ObjectField:
    if not isinstance(field, ObjectField):
        raise StepError(
            StepErrorKind.WRONG_SHAPE_AT_PATH,
            f"expected an object field at {at}, got {type(field).__name__}",
            str(at),
        )
    return field


def _absent_allowed(field: Field | None, name: str) -> bool:
    """True when the lockstep field says ``name`` may be missing."""
    return (
        isinstance(field, ObjectField)
        and name in field.fields
        and field.fields[name].accepts_absence
    )


def _missing(name: str, at: JsonPath) -> StepError:
    return StepError(
        StepErrorKind.FIELD_DOES_NOT_EXIST,
        f"field '{name}' does not exist at {at}",
        str(at.child(name)),
    )


def _exists(name: str, at: JsonPath) -> StepError:
    return StepError(
        StepErrorKind.FIELD_ALREADY_EXISTS,
        f"field '{name}' already exists at {at}",
        str(at.child(name)),
    )


def _convert(func: Callable[[Any], Any], value: Any, at: JsonPath, label: str) -> Any:
    try:
        result = func(value)
    except CONVERTER_ERRORS as e:
        raise StepError(
            StepErrorKind.CONVERTER_FAILED,
            f"{label} failed on {describe(value)} at {at}: {e}",
            str(at),
            original_error=e,
        ) from e
    try:
        check_value(result)
    except InvalidValueError as e:
        raise StepError(
            StepErrorKind.CONVERTER_FAILED,
            f"{label} returned a non-JSON value at {at}: {e.message}",
            str(at),
            original_error=e,
        ) from e
    return result


@dataclass
class AddField(MigrationStep):
    """Add a new key to the object at ``path``.

    A default is mandatory unless the field is an OptionalField (null is
    inserted) or a DefaultField (its own default is inserted).

    Example:
        AddField("$", "age", NumberField(), default=0)
    """

    path: JsonPath
    name: str
    field: Field
    default: Any = MISSING

    def __post_init__(self):
        self.path = JsonPath.coerce(self.path)
        if not isinstance(self.field, Field):
            raise SchemaDefinitionError(f"AddField '{self.name}' needs a Field")

        if self.default is MISSING:
            if isinstance(self.field, DefaultField):
                self.default = self.field.default
            elif isinstance(self.field, OptionalField):
                self.default = None
            else:
                raise StepError(
                    StepErrorKind.MISSING_DEFAULT,
                    f"AddField '{self.name}' at {self.path} needs a default for a required field",
                    str(self.path.child(self.name)),
                )

        violations = self.field.validate(self.default)
        if violations:
            raise SchemaDefinitionError(
                f"AddField '{self.name}' default does not fit its field: {violations[0]}"
            )

    def _update_value(self, target: Any, target_field: Field | None, at: JsonPath) -> Any:
        result = dict(_mapping(target, at))
        if self.name in result:
            raise _exists(self.name, at)
        result[self.name] = copy_value(self.default)
        return result

    def apply(self, value: Any, field: Field | None = None) -> Any:
        return update_value_at(value, self.path, self._update_value, field)

    def transform_field(self, field: Field) -> Field:
        def add(target, at):
            target = _object(target, at)
            if self.name in target.fields:
                raise _exists(self.name, at)
            return target.with_field(self.name, self.field)

        return update_field_at(field, self.path, add, value_update=self._update_value)

    def describe(self) -> str:
        return f"AddField '{self.name}' at {self.path}"


@dataclass
class RemoveField(MigrationStep):
    """Remove a key from the object at ``path``.

    Example:
        RemoveField("$", "deprecated_field")
    """

    path: JsonPath
    name: str

    def __post_init__(self):
        self.path = JsonPath.coerce(self.path)

    def _update_value(self, target: Any, target_field: Field | None, at: JsonPath) -> Any:
        target = _mapping(target, at)
        if self.name not in target:
            if _absent_allowed(target_field, self.name):
                return target
            raise _missing(self.name, at)
        return {key: item for key, item in target.items() if key != self.name}

    def apply(self, value: Any, field: Field | None = None) -> Any:
        return update_value_at(value, self.path, self._update_value, field)

    def transform_field(self, field: Field) -> Field:
        def remove(target, at):
            target = _object(target, at)
            if self.name not in target.fields:
                raise _missing(self.name, at)
            return target.without_field(self.name)

        return update_field_at(field, self.path, remove, value_update=self._update_value)

    def describe(self) -> str:
        return f"RemoveField '{self.name}' at {self.path}"


@dataclass
class RenameField(MigrationStep):
    """Rename a key of the object at ``path``, keeping its value and position.

    Example:
        RenameField("$", "nm", "name")
    """

    path: JsonPath
    old_name: str
    new_name: str

    def __post_init__(self):
        self.path = JsonPath.coerce(self.path)

    def _update_value(self, target: Any, target_field: Field | None, at: JsonPath) -> Any:
        target = _mapping(target, at)
        if self.old_name not in target:
            if _absent_allowed(target_field, self.old_name):
                return target
            raise _missing(self.old_name, at)
        if self.new_name in target:
            raise _exists(self.new_name, at)
        return {
            (self.new_name if key == self.old_name else key): item
            for key, item in target.items()
        }

    def apply(self, value: Any, field: Field | None = None) -> Any:
        return update_value_at(value, self.path, self._update_value, field)

    def transform_field(self, field: Field) -> Field:
        def rename(target, at):
            target = _object(target, at)
            if self.old_name not in target.fields:
                raise _missing(self.old_name, at)
            if self.new_name in target.fields:
                raise _exists(self.new_name, at)
            return target.renamed(self.old_name, self.new_name)

        return update_field_at(field, self.path, rename, value_update=self._update_value)

    def describe(self) -> str:
        return f"RenameField '{self.old_name}' -> '{self.new_name}' at {self.path}"


@dataclass
class CopyField(MigrationStep):
    """Copy a key of the object at ``path`` under a new name.

    Example:
        CopyField("$", "email", "login")
    """

    path: JsonPath
    name: str
    new_name: str

    def __post_init__(self):
        self.path = JsonPath.coerce(self.path)

    def _update_value(self, target: Any, target_field: Field | None, at: JsonPath) -> Any:
        target = _mapping(target, at)
        if self.name not in target:
            if _absent_allowed(target_field, self.name):
                return target
            raise _missing(self.name, at)
        if self.new_name in target:
            raise _exists(self.new_name, at)
        result = dict(target)
        result[self.new_name] = copy_value(target[self.name])
        return result

    def apply(self, value: Any, field: Field | None = None) -> Any:
        return update_value_at(value, self.path, self._update_value, field)

    def transform_field(self, field: Field) -> Field:
        def copy(target, at):
            target = _object(target, at)
            if self.name not in target.fields:
                raise _missing(self.name, at)
            if self.new_name in target.fields:
                raise _exists(self.new_name, at)
            fields = dict(target.fields)
            fields[self.new_name] = target.fields[self.name]
            required = set(target.required)
            if self.name in target.required:
                required.add(self.new_name)
            return ObjectField(fields, frozenset(required))

        return update_field_at(field, self.path, copy, value_update=self._update_value)

    def describe(self) -> str:
        return f"CopyField '{self.name}' -> '{self.new_name}' at {self.path}"


@dataclass
class RetypeField(MigrationStep):
    """Convert the value at ``path`` and declare its new field.

    This is the step that changes a value's kind (e.g. string to number).
    The converter is a pure function of the old value; raising
    ConversionError, ValueError or TypeError fails the step.

    Example:
        RetypeField("$.age", NumberField(integer_only=True), converter=int)
    """

    path: JsonPath
    new_field: Field
    converter: Callable[[Any], Any]

    def __post_init__(self):
        self.path = JsonPath.coerce(self.path)
        if not isinstance(self.new_field, Field):
            raise SchemaDefinitionError(f"{type(self).__name__} at {self.path} needs a Field")
        if not callable(self.converter):
            raise SchemaDefinitionError(f"{type(self).__name__} at {self.path} needs a callable")

    def _update_value(self, target: Any, target_field: Field | None, at: JsonPath) -> Any:
        # null stays null when both the old and new field are optional
        if (
            target is None
            and isinstance(target_field, OptionalField)
            and isinstance(self.new_field, OptionalField)
        ):
            return target
        return _convert(self.converter, target, at, "converter")

    def apply(self, value: Any, field: Field | None = None) -> Any:
        return update_value_at(value, self.path, self._update_value, field, look_through=False)

    def transform_field(self, field: Field) -> Field:
        return update_field_at(
            field,
            self.path,
            lambda _target, _at: self.new_field,
            look_through=False,
            value_update=self._update_value,
        )


@dataclass
class Restructure(MigrationStep):
    """Apply an arbitrary transform to the value at ``path``.

    For shape changes the other steps cannot express, such as flattening
    nesting. ``new_field`` declares the shape the transform produces.

    Example:
        Restructure(
            "$",
            transform=lambda doc: {**doc["profile"], "id": doc["id"]},
            new_field=obj(id=NumberField(), name=StringField()),
        )
    """

    path: JsonPath
    transform: Callable[[Any], Any]
    new_field: Field

    def __post_init__(self):
        self.path = JsonPath.coerce(self.path)
        if not isinstance(self.new_field, Field):
            raise SchemaDefinitionError(f"Restructure at {self.path} needs a Field")
        if not callable(self.transform):
            raise SchemaDefinitionError(f"Restructure at {self.path} needs a callable")

    def _update_value(self, target: Any, target_field: Field | None, at: JsonPath) -> Any:
        return _convert(self.transform, target, at, "transform")

    def apply(self, value: Any, field: Field | None = None) -> Any:
        return update_value_at(value, self.path, self._update_value, field, look_through=False)

    def transform_field(self, field: Field) -> Field:
        return update_field_at(
            field,
            self.path,
            lambda _target, _at: self.new_field,
            look_through=False,
            value_update=self._update_value,
        )


@dataclass
class SplitField(MigrationStep):
    """Split one key of the object at ``path`` into several.

    ``splitter`` returns one value per target, in target order.

    Example:
        SplitField(
            "$",
            "full_name",
            targets={"first_name": StringField(), "last_name": StringField()},
            splitter=lambda x: x.split(" ", 1),
        )
    """

    path: JsonPath
    name: str
    targets: Mapping[str, Field] = dataclass_field(default_factory=dict)
    splitter: Callable[[Any], Any] = None

    def __post_init__(self):
        self.path = JsonPath.coerce(self.path)
        self.targets = dict(self.targets)
        if not self.targets or not all(isinstance(f, Field) for f in self.targets.values()):
            raise SchemaDefinitionError(f"SplitField '{self.name}' needs target Fields")
        if not callable(self.splitter):
            raise SchemaDefinitionError(f"SplitField '{self.name}' needs a splitter")

    def _split(self, value: Any) -> Any:
        parts = self.splitter(value)
        return list(parts) if isinstance(parts, tuple) else parts

    def _update_value(self, target: Any, target_field: Field | None, at: JsonPath) -> Any:
        target = _mapping(target, at)
        if self.name not in target:
            if _absent_allowed(target_field, self.name):
                return target
            raise _missing(self.name, at)
        parts = _convert(self._split, target[self.name], at.child(self.name), "splitter")
        if not isinstance(parts, list) or len(parts) != len(self.targets):
            raise StepError(
                StepErrorKind.CONVERTER_FAILED,
                f"splitter must return {len(self.targets)} values at {at.child(self.name)}, "
                f"got {describe(parts)}",
                str(at.child(self.name)),
            )
        result = {key: item for key, item in target.items() if key != self.name}
        for name, part in zip(self.targets, parts):
            if name in result:
                raise _exists(name, at)
            result[name] = part
        return result

    def apply(self, value: Any, field: Field | None = None) -> Any:
        return update_value_at(value, self.path, self._update_value, field)

    def transform_field(self, field: Field) -> Field:
        def split(target, at):
            target = _object(target, at)
            if self.name not in target.fields:
                raise _missing(self.name, at)
            result = target.without_field(self.name)
            for name, child in self.targets.items():
                if name in result.fields:
                    raise _exists(name, at)
                result = result.with_field(name, child)
            return result

        return update_field_at(field, self.path, split, value_update=self._update_value)

    def describe(self) -> str:
        return f"SplitField '{self.name}' -> {list(self.targets)} at {self.path}"


@dataclass
class MergeFields(MigrationStep):
    """Merge several keys of the object at ``path`` into one.

    ``merger`` receives the values in ``names`` order; a key the schema
    allows to be absent is passed as None.

    Example:
        MergeFields(
            "$",
            ["first_name", "last_name"],
            target="full_name",
            field=StringField(),
            merger=lambda x: " ".join(x),
        )
    """

    path: JsonPath
    names: list
    target: str
    field: Field
    merger: Callable[[list], Any] = None

    def __post_init__(self):
        self.path = JsonPath.coerce(self.path)
        self.names = list(self.names)
        if not self.names:
            raise SchemaDefinitionError(f"MergeFields into '{self.target}' needs source names")
        if not isinstance(self.field, Field):
            raise SchemaDefinitionError(f"MergeFields into '{self.target}' needs a Field")
        if not callable(self.merger):
            raise SchemaDefinitionError(f"MergeFields into '{self.target}' needs a merger")

    def _update_value(self, target: Any, target_field: Field | None, at: JsonPath) -> Any:
        target = _mapping(target, at)
        values = []
        for name in self.names:
            if name in target:
                values.append(target[name])
            elif _absent_allowed(target_field, name):
                values.append(None)
            else:
                raise _missing(name, at)
        merged = _convert(self.merger, values, at.child(self.target), "merger")
        result = {key: item for key, item in target.items() if key not in self.names}
        if self.target in result:
            raise _exists(self.target, at)
        result[self.target] = merged
        return result

    def apply(self, value: Any, field: Field | None = None) -> Any:
        return update_value_at(value, self.path, self._update_value, field)

    def transform_field(self, field: Field) -> Field:
        def merge(target, at):
            target = _object(target, at)
            result = target
            for name in self.names:
                if name not in result.fields:
                    raise _missing(name, at)
                result = result.without_field(name)
            if self.target in result.fields:
                raise _exists(self.target, at)
            return result.with_field(self.target, self.field)

        return update_field_at(field, self.path, merge, value_update=self._update_value)

    def describe(self) -> str:
        return f"MergeFields {self.names} -> '{self.target}' at {self.path}"
