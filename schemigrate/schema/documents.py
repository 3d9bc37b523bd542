"""Schema documents: fields and schemas as JSON-compatible data.

A field document is either a shorthand or a mapping tagged with ``"$"``::

    "string"                                  StringField()
    {"$": "string", "min_len": 1}             StringField(min_len=1)
    ["number"]                                ArrayField(NumberField())
    ["string", "number"]                      TupleField((StringField(), NumberField()))
    {"name": "string", "age": "number"}       ObjectField, every key required
    {"$": "optional", "type": "string"}       OptionalField(StringField())
    "email"                                   StringField(format="email")

A mapping whose ``"$"`` is not a known tag, or that carries keys the tag
does not take, is read as an object shorthand. Custom fields hold code and
have no document form.
"""

from typing import Any

from schemigrate.core.exceptions import InvalidValueError, SchemaDefinitionError
from schemigrate.core.settings import SchemigrateSettings
from schemigrate.core.values import check_value
from schemigrate.schema.base import Schema
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
    STRING_FORMATS,
    StringField,
    TupleField,
    UnionField,
)

TAG = "$"

SHORTHANDS = {
    "string": StringField,
    "number": NumberField,
    "boolean": BoolField,
    "null": NullField,
    "any": AnyField,
}

# Keys each tag accepts besides the tag itself
TAG_KEYS = {
    "string": {"min_len", "max_len", "pattern", "format"},
    "number": {"min", "max", "integer_only"},
    "boolean": set(),
    "null": set(),
    "any": set(),
    "literal": {"value"},
    "array": {"element", "min_items", "max_items"},
    "tuple": {"items"},
    "object": {"fields", "required"},
    "optional": {"type"},
    "default": {"type", "default"},
    "union": {"variants", "discriminant"},
}


def field_to_document(field: Field) -> Any:
    """Convert a field tree to its document form, using shorthands where possible.

    Raises:
        SchemaDefinitionError: If the tree contains a CustomField
    """
    if isinstance(field, CustomField):
        raise SchemaDefinitionError(
            f"CustomField '{field.name}' cannot be written to a schema document",
            "Custom checks are code; define them in Python and attach them after loading.",
        )
    if isinstance(field, (BoolField, NullField, AnyField)):
        return _tag_of(field)
    if isinstance(field, StringField):
        if field.format is not None and field == StringField(format=field.format):
            return field.format
        return _scalar_document("string", field, ("min_len", "max_len", "pattern", "format"))
    if isinstance(field, NumberField):
        document = _scalar_document("number", field, ("min", "max"))
        if field.integer_only:
            document = document if isinstance(document, dict) else {TAG: "number"}
            document["integer_only"] = True
        return document
    if isinstance(field, LiteralField):
        return {TAG: "literal", "value": field.value}
    if isinstance(field, ArrayField):
        element = field_to_document(field.element)
        if field.min_items == 0 and field.max_items is None:
            return [element]
        document = {TAG: "array", "element": element, "min_items": field.min_items}
        if field.max_items is not None:
            document["max_items"] = field.max_items
        return document
    if isinstance(field, TupleField):
        items = [field_to_document(item) for item in field.items]
        if len(items) == 1:
            return {TAG: "tuple", "items": items}
        return items
    if isinstance(field, ObjectField):
        fields = {name: field_to_document(child) for name, child in field.fields.items()}
        if TAG in fields or field.required != ObjectField(field.fields).required:
            return {TAG: "object", "fields": fields, "required": sorted(field.required)}
        return fields
    if isinstance(field, OptionalField):
        return {TAG: "optional", "type": field_to_document(field.inner)}
    if isinstance(field, DefaultField):
        return {TAG: "default", "type": field_to_document(field.inner), "default": field.default}
    if isinstance(field, UnionField):
        document = {TAG: "union", "variants": [field_to_document(v) for v in field.variants]}
        if field.discriminant is not None:
            document["discriminant"] = field.discriminant
        return document
    raise SchemaDefinitionError(f"Unknown field type {type(field).__name__}")


def _tag_of(field: Field) -> str:
    for tag, cls in SHORTHANDS.items():
        if type(field) is cls:
            return tag
    raise SchemaDefinitionError(f"No shorthand for {type(field).__name__}")


def _scalar_document(tag: str, field: Field, attributes: tuple) -> Any:
    document = {name: getattr(field, name) for name in attributes if getattr(field, name) is not None}
    if not document:
        return tag
    return {TAG: tag, **document}


def field_from_document(document: Any, at: str = "$") -> Field:
    """Build a field tree from its document form.

    Args:
        document: A shorthand string, list or mapping
        at: Location within the document, used in error messages

    Raises:
        SchemaDefinitionError: If the document does not describe a field
    """
    if isinstance(document, str):
        if document in STRING_FORMATS:
            return StringField(format=document)
        if document not in SHORTHANDS:
            raise SchemaDefinitionError(
                f"Unknown field type '{document}' at {at}",
                f"Use one of: {', '.join([*SHORTHANDS, *STRING_FORMATS])}",
            )
        return SHORTHANDS[document]()

    if isinstance(document, list):
        items = [field_from_document(item, f"{at}.{i}") for i, item in enumerate(document)]
        if len(items) == 1:
            return ArrayField(items[0])
        return TupleField(tuple(items))

    if not isinstance(document, dict):
        raise SchemaDefinitionError(
            f"Expected a field document at {at}, got {type(document).__name__}"
        )

    tag = document.get(TAG)
    if isinstance(tag, str) and tag in TAG_KEYS and set(document) - {TAG} <= TAG_KEYS[tag]:
        return _tagged(tag, document, at)

    return ObjectField(
        {name: field_from_document(child, f"{at}.{name}") for name, child in document.items()}
    )


def _require(document: dict, key: str, tag: str, at: str) -> Any:
    if key not in document:
        raise SchemaDefinitionError(f"'{tag}' field at {at} needs '{key}'")
    return document[key]


def _tagged(tag: str, document: dict, at: str) -> Field:
    options = {key: value for key, value in document.items() if key != TAG}

    if tag in SHORTHANDS:
        return SHORTHANDS[tag](**options)
    if tag == "literal":
        return LiteralField(_json_value(_require(document, "value", tag, at), at))
    if tag == "array":
        element = field_from_document(_require(document, "element", tag, at), f"{at}.*")
        return ArrayField(element, options.get("min_items", 0), options.get("max_items"))
    if tag == "tuple":
        items = _require(document, "items", tag, at)
        if not isinstance(items, list):
            raise SchemaDefinitionError(f"'tuple' items at {at} must be a list")
        return TupleField(tuple(field_from_document(item, f"{at}.{i}") for i, item in enumerate(items)))
    if tag == "object":
        fields = _require(document, "fields", tag, at)
        if not isinstance(fields, dict):
            raise SchemaDefinitionError(f"'object' fields at {at} must be a mapping")
        children = {name: field_from_document(child, f"{at}.{name}") for name, child in fields.items()}
        required = options.get("required")
        return ObjectField(children, None if required is None else frozenset(required))
    if tag == "optional":
        return OptionalField(field_from_document(_require(document, "type", tag, at), at))
    if tag == "default":
        inner = field_from_document(_require(document, "type", tag, at), at)
        return DefaultField(inner, _json_value(_require(document, "default", tag, at), at))
    if tag == "union":
        variants = _require(document, "variants", tag, at)
        if not isinstance(variants, list):
            raise SchemaDefinitionError(f"'union' variants at {at} must be a list")
        return UnionField(
            tuple(field_from_document(v, f"{at} (variant {i})") for i, v in enumerate(variants)),
            options.get("discriminant"),
        )
    raise SchemaDefinitionError(f"Unknown field tag '{tag}' at {at}")


def _json_value(value: Any, at: str) -> Any:
    try:
        check_value(value, at)
    except InvalidValueError as e:
        raise SchemaDefinitionError(e.message) from e
    return value


def schema_to_document(schema: Schema) -> dict:
    """Convert a schema to a document.

    Raises:
        SchemaDefinitionError: If the root contains a CustomField
    """
    document = {"version": schema.version}
    if schema.name is not None:
        document["name"] = schema.name
    document["strict"] = schema.strict
    document["unambiguous_unions"] = schema.unambiguous_unions
    document["root"] = field_to_document(schema.root)
    return document


def schema_from_document(document: Any, settings: SchemigrateSettings | None = None) -> Schema:
    """Build a schema from a document.

    A schema document carries both ``"version"`` and ``"root"``; any other
    document is read as the root field of a version 1 schema, so an object
    shorthand may declare fields named ``root`` or ``version`` on their own.
    Missing strictness options fall back to the settings.

    Args:
        document: Schema document
        settings: Settings supplying defaults for strictness options

    Raises:
        SchemaDefinitionError: If the document does not describe a schema
    """
    settings = settings or SchemigrateSettings()
    if not isinstance(document, dict) or not {"version", "root"} <= document.keys():
        return Schema.initial(
            field_from_document(document),
            strict=settings.strict_objects,
            unambiguous_unions=settings.unambiguous_unions,
        )

    version = document["version"]
    if isinstance(version, bool) or not isinstance(version, int):
        raise SchemaDefinitionError(f"Schema document version must be an integer, got {version!r}")
    return Schema(
        version=version,
        root=field_from_document(document["root"]),
        name=document.get("name"),
        strict=document.get("strict", settings.strict_objects),
        unambiguous_unions=document.get("unambiguous_unions", settings.unambiguous_unions),
        predecessor=version - 1 if version > 1 else None,
    )
