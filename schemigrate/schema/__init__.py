"""Schema definitions for schemigrate.

Fields describe the shape of JSON-like data and compose into versioned
schemas. ``SchemaHistory`` lives in :mod:`schemigrate.schema.history`.
"""

from schemigrate.schema.base import Schema
from schemigrate.schema.compare import FieldDifference, compare_fields, describe_field, fields_equivalent
from schemigrate.schema.documents import (
    field_from_document,
    field_to_document,
    schema_from_document,
    schema_to_document,
)
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
    obj,
)
from schemigrate.schema.overlap import fields_may_overlap

__all__ = [
    "Schema",
    "FieldDifference",
    "compare_fields",
    "describe_field",
    "fields_equivalent",
    "field_from_document",
    "field_to_document",
    "schema_from_document",
    "schema_to_document",
    "Field",
    "AnyField",
    "ArrayField",
    "BoolField",
    "CustomField",
    "DefaultField",
    "LiteralField",
    "NullField",
    "NumberField",
    "ObjectField",
    "OptionalField",
    "StringField",
    "TupleField",
    "UnionField",
    "obj",
    "fields_may_overlap",
]
