"""Schemigrate: versioned schemas and validated migrations for JSON-like data."""

__version__ = "0.1.0"

# Core components
from schemigrate.core.exceptions import (
    ConversionError,
    DestinationMismatchError,
    InvalidValueError,
    MigrationError,
    MigrationErrorKind,
    PathSyntaxError,
    SchemaDefinitionError,
    SchemaDriftError,
    SchemigrateError,
    SourceMismatchError,
    StepError,
    StepErrorKind,
    StepFailedError,
    ValidationFailedError,
)
from schemigrate.core.paths import ROOT, JsonPath
from schemigrate.core.settings import SchemigrateSettings
from schemigrate.core.values import MISSING, ValueKind, from_json, to_json, values_equal

# Schema components
from schemigrate.schema import (
    AnyField,
    ArrayField,
    BoolField,
    CustomField,
    DefaultField,
    Field,
    FieldDifference,
    LiteralField,
    NullField,
    NumberField,
    ObjectField,
    OptionalField,
    Schema,
    StringField,
    TupleField,
    UnionField,
    compare_fields,
    field_from_document,
    field_to_document,
    obj,
    schema_from_document,
    schema_to_document,
)

# Validation components
from schemigrate.validation import Validator, Violation, ViolationKind, validate_field

# Migration components
from schemigrate.migrations import (
    AddField,
    BatchResult,
    CopyField,
    MergeFields,
    Migration,
    MigrationEngine,
    MigrationOutcome,
    MigrationRecord,
    MigrationStep,
    RemoveField,
    RenameField,
    Restructure,
    RetypeField,
    SplitField,
)
from schemigrate.schema.history import SchemaHistory

__all__ = [
    # Version
    "__version__",
    # Core
    "SchemigrateSettings",
    "SchemigrateError",
    "SchemaDefinitionError",
    "InvalidValueError",
    "PathSyntaxError",
    "ConversionError",
    "StepError",
    "StepErrorKind",
    "ValidationFailedError",
    "MigrationError",
    "MigrationErrorKind",
    "SourceMismatchError",
    "StepFailedError",
    "SchemaDriftError",
    "DestinationMismatchError",
    "JsonPath",
    "ROOT",
    "MISSING",
    "ValueKind",
    "from_json",
    "to_json",
    "values_equal",
    # Schema
    "Schema",
    "SchemaHistory",
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
    "FieldDifference",
    "compare_fields",
    "field_from_document",
    "field_to_document",
    "schema_from_document",
    "schema_to_document",
    # Validation
    "Validator",
    "Violation",
    "ViolationKind",
    "validate_field",
    # Migrations
    "Migration",
    "MigrationStep",
    "MigrationRecord",
    "MigrationEngine",
    "MigrationOutcome",
    "BatchResult",
    "AddField",
    "RemoveField",
    "RenameField",
    "RetypeField",
    "Restructure",
    "CopyField",
    "SplitField",
    "MergeFields",
]
