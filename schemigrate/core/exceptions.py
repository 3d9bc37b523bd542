"""Custom exceptions for schemigrate.

This module provides a hierarchy of exceptions with helpful error messages
to make schema and migration authoring errors easy to pinpoint.
"""

from enum import Enum
from typing import Any


class SchemigrateError(Exception):
    """Base exception for all schemigrate errors.

    All schemigrate exceptions inherit from this class, making it easy
    to catch all library-specific errors.
    """

    def __init__(self, message: str, hint: str | None = None):
        """Initialize the exception.

        Args:
            message: The error message
            hint: Optional hint for resolving the error
        """
        self.message = message
        self.hint = hint
        super().__init__(message)

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\nHint: {self.hint}"
        return self.message


class SchemaDefinitionError(SchemigrateError):
    """Raised when a field, schema or migration violates a construction invariant."""

    def __init__(self, message: str, hint: str | None = None):
        if hint is None:
            lowered = message.lower()
            if "ambiguous" in lowered or "overlap" in lowered:
                hint = (
                    "Make the variants mutually exclusive, for example with "
                    "a discriminant key holding a LiteralField."
                )
            elif "required" in lowered:
                hint = "Every required name must also be declared in 'fields'."
            elif "version" in lowered:
                hint = "A migration destination must be source.successor(...)."
        super().__init__(message, hint)


class InvalidValueError(SchemigrateError):
    """Raised when a Python object is not a JSON-like value."""

    def __init__(self, value: Any, path: str | None = None):
        """Initialize the invalid value error.

        Args:
            value: The offending object
            path: Where the object was found, if known
        """
        self.value = value
        self.path = path
        location = f" at {path}" if path else ""
        super().__init__(
            f"{type(value).__name__} is not a JSON value{location}",
            "Values may only contain None, bool, int, float, str, list and "
            "dict with string keys.",
        )


class PathSyntaxError(SchemigrateError):
    """Raised when a textual JSON path cannot be parsed."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(
            f"Failed to parse JSON path '{text}'",
            "Paths start at the root, e.g. '$', '$.address.city' or '$.tags.*'.",
        )


class ConversionError(SchemigrateError):
    """Raised by author-supplied converters and transforms to signal failure."""

    def __init__(self, message: str, value: Any = None):
        self.value = value
        super().__init__(message)


class StepErrorKind(str, Enum):
    """Failure categories of a single migration step."""

    PATH_NOT_FOUND = "path_not_found"
    WRONG_SHAPE_AT_PATH = "wrong_shape_at_path"
    CONVERTER_FAILED = "converter_failed"
    FIELD_ALREADY_EXISTS = "field_already_exists"
    FIELD_DOES_NOT_EXIST = "field_does_not_exist"
    MISSING_DEFAULT = "missing_default"


_STEP_HINTS = {
    StepErrorKind.PATH_NOT_FOUND: "Check the step path against the current shape of the data.",
    StepErrorKind.WRONG_SHAPE_AT_PATH: (
        "Object keys need a mapping, indices and '*' need a sequence."
    ),
    StepErrorKind.FIELD_ALREADY_EXISTS: "Remove or rename the existing field first.",
    StepErrorKind.FIELD_DOES_NOT_EXIST: (
        "Migrations never no-op silently; drop the step if the field is gone."
    ),
    StepErrorKind.MISSING_DEFAULT: (
        "Pass default=..., or wrap the field in OptionalField or DefaultField."
    ),
}


class StepError(SchemigrateError):
    """Raised when a migration step cannot be applied."""

    def __init__(
        self,
        kind: StepErrorKind,
        message: str,
        path: str | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize the step error.

        Args:
            kind: The failure category
            message: The error message
            path: The JSON path the step was operating on
            original_error: The converter or transform exception, if any
        """
        self.kind = kind
        self.path = path
        self.original_error = original_error
        super().__init__(message, _STEP_HINTS.get(kind))


class ValidationFailedError(SchemigrateError):
    """Raised by Validator.check when a value does not conform."""

    def __init__(self, violations: list):
        self.violations = list(violations)
        lines = "; ".join(str(v) for v in self.violations[:5])
        more = len(self.violations) - 5
        if more > 0:
            lines += f"; ... and {more} more"
        super().__init__(f"Value does not conform to schema: {lines}")


class MigrationErrorKind(str, Enum):
    """The stage of MigrationEngine.run that rejected the migration."""

    SOURCE_MISMATCH = "source_mismatch"
    STEP_FAILED = "step_failed"
    SCHEMA_DRIFT = "schema_drift"
    DESTINATION_MISMATCH = "destination_mismatch"


class MigrationError(SchemigrateError):
    """Base class for failures reported by the migration engine."""

    kind: MigrationErrorKind


class SourceMismatchError(MigrationError):
    """The input data does not conform to the migration's source schema."""

    kind = MigrationErrorKind.SOURCE_MISMATCH

    def __init__(self, violations: list, version: int | None = None):
        self.violations = list(violations)
        self.version = version
        super().__init__(
            f"Input does not conform to source schema v{version}: "
            f"{len(self.violations)} violation(s)",
            "A migration only applies to data valid for the version it migrates from.",
        )


class StepFailedError(MigrationError):
    """A migration step failed while transforming the data."""

    kind = MigrationErrorKind.STEP_FAILED

    def __init__(self, index: int, cause: StepError, step: Any = None):
        self.index = index
        self.cause = cause
        self.step = step
        step_name = type(step).__name__ if step is not None else "step"
        super().__init__(
            f"{step_name} #{index} failed ({cause.kind.value}): {cause.message}",
            cause.hint,
        )


class SchemaDriftError(MigrationError):
    """The steps do not produce the declared destination schema."""

    kind = MigrationErrorKind.SCHEMA_DRIFT

    def __init__(self, diff: list):
        self.diff = list(diff)
        lines = "; ".join(str(d) for d in self.diff[:5])
        super().__init__(
            f"Migration steps do not produce the declared destination schema: {lines}",
            "Add the missing steps or fix the declared destination schema.",
        )


class DestinationMismatchError(MigrationError):
    """The transformed data does not conform to the destination schema."""

    kind = MigrationErrorKind.DESTINATION_MISMATCH

    def __init__(self, violations: list, version: int | None = None):
        self.violations = list(violations)
        self.version = version
        super().__init__(
            f"Migrated data does not conform to destination schema v{version}: "
            f"{len(self.violations)} violation(s)",
            "Check converters and transforms for values they do not handle.",
        )
