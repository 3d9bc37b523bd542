"""Validation of values against fields and schemas."""

from schemigrate.validation.validator import Validator, validate_field
from schemigrate.validation.violations import Violation, ViolationKind

__all__ = [
    "Validator",
    "validate_field",
    "Violation",
    "ViolationKind",
]
