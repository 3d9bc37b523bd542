"""Violation records produced by the validator."""

from dataclasses import dataclass
from enum import Enum

from schemigrate.core.paths import JsonPath


class ViolationKind(str, Enum):
    """What is wrong with a value at a path."""

    TYPE_MISMATCH = "type_mismatch"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    UNEXPECTED_FIELD = "unexpected_field"
    OUT_OF_RANGE = "out_of_range"
    PATTERN_MISMATCH = "pattern_mismatch"
    FORMAT_MISMATCH = "format_mismatch"
    LITERAL_MISMATCH = "literal_mismatch"
    UNION_NO_MATCH = "union_no_match"
    UNION_AMBIGUOUS = "union_ambiguous"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Violation:
    """A single mismatch between a value and a field.

    Attributes:
        path: Location of the offending value
        kind: The category of the mismatch
        message: Human-readable description
        nearest: For UNION_NO_MATCH, the violations of the closest variant
    """

    path: JsonPath
    kind: ViolationKind
    message: str = ""
    nearest: tuple = ()

    def __str__(self) -> str:
        return f"{self.path}: {self.kind.value}: {self.message}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "path": str(self.path),
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.nearest:
            result["nearest"] = [violation.to_dict() for violation in self.nearest]
        return result
