"""Testing utilities for schemigrate."""

from typing import Any

from schemigrate.core.settings import SchemigrateSettings
from schemigrate.schema.base import Schema
from schemigrate.schema.fields import Field
from schemigrate.validation.validator import Validator
from schemigrate.validation.violations import Violation, ViolationKind


def create_test_settings(**overrides) -> SchemigrateSettings:
    """Create schemigrate settings for testing.

    Every setting is passed explicitly, so ``SCHEMIGRATE_*`` environment
    variables do not leak into tests.

    Args:
        **overrides: Settings to override

    Returns:
        SchemigrateSettings instance configured for testing
    """
    values = {
        "strict_objects": True,
        "unambiguous_unions": True,
        "batch_max_workers": 2,
        "log_level": "DEBUG",
    }
    values.update(overrides)
    return SchemigrateSettings(**values)


def assert_conforms(target: Schema | Field, value: Any) -> None:
    """Assert that ``value`` conforms to a schema or field.

    Raises:
        AssertionError: Listing the violations
    """
    validator = Validator(create_test_settings())
    if isinstance(target, Schema):
        violations = validator.validate(target, value)
    else:
        violations = validator.validate_field(target, value)
    assert not violations, "Value does not conform:\n" + "\n".join(str(v) for v in violations)


def find_violation(violations: list[Violation], kind: ViolationKind, path: str | None = None) -> Violation:
    """Return the first violation of ``kind`` (at ``path``, when given).

    Raises:
        AssertionError: If there is no such violation
    """
    for violation in violations:
        if violation.kind == kind and (path is None or str(violation.path) == path):
            return violation
    location = f" at {path}" if path else ""
    raise AssertionError(
        f"No {kind.value} violation{location} in:\n" + "\n".join(str(v) for v in violations)
    )
