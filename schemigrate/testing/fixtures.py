"""Pytest fixtures for schemigrate testing.

To use these fixtures, add to your conftest.py:

    pytest_plugins = ["schemigrate.testing.fixtures"]

Or import specific fixtures:

    from schemigrate.testing.fixtures import schemigrate_settings, validator
"""

import pytest

from schemigrate.core.settings import SchemigrateSettings
from schemigrate.migrations.engine import MigrationEngine
from schemigrate.testing.generator import SampleGenerator
from schemigrate.testing.utils import create_test_settings
from schemigrate.validation.validator import Validator


@pytest.fixture
def schemigrate_settings() -> SchemigrateSettings:
    """Provide test settings for schemigrate.

    Returns:
        SchemigrateSettings instance configured for testing
    """
    return create_test_settings()


@pytest.fixture
def validator(schemigrate_settings: SchemigrateSettings) -> Validator:
    """Provide a validator using the test settings."""
    return Validator(schemigrate_settings)


@pytest.fixture
def engine(schemigrate_settings: SchemigrateSettings, validator: Validator) -> MigrationEngine:
    """Provide a migration engine using the test settings."""
    return MigrationEngine(validator=validator, settings=schemigrate_settings)


@pytest.fixture
def sample_generator() -> SampleGenerator:
    """Provide a seeded sample generator.

    Example:
        def test_something(sample_generator):
            user = sample_generator.generate(user_schema.root)
    """
    return SampleGenerator(seed=1234)


@pytest.fixture
def document_factory():
    """Provide a document factory creator.

    Returns:
        Function to create DocumentFactory instances

    Example:
        def test_something(document_factory):
            users = document_factory(user_schema, seed=7)
            user = users.build(name="Alice")
    """
    from schemigrate.testing.factories import DocumentFactory

    def _create_factory(target, **kwargs):
        return DocumentFactory(target, **kwargs)

    return _create_factory
