"""Shared pytest fixtures."""

from schemigrate.testing.fixtures import (  # noqa: F401
    document_factory,
    engine,
    sample_generator,
    schemigrate_settings,
    validator,
)
