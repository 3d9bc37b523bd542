"""Testing utilities for schemigrate.

This module provides utilities for testing schemas and migrations,
including settings, fake document generation and assertion helpers.

Usage in conftest.py:
    from schemigrate.testing import (
        create_test_settings,
        DocumentFactory,
        SampleGenerator,
    )

Or use provided fixtures directly:
    pytest_plugins = ["schemigrate.testing.fixtures"]
"""

from schemigrate.testing.factories import DocumentFactory
from schemigrate.testing.generator import SampleGenerator
from schemigrate.testing.utils import assert_conforms, create_test_settings, find_violation

__all__ = [
    "DocumentFactory",
    "SampleGenerator",
    "assert_conforms",
    "create_test_settings",
    "find_violation",
]
