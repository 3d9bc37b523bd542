"""Document factories for testing schemigrate schemas and migrations."""

from typing import Any

from schemigrate.schema.base import Schema
from schemigrate.schema.fields import Field
from schemigrate.testing.generator import SampleGenerator


class DocumentFactory:
    """Factory for creating conforming documents in tests.

    Example:
        >>> schema = Schema.initial(obj(name=StringField(), age=NumberField(min=0)))
        >>> factory = DocumentFactory(schema, seed=1)
        >>> user = factory.build(name="Alice")
        >>> assert user["name"] == "Alice"
        >>> assert user["age"] >= 0  # Auto-generated
    """

    def __init__(
        self,
        target: Schema | Field,
        locale: str = "en_US",
        defaults: dict | None = None,
        seed: int | None = None,
    ):
        """Initialize the factory.

        Args:
            target: The schema or field to create documents for
            locale: Locale for fake data generation
            defaults: Default values to use for all object documents
            seed: Seed for reproducible documents
        """
        self.field = target.root if isinstance(target, Schema) else target
        self.generator = SampleGenerator(locale=locale, seed=seed)
        self.defaults = defaults or {}

    def build(self, **overrides) -> Any:
        """Build one document.

        Args:
            **overrides: Top-level keys to override generated data

        Returns:
            A new document
        """
        document = self.generator.generate(self.field)
        if isinstance(document, dict):
            document.update(self.defaults)
            document.update(overrides)
        return document

    def build_batch(self, count: int, **overrides) -> list:
        """Build multiple documents.

        Args:
            count: Number of documents to build
            **overrides: Top-level keys to override in every document

        Returns:
            List of new documents
        """
        return [self.build(**overrides) for _ in range(count)]
