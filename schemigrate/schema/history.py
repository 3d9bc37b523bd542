"""Append-only version chain of a schema."""

import logging
from typing import Any, List

from schemigrate.core.exceptions import SchemaDefinitionError, SchemaDriftError
from schemigrate.migrations.base import Migration
from schemigrate.migrations.engine import MigrationEngine
from schemigrate.schema.base import Schema
from schemigrate.schema.compare import compare_fields

logger = logging.getLogger(__name__)


class SchemaHistory:
    """The versions of one contract and the migrations between them.

    The history starts at version 1 and only grows at its head: every
    appended migration must migrate from the current head, and its steps must
    produce the declared destination schema before it is accepted.
    """

    def __init__(self, initial: Schema):
        """Initialize the history.

        Args:
            initial: Version 1 of the contract

        Raises:
            SchemaDefinitionError: If ``initial`` is not version 1
        """
        if not isinstance(initial, Schema) or initial.version != 1:
            raise SchemaDefinitionError("SchemaHistory must start from a version 1 schema")
        self._schemas: List[Schema] = [initial]
        self._migrations: List[Migration] = []

    def __len__(self) -> int:
        return len(self._schemas)

    @property
    def head(self) -> Schema:
        """The latest schema version."""
        return self._schemas[-1]

    @property
    def migrations(self) -> List[Migration]:
        return list(self._migrations)

    def append(self, migration: Migration) -> Schema:
        """Append a migration from the current head.

        Args:
            migration: Migration whose source is the current head

        Returns:
            The new head schema

        Raises:
            SchemaDefinitionError: If the migration does not start at the head
            SchemaDriftError: If the steps do not produce the destination
            StepFailedError: If a step does not fit the source field tree
        """
        if migration.source != self.head:
            raise SchemaDefinitionError(
                f"Migration source v{migration.source.version} is not the current "
                f"head v{self.head.version}",
                "Build the next migration from history.head.",
            )

        diff = compare_fields(migration.destination.root, migration.derive_destination())
        if diff:
            logger.warning(f"Rejected migration to {migration.destination.label}: schema drift")
            raise SchemaDriftError(diff)

        self._migrations.append(migration)
        self._schemas.append(migration.destination)
        logger.info(f"Appended {migration.destination.label}")
        return migration.destination

    def get(self, version: int) -> Schema:
        """Get a schema by version number.

        Raises:
            KeyError: If the version is not in the history
        """
        if isinstance(version, bool) or not isinstance(version, int) or not 1 <= version <= len(self):
            raise KeyError(f"Schema version {version!r} not found (head is v{self.head.version})")
        return self._schemas[version - 1]

    def migrations_from(self, version: int) -> List[Migration]:
        """Migrations needed to bring data at ``version`` up to the head."""
        self.get(version)
        return self._migrations[version - 1:]

    def upgrade(
        self, value: Any, from_version: int = 1, engine: MigrationEngine | None = None
    ) -> Any:
        """Run every migration from ``from_version`` to the head.

        Args:
            value: Document conforming to schema ``from_version``
            from_version: Version the document conforms to
            engine: MigrationEngine to run with, a default one when omitted

        Returns:
            The document migrated to the head version

        Raises:
            MigrationError: From the first migration that fails
        """
        engine = engine or MigrationEngine()

        for migration in self.migrations_from(from_version):
            value = engine.run(migration, value)
        return value
