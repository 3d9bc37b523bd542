"""Migration engine for schemigrate."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Iterable, List

from schemigrate.core.exceptions import (
    DestinationMismatchError,
    MigrationError,
    SchemaDriftError,
    SourceMismatchError,
)
from schemigrate.core.settings import SchemigrateSettings
from schemigrate.migrations.base import Migration, MigrationRecord
from schemigrate.schema.compare import FieldDifference, compare_fields
from schemigrate.validation.validator import Validator

logger = logging.getLogger(__name__)


@dataclass
class MigrationOutcome:
    """Result of migrating one document in a batch."""

    index: int
    value: Any = None
    error: MigrationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchResult:
    """Per-document outcomes of MigrationEngine.run_batch, in input order."""

    outcomes: List[MigrationOutcome] = field(default_factory=list)
    record: MigrationRecord | None = None

    @property
    def succeeded(self) -> List[MigrationOutcome]:
        return [outcome for outcome in self.outcomes if outcome.ok]

    @property
    def failed(self) -> List[MigrationOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def values(self) -> List[Any]:
        return [outcome.value for outcome in self.succeeded]


class MigrationEngine:
    """Runs migrations and proves their results.

    For each run the engine:
    - Validates the input against the source schema
    - Applies the steps to the input
    - Derives the destination field by folding the steps over the source root
    - Checks the derived field equals the declared destination root
    - Validates the transformed value against the destination schema

    The engine holds no state between runs; one instance may be shared by
    many threads.
    """

    def __init__(
        self,
        validator: Validator | None = None,
        settings: SchemigrateSettings | None = None,
    ):
        """Initialize the migration engine.

        Args:
            validator: The validator to use
            settings: Settings, read from the environment when omitted
        """
        self.settings = settings or SchemigrateSettings()
        self.validator = validator or Validator(self.settings)

    def check_drift(self, migration: Migration) -> List[FieldDifference]:
        """Compare the field the steps produce with the declared destination.

        Independent of any data. An empty list means the steps produce
        exactly the declared destination schema.

        Raises:
            StepFailedError: If a step does not fit the source field tree
        """
        derived = migration.derive_destination()
        return compare_fields(migration.destination.root, derived)

    def run(self, migration: Migration, data: Any) -> Any:
        """Migrate one document.

        Args:
            migration: The migration to run
            data: A document conforming to the migration's source schema

        Returns:
            The migrated document

        Raises:
            SourceMismatchError: If data does not conform to the source schema
            StepFailedError: If a step fails, with its index
            SchemaDriftError: If the steps do not produce the declared destination
            DestinationMismatchError: If the migrated document does not conform
        """
        return self._run(migration, data, drift=None)

    def _run(self, migration: Migration, data: Any, drift: List[FieldDifference] | None) -> Any:
        label = f"{migration.source.label} -> v{migration.version}"

        violations = self.validator.validate(migration.source, data)
        if violations:
            logger.warning(f"Migration {label}: input rejected by source schema ({len(violations)} violations)")
            raise SourceMismatchError(violations, migration.source.version)

        transformed = migration.apply(data)

        if drift is None:
            drift = self.check_drift(migration)
        if drift:
            logger.warning(f"Migration {label}: schema drift ({len(drift)} differences)")
            raise SchemaDriftError(drift)

        violations = self.validator.validate(migration.destination, transformed)
        if violations:
            logger.warning(
                f"Migration {label}: output rejected by destination schema ({len(violations)} violations)"
            )
            raise DestinationMismatchError(violations, migration.destination.version)

        logger.info(f"Migration {label}: document migrated")
        return transformed

    def run_batch(
        self,
        migration: Migration,
        documents: Iterable[Any],
        max_workers: int | None = None,
    ) -> BatchResult:
        """Migrate many documents, fanning out across worker threads.

        The schema-level drift check runs once for the whole batch. A failing
        document does not stop the others.

        Args:
            migration: The migration to run
            documents: Documents conforming to the source schema
            max_workers: Thread count, defaults to settings.batch_max_workers

        Returns:
            BatchResult with one outcome per document, in input order
        """
        documents = list(documents)
        drift = self.check_drift(migration)

        def migrate(indexed: tuple) -> MigrationOutcome:
            index, document = indexed
            try:
                return MigrationOutcome(index, value=self._run(migration, document, drift))
            except MigrationError as e:
                return MigrationOutcome(index, error=e)

        workers = max_workers or self.settings.batch_max_workers
        with ThreadPoolExecutor(max_workers=workers) as executor:
            outcomes = list(executor.map(migrate, enumerate(documents)))

        result = BatchResult(outcomes)
        result.record = MigrationRecord(
            source_version=migration.source.version,
            destination_version=migration.destination.version,
            description=migration.description,
            documents_migrated=len(result.succeeded),
            documents_failed=len(result.failed),
        )
        logger.info(
            f"Migration {migration.source.label} -> v{migration.version}: "
            f"{result.record.documents_migrated} migrated, {result.record.documents_failed} failed"
        )
        return result
