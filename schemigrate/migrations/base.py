"""Base classes for schemigrate migrations."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List

from schemigrate.core.exceptions import SchemaDefinitionError, StepError, StepFailedError
from schemigrate.core.paths import JsonPath
from schemigrate.schema.base import Schema
from schemigrate.schema.fields import Field

logger = logging.getLogger(__name__)


class MigrationStep(ABC):
    """Base class for migration steps.

    Each step defines a transformation of a value at a path and the change
    it makes to the field tree at the same path. Steps never mutate the
    value they are given.
    """

    path: JsonPath

    @abstractmethod
    def apply(self, value: Any, field: Field | None = None) -> Any:
        """Apply the transformation to a value.

        Args:
            value: The document to transform
            field: The field describing the document before this step, used
                to skip locations the schema allows to be absent

        Returns:
            Transformed value

        Raises:
            StepError: If the step cannot be applied to the value
        """
        pass

    @abstractmethod
    def transform_field(self, field: Field) -> Field:
        """Apply the step's shape change to a field tree.

        Args:
            field: The root field before this step

        Returns:
            The root field after this step

        Raises:
            StepError: If the step does not fit the field tree
        """
        pass

    def describe(self) -> str:
        return f"{type(self).__name__} at {self.path}"


@dataclass
class Migration:
    """A migration from one schema version to the next.

    The migration owns its steps and refers to its source and destination
    schemas, which must already exist.

    Attributes:
        source: Schema the input data conforms to
        destination: Schema the author declares the steps produce
        steps: Steps applied in order
        description: Human-readable description of the migration
    """

    source: Schema
    destination: Schema
    steps: List[MigrationStep] = field(default_factory=list)
    description: str = ""

    def __post_init__(self):
        if not isinstance(self.source, Schema) or not isinstance(self.destination, Schema):
            raise SchemaDefinitionError("Migration source and destination must be Schema instances")
        if (
            self.destination.version != self.source.version + 1
            or self.destination.predecessor != self.source.version
        ):
            raise SchemaDefinitionError(
                f"Migration destination version {self.destination.version} must directly "
                f"succeed source version {self.source.version}"
            )
        for index, step in enumerate(self.steps):
            if not isinstance(step, MigrationStep):
                raise SchemaDefinitionError(
                    f"Migration step {index} is a {type(step).__name__}, not a MigrationStep"
                )
        self.steps = list(self.steps)

    @property
    def version(self) -> int:
        return self.destination.version

    def apply(self, data: Any) -> Any:
        """Apply all steps in order.

        Steps are folded over the value and the source root field in
        lockstep, so each step sees the field tree left by the previous one.

        Args:
            data: The document to transform

        Returns:
            Transformed document

        Raises:
            StepFailedError: With the index of the first failing step
        """
        value = data
        current = self.source.root
        for index, step in enumerate(self.steps):
            try:
                value = step.apply(value, current)
                current = step.transform_field(current)
            except StepError as e:
                raise StepFailedError(index, e, step) from e
            logger.debug(f"Migration v{self.version}: applied {step.describe()}")
        return value

    def derive_destination(self) -> Field:
        """Fold every step's shape change over the source root field.

        Raises:
            StepFailedError: With the index of the first step that does not fit
        """
        current = self.source.root
        for index, step in enumerate(self.steps):
            try:
                current = step.transform_field(current)
            except StepError as e:
                raise StepFailedError(index, e, step) from e
        return current


@dataclass
class MigrationRecord:
    """Summary of a migration run over a batch of documents."""

    source_version: int
    destination_version: int
    description: str
    applied_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    documents_migrated: int = 0
    documents_failed: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "source_version": self.source_version,
            "destination_version": self.destination_version,
            "description": self.description,
            "applied_at": self.applied_at.isoformat(),
            "documents_migrated": self.documents_migrated,
            "documents_failed": self.documents_failed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MigrationRecord":
        """Create from dictionary."""
        return cls(
            source_version=data["source_version"],
            destination_version=data["destination_version"],
            description=data["description"],
            applied_at=datetime.fromisoformat(data["applied_at"]),
            documents_migrated=data.get("documents_migrated", 0),
            documents_failed=data.get("documents_failed", 0),
        )
