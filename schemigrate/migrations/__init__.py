"""Migration system for schemigrate.

A migration is an author-written sequence of primitive steps from one
schema version to the next. The engine applies the steps to a document,
derives the destination schema from the same steps, and accepts the result
only if both agree with the declared destination.
"""

from schemigrate.migrations.base import Migration, MigrationRecord, MigrationStep
from schemigrate.migrations.engine import BatchResult, MigrationEngine, MigrationOutcome
from schemigrate.migrations.operations import (
    AddField,
    CopyField,
    MergeFields,
    RemoveField,
    RenameField,
    Restructure,
    RetypeField,
    SplitField,
)

__all__ = [
    "Migration",
    "MigrationRecord",
    "MigrationStep",
    "MigrationEngine",
    "MigrationOutcome",
    "BatchResult",
    "AddField",
    "CopyField",
    "MergeFields",
    "RemoveField",
    "RenameField",
    "Restructure",
    "RetypeField",
    "SplitField",
]
