"""Tests for schema histories."""

import pytest

from schemigrate.core.exceptions import SchemaDefinitionError, SchemaDriftError
from schemigrate.migrations.base import Migration
from schemigrate.migrations.operations import AddField, RenameField
from schemigrate.schema.base import Schema
from schemigrate.schema.fields import NumberField, StringField, obj
from schemigrate.schema.history import SchemaHistory


@pytest.fixture
def history():
    return SchemaHistory(Schema.initial(obj(nm=StringField()), name="user"))


def rename_migration(source):
    return Migration(
        source,
        source.successor(obj(name=StringField())),
        [RenameField("$", "nm", "name")],
        description="Rename nm",
    )


def add_age_migration(source):
    return Migration(
        source,
        source.successor(obj(name=StringField(), age=NumberField())),
        [AddField("$", "age", NumberField(), default=0)],
        description="Add age",
    )


class TestSchemaHistory:
    """Tests for SchemaHistory."""

    def test_starts_at_version_one(self):
        """Test a history must start from version 1."""
        v1 = Schema.initial(obj())

        with pytest.raises(SchemaDefinitionError):
            SchemaHistory(v1.successor(obj()))

    def test_append(self, history):
        """Test appending moves the head."""
        head = history.append(rename_migration(history.head))

        assert head.version == 2
        assert history.head is head
        assert len(history) == 2
        assert history.get(1).root == obj(nm=StringField())

    def test_append_must_start_at_head(self, history):
        """Test a migration from an older version is rejected."""
        v1 = history.head
        history.append(rename_migration(v1))

        with pytest.raises(SchemaDefinitionError) as exc_info:
            history.append(rename_migration(v1))

        assert "history.head" in exc_info.value.hint
        assert len(history) == 2

    def test_append_rejects_drift(self, history):
        """Test a migration whose steps miss the destination is not appended."""
        v1 = history.head
        migration = Migration(v1, v1.successor(obj(name=StringField())), [])

        with pytest.raises(SchemaDriftError):
            history.append(migration)

        assert len(history) == 1

    def test_get_unknown_version(self, history):
        """Test unknown versions raise KeyError."""
        with pytest.raises(KeyError):
            history.get(2)
        with pytest.raises(KeyError):
            history.get(0)
        with pytest.raises(KeyError):
            history.get(True)

    def test_migrations_is_a_copy(self, history):
        """Test callers cannot edit the chain through the migrations list."""
        history.append(rename_migration(history.head))

        history.migrations.clear()

        assert len(history.migrations) == 1

    def test_upgrade(self, history):
        """Test a document is migrated through every version to the head."""
        history.append(rename_migration(history.head))
        history.append(add_age_migration(history.head))

        assert history.upgrade({"nm": "Ann"}) == {"name": "Ann", "age": 0}
        assert history.upgrade({"name": "Bob"}, from_version=2) == {"name": "Bob", "age": 0}
        assert history.upgrade({"name": "Cy", "age": 3}, from_version=3) == {"name": "Cy", "age": 3}

    def test_upgrade_with_engine(self, history, engine):
        """Test upgrade runs with the given engine."""
        history.append(rename_migration(history.head))

        assert history.upgrade({"nm": "Ann"}, engine=engine) == {"name": "Ann"}

    def test_migrations_from(self, history):
        """Test the migrations needed from a version."""
        first = history.append(rename_migration(history.head))
        history.append(add_age_migration(first))

        assert [m.description for m in history.migrations_from(2)] == ["Add age"]
        with pytest.raises(KeyError):
            history.migrations_from(4)
