"""Tests for migration steps."""

import pytest

from schemigrate.core.exceptions import (
    ConversionError,
    SchemaDefinitionError,
    StepError,
    StepErrorKind,
    StepFailedError,
)
from schemigrate.core.paths import JsonPath
from schemigrate.migrations.base import Migration
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
from schemigrate.schema.base import Schema
from schemigrate.schema.fields import (
    ArrayField,
    DefaultField,
    NumberField,
    ObjectField,
    OptionalField,
    StringField,
    TupleField,
    obj,
)


def parse_int(value):
    try:
        return int(value)
    except ValueError as e:
        raise ConversionError(f"not an integer: {value!r}", value) from e


class TestAddField:
    """Tests for AddField."""

    def test_adds_default(self):
        """Test the default is inserted."""
        step = AddField("$", "age", NumberField(), default=0)

        assert step.apply({"name": "Ann"}) == {"name": "Ann", "age": 0}

    def test_does_not_mutate_input(self):
        """Test the input value is left untouched."""
        data = {"name": "Ann"}

        AddField("$", "age", NumberField(), default=0).apply(data)

        assert data == {"name": "Ann"}

    def test_default_required_for_required_field(self):
        """Test a required field without default fails at construction."""
        with pytest.raises(StepError) as exc_info:
            AddField("$", "age", NumberField())

        assert exc_info.value.kind == StepErrorKind.MISSING_DEFAULT

    def test_optional_inserts_null(self):
        """Test an optional field defaults to null."""
        step = AddField("$", "nick", OptionalField(StringField()))

        assert step.apply({}) == {"nick": None}

    def test_default_field_supplies_default(self):
        """Test a DefaultField supplies its own default."""
        step = AddField("$", "score", DefaultField(NumberField(), 10))

        assert step.apply({}) == {"score": 10}

    def test_default_must_fit_field(self):
        """Test a default that does not validate is rejected."""
        with pytest.raises(SchemaDefinitionError):
            AddField("$", "age", NumberField(min=0), default=-1)

    def test_existing_key(self):
        """Test adding an existing key fails."""
        step = AddField("$", "name", StringField(), default="")

        with pytest.raises(StepError) as exc_info:
            step.apply({"name": "Ann"})

        assert exc_info.value.kind == StepErrorKind.FIELD_ALREADY_EXISTS

    def test_target_must_be_an_object(self):
        """Test the path must resolve to a mapping."""
        step = AddField("$.name", "first", StringField(), default="")

        with pytest.raises(StepError) as exc_info:
            step.apply({"name": "Ann"})

        assert exc_info.value.kind == StepErrorKind.WRONG_SHAPE_AT_PATH

    def test_transform_field(self):
        """Test the field tree gains the field."""
        step = AddField("$", "age", NumberField(), default=0)

        result = step.transform_field(obj(name=StringField()))

        assert result == obj(name=StringField(), age=NumberField())

    def test_add_then_remove_round_trip(self):
        """Test AddField followed by the matching RemoveField restores the value."""
        data = {"name": "Ann", "tags": ["a"], "address": {"city": "Oslo"}}
        add = AddField("$.address", "zip", StringField(), default="0000")
        remove = RemoveField("$.address", "zip")

        assert remove.apply(add.apply(data)) == data


class TestRemoveField:
    """Tests for RemoveField."""

    def test_removes_key(self):
        """Test the key is removed."""
        step = RemoveField("$", "legacy")

        assert step.apply({"name": "Ann", "legacy": 1}) == {"name": "Ann"}

    def test_missing_key(self):
        """Test removing an absent key is an authoring error."""
        with pytest.raises(StepError) as exc_info:
            RemoveField("$", "legacy").apply({"name": "Ann"})

        assert exc_info.value.kind == StepErrorKind.FIELD_DOES_NOT_EXIST
        assert exc_info.value.path == "$.legacy"

    def test_absent_optional_key_is_skipped(self):
        """Test a key the schema allows to be absent is skipped in lockstep."""
        field = obj(name=StringField(), nick=OptionalField(StringField()))

        assert RemoveField("$", "nick").apply({"name": "Ann"}, field) == {"name": "Ann"}

    def test_transform_field(self):
        """Test the field tree loses the field."""
        field = obj(name=StringField(), legacy=NumberField())

        assert RemoveField("$", "legacy").transform_field(field) == obj(name=StringField())

    def test_transform_field_missing(self):
        """Test removing an undeclared field fails on the field tree too."""
        with pytest.raises(StepError) as exc_info:
            RemoveField("$", "legacy").transform_field(obj(name=StringField()))

        assert exc_info.value.kind == StepErrorKind.FIELD_DOES_NOT_EXIST


class TestRenameField:
    """Tests for RenameField."""

    def test_rename_keeps_position(self):
        """Test the renamed key keeps its place and value."""
        result = RenameField("$", "nm", "name").apply({"id": 1, "nm": "Ann", "age": 3})

        assert list(result) == ["id", "name", "age"]
        assert result["name"] == "Ann"

    def test_collision(self):
        """Test renaming onto an existing key fails."""
        with pytest.raises(StepError) as exc_info:
            RenameField("$", "nm", "name").apply({"nm": "Ann", "name": "Bob"})

        assert exc_info.value.kind == StepErrorKind.FIELD_ALREADY_EXISTS

    def test_missing_old_name(self):
        """Test renaming an absent key fails."""
        with pytest.raises(StepError) as exc_info:
            RenameField("$", "nm", "name").apply({})

        assert exc_info.value.kind == StepErrorKind.FIELD_DOES_NOT_EXIST

    def test_path_not_found(self):
        """Test a missing intermediate key is PATH_NOT_FOUND."""
        with pytest.raises(StepError) as exc_info:
            RenameField("$.profile", "nm", "name").apply({"id": 1})

        assert exc_info.value.kind == StepErrorKind.PATH_NOT_FOUND


class TestCopyField:
    """Tests for CopyField."""

    def test_copies_value_and_field(self):
        """Test the value and its field are duplicated."""
        step = CopyField("$", "email", "login")

        assert step.apply({"email": "a@b.c"}) == {"email": "a@b.c", "login": "a@b.c"}
        assert step.transform_field(obj(email=StringField())) == obj(
            email=StringField(), login=StringField()
        )

    def test_copy_is_independent(self):
        """Test copied containers are not shared."""
        result = CopyField("$", "tags", "labels").apply({"tags": ["a"]})

        assert result["tags"] is not result["labels"]


class TestRetypeField:
    """Tests for RetypeField."""

    def test_converts_value(self):
        """Test the converter result replaces the value."""
        step = RetypeField("$.age", NumberField(), converter=parse_int)

        assert step.apply({"age": "42"}) == {"age": 42}

    def test_converter_failure(self):
        """Test converter errors become CONVERTER_FAILED with the original error."""
        step = RetypeField("$.age", NumberField(), converter=parse_int)

        with pytest.raises(StepError) as exc_info:
            step.apply({"age": "abc"})

        assert exc_info.value.kind == StepErrorKind.CONVERTER_FAILED
        assert isinstance(exc_info.value.original_error, ConversionError)
        assert exc_info.value.path == "$.age"

    def test_plain_value_error(self):
        """Test ValueError from a converter is also a conversion failure."""
        step = RetypeField("$.age", NumberField(), converter=int)

        with pytest.raises(StepError) as exc_info:
            step.apply({"age": "abc"})

        assert exc_info.value.kind == StepErrorKind.CONVERTER_FAILED

    def test_non_json_result(self):
        """Test a converter returning a non-JSON object fails."""
        step = RetypeField("$.tags", ArrayField(StringField()), converter=set)

        with pytest.raises(StepError) as exc_info:
            step.apply({"tags": ["a"]})

        assert exc_info.value.kind == StepErrorKind.CONVERTER_FAILED

    def test_transform_field_replaces(self):
        """Test the field at the path is replaced."""
        step = RetypeField("$.age", NumberField(integer_only=True), converter=int)

        result = step.transform_field(obj(name=StringField(), age=StringField()))

        assert result == obj(name=StringField(), age=NumberField(integer_only=True))

    def test_optional_null_is_kept(self):
        """Test null stays null when old and new fields are both optional."""
        field = obj(age=OptionalField(StringField()))
        step = RetypeField("$.age", OptionalField(NumberField()), converter=int)

        assert step.apply({"age": None}, field) == {"age": None}
        assert step.apply({"age": "7"}, field) == {"age": 7}
        assert step.apply({}, field) == {}

    def test_selectors(self):
        """Test positional selectors address array elements."""
        step = RetypeField("$.tags.<", StringField(), converter=str.upper)

        assert step.apply({"tags": ["a", "b", "c"]}) == {"tags": ["a", "b", "C"]}

    def test_tuple_positions(self):
        """Test tuple items are addressed by index on the field tree."""
        step = RetypeField("$.pair.1", StringField(), converter=str)
        field = obj(pair=TupleField((StringField(), NumberField())))

        assert step.apply({"pair": ["a", 1]}) == {"pair": ["a", "1"]}
        assert step.transform_field(field) == obj(pair=TupleField((StringField(), StringField())))

    def test_array_elements_need_wildcard(self):
        """Test a single array index cannot change the shared element field."""
        step = RetypeField("$.tags.0", NumberField(), converter=len)

        with pytest.raises(StepError) as exc_info:
            step.transform_field(obj(tags=ArrayField(StringField())))

        assert exc_info.value.kind == StepErrorKind.WRONG_SHAPE_AT_PATH

    def test_index_out_of_range(self):
        """Test a missing index is PATH_NOT_FOUND."""
        step = RetypeField("$.tags.5", StringField(), converter=str)

        with pytest.raises(StepError) as exc_info:
            step.apply({"tags": ["a"]})

        assert exc_info.value.kind == StepErrorKind.PATH_NOT_FOUND


class TestRestructure:
    """Tests for Restructure."""

    def test_flatten(self):
        """Test an arbitrary transform flattens nesting."""
        step = Restructure(
            "$",
            transform=lambda doc: {"id": doc["id"], **doc["profile"]},
            new_field=obj(id=NumberField(), name=StringField()),
        )

        assert step.apply({"id": 1, "profile": {"name": "Ann"}}) == {"id": 1, "name": "Ann"}
        assert step.transform_field(obj()) == obj(id=NumberField(), name=StringField())

    def test_transform_failure(self):
        """Test a TypeError from the transform becomes CONVERTER_FAILED."""
        step = Restructure("$.name", transform=lambda name: name + 1, new_field=NumberField())

        with pytest.raises(StepError) as exc_info:
            step.apply({"name": "Ann"})

        assert exc_info.value.kind == StepErrorKind.CONVERTER_FAILED


class TestSplitAndMerge:
    """Tests for SplitField and MergeFields."""

    def test_split(self):
        """Test one key is split into several."""
        step = SplitField(
            "$",
            "full_name",
            targets={"first_name": StringField(), "last_name": StringField()},
            splitter=lambda name: name.split(" ", 1),
        )

        assert step.apply({"id": 1, "full_name": "Ann Lee"}) == {
            "id": 1,
            "first_name": "Ann",
            "last_name": "Lee",
        }
        assert step.transform_field(obj(id=NumberField(), full_name=StringField())) == obj(
            id=NumberField(), first_name=StringField(), last_name=StringField()
        )

    def test_split_wrong_arity(self):
        """Test a splitter returning the wrong number of parts fails."""
        step = SplitField(
            "$",
            "full_name",
            targets={"first_name": StringField(), "last_name": StringField()},
            splitter=lambda name: name.split(" ", 1),
        )

        with pytest.raises(StepError) as exc_info:
            step.apply({"full_name": "Cher"})

        assert exc_info.value.kind == StepErrorKind.CONVERTER_FAILED

    def test_merge(self):
        """Test several keys are merged into one."""
        step = MergeFields(
            "$",
            ["first_name", "last_name"],
            target="full_name",
            field=StringField(),
            merger=lambda parts: " ".join(parts),
        )

        assert step.apply({"first_name": "Ann", "last_name": "Lee", "id": 1}) == {
            "id": 1,
            "full_name": "Ann Lee",
        }
        result = step.transform_field(
            obj(first_name=StringField(), last_name=StringField(), id=NumberField())
        )
        assert result == obj(id=NumberField(), full_name=StringField())


class TestPaths:
    """Tests for wildcard and lockstep path handling."""

    def test_wildcard_maps_over_elements(self):
        """Test '*' applies the step to every element."""
        step = AddField("$.items.*", "qty", NumberField(), default=1)

        result = step.apply({"items": [{"sku": "a"}, {"sku": "b"}]})

        assert result == {"items": [{"sku": "a", "qty": 1}, {"sku": "b", "qty": 1}]}

    def test_wildcard_on_field_tree(self):
        """Test '*' descends into the array element field."""
        step = AddField("$.items.*", "qty", NumberField(), default=1)

        result = step.transform_field(obj(items=ArrayField(obj(sku=StringField()))))

        assert result == obj(items=ArrayField(obj(sku=StringField(), qty=NumberField())))

    def test_untouched_branches_are_shared(self):
        """Test only containers along the path are copied."""
        data = {"a": {"x": 1}, "b": {"y": [1, 2]}}

        result = AddField("$.a", "z", NumberField(), default=0).apply(data)

        assert result["b"] is data["b"]
        assert result["a"] is not data["a"]

    def test_descending_into_scalar(self):
        """Test a path through a scalar is WRONG_SHAPE_AT_PATH."""
        with pytest.raises(StepError) as exc_info:
            RemoveField("$.name.first", "x").apply({"name": "Ann"})

        assert exc_info.value.kind == StepErrorKind.WRONG_SHAPE_AT_PATH

    def test_optional_object_is_skipped(self):
        """Test a step under an absent or null optional object is a no-op."""
        field = obj(address=OptionalField(obj(city=StringField())))
        step = AddField("$.address", "zip", OptionalField(StringField()))

        assert step.apply({"address": None}, field) == {"address": None}
        assert step.apply({}, field) == {}
        assert step.apply({"address": {"city": "Oslo"}}, field) == {
            "address": {"city": "Oslo", "zip": None}
        }

    def test_optional_object_field_is_rewrapped(self):
        """Test optional wrappers on the path survive the field change."""
        field = obj(address=OptionalField(obj(city=StringField())))
        step = AddField("$.address", "zip", OptionalField(StringField()))

        assert step.transform_field(field) == obj(
            address=OptionalField(obj(city=StringField(), zip=OptionalField(StringField())))
        )

    def test_path_accepts_segments(self):
        """Test step paths may be given as segment lists."""
        step = RemoveField(["a", 0], "x")

        assert step.path == JsonPath(("a", 0))
        assert step.apply({"a": [{"x": 1}]}) == {"a": [{}]}


class TestDefaultWrappedTargets:
    """Tests for steps under a DefaultField."""

    @pytest.fixture
    def field(self):
        return obj(settings=DefaultField(obj(theme=StringField()), {"theme": "dark"}))

    def test_rename_rewrites_default(self, field):
        """Test a rename under a default renames the key in the default too."""
        step = RenameField("$.settings", "theme", "color")

        assert step.transform_field(field) == obj(
            settings=DefaultField(obj(color=StringField()), {"color": "dark"})
        )
        assert step.apply({"settings": {"theme": "light"}}, field) == {
            "settings": {"color": "light"}
        }

    def test_add_rewrites_default(self, field):
        """Test an added key is inserted into the default as well."""
        step = AddField("$.settings", "size", NumberField(), default=12)

        result = step.transform_field(field)

        assert result.fields["settings"] == DefaultField(
            obj(theme=StringField(), size=NumberField()), {"theme": "dark", "size": 12}
        )

    def test_remove_rewrites_default(self, field):
        """Test a removed key is dropped from the default."""
        step = RemoveField("$.settings", "theme")

        assert step.transform_field(field) == obj(settings=DefaultField(obj(), {}))

    def test_retype_converts_default(self):
        """Test a converter also converts the value held in the default."""
        field = obj(settings=DefaultField(obj(size=StringField()), {"size": "12"}))
        step = RetypeField("$.settings.size", NumberField(), converter=int)

        assert step.transform_field(field) == obj(
            settings=DefaultField(obj(size=NumberField()), {"size": 12})
        )

    def test_converter_failing_on_default(self):
        """Test a default the converter rejects fails the step."""
        field = obj(settings=DefaultField(obj(size=StringField()), {"size": "big"}))
        step = RetypeField("$.settings.size", NumberField(), converter=int)

        with pytest.raises(StepError) as exc_info:
            step.transform_field(field)

        assert exc_info.value.kind == StepErrorKind.CONVERTER_FAILED

    def test_migration_through_default(self, field):
        """Test a migration under a default derives its declared destination."""
        source = Schema.initial(field)
        destination = source.successor(
            obj(settings=DefaultField(obj(color=StringField()), {"color": "dark"}))
        )
        migration = Migration(source, destination, [RenameField("$.settings", "theme", "color")])

        assert migration.derive_destination() == destination.root
        assert migration.apply({"settings": {"theme": "light"}}) == {
            "settings": {"color": "light"}
        }
        assert migration.apply({}) == {}


class TestMigrationApply:
    """Tests for Migration construction and step folding."""

    @pytest.fixture
    def source(self):
        return Schema.initial(obj(name=StringField()))

    def test_destination_must_succeed_source(self, source):
        """Test the destination must be the next version."""
        with pytest.raises(SchemaDefinitionError):
            Migration(source, source, [])
        with pytest.raises(SchemaDefinitionError):
            Migration(source, Schema(3, obj(), predecessor=2), [])

    def test_steps_must_be_steps(self, source):
        """Test only MigrationStep instances are accepted."""
        with pytest.raises(SchemaDefinitionError):
            Migration(source, source.successor(obj()), [lambda data: data])

    def test_failing_step_index(self, source):
        """Test a failure reports the index of the failing step."""
        migration = Migration(
            source,
            source.successor(obj(full_name=StringField())),
            [RenameField("$", "name", "full_name"), RemoveField("$", "name")],
        )

        with pytest.raises(StepFailedError) as exc_info:
            migration.apply({"name": "Ann"})

        assert exc_info.value.index == 1
        assert exc_info.value.cause.kind == StepErrorKind.FIELD_DOES_NOT_EXIST

    def test_derive_destination(self, source):
        """Test step effects are folded over the source root."""
        migration = Migration(
            source,
            source.successor(obj(full_name=StringField(), age=NumberField())),
            [RenameField("$", "name", "full_name"), AddField("$", "age", NumberField(), default=0)],
        )

        assert migration.derive_destination() == obj(full_name=StringField(), age=NumberField())
        assert migration.version == 2

    def test_required_object_field_kept_after_replace(self):
        """Test explicit required sets survive retyping."""
        source = Schema.initial(ObjectField({"a": StringField()}, required=set()))
        step = RetypeField("$.a", NumberField(), converter=len)

        assert step.transform_field(source.root).required == frozenset()
