"""Schemigrate CLI tool."""

import json
import logging
import sys
from pathlib import Path

import click

from schemigrate.core.exceptions import SchemigrateError
from schemigrate.core.settings import SchemigrateSettings
from schemigrate.core.values import from_json, to_json
from schemigrate.schema.base import Schema
from schemigrate.schema.compare import compare_fields, describe_field
from schemigrate.schema.documents import schema_from_document
from schemigrate.schema.fields import (
    ArrayField,
    DefaultField,
    Field,
    ObjectField,
    OptionalField,
    TupleField,
    UnionField,
)
from schemigrate.validation.validator import Validator


def _load_json(path: str):
    try:
        return from_json(Path(path).read_bytes())
    except (ValueError, SchemigrateError) as e:
        raise click.ClickException(f"Could not read JSON from {path}: {e}") from e


def _load_schema(path: str, settings: SchemigrateSettings) -> Schema:
    try:
        return schema_from_document(_load_json(path), settings)
    except SchemigrateError as e:
        raise click.ClickException(f"Invalid schema document {path}: {e}") from e


def _echo_tree(field: Field, label: str, depth: int = 0) -> None:
    indent = "  " * depth
    click.echo(f"{indent}{label}: {describe_field(field)}")

    while isinstance(field, (OptionalField, DefaultField)):
        field = field.inner
    if isinstance(field, ObjectField):
        for name, child in field.fields.items():
            marker = "" if name in field.required else "?"
            _echo_tree(child, f"{name}{marker}", depth + 1)
    elif isinstance(field, ArrayField):
        _echo_tree(field.element, "*", depth + 1)
    elif isinstance(field, TupleField):
        for index, item in enumerate(field.items):
            _echo_tree(item, str(index), depth + 1)
    elif isinstance(field, UnionField):
        for index, variant in enumerate(field.variants):
            _echo_tree(variant, f"<variant {index}>", depth + 1)


@click.group()
@click.pass_context
def cli(ctx):
    """Schemigrate CLI - Validate JSON data and schema migrations."""
    settings = SchemigrateSettings()
    logging.basicConfig(level=settings.log_level.upper())
    ctx.obj = settings


@cli.command()
@click.argument("schema_file", type=click.Path(exists=True))
@click.argument("data_file", type=click.Path(exists=True))
@click.option("--lenient", is_flag=True, help="Allow keys the schema does not declare")
@click.pass_obj
def validate(settings, schema_file, data_file, lenient):
    """Validate a JSON document against a schema document."""
    schema = _load_schema(schema_file, settings)
    data = _load_json(data_file)

    validator = Validator(settings)
    if lenient:
        violations = validator.validate_field(schema.root, data, strict=False)
    else:
        violations = validator.validate(schema, data)

    if not violations:
        click.echo(f"✅ {data_file} conforms to {schema.label}")
        return

    click.echo(f"❌ {data_file} does not conform to {schema.label}: {len(violations)} violation(s)")
    for violation in violations:
        click.echo(f"   {violation}")
        for nearest in violation.nearest:
            click.echo(f"     - {nearest}")
    sys.exit(1)


@cli.command()
@click.argument("schema_file", type=click.Path(exists=True))
@click.pass_obj
def describe(settings, schema_file):
    """Print the field tree of a schema document."""
    schema = _load_schema(schema_file, settings)

    click.echo(f"📋 {schema.label}")
    click.echo(f"   Strict objects: {schema.strict}")
    click.echo(f"   Unambiguous unions: {schema.unambiguous_unions}")
    _echo_tree(schema.root, "$", depth=1)


@cli.command()
@click.argument("source_file", type=click.Path(exists=True))
@click.argument("destination_file", type=click.Path(exists=True))
@click.pass_obj
def compare(settings, source_file, destination_file):
    """Compare the field trees of two schema documents.

    Only lists the differences; it does not check or build a migration.
    """
    source = _load_schema(source_file, settings)
    destination = _load_schema(destination_file, settings)

    differences = compare_fields(destination.root, source.root)
    if not differences:
        click.echo("✅ Schemas are equivalent")
        return

    click.echo(f"Found {len(differences)} difference(s):\n")
    for difference in differences:
        click.echo(f"   {difference}")
    sys.exit(1)


@cli.command()
@click.argument("schema_file", type=click.Path(exists=True))
@click.option("--count", default=1, help="Number of documents to generate")
@click.option("--locale", default="en_US", help="Locale for fake data generation")
@click.option("--seed", type=int, help="Seed for reproducible output")
@click.option("--output", type=click.Path(), help="Write generated documents to a JSON file")
@click.pass_obj
def sample(settings, schema_file, count, locale, seed, output):
    """Generate documents that conform to a schema document."""
    from schemigrate.testing.generator import SampleGenerator

    schema = _load_schema(schema_file, settings)
    generator = SampleGenerator(locale=locale, seed=seed)
    documents = generator.generate_batch(schema.root, count)

    if output:
        with open(output, "w") as f:
            json.dump(documents, f, indent=2)
        click.echo(f"✅ Generated {count} document(s) to {output}")
        return

    for document in documents:
        click.echo(to_json(document, indent=2))


@cli.command()
def version():
    """Show schemigrate version."""
    from schemigrate import __version__

    click.echo(f"schemigrate version: {__version__}")


if __name__ == "__main__":
    cli()
