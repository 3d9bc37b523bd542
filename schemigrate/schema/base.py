"""Versioned schemas."""

from dataclasses import dataclass

from schemigrate.core.exceptions import SchemaDefinitionError
from schemigrate.schema.fields import Field


@dataclass(frozen=True)
class Schema:
    """One immutable version of a data contract.

    Version 1 has no predecessor. Every later version is a snapshot created
    as the destination of exactly one migration and names the version it
    succeeds, so the versions of a contract form a single chain.

    Attributes:
        version: Version number, starting at 1
        root: The root field, typically an ObjectField
        name: Optional name of the contract (e.g. "user")
        strict: Report object keys not declared by the schema
        unambiguous_unions: Reject values matched by several union variants
        predecessor: Version this schema succeeds, None for version 1
    """

    version: int
    root: Field
    name: str | None = None
    strict: bool = True
    unambiguous_unions: bool = True
    predecessor: int | None = None

    def __post_init__(self):
        if isinstance(self.version, bool) or not isinstance(self.version, int) or self.version < 1:
            raise SchemaDefinitionError(f"Schema version must be an integer >= 1, got {self.version!r}")
        if not isinstance(self.root, Field):
            raise SchemaDefinitionError(
                f"Schema root must be a Field, got {type(self.root).__name__}"
            )
        if self.version == 1 and self.predecessor is not None:
            raise SchemaDefinitionError("Schema version 1 cannot have a predecessor")
        if self.version > 1 and self.predecessor != self.version - 1:
            raise SchemaDefinitionError(
                f"Schema version {self.version} must succeed version {self.version - 1}, "
                f"got predecessor {self.predecessor!r}"
            )

    @classmethod
    def initial(
        cls,
        root: Field,
        name: str | None = None,
        strict: bool = True,
        unambiguous_unions: bool = True,
    ) -> "Schema":
        """Create version 1 of a contract."""
        return cls(1, root, name, strict, unambiguous_unions)

    def successor(
        self,
        root: Field,
        strict: bool | None = None,
        unambiguous_unions: bool | None = None,
    ) -> "Schema":
        """Create the next version, to be used as a migration destination.

        Strictness settings are inherited unless overridden.
        """
        return Schema(
            version=self.version + 1,
            root=root,
            name=self.name,
            strict=self.strict if strict is None else strict,
            unambiguous_unions=(
                self.unambiguous_unions if unambiguous_unions is None else unambiguous_unions
            ),
            predecessor=self.version,
        )

    @property
    def label(self) -> str:
        return f"{self.name or 'schema'} v{self.version}"
