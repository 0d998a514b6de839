"""Exceptions raised by schema building, conversion and statement generation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dbschema.types import SemanticType


class DbSchemaError(Exception):
    """Base class for all dbschema errors."""


class SchemaDefinitionError(DbSchemaError):
    """Schema document is malformed or violates a schema invariant."""


class UnknownTypeError(DbSchemaError):
    """Declared column type has no semantic type mapping."""

    def __init__(self, declared_type: str, column: str | None = None) -> None:
        """Store the declared type and, once known, the offending column."""
        self.declared_type = declared_type
        self.column = column
        where = f" for column '{column}'" if column else ""
        super().__init__(f"Unknown declared type '{declared_type}'{where}")


class ConversionError(DbSchemaError):
    """Value cannot be cast to or from the semantic type of its column."""

    def __init__(
        self,
        column: str,
        value: object,
        semantic_type: SemanticType,
    ) -> None:
        """Store the column, the source value and the target semantic type."""
        self.column = column
        self.value = value
        self.semantic_type = semantic_type
        super().__init__(
            f"Cannot convert {value!r} in column '{column}' to {semantic_type}",
        )


class EmptyUpdateError(DbSchemaError):
    """Update was requested without any column to set."""


class UnfilteredMutationError(DbSchemaError):
    """Update or delete without a filter when a filter was required."""


class SchemaMigrationError(DbSchemaError):
    """Index or raw statement failed after a table was created."""

    def __init__(self, statement: str, message: str) -> None:
        """Store the failed statement and the database error message."""
        self.statement = statement
        self.message = message
        super().__init__(f"When running\n{statement}\n:\n{message}")
