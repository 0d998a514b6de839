"""Table schema model and loading of YAML schema documents."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import yaml

from dbschema.errors import SchemaDefinitionError, UnknownTypeError
from dbschema.type_mapping import classify, empty_value

if TYPE_CHECKING:
    from dbschema.types import IndexSpec, SemanticType, Value

logger = getLogger(__name__)

PRIMARY_KEY_MARKER = "integer primary key"


def _frozen[K, V](mapping: Mapping[K, V] | None = None) -> Mapping[K, V]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class TableSchema:
    """Immutable description of a single table.

    Column order is significant: it is the physical column order used in
    ``CREATE TABLE`` and in converted rows.
    """

    name: str
    columns: Mapping[str, str]
    semantic_types: Mapping[str, SemanticType]
    primary_key: str | None = None
    indexes: tuple[IndexSpec, ...] = ()
    sql: tuple[str, ...] = ()
    defaults: Mapping[str, Value] = field(default_factory=_frozen)

    @property
    def column_names(self) -> tuple[str, ...]:
        """Return column names in declared order."""
        return tuple(self.columns)


def _index_spec(index: str | Iterable[str]) -> IndexSpec:
    if isinstance(index, str):
        return index
    columns = tuple(str(column) for column in index)
    if not columns:
        msg = "Composite index must name at least one column"
        raise SchemaDefinitionError(msg)
    return columns


def build_schema(
    name: str,
    columns: Mapping[str, str],
    indexes: Iterable[str | Iterable[str]] = (),
    sql: Iterable[str] = (),
    defaults: Mapping[str, Value] | None = None,
) -> TableSchema:
    """Build a table schema, deriving semantic types and the primary key.

    Args:
        name: Table name
        columns: Ordered mapping of column name to declared SQL type
        indexes: Column names or column name sequences, one per index
        sql: Raw statements run after the table is created
        defaults: Default values used for template rows and inserts

    Raises:
        UnknownTypeError: if a declared type cannot be classified
        SchemaDefinitionError: if defaults name undeclared columns

    """
    declared = {str(column): str(decl) for column, decl in columns.items()}

    semantic_types: dict[str, SemanticType] = {}
    for column, decl in declared.items():
        try:
            semantic_types[column] = classify(decl)
        except UnknownTypeError as err:
            raise UnknownTypeError(decl, column) from err

    primary_key = next(
        (
            column
            for column, decl in declared.items()
            if PRIMARY_KEY_MARKER in decl.lower()
        ),
        None,
    )

    defaults = dict(defaults or {})
    if unknown := [column for column in defaults if column not in declared]:
        msg = f"Defaults for undeclared columns in table '{name}': {unknown}"
        raise SchemaDefinitionError(msg)

    return TableSchema(
        name=name,
        columns=_frozen(declared),
        semantic_types=_frozen(semantic_types),
        primary_key=primary_key,
        indexes=tuple(_index_spec(index) for index in indexes),
        sql=tuple(str(statement) for statement in sql),
        defaults=_frozen(defaults),
    )


def _table_from_document(name: str, document: Any) -> TableSchema:  # noqa: ANN401
    if not isinstance(document, Mapping) or not isinstance(
        document.get("table"),
        Mapping,
    ):
        msg = f"Table '{name}' needs a 'table' mapping of column types"
        raise SchemaDefinitionError(msg)

    # "indexes" holds complete CREATE INDEX statements, run like "sql"
    statements = [*(document.get("indexes") or []), *(document.get("sql") or [])]
    if not all(isinstance(statement, str) for statement in statements):
        msg = f"Table '{name}': 'indexes' and 'sql' entries must be SQL statements"
        raise SchemaDefinitionError(msg)
    return build_schema(
        name,
        columns=document["table"],
        indexes=document.get("index") or [],
        sql=statements,
        defaults=document.get("defaults"),
    )


def load_schemas(
    path: Path | None = None,
    text: str | None = None,
) -> dict[str, TableSchema]:
    """Load table schemas from a YAML file or YAML text.

    Tables are returned in document order, keyed by table name.
    """
    if text is None:
        if path is None:
            msg = "Either a schema file path or schema text is required"
            raise ValueError(msg)
        text = Path(path).read_text(encoding="utf-8")

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as err:
        msg = f"Invalid schema YAML: {err}"
        raise SchemaDefinitionError(msg) from err

    if not isinstance(document, Mapping):
        msg = "Schema document must map table names to table definitions"
        raise SchemaDefinitionError(msg)

    schemas = {
        str(name): _table_from_document(str(name), table)
        for name, table in document.items()
    }
    logger.debug("Loaded %d table schemas: %s", len(schemas), ", ".join(schemas))
    return schemas


def empty_row(
    schema: TableSchema,
    *,
    use_defaults: bool = True,
    **values: Value,
) -> dict[str, Value]:
    """Create a full row of empty values, declared defaults and given values."""
    row = {
        column: empty_value(semantic_type)
        for column, semantic_type in schema.semantic_types.items()
    }
    if use_defaults:
        row.update(schema.defaults)
    row.update({column: value for column, value in values.items() if column in row})
    return row


def empty_rows(
    schema: TableSchema,
    count: int = 1,
    *,
    use_defaults: bool = True,
    **values: Value,
) -> list[dict[str, Value]]:
    """Create ``count`` identical template rows."""
    return [
        empty_row(schema, use_defaults=use_defaults, **values) for _ in range(count)
    ]
