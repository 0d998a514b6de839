"""Creation of tables, indices and raw migration statements from schemas."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from logging import getLogger
from typing import TYPE_CHECKING

from dbschema.conversion import DEFAULT_ORIGIN, Origin, to_database
from dbschema.errors import SchemaMigrationError

if TYPE_CHECKING:
    from dbschema.database import Connectable
    from dbschema.schema import TableSchema
    from dbschema.types import IndexSpec, Row

logger = getLogger(__name__)


def index_columns(index: IndexSpec) -> tuple[str, ...]:
    """Return the columns covered by an index specification."""
    return (index,) if isinstance(index, str) else tuple(index)


def index_name(table: str, index: IndexSpec) -> str:
    """Return the deterministic name of an index, e.g. ``idx_student_country_city``."""
    return f"idx_{table}_{'_'.join(index_columns(index))}"


def create_index_sql(table: str, index: IndexSpec) -> str:
    """Return the CREATE INDEX statement for an index specification."""
    columns = ", ".join(index_columns(index))
    return f"CREATE INDEX {index_name(table, index)} ON {table} ({columns})"


def create_table_sql(schema: TableSchema) -> str:
    """Return the CREATE TABLE statement with columns in declared order."""
    columns = ",\n".join(f"  {column} {decl}" for column, decl in schema.columns.items())
    return f"CREATE TABLE {schema.name}(\n{columns}\n)"


def migration_sql(schema: TableSchema) -> list[str]:
    """Return index statements followed by the raw statements of a schema."""
    return [create_index_sql(schema.name, index) for index in schema.indexes] + list(
        schema.sql,
    )


def _run_migration(
    db: Connectable,
    statement: str,
    params: Row | None = None,
) -> None:
    try:
        db.execute(statement, params)
    except db.errors as err:
        message = str(getattr(err, "orig", None) or err)
        raise SchemaMigrationError(statement, message) from err


def create_table(db: Connectable, schema: TableSchema) -> None:
    """Create a table, then its indices, then run its raw statements.

    Raises:
        SchemaMigrationError: if an index or raw statement fails; the table
            itself stays created

    """
    # Failures creating the table itself propagate unchanged
    db.execute(create_table_sql(schema))
    logger.info("Created table %s", schema.name)
    for statement in migration_sql(schema):
        _run_migration(db, statement)


def add_missing_columns(
    db: Connectable,
    schema: TableSchema,
    origin: Origin = DEFAULT_ORIGIN,
) -> list[str]:
    """Add declared columns missing from an existing table.

    New columns are filled with their declared default, if any. Columns are
    never dropped or retyped.

    Returns:
        Names of the columns added

    """
    existing = {column.lower() for column in db.columns(schema.name)}
    added: list[str] = []
    for column, decl in schema.columns.items():
        if column.lower() in existing:
            continue
        _run_migration(db, f"ALTER TABLE {schema.name} ADD COLUMN {column} {decl}")
        if column in schema.defaults:
            stored = to_database(
                {column: schema.defaults[column]},
                schema,
                include_missing=False,
                origin=origin,
            )
            _run_migration(db, f"UPDATE {schema.name} SET {column} = :{column}", stored)
        added.append(column)

    if added:
        logger.info("Added columns %s to %s", ", ".join(added), schema.name)
    return added


def create_schema_tables(
    db: Connectable,
    schemas: Iterable[TableSchema] | Mapping[str, TableSchema],
    *,
    overwrite: bool = False,
    reconcile: bool = False,
    origin: Origin = DEFAULT_ORIGIN,
) -> list[str]:
    """Create missing tables for the given schemas.

    Existing tables are left alone unless ``overwrite`` drops and recreates
    them, or ``reconcile`` adds their newly declared columns. The steps are not
    atomic; run inside a transaction to get all-or-nothing behavior.

    Returns:
        Names of the tables created

    """
    if isinstance(schemas, Mapping):
        schemas = schemas.values()

    created: list[str] = []
    for schema in schemas:
        if overwrite:
            db.drop_table(schema.name)
            logger.info("Dropped table %s", schema.name)
        if not db.table_exists(schema.name):
            create_table(db, schema)
            created.append(schema.name)
        elif reconcile:
            add_missing_columns(db, schema, origin)
    return created
