"""Command line interface for dbschema."""

import sys
from datetime import date
from json import dumps, loads
from pathlib import Path
from sys import stdin, stdout
from typing import Any, Literal

from cyclopts import App
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from dbschema.config import Settings, load_settings
from dbschema.crud import delete as delete_rows
from dbschema.crud import get as get_rows
from dbschema.crud import insert as insert_rows
from dbschema.database import Database, connect
from dbschema.errors import DbSchemaError
from dbschema.journal import MutationJournal
from dbschema.materialize import create_schema_tables, index_columns
from dbschema.schema import TableSchema, load_schemas
from dbschema.template import schema_template

app = App(help="Schema-driven database tool")

type Format = Literal["table", "json"]

console = Console()
err_console = Console(stderr=True)

SCHEMA_EXTENSIONS = {".yaml", ".yml"}


def serializer(obj: Any) -> str | None:  # noqa: ANN401
    """Convert dates to ISO format."""
    if isinstance(obj, date):
        return obj.isoformat()
    return None


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[bold red]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[bold green]✓[/] {message}")


def print_info(message: str) -> None:
    """Print info message to stderr."""
    err_console.print(f"[bold blue]i[/] {message}")


def require[T](value: T | None, name: str) -> T:
    """Exit with an error if a required option has no value."""
    if value is None:
        print_error(f"No {name} given on the command line or in the config file")
        sys.exit(1)
    return value


def validate_schema_location(schema_location: Path) -> None:
    """Validate that the schema file exists and is YAML."""
    if not schema_location.is_file():
        print_error(f"Schema file does not exist: {schema_location}")
        sys.exit(1)
    if schema_location.suffix.lower() not in SCHEMA_EXTENSIONS:
        print_error(
            f"Schema file has invalid extension: {', '.join(sorted(SCHEMA_EXTENSIONS))}",
        )
        sys.exit(1)


def read_schemas(
    schema_location: str | Path | None,
    settings: Settings,
) -> dict[str, TableSchema]:
    """Load schemas from the given file or the configured one."""
    location = Path(require(schema_location or settings["schema"], "schema file"))
    validate_schema_location(location)
    print_info(f"Schema: {location}")
    try:
        return load_schemas(location)
    except DbSchemaError as e:
        print_error(str(e))
        sys.exit(1)


def parse_where(terms: list[str]) -> dict[str, str]:
    """Parse ``column=value`` terms into a filter."""
    where: dict[str, str] = {}
    for term in terms:
        column, separator, value = term.partition("=")
        if not separator or not column:
            print_error(f"Filter must look like column=value: {term}")
            sys.exit(1)
        where[column.strip()] = value
    return where


def table_schema(
    table: str,
    schema_location: Path | None,
    settings: Settings,
) -> TableSchema | None:
    """Return the schema of a table when a schema file is given or configured."""
    if not (schema_location or settings["schema"]):
        return None
    schema = read_schemas(schema_location, settings).get(table)
    if schema is None:
        print_info(f"Table {table} is not in the schema, values are not converted")
    return schema


def open_journal(journal: Path | None, settings: Settings) -> MutationJournal | None:
    """Return the journal given on the command line or in the config file."""
    location = journal or settings["journal"]
    if location is None:
        return None
    print_info(f"Journal: {location}")
    return MutationJournal(location)


def read_json(location: Path | None) -> Any:  # noqa: ANN401
    """Read a JSON document from a file, or from stdin if no file is given."""
    text = location.read_text(encoding="utf-8") if location else stdin.read()
    try:
        return loads(text)
    except ValueError as e:
        print_error(f"Invalid JSON record: {e}")
        sys.exit(1)


def format_schema_table(schema: TableSchema) -> None:
    """Format a table schema as a rich table."""
    table = Table(title=schema.name)
    table.add_column("Column", style="bold cyan")
    table.add_column("Declared type")
    table.add_column("Semantic type", style="bold yellow")
    table.add_column("Default")
    for column, declared in schema.columns.items():
        default = schema.defaults.get(column)
        table.add_row(
            column,
            declared,
            str(schema.semantic_types[column]),
            "" if default is None else str(default),
        )
    console.print(table)
    if schema.primary_key:
        console.print(f"Primary key: {schema.primary_key}")
    for index in schema.indexes:
        console.print(f"Index: ({', '.join(index_columns(index))})")


def format_rows_table(name: str, rows: list[dict[str, Any]]) -> None:
    """Format fetched rows as a rich table."""
    if not rows:
        console.print("No rows found.")
        return
    table = Table(title=name)
    for column in rows[0]:
        table.add_column(column)
    for row in rows:
        table.add_row(*("" if value is None else str(value) for value in row.values()))
    console.print(table)


@app.command
def create(
    schema_location: Path | None = None,
    *,
    database: str | None = None,
    overwrite: bool = False,
    reconcile: bool = False,
    config: Path | None = None,
) -> None:
    """Create missing tables, indices and raw statements from a schema file."""
    settings = load_settings(config)
    schemas = read_schemas(schema_location, settings)
    url = require(database or settings["database"], "database URL")
    print_info(f"Database: {url}")

    try:
        with connect(url).begin() as connection:
            created = create_schema_tables(
                Database(connection),
                schemas,
                overwrite=overwrite,
                reconcile=reconcile,
                origin=settings["origin"],
            )
    except (DbSchemaError, SQLAlchemyError) as e:
        print_error(str(e))
        sys.exit(1)

    if created:
        print_success(f"Created tables: {', '.join(created)}")
    else:
        print_success("All tables already exist")


@app.command
def show(
    schema_location: Path | None = None,
    fmt: Format = "table",
    *,
    config: Path | None = None,
) -> None:
    """Show columns, types, keys and indices declared in a schema file."""
    schemas = read_schemas(schema_location, load_settings(config))

    if fmt == "json":
        stdout.write(
            dumps(
                {
                    name: {
                        "columns": dict(schema.columns),
                        "semantic_types": dict(schema.semantic_types),
                        "primary_key": schema.primary_key,
                        "indexes": [list(index_columns(i)) for i in schema.indexes],
                        "sql": list(schema.sql),
                        "defaults": dict(schema.defaults),
                    }
                    for name, schema in schemas.items()
                },
                default=serializer,
            ),
        )
    elif fmt == "table":
        for schema in schemas.values():
            format_schema_table(schema)


@app.command
def get(  # noqa: PLR0913
    table: str,
    *,
    where: list[str] | None = None,
    order_by: list[str] | None = None,
    database: str | None = None,
    schema_location: Path | None = None,
    fmt: Format = "table",
    config: Path | None = None,
) -> None:
    """Fetch rows from a table, converted by its schema when one is known."""
    settings = load_settings(config)
    url = require(database or settings["database"], "database URL")

    schema = table_schema(table, schema_location, settings)

    try:
        with connect(url).connect() as connection:
            rows = get_rows(
                Database(connection),
                table,
                parse_where(where or []),
                schema=schema,
                order_by=order_by,
                origin=settings["origin"],
            )
    except (DbSchemaError, SQLAlchemyError) as e:
        print_error(str(e))
        sys.exit(1)

    if fmt == "json":
        stdout.write(dumps(rows, default=serializer))
    elif fmt == "table":
        format_rows_table(table, rows)  # type: ignore[arg-type]


@app.command
def template(record_location: Path | None = None, *, name: str = "mytable") -> None:
    """Print a YAML schema skeleton for a JSON record (stdin if no file)."""
    record = read_json(record_location)
    if not isinstance(record, dict):
        print_error("The JSON record must be an object")
        sys.exit(1)
    stdout.write(schema_template(record, name))


@app.command
def insert(  # noqa: PLR0913
    table: str,
    record_location: Path | None = None,
    *,
    database: str | None = None,
    schema_location: Path | None = None,
    journal: Path | None = None,
    config: Path | None = None,
) -> None:
    """Insert a JSON record, or a JSON list of records (stdin if no file)."""
    settings = load_settings(config)
    url = require(database or settings["database"], "database URL")
    records = read_json(record_location)
    if not isinstance(records, dict | list):
        print_error("The JSON document must be an object or a list of objects")
        sys.exit(1)
    schema = table_schema(table, schema_location, settings)

    try:
        with connect(url).begin() as connection:
            result = insert_rows(
                Database(connection),
                table,
                records,
                schema=schema,
                return_key=True,
                origin=settings["origin"],
                journal=open_journal(journal, settings),
            )
    except (DbSchemaError, SQLAlchemyError, TypeError) as e:
        print_error(str(e))
        sys.exit(1)

    count = len(records) if isinstance(records, list) else 1
    key = f" (last key {result.key})" if result.key is not None else ""  # type: ignore[union-attr]
    print_success(f"Inserted {count} row(s) into {table}{key}")


@app.command
def delete(  # noqa: PLR0913
    table: str,
    *,
    where: list[str] | None = None,
    all_rows: bool = False,
    database: str | None = None,
    schema_location: Path | None = None,
    journal: Path | None = None,
    config: Path | None = None,
) -> None:
    """Delete rows matching the filter; an empty filter needs --all-rows."""
    settings = load_settings(config)
    url = require(database or settings["database"], "database URL")
    schema = table_schema(table, schema_location, settings)

    try:
        with connect(url).begin() as connection:
            delete_rows(
                Database(connection),
                table,
                parse_where(where or []),
                schema=schema,
                require_where=not all_rows,
                origin=settings["origin"],
                journal=open_journal(journal, settings),
            )
    except (DbSchemaError, SQLAlchemyError) as e:
        print_error(str(e))
        sys.exit(1)

    print_success(f"Deleted rows from {table}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
