"""Database access used by the CRUD operations and table creation."""

from __future__ import annotations

from collections.abc import Sequence
from logging import getLogger
from typing import TYPE_CHECKING, Any, Protocol

from sqlalchemy import Engine, column, create_engine, insert, inspect, table, text
from sqlalchemy.exc import SQLAlchemyError

if TYPE_CHECKING:
    from sqlalchemy import Connection

    from dbschema.types import Row, Value

logger = getLogger(__name__)

# Query returning the key generated by the last insert, per dialect name
LAST_KEY_QUERIES = {
    "sqlite": "SELECT last_insert_rowid()",
    "mysql": "SELECT LAST_INSERT_ID()",
    "mariadb": "SELECT LAST_INSERT_ID()",
}


class Connectable(Protocol):
    """Operations the CRUD functions and table creation need from a database.

    ``errors`` lists the exception types the backend raises for failed
    statements; table creation wraps them in ``SchemaMigrationError``.
    """

    errors: tuple[type[Exception], ...]

    def execute(self, sql: str, params: Row | None = None) -> int:
        """Execute a statement and return the number of affected rows."""
        ...

    def fetch_all(self, sql: str, params: Row | None = None) -> list[dict[str, Any]]:
        """Execute a query and return all rows as dictionaries."""
        ...

    def table_exists(self, name: str) -> bool:
        """Return True if the table exists."""
        ...

    def drop_table(self, name: str) -> None:
        """Drop the table if it exists."""
        ...

    def columns(self, name: str) -> list[str]:
        """Return the column names of an existing table."""
        ...

    def bulk_append(self, table: str, rows: Sequence[Row]) -> int:
        """Append many rows to a table."""
        ...

    def last_generated_key(self) -> Value:
        """Return the primary key generated by the last insert."""
        ...


def connect(url: str) -> Engine:
    """Create an engine for a database URL such as ``sqlite:///app.db``."""
    return create_engine(url)


class Database:
    """SQLAlchemy implementation of the database operations.

    Statements run on the given connection inside whatever transaction the
    caller opened; this class never commits.
    """

    errors: tuple[type[Exception], ...] = (SQLAlchemyError,)

    def __init__(self, connection: Connection) -> None:
        """Wrap an open SQLAlchemy connection."""
        self._connection = connection
        self._last_row_id: Value = None

    @property
    def dialect(self) -> str:
        """Return the dialect name, e.g. ``sqlite``."""
        return self._connection.dialect.name

    def _run(self, sql: str, params: Row | None) -> Any:  # noqa: ANN401
        logger.debug("Executing %s with %s", sql, params)
        if params:
            return self._connection.execute(text(sql), dict(params))
        # Without parameters colons in literals must not be read as binds
        return self._connection.exec_driver_sql(sql)

    def execute(self, sql: str, params: Row | None = None) -> int:
        """Execute a statement and return the number of affected rows."""
        result = self._run(sql, params)
        self._last_row_id = result.lastrowid
        return result.rowcount

    def fetch_all(self, sql: str, params: Row | None = None) -> list[dict[str, Any]]:
        """Execute a query and return all rows as dictionaries."""
        return [dict(row) for row in self._run(sql, params).mappings()]

    def table_exists(self, name: str) -> bool:
        """Return True if the table exists."""
        return inspect(self._connection).has_table(name)

    def drop_table(self, name: str) -> None:
        """Drop the table if it exists."""
        self.execute(f"DROP TABLE IF EXISTS {name}")

    def columns(self, name: str) -> list[str]:
        """Return the column names of an existing table in physical order."""
        return [info["name"] for info in inspect(self._connection).get_columns(name)]

    def bulk_append(self, name: str, rows: Sequence[Row]) -> int:
        """Append many rows with a single executemany insert."""
        if not rows:
            return 0
        # Untyped columns bind the already converted values unchanged
        target = table(name, *(column(key) for key in rows[0]))
        logger.debug("Appending %d rows to %s", len(rows), name)
        result = self._connection.execute(
            insert(target),
            [dict(row) for row in rows],
        )
        return result.rowcount

    def last_generated_key(self) -> Value:
        """Return the primary key generated by the last insert."""
        if query := LAST_KEY_QUERIES.get(self.dialect):
            return self._connection.exec_driver_sql(query).scalar()
        return self._last_row_id

