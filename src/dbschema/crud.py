"""Typed get, insert, update and delete on top of the statement builders.

Every function takes a ``Connectable`` (usually ``Database``) and, optionally,
the ``TableSchema`` of the table. With a schema, values are converted to their
stored representation before binding and fetched rows are converted back.
``dry_run`` returns the generated ``Statement`` without touching the database.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from logging import getLogger
from typing import TYPE_CHECKING, Any, NamedTuple

from dbschema import query
from dbschema.cache import cache_key
from dbschema.conversion import DEFAULT_ORIGIN, Origin, to_application, to_database
from dbschema.errors import UnfilteredMutationError
from dbschema.types import InsertMode

if TYPE_CHECKING:
    from dbschema.cache import ReadCache
    from dbschema.database import Connectable
    from dbschema.journal import MutationJournal
    from dbschema.query import Statement
    from dbschema.schema import TableSchema
    from dbschema.types import Row, Value

logger = getLogger(__name__)


class InsertResult(NamedTuple):
    """Values as stored and the generated primary key, if requested."""

    values: dict[str, Value] | list[dict[str, Value]]
    key: Value = None


class UpdateResult(NamedTuple):
    """Values as stored by an update."""

    values: dict[str, Value]


def is_batch(values: Row | Sequence[Row]) -> bool:
    """Return True for a sequence of rows, False for a single row."""
    if isinstance(values, Mapping):
        return False
    if isinstance(values, Sequence) and not isinstance(values, str | bytes):
        if not all(isinstance(row, Mapping) for row in values):
            msg = "A batch of rows must contain only mappings"
            raise TypeError(msg)
        return True
    msg = f"Expected a row mapping or a sequence of them, got {type(values).__name__}"
    raise TypeError(msg)


def filter_to_database(
    where: Row | None,
    schema: TableSchema | None,
    origin: Origin = DEFAULT_ORIGIN,
) -> dict[str, Value]:
    """Convert filter values of declared columns, keeping the filter order.

    Keys the schema does not declare are bound unchanged rather than dropped,
    so a misspelled column fails in the database instead of widening the filter.
    """
    where = dict(where or {})
    if schema is None:
        return where
    converted = to_database(where, schema, include_missing=False, origin=origin)
    return {column: converted.get(column, value) for column, value in where.items()}


def _require_where(table: str, where: Row | None, *, required: bool) -> None:
    if required and not where:
        msg = f"Refusing to modify every row of '{table}' without a filter"
        raise UnfilteredMutationError(msg)


def _row_keys(row: dict[str, Value], primary_key: str | None) -> dict[str, Value]:
    """Return the primary key of a row when known, else the whole row."""
    if primary_key and row.get(primary_key) is not None:
        return {primary_key: row[primary_key]}
    return row


def insert(  # noqa: PLR0913
    db: Connectable,
    table: str,
    values: Row | Sequence[Row],
    *,
    schema: TableSchema | None = None,
    sql: str | None = None,
    mode: InsertMode = InsertMode.INSERT,
    return_key: bool = False,
    null_as_empty: bool = True,
    origin: Origin = DEFAULT_ORIGIN,
    journal: MutationJournal | None = None,
    dry_run: bool = False,
) -> InsertResult | Statement | list[Statement]:
    """Insert one row, or append a batch of rows.

    A mapping is a single row, executed as one parameterized statement. A
    sequence of mappings is a batch handed to ``bulk_append``; ``sql`` and
    ``mode`` only apply to single rows.

    With a schema each row is completed to the full declared column list in
    declared order, so the positional INSERT matches the table layout.

    Args:
        db: Database to write to
        table: Table name
        values: Row or rows to insert
        schema: Schema used to convert and complete the rows
        sql: Statement used instead of the generated one
        mode: INSERT or REPLACE
        return_key: Fetch the generated primary key (needs a declared key)
        null_as_empty: Fill absent columns with their type's empty value
        origin: Origin for DATE and DATETIME offsets
        journal: Journal notified after a successful insert
        dry_run: Return the statement(s) instead of executing

    """
    batch = is_batch(values)
    rows: list[dict[str, Value]] = [
        dict(row) for row in (values if batch else [values])  # type: ignore[union-attr]
    ]
    if schema is not None:
        rows = [
            to_database(
                row,
                schema,
                include_missing=True,
                null_as_empty=null_as_empty,
                origin=origin,
            )
            for row in rows
        ]

    if dry_run:
        statements = [query.insert(table, row, mode, sql) for row in rows]
        return statements if batch else statements[0]

    if batch:
        db.bulk_append(table, rows)
    else:
        statement = query.insert(table, rows[0], mode, sql)
        db.execute(statement.sql, statement.params)

    key: Value = None
    primary_key = schema.primary_key if schema is not None else None
    if return_key and primary_key:
        key = db.last_generated_key()
        if not batch:
            rows[0][primary_key] = key

    if journal is not None:
        for row in rows:
            journal.record(table, "insert", _row_keys(row, primary_key))

    return InsertResult(rows if batch else rows[0], key)


def get(  # noqa: PLR0913
    db: Connectable,
    table: str,
    where: Row | None = None,
    *,
    schema: TableSchema | None = None,
    sql: str | None = None,
    order_by: Iterable[str] | None = None,
    null_as_empty: bool = False,
    origin: Origin = DEFAULT_ORIGIN,
    cache: ReadCache | None = None,
    dry_run: bool = False,
) -> list[dict[str, Any]] | Statement:
    """Fetch rows matching ``where``; no match gives an empty list.

    ``table`` may also be a complete SELECT statement whose named placeholders
    are bound from ``where``.
    """
    order_by = list(order_by) if order_by else None
    statement = query.select(table, filter_to_database(where, schema, origin), order_by, sql)
    if dry_run:
        return statement

    conversion = (
        (tuple(schema.semantic_types.items()), null_as_empty, str(origin))
        if schema is not None
        else None
    )
    key = cache_key(table, statement.sql, statement.params, order_by, conversion)
    if cache is not None and (cached := cache.get(key)) is not None:
        logger.debug("Cache hit for %s", table)
        return cached

    rows = db.fetch_all(statement.sql, statement.params)
    if schema is not None:
        rows = [
            to_application(row, schema, null_as_empty=null_as_empty, origin=origin)
            for row in rows
        ]

    if cache is not None:
        cache.put(key, rows)
    return rows


def update(  # noqa: PLR0913
    db: Connectable,
    table: str,
    values: Row,
    where: Row | None = None,
    *,
    schema: TableSchema | None = None,
    sql: str | None = None,
    require_where: bool = False,
    origin: Origin = DEFAULT_ORIGIN,
    journal: MutationJournal | None = None,
    dry_run: bool = False,
) -> UpdateResult | Statement:
    """Update rows matching ``where``.

    With a schema only declared columns are set, and columns missing from
    ``values`` are left untouched. An empty ``where`` updates every row unless
    ``require_where`` is set.

    Raises:
        EmptyUpdateError: if no column is left to set
        UnfilteredMutationError: if ``require_where`` and the filter is empty

    """
    _require_where(table, where, required=require_where)
    stored = dict(values)
    if schema is not None:
        stored = to_database(stored, schema, include_missing=False, origin=origin)
    statement = query.update(table, stored, filter_to_database(where, schema, origin), sql)
    if dry_run:
        return statement

    db.execute(statement.sql, statement.params)
    if journal is not None:
        journal.record(table, "update", where)
    return UpdateResult(stored)


def delete(  # noqa: PLR0913
    db: Connectable,
    table: str,
    where: Row | None = None,
    *,
    schema: TableSchema | None = None,
    sql: str | None = None,
    require_where: bool = False,
    origin: Origin = DEFAULT_ORIGIN,
    journal: MutationJournal | None = None,
    dry_run: bool = False,
) -> Statement | None:
    """Delete rows matching ``where``.

    Filter values are converted only when a schema is given. An empty
    ``where`` deletes every row unless ``require_where`` is set.
    """
    _require_where(table, where, required=require_where)
    statement = query.delete(table, filter_to_database(where, schema, origin), sql)
    if dry_run:
        return statement

    db.execute(statement.sql, statement.params)
    if journal is not None:
        journal.record(table, "delete", where)
    return None
