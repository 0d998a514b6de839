"""Parameterized SQL statement generation for CRUD operations.

Placeholders are named after their columns (``:email``), so the bound
parameters are the value and filter mappings themselves. For updates this
means a column may not appear in both the SET values and the WHERE filter.

An empty filter on ``update`` or ``delete`` affects every row of the table.
That is allowed here and logged as a warning; use ``require_where`` in the
CRUD functions to reject it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from logging import getLogger
from types import MappingProxyType
from typing import NamedTuple

from dbschema.errors import EmptyUpdateError
from dbschema.types import InsertMode, Row, Value

logger = getLogger(__name__)


class Statement(NamedTuple):
    """SQL text with named placeholders and the values bound to them."""

    sql: str
    params: Mapping[str, Value]


def _statement(sql: str, *params: Row | None) -> Statement:
    bound: dict[str, Value] = {}
    for mapping in params:
        bound.update(mapping or {})
    return Statement(sql, MappingProxyType(bound))


def is_select(table: str) -> bool:
    """Return True if ``table`` is already a full SELECT statement."""
    return table.lstrip()[:7].lower() == "select "


def where_clause(where: Row | None) -> str:
    """Build ``WHERE a = :a AND b = :b`` in filter order, or nothing."""
    if not where:
        return ""
    conditions = " AND ".join(f"{column} = :{column}" for column in where)
    return f" WHERE {conditions}"


def select(
    table: str,
    where: Row | None = None,
    order_by: Iterable[str] | None = None,
    sql: str | None = None,
) -> Statement:
    """Build a SELECT statement.

    A ``table`` that already is a SELECT statement is used as-is, with the
    filter values bound to its placeholders.
    """
    if sql is None:
        if is_select(table):
            sql = table
        else:
            sql = f"SELECT * FROM {table}{where_clause(where)}"  # noqa: S608
            if order_by and (terms := list(order_by)):
                sql += f" ORDER BY {', '.join(terms)}"
    return _statement(sql, where)


def insert(
    table: str,
    values: Row,
    mode: InsertMode = InsertMode.INSERT,
    sql: str | None = None,
) -> Statement:
    """Build a positional INSERT (or REPLACE) statement.

    Values are bound in key order, which must match the physical column
    order of the table. Rows converted with ``include_missing`` satisfy this.
    """
    if sql is None:
        placeholders = ", ".join(f":{column}" for column in values)
        sql = f"{InsertMode(str(mode).upper())} INTO {table} VALUES ({placeholders})"
    return _statement(sql, values)


def update(
    table: str,
    values: Row,
    where: Row | None = None,
    sql: str | None = None,
) -> Statement:
    """Build an UPDATE statement.

    Raises:
        EmptyUpdateError: if there is nothing to set
        ValueError: if a column is both set and filtered on

    """
    if not values:
        msg = f"Update of table '{table}' has no columns to set"
        raise EmptyUpdateError(msg)
    if overlap := [column for column in values if column in (where or {})]:
        msg = f"Columns {overlap} appear in both values and filter"
        raise ValueError(msg)

    if sql is None:
        assignments = ", ".join(f"{column} = :{column}" for column in values)
        sql = f"UPDATE {table} SET {assignments}{where_clause(where)}"
        if not where:
            logger.warning("Update without filter affects all rows of %s", table)
    return _statement(sql, values, where)


def delete(
    table: str,
    where: Row | None = None,
    sql: str | None = None,
) -> Statement:
    """Build a DELETE statement; an empty filter deletes every row."""
    if sql is None:
        sql = f"DELETE FROM {table}{where_clause(where)}"  # noqa: S608
        if not where:
            logger.warning("Delete without filter removes all rows of %s", table)
    return _statement(sql, where)
