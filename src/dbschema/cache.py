"""Memoization of ``get`` results, invalidated by the mutation journal."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterable

    from dbschema.journal import MutationJournal
    from dbschema.types import Row

logger = getLogger(__name__)

type CacheKey = tuple[Hashable, ...]


def cache_key(
    table: str,
    sql: str,
    where: Row | None = None,
    order_by: Iterable[str] | None = None,
    conversion: Hashable = None,
) -> CacheKey:
    """Build a cache key from the query parameters.

    ``conversion`` identifies how fetched rows are converted, so converted and
    stored representations of the same query never share an entry.
    """
    return (
        table,
        sql,
        tuple((where or {}).items()),
        tuple(order_by or ()),
        conversion,
    )


class ReadCache:
    """In-memory cache of fetched rows.

    Without a journal the cache only empties on ``clear``. With a journal it
    empties as soon as the journal changes, whichever process wrote to it.
    """

    def __init__(self, journal: MutationJournal | None = None) -> None:
        """Create an empty cache, optionally tied to a journal."""
        self.journal = journal
        self._rows: dict[CacheKey, list[dict[str, Any]]] = {}
        self._marker = self._journal_marker()

    def _journal_marker(self) -> tuple[int, int | None] | None:
        if self.journal is None:
            return None
        return (self.journal.version, self.journal.modified())

    def _check_journal(self) -> None:
        marker = self._journal_marker()
        if marker != self._marker:
            if self._rows:
                logger.debug("Journal changed, dropping %d cached reads", len(self._rows))
            self._rows.clear()
            self._marker = marker

    def get(self, key: CacheKey) -> list[dict[str, Any]] | None:
        """Return a copy of the cached rows for ``key``, if any."""
        self._check_journal()
        rows = self._rows.get(key)
        if rows is None:
            return None
        return [dict(row) for row in rows]

    def put(self, key: CacheKey, rows: list[dict[str, Any]]) -> None:
        """Store rows for ``key``."""
        self._check_journal()
        self._rows[key] = [dict(row) for row in rows]

    def clear(self) -> None:
        """Drop every cached result."""
        self._rows.clear()

    def __len__(self) -> int:
        """Return the number of cached queries."""
        return len(self._rows)
