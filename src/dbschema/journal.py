"""Append-only journal of successful mutations."""

from __future__ import annotations

import json
from datetime import UTC, date, datetime
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TypedDict

if TYPE_CHECKING:
    from dbschema.types import Row, Value

logger = getLogger(__name__)

type Operation = Literal["insert", "update", "delete"]


class JournalEntry(TypedDict):
    """One line of the journal."""

    timestamp: str
    table: str
    operation: Operation
    keys: dict[str, Value]


def serializer(obj: object) -> str:
    """Convert dates to ISO format for JSON output."""
    if isinstance(obj, date):
        return obj.isoformat()
    msg = f"Object of type {type(obj).__name__} is not JSON serializable"
    raise TypeError(msg)


class MutationJournal:
    """Writes one JSON line per insert, update or delete.

    The file's modification time doubles as a change marker for
    ``ReadCache``; ``version`` counts writes made through this instance.
    """

    def __init__(self, path: Path | str) -> None:
        """Use the journal file at ``path``, created on first write."""
        self.path = Path(path)
        self.version = 0

    def record(self, table: str, operation: Operation, keys: Row | None) -> None:
        """Append an entry for a mutation of ``table``."""
        entry: JournalEntry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "table": table,
            "operation": operation,
            "keys": dict(keys or {}),
        }
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=serializer) + "\n")
        self.version += 1
        logger.debug("Journaled %s on %s", operation, table)

    def modified(self) -> int | None:
        """Return the file modification time in nanoseconds, if it exists."""
        try:
            return self.path.stat().st_mtime_ns
        except FileNotFoundError:
            return None

    def entries(self) -> list[JournalEntry]:
        """Read all entries back."""
        if not self.path.exists():
            return []
        with self.path.open(encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
