"""Type definitions shared across the package."""

from collections.abc import Mapping
from datetime import date, datetime
from enum import StrEnum, auto

type Value = str | int | float | bool | date | datetime | None

type Row = Mapping[str, Value]

# A single column name or an ordered tuple of names for a composite index
type IndexSpec = str | tuple[str, ...]


class SemanticType(StrEnum):
    """Canonical value kinds a declared column type maps to."""

    TEXT = auto()
    INTEGER = auto()
    NUMBER = auto()
    BOOLEAN = auto()
    DATE = auto()
    DATETIME = auto()


class InsertMode(StrEnum):
    """Statement verb used for inserts."""

    INSERT = "INSERT"
    REPLACE = "REPLACE"
