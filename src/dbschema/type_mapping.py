"""Mapping between declared SQL column types and semantic types.

Declared types are matched on their leading characters, case-insensitively,
so that ``VARCHAR(100)``, ``varchar`` and ``VARCHAR(100) NOT NULL`` all map to
the same semantic type. Rules are checked in order and the first match wins.
"""

from datetime import date, datetime

from dbschema.errors import UnknownTypeError
from dbschema.types import SemanticType, Value

# "datet" must be checked before "date"
PREFIX_RULES: tuple[tuple[str, SemanticType], ...] = (
    ("char", SemanticType.TEXT),
    ("text", SemanticType.TEXT),
    ("varc", SemanticType.TEXT),
    ("bool", SemanticType.BOOLEAN),
    ("integ", SemanticType.INTEGER),
    ("numer", SemanticType.NUMBER),
    ("real", SemanticType.NUMBER),
    ("datet", SemanticType.DATETIME),
    ("date", SemanticType.DATE),
)

EMPTY_VALUES: dict[SemanticType, Value] = {
    SemanticType.TEXT: "",
    SemanticType.INTEGER: None,
    SemanticType.NUMBER: None,
    SemanticType.BOOLEAN: None,
    SemanticType.DATE: None,
    SemanticType.DATETIME: None,
}


def classify(declared_type: str) -> SemanticType:
    """Return the semantic type of a declared column type.

    Examples:
        VARCHAR(100) -> TEXT
        INTEGER PRIMARY KEY -> INTEGER
        DATETIME -> DATETIME

    Raises:
        UnknownTypeError: if no prefix rule matches

    """
    normalized = str(declared_type).strip().lower()
    for prefix, semantic_type in PREFIX_RULES:
        if normalized.startswith(prefix):
            return semantic_type
    raise UnknownTypeError(str(declared_type))


def empty_value(semantic_type: SemanticType) -> Value:
    """Return the value used for an unset column of the given semantic type."""
    return EMPTY_VALUES[semantic_type]


def declared_type_for(value: object) -> str:
    """Suggest a declared column type for a Python value."""
    # bool before int and datetime before date: both are subclasses
    match value:
        case bool():
            return "BOOLEAN"
        case int():
            return "INTEGER"
        case float():
            return "NUMERIC"
        case str():
            return "VARCHAR(255)"
        case datetime():
            return "DATETIME"
        case date():
            return "DATE"
        case _:
            return "UNKNOWN"
