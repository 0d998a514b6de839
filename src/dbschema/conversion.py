"""Conversion of row values between Python and database representations.

Dates and datetimes are stored as numbers: whole days (DATE) or seconds
(DATETIME) elapsed since an origin, by default the Unix epoch. Booleans are
stored as 0 and 1. Every semantic type has one caster per direction; casters
raise ``ValueError`` or ``TypeError`` which are reported as
``ConversionError`` with the offending column.
"""

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

from dbschema.errors import ConversionError
from dbschema.schema import TableSchema
from dbschema.type_mapping import empty_value
from dbschema.types import Row, SemanticType, Value

type Origin = str | date | datetime
type Caster = Callable[[Value, datetime], Value]

DEFAULT_ORIGIN = "1970-01-01"

TRUE_STRINGS = frozenset({"1", "true", "yes", "y", "t"})
FALSE_STRINGS = frozenset({"0", "false", "no", "n", "f"})

SECONDS_PER_DAY = 86400


def _naive_utc(value: datetime) -> datetime:
    """Normalize aware datetimes to naive UTC, leave naive ones untouched."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def parse_origin(origin: Origin) -> datetime:
    """Return the origin as a naive datetime."""
    if isinstance(origin, datetime):
        return _naive_utc(origin)
    if isinstance(origin, date):
        return datetime.combine(origin, datetime.min.time())
    return _naive_utc(datetime.fromisoformat(origin))


def _is_number(value: Value) -> bool:
    return isinstance(value, int | float | Decimal) and not isinstance(value, bool)


def cast_text(value: Value, _origin: datetime) -> str:
    """Cast any scalar to text."""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def cast_integer(value: Value, _origin: datetime) -> int:
    """Cast value to integer without losing a fractional part."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float | Decimal):
        if value != int(value):
            msg = f"{value} has a fractional part"
            raise ValueError(msg)
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    msg = f"Cannot convert {type(value).__name__} to integer"
    raise TypeError(msg)


def cast_number(value: Value, _origin: datetime) -> int | float:
    """Cast value to a number, keeping integers as they are."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int | float):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    msg = f"Cannot convert {type(value).__name__} to number"
    raise TypeError(msg)


def parse_boolean(value: Value) -> bool:
    """Parse a boolean from bools, 0/1 numbers and common strings."""
    if isinstance(value, bool):
        return value
    if _is_number(value) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    msg = f"{value!r} is not a boolean"
    raise ValueError(msg)


def boolean_to_database(value: Value, _origin: datetime) -> int:
    """Store booleans as 0 or 1."""
    return int(parse_boolean(value))


def boolean_to_application(value: Value, _origin: datetime) -> bool:
    """Read 0 or 1 back as a boolean."""
    return parse_boolean(value)


def parse_date(value: Value) -> date:
    """Parse a date from date, datetime or ISO text."""
    # Check datetime first since it's a subclass of date
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip())
    msg = f"Cannot convert {type(value).__name__} to date"
    raise TypeError(msg)


def parse_datetime(value: Value) -> datetime:
    """Parse a naive datetime from datetime, date or ISO text."""
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    if isinstance(value, str):
        return _naive_utc(datetime.fromisoformat(value.strip()))
    msg = f"Cannot convert {type(value).__name__} to datetime"
    raise TypeError(msg)


def date_to_database(value: Value, origin: datetime) -> int | float:
    """Store a date as days since the origin; numbers are taken as offsets."""
    if _is_number(value):
        return cast_number(value, origin)
    return (parse_date(value) - origin.date()).days


def date_to_application(value: Value, origin: datetime) -> date:
    """Rebuild a date from days since the origin."""
    if _is_number(value):
        return origin.date() + timedelta(days=float(value))  # type: ignore[arg-type]
    return parse_date(value)


def datetime_to_database(value: Value, origin: datetime) -> int | float:
    """Store a datetime as seconds since the origin."""
    if _is_number(value):
        return cast_number(value, origin)
    return (parse_datetime(value) - origin).total_seconds()


def datetime_to_application(value: Value, origin: datetime) -> datetime:
    """Rebuild a datetime from seconds since the origin."""
    if _is_number(value):
        return origin + timedelta(seconds=float(value))  # type: ignore[arg-type]
    return parse_datetime(value)


TO_DATABASE: dict[SemanticType, Caster] = {
    SemanticType.TEXT: cast_text,
    SemanticType.INTEGER: cast_integer,
    SemanticType.NUMBER: cast_number,
    SemanticType.BOOLEAN: boolean_to_database,
    SemanticType.DATE: date_to_database,
    SemanticType.DATETIME: datetime_to_database,
}

TO_APPLICATION: dict[SemanticType, Caster] = {
    SemanticType.TEXT: cast_text,
    SemanticType.INTEGER: cast_integer,
    SemanticType.NUMBER: cast_number,
    SemanticType.BOOLEAN: boolean_to_application,
    SemanticType.DATE: date_to_application,
    SemanticType.DATETIME: datetime_to_application,
}


def _cast(
    casters: dict[SemanticType, Caster],
    column: str,
    value: Value,
    semantic_type: SemanticType,
    origin: datetime,
) -> Value:
    if value is None:
        return None
    try:
        return casters[semantic_type](value, origin)
    except (ValueError, TypeError, OverflowError) as err:
        raise ConversionError(column, value, semantic_type) from err


def to_database(
    values: Row,
    schema: TableSchema,
    *,
    include_missing: bool = True,
    null_as_empty: bool = True,
    origin: Origin = DEFAULT_ORIGIN,
) -> dict[str, Value]:
    """Convert Python values to their stored representation.

    Keys not declared in the schema are dropped and the result follows the
    declared column order. With ``include_missing`` every declared column is
    present: absent columns take their declared default, or the empty value
    of their semantic type when ``null_as_empty`` is set, else ``None``.
    Explicit ``None`` values are kept as SQL NULL.

    Raises:
        ConversionError: if a value does not fit its column type

    """
    start = parse_origin(origin)
    converted: dict[str, Value] = {}
    for column, semantic_type in schema.semantic_types.items():
        if column in values:
            value = values[column]
        elif not include_missing:
            continue
        elif column in schema.defaults:
            value = schema.defaults[column]
        else:
            value = empty_value(semantic_type) if null_as_empty else None
        converted[column] = _cast(TO_DATABASE, column, value, semantic_type, start)
    return converted


def to_application(
    values: Row,
    schema: TableSchema,
    *,
    null_as_empty: bool = False,
    origin: Origin = DEFAULT_ORIGIN,
) -> dict[str, Value]:
    """Convert stored values back to Python values.

    Only declared columns present in ``values`` are returned, in declared
    order. Stored NULLs stay ``None`` unless ``null_as_empty`` is set, in which
    case they become the empty value of their semantic type. A NULL date is
    never read as the origin.

    Raises:
        ConversionError: if a stored value does not fit its column type

    """
    start = parse_origin(origin)
    converted: dict[str, Value] = {}
    for column, semantic_type in schema.semantic_types.items():
        if column not in values:
            continue
        value = values[column]
        if value is None and null_as_empty:
            converted[column] = empty_value(semantic_type)
            continue
        converted[column] = _cast(TO_APPLICATION, column, value, semantic_type, start)
    return converted
