"""Tests for conversion between Python and stored values."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from dbschema.conversion import to_application, to_database
from dbschema.errors import ConversionError
from dbschema.schema import TableSchema, build_schema
from dbschema.types import SemanticType, Value


@pytest.fixture(name="user")
def create_user_schema() -> TableSchema:
    """Create a schema covering every semantic type."""
    return build_schema(
        "user",
        {
            "userid": "VARCHAR(20)",
            "email": "VARCHAR(100)",
            "age": "INTEGER",
            "female": "BOOLEAN",
            "created": "DATETIME",
            "descr": "TEXT",
        },
    )


@pytest.fixture(name="typed")
def create_typed_schema() -> TableSchema:
    """Create a schema with one column of each semantic type."""
    return build_schema(
        "typed",
        {
            "text": "TEXT",
            "integer": "INTEGER",
            "number": "REAL",
            "flag": "BOOLEAN",
            "day": "DATE",
            "moment": "DATETIME",
        },
    )


def test_insert_conversion_reorders_and_prunes(user: TableSchema) -> None:
    """Test that inserts get exactly the declared columns in declared order."""
    created = datetime(2024, 5, 17, 12, 30)
    values = {
        "age": 47,
        "female": True,
        "email": "a@b.com",
        "userid": "u1",
        "created": created,
        "gender": "female",
    }

    stored = to_database(values, user)

    assert list(stored) == ["userid", "email", "age", "female", "created", "descr"]
    assert stored["descr"] == ""
    assert stored["female"] == 1
    assert stored["age"] == 47
    assert stored["created"] == (created - datetime(1970, 1, 1)).total_seconds()
    assert "gender" not in stored


def test_partial_conversion_keeps_only_given_columns(user: TableSchema) -> None:
    """Test the update and filter path."""
    stored = to_database(
        {"female": False, "userid": "u1", "other": 1},
        user,
        include_missing=False,
    )

    assert stored == {"userid": "u1", "female": 0}
    assert list(stored) == ["userid", "female"]


def test_missing_columns_without_empty_values(user: TableSchema) -> None:
    """Test that absent columns stay NULL when empty values are not wanted."""
    stored = to_database({"userid": "u1"}, user, null_as_empty=False)

    assert stored["descr"] is None
    assert stored["age"] is None


def test_missing_columns_take_declared_defaults() -> None:
    """Test that declared defaults fill absent columns and are converted."""
    schema = build_schema(
        "t",
        {"name": "TEXT", "active": "BOOLEAN", "since": "DATE"},
        defaults={"active": True, "since": "1970-01-03"},
    )

    assert to_database({"name": "x"}, schema) == {"name": "x", "active": 1, "since": 2}


@pytest.mark.parametrize(
    "row",
    [
        {
            "text": "hello",
            "integer": 3,
            "number": 2.5,
            "flag": True,
            "day": date(2024, 2, 29),
            "moment": datetime(2024, 2, 29, 23, 59, 58, 123456),
        },
        {
            "text": None,
            "integer": None,
            "number": None,
            "flag": None,
            "day": None,
            "moment": None,
        },
        {
            "text": "",
            "integer": -7,
            "number": None,
            "flag": False,
            "day": date(1969, 12, 31),
            "moment": None,
        },
    ],
)
def test_round_trip(typed: TableSchema, row: dict[str, Value]) -> None:
    """Test that converting to the database and back is lossless."""
    assert to_application(to_database(row, typed), typed) == row


def test_stored_zero_is_the_origin(typed: TableSchema) -> None:
    """Test reconstruction of temporal values at the origin."""
    result = to_application({"day": 0, "moment": 0}, typed)

    assert result == {"day": date(1970, 1, 1), "moment": datetime(1970, 1, 1)}


def test_stored_null_is_not_the_origin(typed: TableSchema) -> None:
    """Test that NULL temporal values stay empty."""
    assert to_application({"day": None, "moment": None}, typed) == {
        "day": None,
        "moment": None,
    }
    empty = to_application(
        {"text": None, "moment": None, "flag": None},
        typed,
        null_as_empty=True,
    )
    assert empty == {"text": "", "flag": None, "moment": None}


def test_custom_origin(typed: TableSchema) -> None:
    """Test offsets relative to a custom origin."""
    stored = to_database(
        {"day": date(2000, 1, 11), "moment": datetime(2000, 1, 1, 0, 1)},
        typed,
        include_missing=False,
        origin="2000-01-01",
    )

    assert stored == {"day": 10, "moment": 60.0}
    assert to_application(stored, typed, origin=date(2000, 1, 1)) == {
        "day": date(2000, 1, 11),
        "moment": datetime(2000, 1, 1, 0, 1),
    }


def test_temporal_values_from_text_and_numbers(typed: TableSchema) -> None:
    """Test that ISO text is parsed and numbers are taken as offsets."""
    stored = to_database(
        {"day": "1970-01-05", "moment": 3600},
        typed,
        include_missing=False,
    )
    assert stored == {"day": 4, "moment": 3600}

    result = to_application({"day": "2024-01-02", "moment": "2024-01-02T03:04:05"}, typed)
    assert result == {"day": date(2024, 1, 2), "moment": datetime(2024, 1, 2, 3, 4, 5)}


def test_aware_datetimes_are_stored_as_utc(typed: TableSchema) -> None:
    """Test that timezone-aware values are normalized to UTC."""
    moment = datetime(1970, 1, 1, 1, 0, tzinfo=timezone(timedelta(hours=1)))

    assert to_database({"moment": moment}, typed, include_missing=False) == {
        "moment": 0.0,
    }


@pytest.mark.parametrize(
    ("value", "expected"),
    [(True, 1), (False, 0), (1, 1), (0, 0), ("yes", 1), ("False", 0), (None, None)],
)
def test_boolean_storage(typed: TableSchema, value: Value, expected: int | None) -> None:
    """Test that booleans are stored as 0 and 1 with NULL kept apart."""
    assert to_database({"flag": value}, typed, include_missing=False) == {
        "flag": expected,
    }


def test_numeric_casts(typed: TableSchema) -> None:
    """Test representational casts of numbers and text."""
    stored = to_database(
        {"text": 12, "integer": "42", "number": Decimal("1.25")},
        typed,
        include_missing=False,
    )

    assert stored == {"text": "12", "integer": 42, "number": 1.25}
    assert to_application({"integer": 5.0, "number": "3.5"}, typed) == {
        "integer": 5,
        "number": 3.5,
    }


@pytest.mark.parametrize(
    ("column", "value", "semantic_type"),
    [
        ("integer", "abc", SemanticType.INTEGER),
        ("integer", 1.5, SemanticType.INTEGER),
        ("number", "many", SemanticType.NUMBER),
        ("flag", "maybe", SemanticType.BOOLEAN),
        ("flag", 2, SemanticType.BOOLEAN),
        ("day", "yesterday", SemanticType.DATE),
        ("moment", [2024], SemanticType.DATETIME),
    ],
)
def test_conversion_errors_name_the_column(
    typed: TableSchema,
    column: str,
    value: Value,
    semantic_type: SemanticType,
) -> None:
    """Test that failed casts report column, value and target type."""
    with pytest.raises(ConversionError) as excinfo:
        to_database({column: value}, typed, include_missing=False)

    assert excinfo.value.column == column
    assert excinfo.value.value == value
    assert excinfo.value.semantic_type == semantic_type


def test_application_conversion_skips_unknown_columns(typed: TableSchema) -> None:
    """Test that fetched columns outside the schema are dropped."""
    assert to_application({"count": 3, "flag": 1}, typed) == {"flag": True}
