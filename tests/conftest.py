"""Shared fixtures for dbschema tests."""

from collections.abc import Iterator

import pytest
from sqlalchemy import create_engine

from dbschema.database import Database
from dbschema.schema import TableSchema, load_schemas

COURSE_SCHEMA = """
# An example schema of a simple database with 3 tables
student:
  table:
    email: VARCHAR(100)
    name: TEXT
    country: VARCHAR(100)
    city: VARCHAR(100)
    create_time: DATETIME
  index:
    - email
    - [country, city]
    - create_time

course:
  table:
    courseid: INTEGER
    title: TEXT
    year: INTEGER
  sql:
    - "CREATE UNIQUE INDEX course1 on course (courseid)"
  index:
    - year

coursestud:
  table:
    courseid: INTEGER
    email: VARCHAR(100)
  index:
    - courseid
    - email
"""

USER_SCHEMA = """
users:
  table:
    id: INTEGER PRIMARY KEY
    userid: VARCHAR(20)
    email: VARCHAR(100)
    age: INTEGER
    female: BOOLEAN
    created: DATETIME
    birthday: DATE
    score: NUMERIC
    descr: TEXT
  index:
    - userid
  defaults:
    descr: none given
"""


class RecordingDatabase(Database):
    """Database that remembers every executed statement."""

    def __init__(self, *args: object, **kwargs: object) -> None:
        """Start with an empty statement log."""
        super().__init__(*args, **kwargs)  # type: ignore[arg-type]
        self.statements: list[str] = []

    def execute(self, sql: str, params: object = None) -> int:
        """Record the statement, then execute it."""
        self.statements.append(sql)
        return super().execute(sql, params)  # type: ignore[arg-type]


@pytest.fixture(name="db")
def create_db() -> Iterator[RecordingDatabase]:
    """Create an in-memory SQLite database."""
    engine = create_engine("sqlite://")
    with engine.connect() as connection:
        yield RecordingDatabase(connection)
    engine.dispose()


@pytest.fixture(name="course_schemas")
def create_course_schemas() -> dict[str, TableSchema]:
    """Load the course example schemas."""
    return load_schemas(text=COURSE_SCHEMA)


@pytest.fixture(name="users")
def create_user_schema() -> TableSchema:
    """Load the users schema."""
    return load_schemas(text=USER_SCHEMA)["users"]
