"""Schema-driven typed CRUD and table creation for SQL databases."""

from dbschema.cache import ReadCache
from dbschema.conversion import to_application, to_database
from dbschema.crud import InsertResult, UpdateResult, delete, get, insert, update
from dbschema.database import Connectable, Database, connect
from dbschema.errors import (
    ConversionError,
    DbSchemaError,
    EmptyUpdateError,
    SchemaDefinitionError,
    SchemaMigrationError,
    UnfilteredMutationError,
    UnknownTypeError,
)
from dbschema.journal import MutationJournal
from dbschema.materialize import create_schema_tables
from dbschema.query import Statement
from dbschema.schema import TableSchema, build_schema, empty_row, empty_rows, load_schemas
from dbschema.template import schema_template
from dbschema.type_mapping import classify, empty_value
from dbschema.types import InsertMode, SemanticType

__all__ = [
    "Connectable",
    "ConversionError",
    "Database",
    "DbSchemaError",
    "EmptyUpdateError",
    "InsertMode",
    "InsertResult",
    "MutationJournal",
    "ReadCache",
    "SchemaDefinitionError",
    "SchemaMigrationError",
    "SemanticType",
    "Statement",
    "TableSchema",
    "UnfilteredMutationError",
    "UnknownTypeError",
    "UpdateResult",
    "build_schema",
    "classify",
    "connect",
    "create_schema_tables",
    "delete",
    "empty_row",
    "empty_rows",
    "empty_value",
    "get",
    "insert",
    "load_schemas",
    "schema_template",
    "to_application",
    "to_database",
    "update",
]
