"""dbdiff/__init__.py"""
from dbdiff.comparator import (
    DataComparison,
    SchemaComparison,
    check_connection,
    compare_schemas,
    compare_table_data,
    data_sync_summary,
    list_databases,
    load_schema,
    tables_for_sync,
)
from dbdiff.data_differ import diff_table_data
from dbdiff.database import (
    ConnectionFailureError,
    ConnectionLostError,
    DatabaseError,
    DatabaseManager,
    MetadataQueryError,
    StatementExecutionError,
)
from dbdiff.definition_parser import DefinitionParseError, load_table_definitions
from dbdiff.schema_differ import diff_schemas
from dbdiff.snapshot import PreconditionViolationError, build_row_snapshot, build_schema
from dbdiff.sql_codec import escape_string, escape_value
from dbdiff.table_builder import (
    build_create_database_sql,
    build_create_table_sql,
    create_database,
    create_table,
    drop_database,
)

__all__ = [
    "DatabaseManager",
    "DatabaseError",
    "ConnectionFailureError",
    "ConnectionLostError",
    "MetadataQueryError",
    "StatementExecutionError",
    "PreconditionViolationError",
    "DefinitionParseError",
    "build_schema",
    "build_row_snapshot",
    "diff_schemas",
    "diff_table_data",
    "escape_value",
    "escape_string",
    "build_create_table_sql",
    "build_create_database_sql",
    "create_table",
    "create_database",
    "drop_database",
    "load_table_definitions",
    "check_connection",
    "list_databases",
    "load_schema",
    "compare_schemas",
    "tables_for_sync",
    "compare_table_data",
    "data_sync_summary",
    "SchemaComparison",
    "DataComparison",
]
