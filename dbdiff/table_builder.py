"""
dbdiff/table_builder.py
-----------------------
Generates ``CREATE TABLE`` / ``CREATE DATABASE`` statements from declarative
definitions, and applies them.

Design Decisions:
    * Generation is pure; only ``create_table`` / ``create_database`` /
      ``drop_database`` touch a server, and only they execute DDL.
    * The primary key is always emitted as one trailing ``PRIMARY KEY (...)``
      clause listing flagged columns in definition order, so composite keys
      need no special casing and no column carries it inline.
    * Free text (comments, default literals) goes through
      :func:`dbdiff.sql_codec.escape_string`.
"""
from __future__ import annotations

from dbdiff.database import DatabaseManager
from dbdiff.sql_codec import escape_string, quote_identifier, quote_identifiers, render_default
from logger import get_logger
from models.schema import ConnectionConfig
from models.table_definition import ColumnDefinition, TableDefinition

log = get_logger(__name__)

DEFAULT_ENGINE = "InnoDB"
DEFAULT_CHARSET = "utf8mb4"
DEFAULT_COLLATION = "utf8mb4_unicode_ci"

# Types rendered as TYPE(length) when a length is given.
LENGTH_TYPES = frozenset({"VARCHAR", "CHAR", "DECIMAL", "FLOAT", "DOUBLE"})

COMMON_DATA_TYPES = (
    "INT", "BIGINT", "TINYINT", "SMALLINT", "DECIMAL", "FLOAT", "DOUBLE",
    "VARCHAR", "CHAR", "TEXT", "MEDIUMTEXT", "LONGTEXT",
    "DATE", "DATETIME", "TIMESTAMP", "TIME", "YEAR",
    "BOOLEAN", "JSON", "BLOB", "MEDIUMBLOB", "LONGBLOB", "ENUM", "SET",
)
TABLE_ENGINES = ("InnoDB", "MyISAM", "MEMORY", "CSV", "ARCHIVE")
CHARSETS = ("utf8mb4", "utf8", "latin1", "ascii", "gbk", "gb2312")


def needs_length(data_type: str) -> bool:
    return data_type.upper() in LENGTH_TYPES


def build_column_clause(col: ColumnDefinition) -> str:
    """
    Render one column line of a CREATE TABLE body.

    Example::

        `email` VARCHAR(255) NOT NULL UNIQUE COMMENT 'login'
    """
    parts = [quote_identifier(col.name)]
    if col.length > 0 and needs_length(col.type):
        parts.append(f"{col.type}({col.length})")
    else:
        parts.append(col.type)

    parts.append("NULL" if col.nullable else "NOT NULL")

    if col.default_value is not None:
        parts.append(render_default(col.default_value))
    if col.auto_increment:
        parts.append("AUTO_INCREMENT")
    if col.unique and not col.primary_key:
        parts.append("UNIQUE")
    if col.comment:
        parts.append(f"COMMENT '{escape_string(col.comment)}'")
    return " ".join(parts)


def build_create_table_sql(definition: TableDefinition) -> str:
    """
    Generate a complete ``CREATE TABLE`` statement.

    Args:
        definition: Columns, indexes and table options.

    Returns:
        The statement, terminated with ``;``.

    Example::

        CREATE TABLE `users` (
          `id` INT NOT NULL AUTO_INCREMENT,
          `email` VARCHAR(255) NOT NULL,
          PRIMARY KEY (`id`),
          UNIQUE KEY `uk_email` (`email`)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci;
    """
    lines = [f"  {build_column_clause(c)}" for c in definition.columns]

    pk_cols = definition.primary_key_columns
    if pk_cols:
        lines.append(f"  PRIMARY KEY ({quote_identifiers(pk_cols)})")

    for idx in definition.indexes:
        kind = "UNIQUE KEY" if idx.unique else "KEY"
        lines.append(f"  {kind} {quote_identifier(idx.name)} ({quote_identifiers(idx.columns)})")

    options = (
        f" ENGINE={definition.engine or DEFAULT_ENGINE}"
        f" DEFAULT CHARSET={definition.charset or DEFAULT_CHARSET}"
        f" COLLATE={definition.collation or DEFAULT_COLLATION}"
    )
    if definition.comment:
        options += f" COMMENT='{escape_string(definition.comment)}'"

    body = ",\n".join(lines)
    return f"CREATE TABLE {quote_identifier(definition.name)} (\n{body}\n){options};"


def build_create_database_sql(name: str, charset: str = "", collation: str = "") -> str:
    """``CREATE DATABASE`` with optional character set and collation."""
    sql = f"CREATE DATABASE {quote_identifier(name)}"
    if charset:
        sql += f" CHARACTER SET {charset}"
    if collation:
        sql += f" COLLATE {collation}"
    return sql + ";"


def create_table(config: ConnectionConfig, definition: TableDefinition) -> str:
    """
    Create *definition* in the database named by *config*.

    Returns:
        The executed statement.

    Raises:
        ConnectionFailureError: If the session cannot be opened.
        StatementExecutionError: If the server rejects the statement.
    """
    sql = build_create_table_sql(definition)
    with DatabaseManager(config) as db:
        db.execute(sql)
    log.info("Created table '%s' in %s.", definition.name, config)
    return sql


def create_database(config: ConnectionConfig, name: str, charset: str = "", collation: str = "") -> str:
    """Create database *name* on the server of *config* (its database is ignored)."""
    sql = build_create_database_sql(name, charset, collation)
    with DatabaseManager(config.with_database("")) as db:
        db.execute(sql)
    log.info("Created database '%s' on %s:%s.", name, config.host, config.port)
    return sql


def drop_database(config: ConnectionConfig, name: str) -> str:
    """Drop database *name* on the server of *config*."""
    sql = f"DROP DATABASE {quote_identifier(name)};"
    with DatabaseManager(config.with_database("")) as db:
        db.execute(sql)
    log.warning("Dropped database '%s' on %s:%s.", name, config.host, config.port)
    return sql
