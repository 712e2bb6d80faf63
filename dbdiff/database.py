"""
dbdiff/database.py
------------------
MySQL session management, query execution and metadata introspection.

Design Decisions:
    * ``DatabaseManager`` is a context manager so callers can use it with
      ``with`` statements and be guaranteed the session is closed on exit.
    * Opening a session pings the server before returning; a failure is
      reported once as :class:`ConnectionFailureError` and never retried.
    * All table/column names use backtick quoting to avoid reserved-word
      collisions in MySQL. Data values in introspection queries use
      parameterised execution (``%s``).
    * Introspection is always scoped to ``DATABASE()`` so metadata from other
      schemas on the same server never leaks into a snapshot.
"""
from __future__ import annotations

from typing import Any

import mysql.connector
from mysql.connector import MySQLConnection
from mysql.connector.cursor import MySQLCursor

from config import CONFIG
from dbdiff.sql_codec import normalize_value, quote_identifier
from logger import get_logger
from models.schema import ConnectionConfig

log = get_logger(__name__)

SYSTEM_DATABASES = frozenset({"information_schema", "mysql", "performance_schema", "sys"})

_Q_COLUMNS = """
SELECT COLUMN_NAME, COLUMN_TYPE, IS_NULLABLE, COLUMN_KEY, COLUMN_DEFAULT, EXTRA, ORDINAL_POSITION
FROM INFORMATION_SCHEMA.COLUMNS
WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = %s
ORDER BY ORDINAL_POSITION
"""

_Q_INDEX_ROWS = """
SELECT INDEX_NAME, NON_UNIQUE, COLUMN_NAME, SEQ_IN_INDEX
FROM INFORMATION_SCHEMA.STATISTICS
WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = %s
ORDER BY INDEX_NAME, SEQ_IN_INDEX
"""

_Q_PRIMARY_KEYS = """
SELECT COLUMN_NAME
FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE
WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = %s AND CONSTRAINT_NAME = 'PRIMARY'
ORDER BY ORDINAL_POSITION
"""

_Q_COLUMN_NAMES = """
SELECT COLUMN_NAME
FROM INFORMATION_SCHEMA.COLUMNS
WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = %s
ORDER BY ORDINAL_POSITION
"""


class DatabaseError(Exception):
    """Raised for database-level failures reported by this package."""


class ConnectionFailureError(DatabaseError):
    """Opening a session or the reachability check failed."""


class ConnectionLostError(DatabaseError):
    """Raised when a query is attempted without an open session."""


class MetadataQueryError(DatabaseError):
    """An introspection query failed; snapshot construction is aborted."""


class StatementExecutionError(DatabaseError):
    """Applying a DDL statement (create table / database) failed."""


def as_text(value: Any) -> str:
    # information_schema columns come back as bytes on some server versions.
    value = normalize_value(value)
    return "" if value is None else str(value)


class DatabaseManager:
    """
    MySQL session wrapper used by the snapshot builders.

    Provides:
        * Connect-and-ping on open, idempotent close.
        * Context-manager support (``with DatabaseManager(cfg) as db``).
        * ``query`` returning rows as ``{column: value}`` dicts.
        * The metadata calls the schema snapshot needs.

    Example::

        cfg = ConnectionConfig("localhost", 3306, "root", "secret", "shop")
        with DatabaseManager(cfg) as db:
            tables = db.list_tables()
            cols = db.fetch_columns("orders")
    """

    def __init__(
        self,
        config: ConnectionConfig,
        charset: str | None = None,
        connect_timeout: int | None = None,
    ) -> None:
        self._config = config
        self._charset = charset or CONFIG.db.charset
        self._connect_timeout = connect_timeout or CONFIG.db.connect_timeout

        self._conn: MySQLConnection | None = None
        self._cursor: MySQLCursor | None = None

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> "DatabaseManager":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            log.debug("Closing %s after error: %s", self._config, exc_val)
        self.close()
        return False  # Never suppress exceptions

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """
        Open the MySQL session and verify it answers a ping.

        Raises:
            ConnectionFailureError: If the server is unreachable or rejects
                the credentials.
        """
        cfg = self._config
        log.info("Connecting to MySQL at %s:%s (database=%r)", cfg.host, cfg.port, cfg.database)
        try:
            self._conn = mysql.connector.connect(
                host=cfg.host,
                port=cfg.port,
                user=cfg.user,
                password=cfg.password,
                database=cfg.database or None,
                charset=self._charset,
                connect_timeout=self._connect_timeout,
                raise_on_warnings=False,
            )
            self._conn.ping(reconnect=False)
            self._cursor = self._conn.cursor()
        except mysql.connector.Error as exc:
            self.close()
            raise ConnectionFailureError(
                f"Could not connect to MySQL at {cfg.host}:{cfg.port} "
                f"(database={cfg.database!r}): {exc}"
            ) from exc
        log.info("Connected to %s.", cfg)

    def close(self) -> None:
        """Close cursor and connection; safe to call more than once."""
        if self._cursor is not None:
            try:
                self._cursor.close()
            except mysql.connector.Error as exc:
                log.debug("Cursor close failed: %s", exc)
        if self._conn is not None:
            try:
                if self._conn.is_connected():
                    self._conn.close()
                    log.info("Database connection to %s closed.", self._config)
            except mysql.connector.Error as exc:
                log.debug("Connection close failed: %s", exc)
        self._cursor = None
        self._conn = None

    @property
    def is_connected(self) -> bool:
        return bool(self._conn and self._conn.is_connected())

    def _ensure_connected(self) -> None:
        if self._conn is None or self._cursor is None:
            raise ConnectionLostError(
                "Database connection is not open. Call connect() first."
            )

    # ------------------------------------------------------------------
    # Public query helpers
    # ------------------------------------------------------------------

    def query(self, sql: str, params: tuple | None = None) -> list[dict[str, Any]]:
        """
        Run a read query and return every row as a ``{column: value}`` dict.

        Raises:
            ConnectionLostError: If not connected.
            DatabaseError: On MySQL execution errors.
        """
        self._ensure_connected()
        assert self._cursor is not None
        try:
            self._cursor.execute(sql, params)
            names = [d[0] for d in self._cursor.description or ()]
            return [dict(zip(names, row)) for row in self._cursor.fetchall()]
        except mysql.connector.Error as exc:
            log.error("SQL query error: %s | SQL: %.500s", exc, sql)
            raise DatabaseError(str(exc)) from exc

    def execute(self, sql: str) -> None:
        """
        Execute a statement that returns no rows and commit it.

        Raises:
            StatementExecutionError: On MySQL execution errors.
        """
        self._ensure_connected()
        assert self._cursor is not None and self._conn is not None
        try:
            self._cursor.execute(sql)
            self._conn.commit()
        except mysql.connector.Error as exc:
            log.error("SQL execution error: %s | SQL: %.500s", exc, sql)
            raise StatementExecutionError(str(exc)) from exc

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def list_databases(self, exclude_system: bool = True) -> list[str]:
        """
        Return database names, optionally filtering system databases.

        Args:
            exclude_system: When True (default), omits information_schema,
                            mysql, performance_schema, and sys.
        """
        dbs = [as_text(next(iter(row.values()))) for row in self.query("SHOW DATABASES")]
        if exclude_system:
            dbs = [d for d in dbs if d not in SYSTEM_DATABASES]
        return dbs

    def list_tables(self) -> list[str]:
        """Return base-table names in the current database (views excluded)."""
        rows = self.query("SHOW FULL TABLES WHERE Table_type = 'BASE TABLE'")
        return [as_text(next(iter(row.values()))) for row in rows]

    def fetch_columns(self, table_name: str) -> list[dict[str, Any]]:
        """Column metadata rows for *table_name*, ordered by position."""
        return self.query(_Q_COLUMNS, (table_name,))

    def fetch_index_rows(self, table_name: str) -> list[dict[str, Any]]:
        """Index membership rows ordered by (index name, sequence in index)."""
        return self.query(_Q_INDEX_ROWS, (table_name,))

    def show_create_table(self, table_name: str) -> str:
        """Return the server's ``SHOW CREATE TABLE`` text for *table_name*."""
        rows = self.query(f"SHOW CREATE TABLE {quote_identifier(table_name)}")
        if not rows:
            raise DatabaseError(f"SHOW CREATE TABLE returned no row for '{table_name}'")
        return as_text(rows[0].get("Create Table"))

    def primary_key_columns(self, table_name: str) -> list[str]:
        """Primary-key column names of *table_name* in key order (empty if none)."""
        return [as_text(r["COLUMN_NAME"]) for r in self.query(_Q_PRIMARY_KEYS, (table_name,))]

    def column_names(self, table_name: str) -> list[str]:
        """Column names of *table_name* ordered by position."""
        return [as_text(r["COLUMN_NAME"]) for r in self.query(_Q_COLUMN_NAMES, (table_name,))]

    def count_rows(self, table_name: str) -> int:
        """Return ``COUNT(*)`` for *table_name*."""
        rows = self.query(f"SELECT COUNT(*) AS cnt FROM {quote_identifier(table_name)}")
        return int(rows[0]["cnt"]) if rows else 0
