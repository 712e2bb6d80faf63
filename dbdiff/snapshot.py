"""
dbdiff/snapshot.py
------------------
Builds in-memory snapshots of a live database: its schema, and the full
row set of one table.

Design Decisions:
    * Snapshot construction is all-or-nothing: the result is returned only
      once every table has been read, and any failed metadata query raises
      :class:`MetadataQueryError` naming the table and the step.  Callers
      never see a half-built ``SchemaInfo``.
    * Whole tables are materialised in memory (single unpaginated scan);
      callers are responsible for not pointing this at oversized tables.
    * Binary values are decoded to text as rows are read, so the differ
      and the SQL codec only ever see ``str`` for them.
"""
from __future__ import annotations

from typing import Any, Callable, Sequence, TypeVar

from dbdiff.database import DatabaseError, DatabaseManager, MetadataQueryError, as_text
from dbdiff.sql_codec import normalize_value, quote_identifier, quote_identifiers, stringify
from logger import get_logger
from models.data import Row, RowSnapshot
from models.schema import ColumnInfo, IndexInfo, KeyRole, SchemaInfo, TableInfo

log = get_logger(__name__)

PK_SEPARATOR = "|"

T = TypeVar("T")


class PreconditionViolationError(ValueError):
    """A row-level operation was requested on a table without a primary key."""


def require_primary_key(table_name: str, primary_keys: Sequence[str]) -> None:
    """
    Reject tables with no primary-key columns.

    Raises:
        PreconditionViolationError: If *primary_keys* is empty.
    """
    if not primary_keys:
        raise PreconditionViolationError(
            f"Table '{table_name}' has no primary key; row-level comparison "
            "needs one to match source and target rows."
        )


def _metadata(step: str, table_name: str | None, fn: Callable[[], T]) -> T:
    try:
        return fn()
    except DatabaseError as exc:
        where = f" for table '{table_name}'" if table_name else ""
        raise MetadataQueryError(f"{step} failed{where}: {exc}") from exc


# ---------------------------------------------------------------------------
# Schema snapshot
# ---------------------------------------------------------------------------

def _column_from_row(row: dict[str, Any]) -> ColumnInfo:
    default = row.get("COLUMN_DEFAULT")
    return ColumnInfo(
        name=as_text(row["COLUMN_NAME"]),
        type=as_text(row["COLUMN_TYPE"]),
        nullable=as_text(row["IS_NULLABLE"]).upper() == "YES",
        key=KeyRole.from_column_key(as_text(row.get("COLUMN_KEY"))),
        default=None if default is None else as_text(default),
        extra=as_text(row.get("EXTRA")),
        position=int(row["ORDINAL_POSITION"]),
    )


def _index_from_row(row: dict[str, Any]) -> IndexInfo:
    return IndexInfo(
        name=as_text(row["INDEX_NAME"]),
        unique=int(as_text(row["NON_UNIQUE"]) or 0) == 0,
        column=as_text(row["COLUMN_NAME"]),
        seq_in_index=int(row["SEQ_IN_INDEX"]),
    )


def build_table_info(db: DatabaseManager, table_name: str) -> TableInfo:
    """Read columns, index membership and the creation statement of one table."""
    col_rows = _metadata("Column query", table_name, lambda: db.fetch_columns(table_name))
    idx_rows = _metadata("Index query", table_name, lambda: db.fetch_index_rows(table_name))
    create_sql = _metadata("SHOW CREATE TABLE", table_name, lambda: db.show_create_table(table_name))
    return TableInfo(
        name=table_name,
        create_sql=create_sql,
        columns=tuple(_column_from_row(r) for r in col_rows),
        indexes=tuple(_index_from_row(r) for r in idx_rows),
    )


def build_schema(db: DatabaseManager) -> SchemaInfo:
    """
    Snapshot every table of the database *db* is connected to.

    Args:
        db: An open :class:`DatabaseManager` with a database selected.

    Returns:
        A read-only :class:`SchemaInfo`.

    Raises:
        MetadataQueryError: If any introspection query fails.
    """
    database = db.config.database
    table_names = _metadata("SHOW TABLES", None, db.list_tables)
    log.info("Snapshotting schema of '%s': %d table(s).", database, len(table_names))

    tables: dict[str, TableInfo] = {}
    for name in table_names:
        log.debug("Reading structure of '%s.%s'", database, name)
        tables[name] = build_table_info(db, name)
    return SchemaInfo(database=database, tables=tables)


# ---------------------------------------------------------------------------
# Row snapshot
# ---------------------------------------------------------------------------

def primary_key_string(row: Row, primary_keys: Sequence[str]) -> str:
    """Pipe-join the stringified key values of *row* in key order."""
    return PK_SEPARATOR.join(stringify(row.get(pk)) for pk in primary_keys)


def build_row_snapshot(
    db: DatabaseManager,
    table_name: str,
    columns: Sequence[str],
    primary_keys: Sequence[str],
) -> RowSnapshot:
    """
    Read every row of *table_name* keyed by its composite primary key.

    Rows sharing a key composite overwrite each other (last one read wins).

    Raises:
        PreconditionViolationError: If *primary_keys* is empty (checked
            before any query is sent).
        DatabaseError: If the scan fails.
    """
    require_primary_key(table_name, primary_keys)

    sql = f"SELECT {quote_identifiers(list(columns))} FROM {quote_identifier(table_name)}"
    try:
        rows = db.query(sql)
    except DatabaseError as exc:
        raise DatabaseError(f"Row scan of '{table_name}' failed: {exc}") from exc

    snapshot: dict[str, dict[str, Any]] = {}
    for raw in rows:
        row = {col: normalize_value(raw.get(col)) for col in columns}
        snapshot[primary_key_string(row, primary_keys)] = row
    log.debug("Read %d row(s) from '%s' (%s)", len(snapshot), table_name, db.config)
    return snapshot


def fetch_primary_keys(db: DatabaseManager, table_name: str) -> list[str]:
    """Primary-key columns of *table_name* in key order."""
    return _metadata("Primary key query", table_name, lambda: db.primary_key_columns(table_name))


def fetch_column_names(db: DatabaseManager, table_name: str) -> list[str]:
    """Column names of *table_name* in ordinal order."""
    return _metadata("Column name query", table_name, lambda: db.column_names(table_name))
