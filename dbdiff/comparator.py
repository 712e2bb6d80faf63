"""
dbdiff/comparator.py
--------------------
Top-level operations: open sessions, snapshot, diff, close.

Design Decisions:
    * Each call owns its sessions and snapshots end to end; nothing is
      shared between calls, so no locking is needed.
    * Source and target are read one after the other on the calling thread.
    * Every session is opened through ``DatabaseManager`` as a context
      manager, so it is closed exactly once whatever happens.
    * Errors propagate unchanged; the only failure added here is the
      primary-key precondition, raised before any row is read.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from dbdiff import data_differ, schema_differ
from dbdiff.database import DatabaseManager
from dbdiff.snapshot import (
    build_row_snapshot,
    build_schema,
    fetch_column_names,
    fetch_primary_keys,
    require_primary_key,
)
from logger import get_logger
from models.data import DataDiffResult, SyncOptions, TableDataInfo
from models.schema import ConnectionConfig, DiffResult, SchemaInfo

log = get_logger(__name__)

ManagerFactory = Callable[[ConnectionConfig], DatabaseManager]


@dataclass(frozen=True)
class SchemaComparison:
    """Schema differences plus a per-kind tally."""
    results: list[DiffResult]
    counts: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"counts": dict(self.counts), "results": [r.to_dict() for r in self.results]}


@dataclass(frozen=True)
class DataComparison:
    """Row differences for one table and, when requested, its rollup."""
    table_name: str
    results: list[DataDiffResult]
    summary: TableDataInfo | None = None

    def to_dict(self) -> dict:
        return {
            "table_name": self.table_name,
            "summary": self.summary.to_dict() if self.summary else None,
            "results": [r.to_dict() for r in self.results],
        }


def check_connection(config: ConnectionConfig, factory: ManagerFactory = DatabaseManager) -> None:
    """
    Open and ping a session, then close it.

    Raises:
        ConnectionFailureError: If the server is unreachable.
    """
    with factory(config):
        pass


def list_databases(config: ConnectionConfig, factory: ManagerFactory = DatabaseManager) -> list[str]:
    """User databases on the server of *config* (system schemas excluded)."""
    with factory(config.with_database("")) as db:
        return db.list_databases()


def load_schema(config: ConnectionConfig, factory: ManagerFactory = DatabaseManager) -> SchemaInfo:
    """Snapshot the schema of the database named by *config*."""
    with factory(config) as db:
        return build_schema(db)


def compare_schemas(
    source: ConnectionConfig,
    target: ConnectionConfig,
    factory: ManagerFactory = DatabaseManager,
) -> SchemaComparison:
    """
    Snapshot both databases and diff their structure.

    Args:
        source:  Database holding the desired structure.
        target:  Database to reconcile.
        factory: Builds a :class:`DatabaseManager` for a config (tests
                 inject mocks here).

    Raises:
        ConnectionFailureError, MetadataQueryError
    """
    source_schema = load_schema(source, factory)
    target_schema = load_schema(target, factory)
    results = schema_differ.diff_schemas(source_schema, target_schema)
    return SchemaComparison(results=results, counts=schema_differ.summarize(results))


def tables_for_sync(config: ConnectionConfig, factory: ManagerFactory = DatabaseManager) -> list[TableDataInfo]:
    """
    One entry per table: primary key, columns and ``COUNT(*)`` (as
    ``source_count``).  Tables without a primary key are listed too so the
    caller can show why they cannot be compared.
    """
    out: list[TableDataInfo] = []
    with factory(config) as db:
        for table in db.list_tables():
            out.append(TableDataInfo(
                table_name=table,
                primary_keys=fetch_primary_keys(db, table),
                columns=fetch_column_names(db, table),
                source_count=db.count_rows(table),
            ))
    return out

def _diff_rows(
    src_db: DatabaseManager,
    tgt_db: DatabaseManager,
    table: str,
) -> tuple[list[DataDiffResult], list[str], list[str]]:
    """Snapshot *table* on both open sessions and diff the rows (unfiltered)."""
    primary_keys = fetch_primary_keys(src_db, table)
    require_primary_key(table, primary_keys)
    columns = fetch_column_names(src_db, table)

    log.info("Comparing data of '%s' (key: %s)", table, ", ".join(primary_keys))
    source_rows = build_row_snapshot(src_db, table, columns, primary_keys)
    target_rows = build_row_snapshot(tgt_db, table, columns, primary_keys)

    results = data_differ.diff_table_data(source_rows, target_rows, table, primary_keys, columns)
    return results, primary_keys, columns


def _rollup(
    src_db: DatabaseManager,
    tgt_db: DatabaseManager,
    table: str,
    results: list[DataDiffResult],
    primary_keys: list[str],
    columns: list[str],
) -> TableDataInfo:
    return data_differ.summarize(
        table,
        results,
        primary_keys,
        columns,
        source_count=src_db.count_rows(table),
        target_count=tgt_db.count_rows(table),
    )


def compare_table_data(
    source: ConnectionConfig,
    target: ConnectionConfig,
    table: str,
    options: SyncOptions | None = None,
    with_summary: bool = False,
    factory: ManagerFactory = DatabaseManager,
) -> DataComparison:
    """
    Compare the rows of *table* in both databases.

    Primary key and column list are read from the source.  The summary,
    when requested, tallies the unfiltered diff and adds ``COUNT(*)`` of
    each side.

    Raises:
        ConnectionFailureError: If either session cannot be opened.
        PreconditionViolationError: If *table* has no primary key; raised
            before any row is read.
        DatabaseError: If a metadata query or row scan fails.
    """
    options = options or SyncOptions()

    with factory(source) as src_db, factory(target) as tgt_db:
        results, primary_keys, columns = _diff_rows(src_db, tgt_db, table)
        summary = None
        if with_summary:
            summary = _rollup(src_db, tgt_db, table, results, primary_keys, columns)

    return DataComparison(
        table_name=table,
        results=data_differ.filter_results(results, options),
        summary=summary,
    )


def data_sync_summary(
    source: ConnectionConfig,
    target: ConnectionConfig,
    table: str,
    factory: ManagerFactory = DatabaseManager,
) -> TableDataInfo:
    """Rollup of the data comparison of *table*."""
    with factory(source) as src_db, factory(target) as tgt_db:
        results, primary_keys, columns = _diff_rows(src_db, tgt_db, table)
        return _rollup(src_db, tgt_db, table, results, primary_keys, columns)
