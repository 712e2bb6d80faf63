"""
dbdiff/schema_differ.py
-----------------------
Compares two schema snapshots and synthesises the DDL that brings the
target in line with the source.

Design Decisions:
    * ``diff_schemas`` is a pure function: no I/O, inputs are only read.
    * Columns and indexes are matched by name; a rename shows up as a drop
      plus an add.
    * Output order is deterministic.  Within one table the sub-diffs are
      appended as add-columns, drop-columns, modify-columns, add-indexes,
      recreate-indexes, drop-indexes (each group in source/target column or
      index order), and the final list is stably sorted by
      (added < modified < removed, table name).
    * The primary-key index is handled through the column definitions, not
      through ADD/DROP INDEX.
"""
from __future__ import annotations

from typing import Iterable

from dbdiff.sql_codec import quote_identifier, render_default
from logger import get_logger
from models.schema import ColumnInfo, DiffKind, DiffResult, IndexInfo, SchemaInfo, TableInfo

log = get_logger(__name__)

PRIMARY_INDEX_NAME = "PRIMARY"

# Present in EXTRA on MySQL 8 for expression defaults; not valid DDL.
_NON_DDL_EXTRA = frozenset({"DEFAULT_GENERATED"})


def build_column_def(col: ColumnInfo) -> str:
    """
    Render the part of a column definition that follows its name.

    Examples::

        varchar(50) NOT NULL
        int NOT NULL auto_increment
        timestamp NOT NULL DEFAULT CURRENT_TIMESTAMP on update CURRENT_TIMESTAMP
    """
    parts = [col.type]
    if not col.nullable:
        parts.append("NOT NULL")
    if col.default is not None:
        parts.append(render_default(col.default))
    extra = " ".join(w for w in col.extra.split() if w.upper() not in _NON_DDL_EXTRA)
    if extra:
        parts.append(extra)
    return " ".join(parts)


def columns_equal(a: ColumnInfo, b: ColumnInfo) -> bool:
    """Type, nullability, extra and default must all match (names are the join key)."""
    return (
        a.type == b.type
        and a.nullable == b.nullable
        and a.extra == b.extra
        and a.default == b.default  # None == None, None != "x"
    )


def build_index_map(indexes: Iterable[IndexInfo]) -> dict[str, list[str]]:
    """Index name → backtick-quoted member columns in sequence order."""
    grouped: dict[str, list[IndexInfo]] = {}
    for idx in indexes:
        grouped.setdefault(idx.name, []).append(idx)
    return {
        name: [quote_identifier(i.column) for i in sorted(rows, key=lambda r: r.seq_in_index)]
        for name, rows in grouped.items()
    }


def _modified(table: str, detail: str, sql: str) -> DiffResult:
    return DiffResult(kind=DiffKind.MODIFIED, table_name=table, detail=detail, sql=sql)


def _placement(col: ColumnInfo, source: TableInfo) -> str:
    if col.position <= 1:
        return " FIRST"
    prev = source.column_at(col.position - 1)
    return f" AFTER {quote_identifier(prev.name)}" if prev else ""


def diff_columns(table: str, source: TableInfo, target: TableInfo) -> list[DiffResult]:
    """ADD / DROP / MODIFY COLUMN statements for one common table."""
    qt = quote_identifier(table)
    source_cols = {c.name: c for c in source.columns}
    target_cols = {c.name: c for c in target.columns}

    added: list[DiffResult] = []
    dropped: list[DiffResult] = []
    modified: list[DiffResult] = []

    for name, col in source_cols.items():
        if name not in target_cols:
            added.append(_modified(
                table,
                f"Add column: {name}",
                f"ALTER TABLE {qt} ADD COLUMN {quote_identifier(name)} "
                f"{build_column_def(col)}{_placement(col, source)};",
            ))

    for name in target_cols:
        if name not in source_cols:
            dropped.append(_modified(
                table,
                f"Drop column: {name}",
                f"ALTER TABLE {qt} DROP COLUMN {quote_identifier(name)};",
            ))

    for name, col in source_cols.items():
        other = target_cols.get(name)
        if other is not None and not columns_equal(col, other):
            modified.append(_modified(
                table,
                f"Modify column: {name} ({other.type} -> {col.type})",
                f"ALTER TABLE {qt} MODIFY COLUMN {quote_identifier(name)} {build_column_def(col)};",
            ))

    return added + dropped + modified


def diff_indexes(table: str, source: TableInfo, target: TableInfo) -> list[DiffResult]:
    """ADD / recreate / DROP INDEX statements for one common table."""
    qt = quote_identifier(table)
    source_idx = build_index_map(source.indexes)
    target_idx = build_index_map(target.indexes)
    source_idx.pop(PRIMARY_INDEX_NAME, None)
    target_idx.pop(PRIMARY_INDEX_NAME, None)

    added: list[DiffResult] = []
    recreated: list[DiffResult] = []
    dropped: list[DiffResult] = []

    for name, cols in source_idx.items():
        qi = quote_identifier(name)
        other = target_idx.get(name)
        if other is None:
            added.append(_modified(
                table,
                f"Add index: {name}",
                f"ALTER TABLE {qt} ADD INDEX {qi} ({', '.join(cols)});",
            ))
        elif cols != other:
            recreated.append(_modified(
                table,
                f"Recreate index: {name}",
                f"ALTER TABLE {qt} DROP INDEX {qi}, ADD INDEX {qi} ({', '.join(cols)});",
            ))

    for name in target_idx:
        if name not in source_idx:
            dropped.append(_modified(
                table,
                f"Drop index: {name}",
                f"ALTER TABLE {qt} DROP INDEX {quote_identifier(name)};",
            ))

    return added + recreated + dropped


def diff_table_structure(table: str, source: TableInfo, target: TableInfo) -> list[DiffResult]:
    """All column and index differences of a table present on both sides."""
    return diff_columns(table, source, target) + diff_indexes(table, source, target)


def diff_schemas(source: SchemaInfo, target: SchemaInfo) -> list[DiffResult]:
    """
    Compare *source* against *target* and return the ordered differences.

    * table only in source  → ``added``    (source's ``SHOW CREATE TABLE`` text)
    * table only in target  → ``removed``  (``DROP TABLE``)
    * table in both         → ``modified`` entries per column / index change

    Args:
        source: Desired state.
        target: State to be reconciled.

    Returns:
        Differences sorted by (added, modified, removed) then table name;
        entries for the same table keep their generation order.
    """
    results: list[DiffResult] = []

    for name, table in source.tables.items():
        if name not in target.tables:
            results.append(DiffResult(
                kind=DiffKind.ADDED,
                table_name=name,
                detail="Table exists in source but not in target",
                sql=table.create_sql.rstrip().rstrip(";") + ";",
            ))

    for name in target.tables:
        if name not in source.tables:
            results.append(DiffResult(
                kind=DiffKind.REMOVED,
                table_name=name,
                detail="Table exists in target but not in source",
                sql=f"DROP TABLE {quote_identifier(name)};",
            ))

    for name, table in source.tables.items():
        other = target.tables.get(name)
        if other is not None:
            results.extend(diff_table_structure(name, table, other))

    results.sort(key=lambda r: (r.kind.rank, r.table_name))
    log.info(
        "Schema diff %s -> %s: %d difference(s).",
        source.database, target.database, len(results),
    )
    return results


def summarize(results: Iterable[DiffResult]) -> dict[str, int]:
    """Count differences per kind (every kind present, zero if unused)."""
    counts = {kind.value: 0 for kind in DiffKind}
    for r in results:
        counts[r.kind.value] += 1
    return counts
