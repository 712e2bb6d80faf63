"""
dbdiff/data_differ.py
---------------------
Row-level comparison of two table snapshots and DML synthesis.

Design Decisions:
    * Rows are matched by the composite primary-key string built by
      :func:`dbdiff.snapshot.primary_key_string`.
    * Row equality is *textual*: same column count, then ``str(value)`` per
      column.  ``5`` and ``"5"`` are equal, ``"5.0"`` and ``"5"`` are not.
      Values are opaque driver output and are compared as such.
    * Output order: inserts/updates in source snapshot order, then deletes
      in target snapshot order.  The list is not re-sorted.
    * UPDATE statements set every non-key column of the source row, not
      only the ones that changed.
    * Results hold copies of the snapshot rows, so mutating a snapshot after
      the diff never changes a returned result.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from dbdiff.snapshot import require_primary_key
from dbdiff.sql_codec import escape_value, quote_identifier, stringify
from logger import get_logger
from models.data import DataDiffKind, DataDiffResult, Row, RowSnapshot, SyncOptions, TableDataInfo

log = get_logger(__name__)


def rows_equal(a: Row, b: Row) -> bool:
    """Stringified, column-by-column equality (not type-aware)."""
    if len(a) != len(b):
        return False
    return all(stringify(v) == stringify(b.get(k)) for k, v in a.items())


def extract_primary_key(row: Row, primary_keys: Sequence[str]) -> dict[str, Any]:
    return {pk: row.get(pk) for pk in primary_keys}


def _where(primary_keys: Sequence[str], pk: Mapping[str, Any]) -> str:
    return " AND ".join(f"{quote_identifier(k)} = {escape_value(pk.get(k))}" for k in primary_keys)


def generate_insert_sql(table: str, row: Row, columns: Sequence[str]) -> str:
    """``INSERT`` of *row*, limited to the *columns* present in it."""
    present = [c for c in columns if c in row]
    cols = ", ".join(quote_identifier(c) for c in present)
    vals = ", ".join(escape_value(row[c]) for c in present)
    return f"INSERT INTO {quote_identifier(table)} ({cols}) VALUES ({vals});"


def generate_update_sql(table: str, row: Row, primary_keys: Sequence[str]) -> str:
    """``UPDATE`` setting every non-key column of *row*, keyed on *primary_keys*."""
    keys = set(primary_keys)
    sets = ", ".join(
        f"{quote_identifier(col)} = {escape_value(val)}"
        for col, val in row.items()
        if col not in keys
    )
    return f"UPDATE {quote_identifier(table)} SET {sets} WHERE {_where(primary_keys, row)};"


def generate_delete_sql(table: str, primary_keys: Sequence[str], pk: Mapping[str, Any]) -> str:
    return f"DELETE FROM {quote_identifier(table)} WHERE {_where(primary_keys, pk)};"


def diff_table_data(
    source: RowSnapshot,
    target: RowSnapshot,
    table: str,
    primary_keys: Sequence[str],
    columns: Sequence[str],
) -> list[DataDiffResult]:
    """
    Compute the DML that makes *target* hold the same rows as *source*.

    Args:
        source:        Snapshot of the desired rows.
        target:        Snapshot of the rows to reconcile.
        table:         Table name used in the generated SQL.
        primary_keys:  Key columns, in key order.
        columns:       Column order for INSERT statements.

    Returns:
        One :class:`DataDiffResult` per inserted, updated or deleted row.

    Raises:
        PreconditionViolationError: If *primary_keys* is empty.
    """
    require_primary_key(table, primary_keys)
    results: list[DataDiffResult] = []

    for key, src_row in source.items():
        tgt_row = target.get(key)
        if tgt_row is None:
            results.append(DataDiffResult(
                kind=DataDiffKind.INSERT,
                table_name=table,
                primary_key=extract_primary_key(src_row, primary_keys),
                new_values=dict(src_row),
                sql=generate_insert_sql(table, src_row, columns),
            ))
        elif not rows_equal(src_row, tgt_row):
            results.append(DataDiffResult(
                kind=DataDiffKind.UPDATE,
                table_name=table,
                primary_key=extract_primary_key(src_row, primary_keys),
                old_values=dict(tgt_row),
                new_values=dict(src_row),
                sql=generate_update_sql(table, src_row, primary_keys),
            ))

    for key, tgt_row in target.items():
        if key not in source:
            pk = extract_primary_key(tgt_row, primary_keys)
            results.append(DataDiffResult(
                kind=DataDiffKind.DELETE,
                table_name=table,
                primary_key=pk,
                old_values=dict(tgt_row),
                sql=generate_delete_sql(table, primary_keys, pk),
            ))

    return results


def filter_results(results: Iterable[DataDiffResult], options: SyncOptions) -> list[DataDiffResult]:
    """Keep only the kinds of change enabled in *options*."""
    return [r for r in results if options.allows(r.kind)]


def summarize(
    table: str,
    results: Iterable[DataDiffResult],
    primary_keys: Sequence[str],
    columns: Sequence[str],
    source_count: int,
    target_count: int,
) -> TableDataInfo:
    """
    Tally *results* per kind into a :class:`TableDataInfo`.

    Row counts are passed in (taken with ``COUNT(*)``) rather than derived
    from the snapshots.
    """
    counts = {kind: 0 for kind in DataDiffKind}
    for r in results:
        counts[r.kind] += 1
    info = TableDataInfo(
        table_name=table,
        primary_keys=list(primary_keys),
        columns=list(columns),
        source_count=source_count,
        target_count=target_count,
        insert_count=counts[DataDiffKind.INSERT],
        update_count=counts[DataDiffKind.UPDATE],
        delete_count=counts[DataDiffKind.DELETE],
    )
    log.info(
        "Data diff '%s': %d insert(s), %d update(s), %d delete(s).",
        table, info.insert_count, info.update_count, info.delete_count,
    )
    return info
