"""
models/data.py
--------------
Typed value objects for row-level data comparison.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

# Column name → value for a single row.
Row = Mapping[str, Any]

# Composite primary-key string ("1|eu") → row.
RowSnapshot = Mapping[str, Row]


class DataDiffKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class DataDiffResult:
    """
    One row-level difference and the DML that reconciles the target.

    ``old_values`` is set for updates and deletes (the target row);
    ``new_values`` is set for inserts and updates (the source row).
    """
    kind: DataDiffKind
    table_name: str
    primary_key: Mapping[str, Any]
    sql: str
    old_values: Mapping[str, Any] | None = None
    new_values: Mapping[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "type": self.kind.value,
            "table_name": self.table_name,
            "primary_key": dict(self.primary_key),
            "sql": self.sql,
        }
        if self.old_values is not None:
            out["old_values"] = dict(self.old_values)
        if self.new_values is not None:
            out["new_values"] = dict(self.new_values)
        return out


@dataclass(frozen=True)
class SyncOptions:
    """Which kinds of row changes a data comparison should report."""
    sync_insert: bool = True
    sync_update: bool = True
    sync_delete: bool = True

    def allows(self, kind: DataDiffKind) -> bool:
        return {
            DataDiffKind.INSERT: self.sync_insert,
            DataDiffKind.UPDATE: self.sync_update,
            DataDiffKind.DELETE: self.sync_delete,
        }[kind]


@dataclass(frozen=True)
class TableDataInfo:
    """
    Rollup of a table's data comparison.

    Row counts come from ``COUNT(*)`` on each side, not from the diff.
    """
    table_name: str
    primary_keys: list[str] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)
    source_count: int = 0
    target_count: int = 0
    insert_count: int = 0
    update_count: int = 0
    delete_count: int = 0

    @property
    def has_primary_key(self) -> bool:
        return bool(self.primary_keys)

    @property
    def total_changes(self) -> int:
        return self.insert_count + self.update_count + self.delete_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "table_name": self.table_name,
            "primary_keys": list(self.primary_keys),
            "columns": list(self.columns),
            "source_count": self.source_count,
            "target_count": self.target_count,
            "insert_count": self.insert_count,
            "update_count": self.update_count,
            "delete_count": self.delete_count,
        }
