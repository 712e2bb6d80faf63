"""models/__init__.py"""
from models.data import (
    DataDiffKind,
    DataDiffResult,
    Row,
    RowSnapshot,
    SyncOptions,
    TableDataInfo,
)
from models.schema import (
    ColumnInfo,
    ConnectionConfig,
    DiffKind,
    DiffResult,
    IndexInfo,
    KeyRole,
    SchemaInfo,
    TableInfo,
)
from models.table_definition import ColumnDefinition, IndexDefinition, TableDefinition

__all__ = [
    "ConnectionConfig",
    "KeyRole",
    "ColumnInfo",
    "IndexInfo",
    "TableInfo",
    "SchemaInfo",
    "DiffKind",
    "DiffResult",
    "DataDiffKind",
    "DataDiffResult",
    "Row",
    "RowSnapshot",
    "SyncOptions",
    "TableDataInfo",
    "ColumnDefinition",
    "IndexDefinition",
    "TableDefinition",
]
