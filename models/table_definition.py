"""
models/table_definition.py
--------------------------
Declarative input for CREATE TABLE generation.

These objects are built by the caller (or loaded from a JSON / text
definition file); they are never derived from a live database.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ColumnDefinition:
    """
    One column of a table to be created.

    Attributes:
        name:            Column name (unquoted).
        type:            Base SQL type keyword, e.g. ``"VARCHAR"``.
        length:          Length/precision appended as ``TYPE(length)`` for
                         types that accept one; 0 means none.
        nullable:        ``NULL`` when True, ``NOT NULL`` otherwise.
        default_value:   Default literal, or None for no DEFAULT clause.
        auto_increment:  Emit ``AUTO_INCREMENT``.
        primary_key:     Column is (part of) the primary key.
        unique:          Emit an inline ``UNIQUE`` (ignored for key columns).
        comment:         Column comment; empty for none.
    """
    name: str
    type: str
    length: int = 0
    nullable: bool = True
    default_value: str | None = None
    auto_increment: bool = False
    primary_key: bool = False
    unique: bool = False
    comment: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "length": self.length,
            "nullable": self.nullable,
            "default_value": self.default_value,
            "auto_increment": self.auto_increment,
            "primary_key": self.primary_key,
            "unique": self.unique,
            "comment": self.comment,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ColumnDefinition":
        default = data.get("default_value", data.get("defaultValue"))
        return ColumnDefinition(
            name=data["name"],
            type=data["type"],
            length=int(data.get("length") or 0),
            nullable=bool(data.get("nullable", True)),
            default_value=None if default is None else str(default),
            auto_increment=bool(data.get("auto_increment", data.get("autoIncrement", False))),
            primary_key=bool(data.get("primary_key", data.get("primaryKey", False))),
            unique=bool(data.get("unique", False)),
            comment=data.get("comment") or "",
        )


@dataclass(frozen=True)
class IndexDefinition:
    """A secondary index; ``columns`` order is the index order."""
    name: str
    columns: tuple[str, ...]
    unique: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "columns": list(self.columns), "unique": self.unique}

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "IndexDefinition":
        return IndexDefinition(
            name=data["name"],
            columns=tuple(data.get("columns", [])),
            unique=bool(data.get("unique", False)),
        )


@dataclass(frozen=True)
class TableDefinition:
    """
    Complete declarative table.  Empty ``engine`` / ``charset`` /
    ``collation`` fall back to the builder's defaults.
    """
    name: str
    columns: tuple[ColumnDefinition, ...]
    indexes: tuple[IndexDefinition, ...] = ()
    engine: str = ""
    charset: str = ""
    collation: str = ""
    comment: str = ""

    @property
    def primary_key_columns(self) -> list[str]:
        return [c.name for c in self.columns if c.primary_key]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "columns": [c.to_dict() for c in self.columns],
            "indexes": [i.to_dict() for i in self.indexes],
            "engine": self.engine,
            "charset": self.charset,
            "collation": self.collation,
            "comment": self.comment,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "TableDefinition":
        return TableDefinition(
            name=data["name"],
            columns=tuple(ColumnDefinition.from_dict(c) for c in data.get("columns", [])),
            indexes=tuple(IndexDefinition.from_dict(i) for i in data.get("indexes") or []),
            engine=data.get("engine") or "",
            charset=data.get("charset") or "",
            collation=data.get("collation") or "",
            comment=data.get("comment") or "",
        )
