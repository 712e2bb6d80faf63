"""
tests/test_table_builder.py
---------------------------
Unit tests for dbdiff/table_builder.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from dbdiff.table_builder import (
    build_column_clause,
    build_create_database_sql,
    build_create_table_sql,
    create_table,
)
from models.schema import ConnectionConfig
from models.table_definition import ColumnDefinition, IndexDefinition, TableDefinition


@pytest.fixture
def users() -> TableDefinition:
    return TableDefinition(
        name="users",
        columns=(
            ColumnDefinition("id", "INT", nullable=False, auto_increment=True, primary_key=True),
            ColumnDefinition("email", "VARCHAR", 255, nullable=False, unique=True),
        ),
        indexes=(IndexDefinition("idx_email", ("email",)),),
    )


class TestColumnClause:
    def test_length_applied_to_varchar(self) -> None:
        assert build_column_clause(ColumnDefinition("n", "VARCHAR", 50)) == "`n` VARCHAR(50) NULL"

    def test_length_ignored_for_int(self) -> None:
        assert build_column_clause(ColumnDefinition("n", "INT", 11, nullable=False)) == "`n` INT NOT NULL"

    @pytest.mark.parametrize("type_", ["decimal", "FLOAT", "Double", "CHAR"])
    def test_other_length_types(self, type_: str) -> None:
        assert f"{type_}(8)" in build_column_clause(ColumnDefinition("n", type_, 8))

    def test_current_timestamp_default_bare(self) -> None:
        col = ColumnDefinition("ts", "TIMESTAMP", default_value="CURRENT_TIMESTAMP")
        assert build_column_clause(col) == "`ts` TIMESTAMP NULL DEFAULT CURRENT_TIMESTAMP"

    def test_null_default_bare(self) -> None:
        col = ColumnDefinition("n", "INT", default_value="NULL")
        assert build_column_clause(col) == "`n` INT NULL DEFAULT NULL"

    def test_text_default_escaped(self) -> None:
        col = ColumnDefinition("n", "VARCHAR", 10, default_value="it's")
        assert build_column_clause(col).endswith("DEFAULT 'it''s'")

    def test_unique_suppressed_on_primary_key(self) -> None:
        col = ColumnDefinition("id", "INT", nullable=False, primary_key=True, unique=True)
        assert "UNIQUE" not in build_column_clause(col)

    def test_comment_escaped(self) -> None:
        col = ColumnDefinition("n", "INT", comment="user's id")
        assert build_column_clause(col) == "`n` INT NULL COMMENT 'user''s id'"


class TestCreateTable:
    def test_full_statement(self, users: TableDefinition) -> None:
        assert build_create_table_sql(users) == (
            "CREATE TABLE `users` (\n"
            "  `id` INT NOT NULL AUTO_INCREMENT,\n"
            "  `email` VARCHAR(255) NOT NULL UNIQUE,\n"
            "  PRIMARY KEY (`id`),\n"
            "  KEY `idx_email` (`email`)\n"
            ") ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci;"
        )

    def test_composite_primary_key_in_definition_order(self) -> None:
        d = TableDefinition(
            name="m",
            columns=(
                ColumnDefinition("org", "INT", nullable=False, primary_key=True),
                ColumnDefinition("role", "VARCHAR", 10),
                ColumnDefinition("user", "INT", nullable=False, primary_key=True),
            ),
        )
        assert "  PRIMARY KEY (`org`, `user`)" in build_create_table_sql(d)

    def test_no_primary_key_clause_when_none_flagged(self) -> None:
        d = TableDefinition(name="log", columns=(ColumnDefinition("msg", "TEXT"),))
        assert "PRIMARY KEY" not in build_create_table_sql(d)

    def test_unique_index(self) -> None:
        d = TableDefinition(
            name="t",
            columns=(ColumnDefinition("a", "INT"), ColumnDefinition("b", "INT")),
            indexes=(IndexDefinition("uk_ab", ("a", "b"), unique=True),),
        )
        assert "  UNIQUE KEY `uk_ab` (`a`, `b`)" in build_create_table_sql(d)

    def test_explicit_options_and_comment(self) -> None:
        d = TableDefinition(
            name="t",
            columns=(ColumnDefinition("a", "INT"),),
            engine="MyISAM",
            charset="latin1",
            collation="latin1_swedish_ci",
            comment="Bob's table",
        )
        assert build_create_table_sql(d).endswith(
            ") ENGINE=MyISAM DEFAULT CHARSET=latin1 COLLATE=latin1_swedish_ci COMMENT='Bob''s table';"
        )

    def test_create_database_sql(self) -> None:
        assert build_create_database_sql("shop", "utf8mb4", "utf8mb4_bin") == (
            "CREATE DATABASE `shop` CHARACTER SET utf8mb4 COLLATE utf8mb4_bin;"
        )
        assert build_create_database_sql("shop") == "CREATE DATABASE `shop`;"


class TestApply:
    def test_create_table_executes_generated_sql(self, users: TableDefinition) -> None:
        cfg = ConnectionConfig("localhost", 3306, "root", "pw", "shop")
        with patch("dbdiff.table_builder.DatabaseManager") as manager_cls:
            db = MagicMock()
            manager_cls.return_value.__enter__.return_value = db
            sql = create_table(cfg, users)
        manager_cls.assert_called_once_with(cfg)
        db.execute.assert_called_once_with(sql)
        assert sql == build_create_table_sql(users)
