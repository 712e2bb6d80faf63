"""
tests/test_comparator.py
------------------------
Unit tests for dbdiff/comparator.py with an injected mock manager factory.
Run with: python -m pytest tests/
"""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from dbdiff.comparator import (
    check_connection,
    compare_schemas,
    compare_table_data,
    data_sync_summary,
    list_databases,
    tables_for_sync,
)
from dbdiff.database import ConnectionFailureError
from dbdiff.snapshot import PreconditionViolationError
from models.data import DataDiffKind, SyncOptions
from models.schema import ConnectionConfig, DiffKind

SOURCE = ConnectionConfig("src-host", 3306, "root", "pw", "app")
TARGET = ConnectionConfig("tgt-host", 3306, "root", "pw", "app")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _manager(config: ConnectionConfig, rows: list[dict] | None = None, tables: list[str] | None = None) -> MagicMock:
    db = MagicMock()
    db.__enter__.return_value = db
    db.__exit__.return_value = False
    db.config = config
    db.list_tables.return_value = tables or []
    db.primary_key_columns.return_value = ["id"]
    db.column_names.return_value = ["id", "name"]
    db.query.return_value = rows or []
    db.count_rows.return_value = len(rows or [])
    return db


def _factory(src: MagicMock, tgt: MagicMock):
    managers = {SOURCE.host: src, TARGET.host: tgt}

    def build(config: ConnectionConfig) -> MagicMock:
        return managers[config.host]

    return build


@pytest.fixture
def src_db() -> MagicMock:
    return _manager(SOURCE, rows=[
        {"id": 1, "name": "Bob"},
        {"id": 2, "name": "Eve"},
    ])


@pytest.fixture
def tgt_db() -> MagicMock:
    return _manager(TARGET, rows=[
        {"id": 1, "name": "Alice"},
        {"id": 3, "name": "Old"},
    ])


# ---------------------------------------------------------------------------
# Data comparison
# ---------------------------------------------------------------------------

class TestCompareTableData:
    def test_all_kinds_reported(self, src_db: MagicMock, tgt_db: MagicMock) -> None:
        result = compare_table_data(SOURCE, TARGET, "users", factory=_factory(src_db, tgt_db))
        assert [r.sql for r in result.results] == [
            "UPDATE `users` SET `name` = 'Bob' WHERE `id` = 1;",
            "INSERT INTO `users` (`id`, `name`) VALUES (2, 'Eve');",
            "DELETE FROM `users` WHERE `id` = 3;",
        ]
        assert result.summary is None

    def test_sessions_closed(self, src_db: MagicMock, tgt_db: MagicMock) -> None:
        compare_table_data(SOURCE, TARGET, "users", factory=_factory(src_db, tgt_db))
        src_db.__exit__.assert_called_once()
        tgt_db.__exit__.assert_called_once()

    def test_options_filter_results(self, src_db: MagicMock, tgt_db: MagicMock) -> None:
        options = SyncOptions(sync_insert=False, sync_delete=False)
        result = compare_table_data(SOURCE, TARGET, "users", options, factory=_factory(src_db, tgt_db))
        assert [r.kind for r in result.results] == [DataDiffKind.UPDATE]

    def test_summary_counts_unfiltered(self, src_db: MagicMock, tgt_db: MagicMock) -> None:
        info = data_sync_summary(SOURCE, TARGET, "users", factory=_factory(src_db, tgt_db))
        assert (info.insert_count, info.update_count, info.delete_count) == (1, 1, 1)
        assert (info.source_count, info.target_count) == (2, 2)
        assert info.primary_keys == ["id"]

    def test_summary_without_primary_key(self, src_db: MagicMock, tgt_db: MagicMock) -> None:
        src_db.primary_key_columns.return_value = []
        with pytest.raises(PreconditionViolationError):
            data_sync_summary(SOURCE, TARGET, "log", factory=_factory(src_db, tgt_db))
        src_db.count_rows.assert_not_called()
        src_db.__exit__.assert_called_once()
        tgt_db.__exit__.assert_called_once()

    def test_summary_closes_sessions(self, src_db: MagicMock, tgt_db: MagicMock) -> None:
        data_sync_summary(SOURCE, TARGET, "users", factory=_factory(src_db, tgt_db))
        src_db.__exit__.assert_called_once()
        tgt_db.__exit__.assert_called_once()

    def test_no_primary_key_reads_no_rows(self, src_db: MagicMock, tgt_db: MagicMock) -> None:
        src_db.primary_key_columns.return_value = []
        with pytest.raises(PreconditionViolationError):
            compare_table_data(SOURCE, TARGET, "log", factory=_factory(src_db, tgt_db))
        src_db.query.assert_not_called()
        tgt_db.query.assert_not_called()
        src_db.__exit__.assert_called_once()


# ---------------------------------------------------------------------------
# Schema comparison and listings
# ---------------------------------------------------------------------------

class TestCompareSchemas:
    def test_table_only_in_source(self, src_db: MagicMock, tgt_db: MagicMock) -> None:
        src_db.list_tables.return_value = ["users"]
        src_db.fetch_columns.return_value = []
        src_db.fetch_index_rows.return_value = []
        src_db.show_create_table.return_value = "CREATE TABLE `users` (`id` int)"
        comparison = compare_schemas(SOURCE, TARGET, factory=_factory(src_db, tgt_db))
        (result,) = comparison.results
        assert result.kind == DiffKind.ADDED
        assert result.sql == "CREATE TABLE `users` (`id` int);"
        assert comparison.counts == {"added": 1, "modified": 0, "removed": 0}
        assert comparison.to_dict()["results"][0]["type"] == "added"

    def test_connection_failure_propagates(self, tgt_db: MagicMock) -> None:
        src_db = MagicMock()
        src_db.__enter__.side_effect = ConnectionFailureError("refused")
        with pytest.raises(ConnectionFailureError):
            compare_schemas(SOURCE, TARGET, factory=_factory(src_db, tgt_db))


class TestListings:
    def test_list_databases_uses_server_level_session(self, src_db: MagicMock) -> None:
        src_db.list_databases.return_value = ["app", "crm"]
        seen: list[ConnectionConfig] = []

        def factory(config: ConnectionConfig) -> MagicMock:
            seen.append(config)
            return src_db

        assert list_databases(SOURCE, factory=factory) == ["app", "crm"]
        assert seen[0].database == ""

    def test_tables_for_sync(self, src_db: MagicMock) -> None:
        src_db.list_tables.return_value = ["users", "log"]
        src_db.primary_key_columns.side_effect = [["id"], []]
        infos = tables_for_sync(SOURCE, factory=lambda _cfg: src_db)
        assert [(i.table_name, i.has_primary_key) for i in infos] == [("users", True), ("log", False)]
        assert infos[0].source_count == 2

    def test_check_connection_opens_and_closes(self, src_db: MagicMock) -> None:
        check_connection(SOURCE, factory=lambda _cfg: src_db)
        src_db.__enter__.assert_called_once()
        src_db.__exit__.assert_called_once()
