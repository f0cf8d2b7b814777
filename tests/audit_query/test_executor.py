from __future__ import annotations

from pathlib import Path

import pytest

from sqlite_audit.audit_query import executor
from sqlite_audit.audit_query.types import DatabaseStats
from sqlite_audit.shared.exceptions import QueryError, UnknownShardError


def test_execute_sql_returns_display_strings(open_session, shop_db: Path) -> None:
    session = open_session(shop_db)

    result = executor.execute_sql(
        session,
        "shard_1",
        "SELECT id, total, NULL AS note, created_at FROM orders ORDER BY id",
    )

    assert result.shard == "shard_1"
    assert result.columns == ("id", "total", "note", "created_at")
    assert result.rows == [("10", "25.5", "NULL", "2025-01-02"), ("11", "310.0", "NULL", "2025-01-03")]
    assert result.limit_value == executor.DEFAULT_ROW_LIMIT
    assert result.truncated is False


def test_execute_sql_limit_and_truncation(open_session, shop_db: Path) -> None:
    session = open_session(shop_db)

    limited = executor.execute_sql(session, "shard_1", "SELECT * FROM customers ORDER BY id", limit=1)
    unlimited = executor.execute_sql(session, "shard_1", "SELECT * FROM customers", limit=0)

    assert limited.truncated is True
    assert len(limited.rows) == 1
    assert limited.to_dict()["truncated"] is True
    assert unlimited.limit_value is None
    assert len(unlimited.rows) == 2


def test_execute_sql_errors(open_session, shop_db: Path) -> None:
    session = open_session(shop_db)

    with pytest.raises(QueryError, match="empty"):
        executor.execute_sql(session, "shard_1", "   ")
    with pytest.raises(QueryError, match="no such table"):
        executor.execute_sql(session, "shard_1", "SELECT * FROM ghosts")
    with pytest.raises(UnknownShardError):
        executor.execute_sql(session, "shard_9", "SELECT 1")


def test_sample_rows(open_session, shop_db: Path) -> None:
    session = open_session(shop_db)

    result = executor.sample_rows(session, "shard_1", "customers", limit=5)

    assert result.columns == ("id", "name", "email")
    assert [row[1] for row in result.rows] == ["Ada", "Grace"]
    with pytest.raises(QueryError, match="Table 'ghosts' does not exist in shard_1."):
        executor.sample_rows(session, "shard_1", "ghosts")


def test_validate_query(open_session, shop_db: Path) -> None:
    session = open_session(shop_db)

    assert executor.validate_query(session, "shard_1", "SELECT name FROM customers WHERE id = 1")
    with pytest.raises(QueryError):
        executor.validate_query(session, "shard_1", "SELEC name FROM customers")


def test_table_listing_and_columns(open_session, shop_db: Path) -> None:
    session = open_session(shop_db)

    assert executor.list_table_names(session, "shard_1") == ["customers", "orders"]
    columns = executor.get_table_columns(session, "shard_1", "customers")
    assert [(column.name, column.type, column.nullable) for column in columns] == [
        ("id", "INTEGER", True),
        ("name", "TEXT", False),
        ("email", "TEXT", True),
    ]


def test_database_stats_counts_catalog_objects(open_session, make_db) -> None:
    path = make_db(
        "catalog.db",
        """
        CREATE TABLE a (id INTEGER PRIMARY KEY, tag TEXT UNIQUE);
        CREATE TABLE b (id INTEGER PRIMARY KEY);
        CREATE INDEX idx_b ON b(id);
        CREATE VIEW v AS SELECT * FROM a;
        CREATE TRIGGER t AFTER INSERT ON a BEGIN SELECT 1; END;
        """,
    )
    session = open_session(path)

    stats = executor.collect_stats(session)

    assert len(stats) == 1
    entry = stats[0]
    assert (entry.table_count, entry.index_count, entry.view_count, entry.trigger_count) == (2, 1, 1, 1)
    assert entry.path == str(path)
    assert entry.database_size == entry.page_count * entry.page_size > 0


def test_database_stats_counts_tables_that_merely_start_with_sqlite(open_session, make_db) -> None:
    path = make_db(
        "admin.db",
        """
        CREATE TABLE sqliteadmin (id INTEGER PRIMARY KEY AUTOINCREMENT);
        CREATE INDEX sqlitexidx ON sqliteadmin(id);
        """,
    )
    session = open_session(path)

    (entry,) = executor.collect_stats(session)

    assert (entry.table_count, entry.index_count) == (1, 1)
    assert executor.list_table_names(session, "shard_1") == ["sqliteadmin"]


@pytest.mark.parametrize(
    "page_count, page_size, expected",
    [
        (3, 4096, "12.0 KB"),
        (512, 4096, "2.0 MB"),
        (786_432, 4096, "3.0 GB"),
    ],
)
def test_formatted_size(page_count: int, page_size: int, expected: str) -> None:
    stats = DatabaseStats("shard_1", "x.db", 0, 0, 0, 0, page_count, page_size)

    assert stats.formatted_size == expected
    assert stats.to_dict()["formatted_size"] == expected
