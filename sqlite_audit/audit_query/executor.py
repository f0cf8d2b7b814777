"""Query execution helpers for audit-query."""

from __future__ import annotations

from sqlite_audit.audit_schema.discovery import list_tables, read_columns
from sqlite_audit.audit_schema.models import ColumnInfo
from sqlite_audit.shared.database import Shard, ShardSession, quote_identifier
from sqlite_audit.shared.exceptions import QueryError
from sqlite_audit.shared.values import row_values

from .types import DatabaseStats, QueryResult

DEFAULT_ROW_LIMIT = 200
DEFAULT_SAMPLE_LIMIT = 100


def execute_sql(
    session: ShardSession,
    shard_id: str,
    query: str,
    *,
    limit: int | None = None,
) -> QueryResult:
    """Execute ad-hoc SQL on one shard and return a structured result set.

    ``limit`` of ``None`` applies :data:`DEFAULT_ROW_LIMIT`; zero or a negative value
    fetches every row.
    """

    if not query.strip():
        raise QueryError("Query text must not be empty.")
    shard = session.shard(shard_id)
    effective_limit = _normalise_limit(limit)
    if effective_limit is None:
        fetched = shard.fetch_all(query)
        truncated = False
    else:
        fetched, truncated = shard.fetch_many(query, effective_limit)

    rows = [tuple(value.display() for value in row_values(row)) for row in fetched.rows]
    return QueryResult(
        shard=shard.shard_id,
        columns=tuple(fetched.columns),
        rows=rows,
        limit_value=effective_limit,
        truncated=truncated,
    )


def sample_rows(
    session: ShardSession,
    shard_id: str,
    table: str,
    *,
    limit: int = DEFAULT_SAMPLE_LIMIT,
) -> QueryResult:
    """Return up to ``limit`` rows of ``table`` in storage order."""
    shard = session.shard(shard_id)
    if not shard.table_exists(table):
        raise QueryError(f"Table '{table}' does not exist in {shard.shard_id}.")
    return execute_sql(
        session,
        shard_id,
        f"SELECT * FROM {quote_identifier(table)}",
        limit=limit,
    )


def validate_query(session: ShardSession, shard_id: str, query: str) -> bool:
    """Compile ``query`` with ``EXPLAIN`` without running it; raise :class:`QueryError` if invalid."""
    if not query.strip():
        raise QueryError("Query text must not be empty.")
    shard = session.shard(shard_id)
    shard.fetch_all(f"EXPLAIN {query}")
    return True


def list_table_names(session: ShardSession, shard_id: str) -> list[str]:
    return sorted(list_tables(session.shard(shard_id)))


def get_table_columns(session: ShardSession, shard_id: str, table: str) -> tuple[ColumnInfo, ...]:
    shard = session.shard(shard_id)
    if not shard.table_exists(table):
        raise QueryError(f"Table '{table}' does not exist in {shard.shard_id}.")
    columns, _ = read_columns(shard, table)
    return columns


def database_stats(shard: Shard) -> DatabaseStats:
    """Catalog object counts and page geometry for one shard."""
    counts = {
        row["type"]: int(row["total"])
        for row in shard.fetch_all(
            "SELECT type, COUNT(*) AS total FROM sqlite_master "
            "WHERE substr(name, 1, 7) != 'sqlite_' GROUP BY type"
        ).rows
    }
    return DatabaseStats(
        shard=shard.shard_id,
        path=str(shard.path),
        table_count=counts.get("table", 0),
        index_count=counts.get("index", 0),
        trigger_count=counts.get("trigger", 0),
        view_count=counts.get("view", 0),
        page_count=int(shard.fetch_value("PRAGMA page_count") or 0),
        page_size=int(shard.fetch_value("PRAGMA page_size") or 0),
    )


def collect_stats(session: ShardSession) -> list[DatabaseStats]:
    return [database_stats(shard) for shard in session.shards()]


# ---------------------------------------------------------------------------
# Internal helpers


def _normalise_limit(limit: int | None) -> int | None:
    if limit is None:
        return DEFAULT_ROW_LIMIT
    if limit <= 0:
        return None
    return limit
