"""Query plan capture."""

from __future__ import annotations

from sqlite_audit.shared.database import Shard
from sqlite_audit.shared.values import format_row

PLAN_UNAVAILABLE = "N/A"


def explain_query_plan(shard: Shard, sql: str) -> str:
    """Return ``EXPLAIN QUERY PLAN`` output, one ``col: value, ...`` line per plan row."""
    result = shard.fetch_all(f"EXPLAIN QUERY PLAN {sql}")
    return "\n".join(format_row(result.columns, row) for row in result.rows)
