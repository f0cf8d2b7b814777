"""Synthetic query battery with plan-based optimization verdicts."""

from __future__ import annotations

import time
from dataclasses import dataclass

from sqlite_audit.audit_schema.models import DiscoveredSchema, TableInfo
from sqlite_audit.shared.database import Shard, ShardSession, quote_identifier
from sqlite_audit.shared.exceptions import QueryError
from sqlite_audit.shared.logging import Logger, quiet_logger

from .. import vocabulary
from ..plan import PLAN_UNAVAILABLE, explain_query_plan
from ..types import AnalysisContext, QueryPerformanceResult


@dataclass(frozen=True, slots=True)
class BenchmarkQuery:
    label: str
    sql: str
    suggestion: str


def analyze(context: AnalysisContext) -> tuple[QueryPerformanceResult, ...]:
    return analyze_queries(context.session, context.schema, logger=context.logger)


def analyze_queries(
    session: ShardSession,
    schema: DiscoveredSchema,
    *,
    logger: Logger | None = None,
) -> tuple[QueryPerformanceResult, ...]:
    """Run the query battery for every (shard, table) pair in the snapshot."""

    logger = logger or quiet_logger()
    results: list[QueryPerformanceResult] = []
    for shard_id, shard_info in schema.shards.items():
        shard = session.get(shard_id)
        if shard is None:
            logger.warning(f"No open connection for {shard_id}; skipping query benchmarks.")
            continue
        for table_name, table in shard_info.tables.items():
            for benchmark in build_benchmark_queries(shard_id, table_name, table):
                result = run_benchmark_query(shard, benchmark)
                if result.execution_time.startswith("Error"):
                    logger.debug(f"{benchmark.label}: {result.execution_time}")
                results.append(result)
    return tuple(results)


def build_benchmark_queries(shard_id: str, table_name: str, table: TableInfo) -> list[BenchmarkQuery]:
    quoted = quote_identifier(table_name)
    queries = [
        BenchmarkQuery(
            label=f"Select Top 10 from {table_name} ({shard_id})",
            sql=f"SELECT * FROM {quoted} LIMIT 10",
            suggestion="Basic select, usually optimized by default.",
        ),
        BenchmarkQuery(
            label=f"Count Rows in {table_name} ({shard_id})",
            sql=f"SELECT COUNT(*) FROM {quoted}",
            suggestion="Consider index on primary key for faster counts on large tables.",
        ),
    ]

    text_column = next((c for c in table.columns if vocabulary.is_text_type(c.type)), None)
    if text_column is not None:
        queries.append(
            BenchmarkQuery(
                label=f"Filter {table_name} by {text_column.name} (LIKE) ({shard_id})",
                sql=(
                    f"SELECT * FROM {quoted} "
                    f"WHERE {quote_identifier(text_column.name)} LIKE '%test%' LIMIT 5"
                ),
                suggestion="Consider full-text search or leading wildcard optimization for LIKE queries.",
            )
        )

    numeric_column = next((c for c in table.columns if vocabulary.is_numeric_type(c.type)), None)
    if numeric_column is not None:
        queries.append(
            BenchmarkQuery(
                label=f"Filter {table_name} by {numeric_column.name} (Range) ({shard_id})",
                sql=f"SELECT * FROM {quoted} WHERE {quote_identifier(numeric_column.name)} > 100 LIMIT 5",
                suggestion=f"Ensure index on {table_name}.{numeric_column.name} for range queries.",
            )
        )
    return queries


def run_benchmark_query(shard: Shard, benchmark: BenchmarkQuery) -> QueryPerformanceResult:
    """Explain, classify, then time one benchmark query. Errors land in ``execution_time``."""
    plan_text = PLAN_UNAVAILABLE
    try:
        plan_text = explain_query_plan(shard, benchmark.sql)
        optimized = vocabulary.is_optimized(plan_text)
        started = time.perf_counter()
        shard.fetch_all(benchmark.sql)
        elapsed = time.perf_counter() - started
        execution_time = f"{elapsed:.4f}"
    except QueryError as exc:
        execution_time = f"Error: {exc}"
        optimized = False
    return QueryPerformanceResult(
        query=benchmark.label,
        sql=benchmark.sql,
        execution_time=execution_time,
        optimized=optimized,
        suggested_optimization=benchmark.suggestion,
        query_plan=plan_text,
    )
