from __future__ import annotations

from pathlib import Path

from sqlite_audit.audit_analyze.analyzers.query_performance import (
    BenchmarkQuery,
    analyze_queries,
    build_benchmark_queries,
    run_benchmark_query,
)
from sqlite_audit.audit_analyze.plan import PLAN_UNAVAILABLE, explain_query_plan


def test_query_battery_per_table(discovered, shop_db: Path) -> None:
    _, schema = discovered(shop_db)

    customers = build_benchmark_queries("shard_1", "customers", schema.table("shard_1", "customers"))
    orders = build_benchmark_queries("shard_1", "orders", schema.table("shard_1", "orders"))

    assert [benchmark.label for benchmark in customers] == [
        "Select Top 10 from customers (shard_1)",
        "Count Rows in customers (shard_1)",
        "Filter customers by name (LIKE) (shard_1)",
        "Filter customers by id (Range) (shard_1)",
    ]
    # No text-typed column in orders, so no LIKE query.
    assert [benchmark.label for benchmark in orders] == [
        "Select Top 10 from orders (shard_1)",
        "Count Rows in orders (shard_1)",
        "Filter orders by id (Range) (shard_1)",
    ]
    assert orders[-1].sql == 'SELECT * FROM "orders" WHERE "id" > 100 LIMIT 5'


def test_results_carry_timing_plan_and_verdict(discovered, shop_db: Path) -> None:
    session, schema = discovered(shop_db)

    results = analyze_queries(session, schema)

    assert len(results) == 7
    by_label = {result.query: result for result in results}
    top = by_label["Select Top 10 from customers (shard_1)"]
    assert top.optimized is False
    assert "SCAN" in top.query_plan.upper()
    assert float(top.execution_time) >= 0.0
    assert len(top.execution_time.split(".")[1]) == 4

    ranged = by_label["Filter orders by id (Range) (shard_1)"]
    assert ranged.optimized is True
    assert ranged.suggested_optimization == "Ensure index on orders.id for range queries."


def test_failing_query_is_captured(open_session, shop_db: Path) -> None:
    session = open_session(shop_db)
    benchmark = BenchmarkQuery(label="broken", sql="SELECT * FROM ghosts", suggestion="n/a")

    result = run_benchmark_query(session.shard("shard_1"), benchmark)

    assert result.execution_time.startswith("Error: ")
    assert "ghosts" in result.execution_time
    assert result.optimized is False
    assert result.query_plan == PLAN_UNAVAILABLE


def test_plan_lines_use_column_value_pairs(open_session, shop_db: Path) -> None:
    session = open_session(shop_db)

    plan = explain_query_plan(session.shard("shard_1"), 'SELECT * FROM "orders"')

    assert "detail: SCAN" in plan
    assert plan.startswith("id: ")
