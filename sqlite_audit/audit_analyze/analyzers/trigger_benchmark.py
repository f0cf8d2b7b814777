"""AFTER INSERT trigger load test using a synthetic, rolled-back-on-failure batch."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

from sqlite_audit.audit_schema.models import ColumnInfo, DiscoveredSchema, ShardInfo, TableInfo, TriggerInfo
from sqlite_audit.shared.database import (
    Shard,
    ShardSession,
    foreign_keys_suspended,
    quote_identifier,
    transaction,
)
from sqlite_audit.shared.exceptions import QueryError
from sqlite_audit.shared.logging import Logger, quiet_logger

from .. import vocabulary
from ..types import AnalysisContext

DEFAULT_BATCH_SIZE = 100
INTEGER_BASE = 1_000_000
DECIMAL_BASE = 100.0
DECIMAL_STEP = 0.5
DATE_CYCLE_DAYS = 28


@dataclass(frozen=True, slots=True)
class SyntheticBatch:
    """Rows to insert; ``columns`` is empty when every column is generated by SQLite."""

    table: str
    columns: tuple[str, ...]
    rows: tuple[tuple[Any, ...], ...]

    def insert_sql(self) -> str:
        table = quote_identifier(self.table)
        if not self.columns:
            return f"INSERT INTO {table} DEFAULT VALUES"
        column_list = ", ".join(quote_identifier(column) for column in self.columns)
        placeholders = ", ".join("?" for _ in self.columns)
        return f"INSERT INTO {table} ({column_list}) VALUES ({placeholders})"


def analyze(context: AnalysisContext) -> tuple[str, ...]:
    return analyze_triggers(
        context.session,
        context.schema,
        batch_size=context.settings.trigger_batch_size,
        audit_log_table=context.settings.audit_log_table,
        dry_run=context.dry_run,
        logger=context.logger,
    )


def analyze_triggers(
    session: ShardSession,
    schema: DiscoveredSchema,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    audit_log_table: str = "audit_log",
    dry_run: bool = False,
    logger: Logger | None = None,
) -> tuple[str, ...]:
    """Benchmark every AFTER INSERT trigger; report all others as skipped.

    Each batch commits or rolls back on its own, so one failing trigger leaves earlier
    batches in place and does not stop later ones.
    """

    logger = logger or quiet_logger()
    results: list[str] = []
    for position, trigger in enumerate(schema.all_triggers):
        shard = session.get(trigger.shard)
        prefix = f"[{trigger.shard}]"
        if shard is None:
            results.append(f"{prefix} Engine not found for trigger '{trigger.name}'. Skipping.")
            continue
        if not vocabulary.is_after_insert_trigger(trigger.sql):
            results.append(
                f"{prefix} Trigger '{trigger.name}': Only 'AFTER INSERT' triggers are currently "
                "analyzed for performance. Skipping."
            )
            continue
        if dry_run or shard.read_only:
            reason = "dry run" if dry_run else "read-only connection"
            results.append(
                f"{prefix} Trigger '{trigger.name}' on '{trigger.table}': Skipped synthetic inserts ({reason})."
            )
            continue

        shard_info = schema.shards[trigger.shard]
        table = shard_info.tables.get(trigger.table)
        if table is None:
            results.append(
                f"{prefix} Table '{trigger.table}' for trigger '{trigger.name}' not found in schema. "
                "Skipping performance test."
            )
            continue

        results.append(f"Analyzing performance of trigger '{trigger.name}' on '{trigger.table}' in {trigger.shard}...")
        batch = build_synthetic_batch(trigger.table, table, batch_size, offset=position * batch_size)
        try:
            elapsed = run_insert_batch(shard, batch)
        except QueryError as exc:
            logger.warning(f"{prefix} Trigger '{trigger.name}' benchmark rolled back: {exc}")
            results.append(f"{prefix} Error testing trigger '{trigger.name}' on '{trigger.table}': {exc}")
            continue

        results.append(
            f"{prefix} Trigger '{trigger.name}' on '{trigger.table}': Inserted {len(batch.rows)} "
            f"records in {elapsed:.4f} seconds."
        )
        results.extend(_audit_log_lines(shard, shard_info, trigger, audit_log_table, logger))
    return tuple(results)


def should_skip_column(column: ColumnInfo, table: TableInfo) -> bool:
    """Only a rowid alias is left to SQLite; every other key column gets a synthetic value."""
    return column.name == table.rowid_alias


def synthetic_value(column: ColumnInfo, index: int, offset: int = 0) -> Any:
    """Deterministic value for row ``index`` chosen from the declared type and name."""
    if vocabulary.is_integer_type(column.type):
        return INTEGER_BASE + offset + index
    if vocabulary.is_decimal_type(column.type):
        return round(DECIMAL_BASE + index * DECIMAL_STEP, 2)
    if vocabulary.looks_like_date(column.name, column.type):
        return f"2025-01-{index % DATE_CYCLE_DAYS + 1:02d}"
    if vocabulary.looks_like_email(column.name):
        return f"test{index}@example.com"
    if vocabulary.looks_like_name(column.name):
        return f"TestName{index}"
    return f"dummy_value_{index}"


def build_synthetic_batch(table_name: str, table: TableInfo, size: int, *, offset: int = 0) -> SyntheticBatch:
    columns = [column for column in table.columns if not should_skip_column(column, table)]
    rows = tuple(
        tuple(synthetic_value(column, index, offset) for column in columns) for index in range(size)
    )
    return SyntheticBatch(table=table_name, columns=tuple(c.name for c in columns), rows=rows)


def run_insert_batch(shard: Shard, batch: SyntheticBatch) -> float:
    """Insert the batch in one transaction with FK checks off; return elapsed seconds.

    Any failing insert rolls the whole batch back. Foreign-key enforcement is back on when
    this returns or raises.
    """

    sql = batch.insert_sql()
    started = time.perf_counter()
    with foreign_keys_suspended(shard), transaction(shard):
        for row in batch.rows:
            shard.execute(sql, row)
    return time.perf_counter() - started


def _audit_log_lines(
    shard: Shard,
    shard_info: ShardInfo,
    trigger: TriggerInfo,
    audit_log_table: str,
    logger: Logger,
) -> list[str]:
    candidates = []
    if audit_log_table in shard_info.tables:
        candidates.append(audit_log_table)
    if trigger.table != audit_log_table and vocabulary.looks_like_audit_table(trigger.table):
        candidates.append(trigger.table)

    lines = []
    for table_name in candidates:
        try:
            count = shard.fetch_value(f"SELECT COUNT(*) FROM {quote_identifier(table_name)}")
        except QueryError as exc:
            logger.debug(f"[{shard.shard_id}] Could not count rows in '{table_name}': {exc}")
            continue
        lines.append(f"  - Audit log entries after test ({table_name}): {count}.")
    return lines
