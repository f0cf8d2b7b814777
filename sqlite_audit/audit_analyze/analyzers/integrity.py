"""Orphaned foreign-key rows and duplicate unique-key groups."""

from __future__ import annotations

from typing import Sequence

from sqlite_audit.audit_schema.models import DiscoveredSchema, ForeignKeyRelationship
from sqlite_audit.shared.database import Shard, ShardSession, quote_identifier
from sqlite_audit.shared.exceptions import QueryError
from sqlite_audit.shared.logging import Logger, quiet_logger
from sqlite_audit.shared.values import SqlValue, format_row

from ..types import AnalysisContext

_COUNT_ALIAS = "duplicate_count"


def analyze(context: AnalysisContext) -> tuple[str, ...]:
    return check_data_integrity(context.session, context.schema, logger=context.logger)


def check_data_integrity(
    session: ShardSession,
    schema: DiscoveredSchema,
    *,
    logger: Logger | None = None,
) -> tuple[str, ...]:
    """Report orphans per relationship and duplicates per unique constraint.

    A failing check becomes an ``Error ...`` issue and the pass moves on.
    """

    logger = logger or quiet_logger()
    issues: list[str] = []
    for shard_id, shard_info in schema.shards.items():
        shard = session.get(shard_id)
        if shard is None:
            logger.warning(f"No open connection for {shard_id}; skipping integrity checks.")
            continue

        for relationship in schema.relationships:
            if relationship.shard != shard_id:
                continue
            try:
                issue = find_orphans(shard, relationship)
            except QueryError as exc:
                issue = (
                    f"[{shard_id}] Error checking FK between {relationship.from_table} "
                    f"and {relationship.to_table}: {exc}"
                )
                logger.debug(issue)
            if issue:
                issues.append(issue)

        for table_name, table in shard_info.tables.items():
            for columns in table.unique_constraints:
                try:
                    issue = find_duplicates(shard, table_name, columns)
                except QueryError as exc:
                    issue = (
                        f"[{shard_id}] Error checking unique constraint on "
                        f"{table_name}.{', '.join(columns)}: {exc}"
                    )
                    logger.debug(issue)
                if issue:
                    issues.append(issue)
    return tuple(issues)


def find_orphans(shard: Shard, relationship: ForeignKeyRelationship) -> str | None:
    """Return an issue listing every child row whose key has no parent, or None.

    Relationships whose tables are missing from the live catalog are skipped. NULL child
    keys are not orphans, and NULL parent keys are ignored so ``NOT IN`` stays meaningful.
    """

    if not (shard.table_exists(relationship.from_table) and shard.table_exists(relationship.to_table)):
        return None

    child_columns = _column_list(relationship.from_columns)
    parent_columns = _column_list(relationship.to_columns)
    sql = (
        f"SELECT {child_columns} FROM {quote_identifier(relationship.from_table)} "
        f"WHERE {_all_not_null(relationship.from_columns)} "
        f"AND {_row_value(relationship.from_columns)} NOT IN ("
        f"SELECT {parent_columns} FROM {quote_identifier(relationship.to_table)} "
        f"WHERE {_all_not_null(relationship.to_columns)})"
    )
    result = shard.fetch_all(sql)
    if not result.rows:
        return None

    records = "; ".join(format_row(result.columns, row) for row in result.rows)
    return (
        f"[{shard.shard_id}] Foreign Key Violation: Orphaned records found in "
        f"'{relationship.from_table}' (columns: {', '.join(relationship.from_columns)}) "
        f"referencing non-existent entries in '{relationship.to_table}' "
        f"(columns: {', '.join(relationship.to_columns)}): {records}"
    )


def find_duplicates(shard: Shard, table_name: str, columns: Sequence[str]) -> str | None:
    """Return an issue listing every duplicated key group, or None.

    Rows with a NULL in any key column are left out; SQLite lets those repeat.
    """

    column_list = _column_list(columns)
    sql = (
        f"SELECT {column_list}, COUNT(*) AS {_COUNT_ALIAS} "
        f"FROM {quote_identifier(table_name)} "
        f"WHERE {_all_not_null(columns)} "
        f"GROUP BY {column_list} HAVING COUNT(*) > 1"
    )
    result = shard.fetch_all(sql)
    if not result.rows:
        return None

    groups = []
    for row in result.rows:
        values = ", ".join(
            f"{name}: {SqlValue.from_sqlite(row[index]).display()}"
            for index, name in enumerate(columns)
        )
        groups.append(f"({values}, Count: {row[len(columns)]})")
    return (
        f"[{shard.shard_id}] Duplicate Unique Constraint: Found duplicate entries for unique "
        f"column(s) '{', '.join(columns)}' in table '{table_name}': {'; '.join(groups)}"
    )


def _column_list(columns: Sequence[str]) -> str:
    return ", ".join(quote_identifier(column) for column in columns)


def _row_value(columns: Sequence[str]) -> str:
    if len(columns) == 1:
        return quote_identifier(columns[0])
    return f"({_column_list(columns)})"


def _all_not_null(columns: Sequence[str]) -> str:
    return " AND ".join(f"{quote_identifier(column)} IS NOT NULL" for column in columns)
