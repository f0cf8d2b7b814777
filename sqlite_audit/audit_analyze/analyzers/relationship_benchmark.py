"""Join plans and index coverage for every foreign-key relationship."""

from __future__ import annotations

from enum import Enum

from sqlite_audit.audit_schema.models import DiscoveredSchema, ForeignKeyRelationship
from sqlite_audit.shared.database import Shard, ShardSession, quote_identifier
from sqlite_audit.shared.exceptions import QueryError
from sqlite_audit.shared.logging import Logger, quiet_logger

from .. import vocabulary
from ..plan import explain_query_plan
from ..types import AnalysisContext


class JoinVerdict(Enum):
    WARNING = "warning"
    SUGGESTION = "suggestion"
    ACCEPTABLE = "acceptable"


def analyze(context: AnalysisContext) -> tuple[str, ...]:
    return analyze_relationships(context.session, context.schema, logger=context.logger)


def analyze_relationships(
    session: ShardSession,
    schema: DiscoveredSchema,
    *,
    logger: Logger | None = None,
) -> tuple[str, ...]:
    logger = logger or quiet_logger()
    results: list[str] = []
    for relationship in schema.relationships:
        shard = session.get(relationship.shard)
        if shard is None:
            results.append(
                f"[{relationship.shard}] Engine not found for relationship between "
                f"'{relationship.from_table}' and '{relationship.to_table}'. Skipping."
            )
            continue
        results.extend(_analyze_relationship(shard, schema, relationship, logger))
    return tuple(results)


def join_columns(relationship: ForeignKeyRelationship) -> tuple[str, str]:
    """The first column pair of the relationship, which the sample join uses."""
    from_column = relationship.from_columns[0] if relationship.from_columns else "id"
    to_column = relationship.to_columns[0] if relationship.to_columns else "id"
    return from_column, to_column


def join_sql(relationship: ForeignKeyRelationship) -> str:
    from_column, to_column = join_columns(relationship)
    return (
        f"SELECT T1.*, T2.* FROM {quote_identifier(relationship.from_table)} AS T1 "
        f"JOIN {quote_identifier(relationship.to_table)} AS T2 "
        f"ON T1.{quote_identifier(from_column)} = T2.{quote_identifier(to_column)} LIMIT 10"
    )


def judge_join(plan_text: str, has_source_index: bool) -> JoinVerdict:
    if vocabulary.has_full_scan(plan_text) and not vocabulary.uses_index(plan_text):
        return JoinVerdict.WARNING
    if not has_source_index:
        return JoinVerdict.SUGGESTION
    return JoinVerdict.ACCEPTABLE


def _analyze_relationship(
    shard: Shard,
    schema: DiscoveredSchema,
    relationship: ForeignKeyRelationship,
    logger: Logger,
) -> list[str]:
    from_column, to_column = join_columns(relationship)
    lines = [
        f"[{shard.shard_id}] Analyzing relationship: '{relationship.from_table}' ({from_column}) "
        f"JOIN '{relationship.to_table}' ({to_column})"
    ]

    child = schema.table(shard.shard_id, relationship.from_table)
    parent = schema.table(shard.shard_id, relationship.to_table)
    has_source_index = child is not None and child.has_covering_index(relationship.from_columns)
    # An INTEGER PRIMARY KEY target is the rowid itself and has no separate index.
    has_target_index = parent is not None and (
        parent.has_covering_index(relationship.to_columns, unique_only=True)
        or set(relationship.to_columns) in ({"rowid"}, set(parent.primary_key))
    )
    lines.append(
        f"  - Index on FK source ({relationship.from_table}.{from_column}): "
        f"{'Exists' if has_source_index else 'MISSING'}"
    )
    lines.append(
        f"  - Index on FK target ({relationship.to_table}.{to_column}): "
        f"{'Exists' if has_target_index else 'MISSING'}"
    )

    try:
        plan_text = explain_query_plan(shard, join_sql(relationship))
    except QueryError as exc:
        logger.debug(f"[{shard.shard_id}] Join plan failed for {relationship.from_table}: {exc}")
        lines.append(f"  - Error analyzing join performance: {exc}")
        return lines

    lines.append(f"  - Query Plan:\n{plan_text}")
    verdict = judge_join(plan_text, has_source_index)
    if verdict is JoinVerdict.WARNING:
        lines.append(
            "  - WARNING: Join query involves full table scan without index. "
            "Consider adding indexes on join columns."
        )
    elif verdict is JoinVerdict.SUGGESTION:
        lines.append(
            f"  - SUGGESTION: Add index on '{relationship.from_table}.{from_column}' "
            "to improve join performance."
        )
    else:
        lines.append("  - Performance appears reasonable for this synthetic join.")
    return lines
