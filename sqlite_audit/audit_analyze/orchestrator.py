"""Run the selected analyzers over a set of shard files."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable, Sequence

from sqlite_audit.audit_query.executor import collect_stats
from sqlite_audit.audit_schema.discovery import discover_schema
from sqlite_audit.shared.config import AppConfig, default_config
from sqlite_audit.shared.database import open_shards
from sqlite_audit.shared.logging import Logger, quiet_logger

from . import registry
from .types import AnalysisConfigurationError, AnalysisContext, AnalysisResults


def run_analysis(
    paths: Sequence[str | Path],
    config: AppConfig | None = None,
    *,
    only: Iterable[str] | None = None,
    dry_run: bool = False,
    logger: Logger | None = None,
) -> AnalysisResults:
    """Open every shard, discover the schema, and run the selected analyzers in order.

    Connection, discovery and selection failures propagate before any analyzer runs.
    Connections are closed on return, including when an error escapes.
    """

    config = config or default_config()
    logger = logger or quiet_logger()
    if not paths:
        raise AnalysisConfigurationError("At least one database path is required.")
    specs = registry.resolve_selection(only, config.analysis.enabled)

    with open_shards(
        paths,
        read_only=config.connection.read_only,
        timeout_seconds=config.analysis.query_timeout_seconds,
        logger=logger,
    ) as session:
        logger.debug(f"Connected to {len(session)} shard(s).")
        schema = discover_schema(session, logger=logger)
        stats = collect_stats(session)
        context = AnalysisContext(
            session=session,
            schema=schema,
            settings=config.analysis,
            logger=logger,
            dry_run=dry_run,
        )

        outputs: dict[str, Any] = {}
        for spec in specs:
            if spec.mutates_data and (dry_run or config.connection.read_only):
                logger.debug(f"'{spec.slug}' will report its inserts as skipped.")
            result = spec.factory(replace(context, logger=logger.bind(spec.slug)))
            outputs[spec.result_field] = result
            logger.debug(f"Analysis '{spec.slug}' completed with {_count(result)} result(s).")

    return AnalysisResults(
        schema=schema,
        database_stats=tuple(stats),
        analyses_run=tuple(spec.slug for spec in specs),
        **outputs,
    )


def _count(result: Any) -> int:
    issues = getattr(result, "issues", None)
    if issues is not None:
        return len(issues)
    return len(result)
