"""Core datatypes and interfaces for `audit-analyze` analyzers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Sequence

from sqlite_audit.audit_query.types import DatabaseStats
from sqlite_audit.audit_schema.models import DiscoveredSchema
from sqlite_audit.shared.config import AnalysisSettings
from sqlite_audit.shared.database import ShardSession
from sqlite_audit.shared.exceptions import SqliteAuditError
from sqlite_audit.shared.logging import Logger


# ----- Exceptions ---------------------------------------------------------------------------


class AnalysisConfigurationError(SqliteAuditError):
    """Raised when analyzer selection or options are invalid."""


# ----- Data contracts -----------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisContext:
    """Container passed to analyzers with the live shards and the schema snapshot."""

    session: ShardSession
    schema: DiscoveredSchema
    settings: AnalysisSettings
    logger: Logger
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class QueryPerformanceResult:
    """Outcome of one synthetic benchmark query.

    ``execution_time`` holds seconds formatted to four decimals, or an ``Error: ...``
    description when the query failed.
    """

    query: str
    sql: str
    execution_time: str
    optimized: bool
    suggested_optimization: str
    query_plan: str


@dataclass(frozen=True, slots=True)
class IndexAdvice:
    """Parallel issue/suggestion lists; ``suggestions[i]`` resolves ``issues[i]``."""

    issues: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()

    def pairs(self) -> list[tuple[str, str]]:
        return list(zip(self.issues, self.suggestions))


@dataclass(frozen=True)
class AnalysisResults:
    """Aggregate of every analyzer's output for one run. Plain strings and small records only."""

    schema: DiscoveredSchema
    database_stats: Sequence[DatabaseStats] = ()
    query_performance: Sequence[QueryPerformanceResult] = ()
    index_advice: IndexAdvice = field(default_factory=IndexAdvice)
    integrity_issues: Sequence[str] = ()
    security_findings: Sequence[str] = ()
    trigger_performance: Sequence[str] = ()
    relationship_performance: Sequence[str] = ()
    analyses_run: Sequence[str] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "analyses_run": list(self.analyses_run),
            "database_stats": [stats.to_dict() for stats in self.database_stats],
            "query_performance": [asdict(result) for result in self.query_performance],
            "index_issues": list(self.index_advice.issues),
            "index_suggestions": list(self.index_advice.suggestions),
            "integrity_issues": list(self.integrity_issues),
            "security_findings": list(self.security_findings),
            "trigger_performance": list(self.trigger_performance),
            "relationship_performance": list(self.relationship_performance),
            "schema": self.schema.to_dict(),
        }


# ----- Registry helpers ---------------------------------------------------------------------


AnalyzerCallable = Callable[[AnalysisContext], Any]


@dataclass(frozen=True)
class AnalyzerSpec:
    """Registry entry describing an analyzer implementation.

    ``result_field`` names the :class:`AnalysisResults` attribute the factory's return
    value is stored under.
    """

    slug: str
    title: str
    summary: str
    factory: AnalyzerCallable
    result_field: str
    mutates_data: bool = False
    aliases: Sequence[str] = field(default_factory=tuple)

    def all_names(self) -> set[str]:
        return {self.slug, *self.aliases}
