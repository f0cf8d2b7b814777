"""Analyzer registry and selection helpers for `audit-analyze`."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .analyzers import (
    index_advisor,
    integrity,
    query_performance,
    relationship_benchmark,
    security,
    trigger_benchmark,
)
from .types import AnalysisConfigurationError, AnalyzerSpec

# Registry order is run order.
_ANALYZER_SPECS: Sequence[AnalyzerSpec] = (
    AnalyzerSpec(
        slug="query-performance",
        title="Query Performance",
        summary="Time a fixed battery of benchmark queries per table and flag full scans.",
        factory=query_performance.analyze,
        result_field="query_performance",
        aliases=("queries",),
    ),
    AnalyzerSpec(
        slug="index-advice",
        title="Index Advice",
        summary="Suggest missing indexes and flag redundant ones from schema metadata.",
        factory=index_advisor.analyze,
        result_field="index_advice",
        aliases=("indexes",),
    ),
    AnalyzerSpec(
        slug="data-integrity",
        title="Data Integrity",
        summary="Find orphaned foreign-key rows and duplicate unique keys.",
        factory=integrity.analyze,
        result_field="integrity_issues",
        aliases=("integrity",),
    ),
    AnalyzerSpec(
        slug="security",
        title="Security Scan",
        summary="Sample sensitive-looking text columns for passwords, emails, SSNs and card numbers.",
        factory=security.analyze,
        result_field="security_findings",
    ),
    AnalyzerSpec(
        slug="trigger-performance",
        title="Trigger Performance",
        summary="Insert a synthetic batch through every AFTER INSERT trigger and time it.",
        factory=trigger_benchmark.analyze,
        result_field="trigger_performance",
        mutates_data=True,
        aliases=("triggers",),
    ),
    AnalyzerSpec(
        slug="relationship-performance",
        title="Relationship Performance",
        summary="Inspect join plans and index coverage for every foreign key.",
        factory=relationship_benchmark.analyze,
        result_field="relationship_performance",
        aliases=("relationships", "joins"),
    ),
)


_SPEC_BY_SLUG: dict[str, AnalyzerSpec] = {}
for _spec in _ANALYZER_SPECS:
    for _name in _spec.all_names():
        _SPEC_BY_SLUG[_name] = _spec


# ----- Public helpers -----------------------------------------------------------------------


def available_specs() -> Sequence[AnalyzerSpec]:
    """Return available analyzer specs."""

    return _ANALYZER_SPECS


def get_spec(name: str) -> AnalyzerSpec:
    """Lookup an analyzer spec by slug or alias."""

    normalized = name.lower().strip()
    try:
        return _SPEC_BY_SLUG[normalized]
    except KeyError as exc:
        raise AnalysisConfigurationError(f"Unknown analysis type '{name}'.") from exc


def format_catalog() -> str:
    """Return a formatted listing of available analyzers for --help."""

    lines = ["Available analyses:"]
    for spec in available_specs():
        lines.append(f"  - {spec.slug}: {spec.summary}")
    return "\n".join(lines)


def resolve_selection(
    only: Iterable[str] | None,
    enabled: Iterable[str],
) -> list[AnalyzerSpec]:
    """Return the specs to run, in registry order.

    An explicit ``only`` list replaces the configured ``enabled`` list; every name in either
    must resolve, or :class:`AnalysisConfigurationError` is raised before anything runs.
    """

    requested = list(only) if only else list(enabled)
    slugs = {get_spec(name).slug for name in requested}
    return [spec for spec in _ANALYZER_SPECS if spec.slug in slugs]
