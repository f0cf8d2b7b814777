"""Rendering helpers for audit-analyze results."""

from __future__ import annotations

import json
import sys
from typing import IO, Sequence

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from sqlite_audit.shared.logging import Logger

from . import registry
from .types import AnalysisResults

REPORT_TITLE = "Database Analysis Report"


def render_results(
    results: AnalysisResults,
    *,
    output_format: str,
    logger: Logger,
    stream: IO[str] | None = None,
) -> None:
    stream = stream or sys.stdout
    fmt = (output_format or "text").lower()
    if fmt == "json":
        json.dump(results.to_dict(), stream, indent=2, sort_keys=True)
        stream.write("\n")
        return
    if fmt == "text":
        _render_text(results, logger=logger, stream=stream)
        return
    raise ValueError(f"Unsupported output format '{output_format}'.")


def _render_text(results: AnalysisResults, *, logger: Logger, stream: IO[str]) -> None:
    console = Console(file=stream, highlight=False, force_terminal=False)
    console.print(Text(REPORT_TITLE, style="bold"))
    console.print(_build_overview_table(results))

    for slug in results.analyses_run:
        spec = registry.get_spec(slug)
        console.print()
        console.print(Text(spec.title, style="bold underline"))
        if spec.result_field == "query_performance":
            _print_query_performance(console, results)
        elif spec.result_field == "index_advice":
            _print_lines(console, "Issues", results.index_advice.issues)
            _print_lines(console, "Suggestions", results.index_advice.suggestions)
        else:
            _print_lines(console, None, getattr(results, spec.result_field))

    if not results.analyses_run:
        logger.info("No analyses were selected.")


def _build_overview_table(results: AnalysisResults) -> Table:
    table = Table(title="Overview", box=box.SIMPLE, show_header=True, header_style="bold")
    for heading in ("Shard", "Path", "Tables", "Indexes", "Triggers", "Views", "Size"):
        table.add_column(heading)
    for stats in results.database_stats:
        table.add_row(
            Text(stats.shard),
            Text(stats.path),
            str(stats.table_count),
            str(stats.index_count),
            str(stats.trigger_count),
            str(stats.view_count),
            stats.formatted_size,
        )
    return table


def _print_query_performance(console: Console, results: AnalysisResults) -> None:
    if not results.query_performance:
        console.print("  (none)")
        return
    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("Query")
    table.add_column("Time (s)")
    table.add_column("Optimized")
    table.add_column("Suggestion")
    for record in results.query_performance:
        table.add_row(
            Text(record.query),
            Text(record.execution_time),
            "yes" if record.optimized else "NO",
            Text("" if record.optimized else record.suggested_optimization),
        )
    console.print(table)


def _print_lines(console: Console, heading: str | None, lines: Sequence[str]) -> None:
    if heading:
        console.print(Text(f"{heading}:", style="bold"))
    if not lines:
        console.print("  (none)")
        return
    for line in lines:
        console.print(Text(f"• {line}"))
