"""Output rendering helpers for audit-query."""

from __future__ import annotations

import json
import sys
from typing import IO, Mapping, Sequence

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from sqlite_audit.audit_schema.models import ColumnInfo
from sqlite_audit.shared.logging import Logger

from .types import DatabaseStats, QueryResult


def render_query_result(
    result: QueryResult,
    *,
    output_format: str,
    logger: Logger,
    stream: IO[str] | None = None,
) -> None:
    """Render a query result set to the desired format."""
    output_stream = stream or sys.stdout
    fmt = (output_format or "table").lower()

    if fmt == "table":
        _render_table(result, logger=logger, stream=output_stream)
    elif fmt == "json":
        json.dump(result.to_dict(), output_stream, indent=2)
        output_stream.write("\n")
    else:  # pragma: no cover - Click validation should prevent this
        raise ValueError(f"Unsupported output format '{output_format}'.")

    if result.truncated:
        logger.warning(
            f"Result truncated to {result.limit_value} rows. Re-run with a larger --limit "
            "(0 for no limit) for full output."
        )


def render_table_listing(
    listing: Mapping[str, Sequence[tuple[str, Sequence[ColumnInfo]]]],
    *,
    logger: Logger,
    stream: IO[str] | None = None,
) -> None:
    """Render each shard's tables with their column declarations."""
    output_stream = stream or sys.stdout
    console = Console(file=output_stream, highlight=False, force_terminal=False)
    for shard_id, tables in listing.items():
        console.print(Text(shard_id, style="bold"))
        if not tables:
            logger.info(f"No tables found in {shard_id}.")
            continue
        table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
        table.add_column("Table", style="bold")
        table.add_column("Columns")
        for name, columns in tables:
            table.add_row(Text(name), Text(", ".join(_describe_column(column) for column in columns)))
        console.print(table)


def render_stats(
    stats: Sequence[DatabaseStats],
    *,
    output_format: str,
    stream: IO[str] | None = None,
) -> None:
    output_stream = stream or sys.stdout
    if (output_format or "table").lower() == "json":
        json.dump([entry.to_dict() for entry in stats], output_stream, indent=2)
        output_stream.write("\n")
        return

    console = Console(file=output_stream, highlight=False, force_terminal=False)
    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    for heading in ("Shard", "Path", "Tables", "Indexes", "Triggers", "Views", "Size"):
        table.add_column(heading)
    for entry in stats:
        table.add_row(
            entry.shard,
            entry.path,
            str(entry.table_count),
            str(entry.index_count),
            str(entry.trigger_count),
            str(entry.view_count),
            entry.formatted_size,
        )
    console.print(table)


def _render_table(result: QueryResult, *, logger: Logger, stream: IO[str]) -> None:
    console = Console(file=stream, highlight=False, force_terminal=False)
    table = Table(
        title=result.shard,
        box=box.SIMPLE_HEAVY,
        show_header=bool(result.columns),
        header_style="bold",
    )
    for column in result.columns:
        table.add_column(column or "")

    if result.rows:
        for row in result.rows:
            table.add_row(*(Text(cell) for cell in row))
    else:
        logger.info("Query returned zero rows.")

    console.print(table)


def _describe_column(column: ColumnInfo) -> str:
    declared = f" {column.type}" if column.type else ""
    required = "" if column.nullable else " NOT NULL"
    return f"{column.name}{declared}{required}"
