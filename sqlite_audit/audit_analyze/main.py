"""audit-analyze CLI entrypoint."""

from __future__ import annotations

from typing import Sequence

import click

from sqlite_audit.shared.cli import CLIContext, common_cli_options, handle_cli_errors

from . import registry
from . import render as result_render
from .orchestrator import run_analysis


HELP_TEXT = (
    "Analyze one or more SQLite database files as shards of one logical database.\n\n"
    "Each DB_PATH becomes shard_1, shard_2, ... in the order given.\n\n"
    "\b\n"  # Preserve the catalog formatting in Click's help output.
    + registry.format_catalog()
)


@click.command(help=HELP_TEXT)
@click.argument("db_paths", nargs=-1, required=True, type=click.Path(path_type=str))
@click.option(
    "--only",
    "only",
    multiple=True,
    metavar="ANALYSIS",
    help="Run only this analysis; repeat to select several. Overrides analysis.enabled.",
)
@click.option(
    "--format",
    "output_format",
    default="text",
    show_default=True,
    type=click.Choice(["text", "json"]),
)
@click.option(
    "--read-only",
    is_flag=True,
    help="Open every shard read-only (implies no synthetic trigger inserts).",
)
@common_cli_options
@handle_cli_errors
def main(
    db_paths: Sequence[str],
    only: Sequence[str],
    output_format: str,
    read_only: bool,
    cli_ctx: CLIContext,
) -> None:
    """Resolve CLI inputs, run the orchestrator, and render the report."""

    config = cli_ctx.config
    if read_only:
        config = config.with_read_only(True)

    cli_ctx.logger.debug(
        f"Analyzing {len(db_paths)} shard(s); only={list(only) or 'config'}, "
        f"dry_run={cli_ctx.dry_run}, read_only={config.connection.read_only}"
    )
    results = run_analysis(
        db_paths,
        config,
        only=only or None,
        dry_run=cli_ctx.dry_run,
        logger=cli_ctx.logger,
    )
    result_render.render_results(results, output_format=output_format, logger=cli_ctx.logger)
    if cli_ctx.verbose:
        cli_ctx.logger.success(f"Completed {len(results.analyses_run)} analysis pass(es).")


if __name__ == "__main__":  # pragma: no cover
    main()
