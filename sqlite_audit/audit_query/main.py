"""audit-query CLI entrypoint."""

from __future__ import annotations

import click

from sqlite_audit.shared.cli import CLIContext, common_cli_options, handle_cli_errors, pass_cli_context
from sqlite_audit.shared.database import ShardSession, open_shards

from . import executor, render

OUTPUT_FORMAT_CHOICES = ("table", "json")


@click.group(help="Inspect and query SQLite shards without modifying them.")
@common_cli_options(with_db=True, with_dry_run=False)
@handle_cli_errors
def cli(cli_ctx: CLIContext) -> None:
    """Primary Click group for audit-query commands."""
    cli_ctx.logger.debug(f"audit-query group initialised with {len(cli_ctx.db_paths)} shard(s).")


@cli.command("sql")
@click.argument("query", type=str)
@click.option("--shard", "shard_id", default="shard_1", show_default=True, help="Shard to run against.")
@click.option("--limit", type=int, help="Override the default row limit (0 for no limit).")
@click.option(
    "--format",
    "output_format",
    default="table",
    show_default=True,
    type=click.Choice(OUTPUT_FORMAT_CHOICES),
)
@pass_cli_context
@handle_cli_errors
def run_sql(
    cli_ctx: CLIContext,
    query: str,
    shard_id: str,
    limit: int | None,
    output_format: str,
) -> None:
    """Execute ad-hoc SQL against one shard."""
    _log_subcommand_entry(cli_ctx, "sql", shard_id)
    if not query.strip():
        raise click.ClickException("Query text must not be empty.")
    with _open_session(cli_ctx) as session:
        result = executor.execute_sql(session, shard_id, query, limit=limit)
    render.render_query_result(result, output_format=output_format, logger=cli_ctx.logger)


@cli.command("sample")
@click.argument("table", type=str)
@click.option("--shard", "shard_id", default="shard_1", show_default=True, help="Shard holding the table.")
@click.option(
    "--limit",
    type=int,
    default=executor.DEFAULT_SAMPLE_LIMIT,
    show_default=True,
    help="Maximum number of rows to show.",
)
@click.option(
    "--format",
    "output_format",
    default="table",
    show_default=True,
    type=click.Choice(OUTPUT_FORMAT_CHOICES),
)
@pass_cli_context
@handle_cli_errors
def sample(cli_ctx: CLIContext, table: str, shard_id: str, limit: int, output_format: str) -> None:
    """Show the first rows of a table."""
    _log_subcommand_entry(cli_ctx, "sample", shard_id)
    with _open_session(cli_ctx) as session:
        result = executor.sample_rows(session, shard_id, table, limit=limit)
    render.render_query_result(result, output_format=output_format, logger=cli_ctx.logger)


@cli.command("validate")
@click.argument("query", type=str)
@click.option("--shard", "shard_id", default="shard_1", show_default=True, help="Shard to compile against.")
@pass_cli_context
@handle_cli_errors
def validate(cli_ctx: CLIContext, query: str, shard_id: str) -> None:
    """Check that a query compiles, without running it."""
    _log_subcommand_entry(cli_ctx, "validate", shard_id)
    with _open_session(cli_ctx) as session:
        executor.validate_query(session, shard_id, query)
    click.echo(f"Query is valid for {shard_id}.")


@cli.command("tables")
@pass_cli_context
@handle_cli_errors
def tables(cli_ctx: CLIContext) -> None:
    """List every shard's tables and their columns."""
    _log_subcommand_entry(cli_ctx, "tables", None)
    with _open_session(cli_ctx) as session:
        listing = {
            shard_id: [
                (name, executor.get_table_columns(session, shard_id, name))
                for name in executor.list_table_names(session, shard_id)
            ]
            for shard_id in session.shard_ids
        }
    render.render_table_listing(listing, logger=cli_ctx.logger)


@cli.command("stats")
@click.option(
    "--format",
    "output_format",
    default="table",
    show_default=True,
    type=click.Choice(OUTPUT_FORMAT_CHOICES),
)
@pass_cli_context
@handle_cli_errors
def stats(cli_ctx: CLIContext, output_format: str) -> None:
    """Show object counts and size for every shard."""
    _log_subcommand_entry(cli_ctx, "stats", None)
    with _open_session(cli_ctx) as session:
        collected = executor.collect_stats(session)
    render.render_stats(collected, output_format=output_format)


def _open_session(cli_ctx: CLIContext) -> ShardSession:
    if not cli_ctx.db_paths:
        raise click.ClickException("Pass at least one --db PATH.")
    return open_shards(
        cli_ctx.db_paths,
        read_only=True,
        timeout_seconds=cli_ctx.config.analysis.query_timeout_seconds,
        logger=cli_ctx.logger,
    )


def _log_subcommand_entry(cli_ctx: CLIContext, command: str, shard_id: str | None) -> None:
    message = f"audit-query {command} invoked"
    if shard_id:
        message += f" (shard: {shard_id})"
    cli_ctx.logger.debug(message)


if __name__ == "__main__":  # pragma: no cover
    cli()
