"""Shared CLI helpers and decorators."""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

import click

from .config import AppConfig, load_config
from .exceptions import ConfigurationError, SqliteAuditError
from .logging import Logger, get_logger

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(slots=True)
class CLIContext:
    """Runtime context shared across CLI invocations."""

    config: AppConfig
    dry_run: bool
    verbose: bool
    logger: Logger
    db_paths: tuple[str, ...] = field(default_factory=tuple)


pass_cli_context = click.make_pass_decorator(CLIContext)


def common_cli_options(
    func: F | None = None,
    *,
    with_db: bool = False,
    with_dry_run: bool = True,
) -> Any:
    """Decorator injecting shared CLI options and context creation.

    Usable bare (``@common_cli_options``) or with arguments
    (``@common_cli_options(with_db=True, with_dry_run=False)``).
    """

    def decorator(inner: F) -> F:
        @click.pass_context
        @functools.wraps(inner)
        def wrapper(
            ctx: click.Context,
            *args: Any,
            config_path: str | None = None,
            dry_run: bool = False,
            verbose: bool = False,
            **kwargs: Any,
        ) -> Any:
            try:
                app_config = load_config(config_path)
            except ConfigurationError as exc:
                raise click.ClickException(f"Configuration error: {exc}") from exc

            # `--db` has its own dest so a command's `db_paths` argument passes through untouched.
            shard_paths = kwargs.pop("shard_paths", ()) if with_db else ()
            logger = get_logger(verbose=verbose)
            logger.debug(f"Loaded configuration from {app_config.source_path}")
            cli_ctx = CLIContext(
                config=app_config,
                dry_run=dry_run,
                verbose=verbose,
                logger=logger,
                db_paths=tuple(shard_paths),
            )
            ctx.obj = cli_ctx
            kwargs["cli_ctx"] = cli_ctx
            return inner(*args, **kwargs)

        decorated: Any = wrapper
        decorated = click.option("--verbose", is_flag=True, help="Enable verbose logging output.")(decorated)
        if with_dry_run:
            decorated = click.option(
                "--dry-run", is_flag=True, help="Preview actions without modifying any database."
            )(decorated)
        if with_db:
            decorated = click.option(
                "--db",
                "shard_paths",
                multiple=True,
                type=click.Path(path_type=str),
                help="Database file to open; repeat for each shard (shard_1, shard_2, ...).",
            )(decorated)
        decorated = click.option(
            "--config", "config_path", type=click.Path(path_type=str), help="Path to config file."
        )(decorated)
        return decorated  # type: ignore[no-any-return]

    if func is not None:
        return decorator(func)
    return decorator


def handle_cli_errors(func: F) -> F:
    """Convert project exceptions into Click-friendly errors."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ConfigurationError as exc:
            raise click.ClickException(f"Configuration error: {exc}") from exc
        except SqliteAuditError as exc:
            raise click.ClickException(str(exc)) from exc
        except click.ClickException:
            raise
        except Exception as exc:  # pragma: no cover
            raise click.ClickException(f"Unexpected error: {exc}") from exc

    return wrapper  # type: ignore[return-value]
