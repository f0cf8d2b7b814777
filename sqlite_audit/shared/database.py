"""Shard connection management and statement helpers."""

from __future__ import annotations

import sqlite3
import time
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .exceptions import ConnectionFailedError, QueryError, QueryTimeoutError, UnknownShardError
from .logging import Logger, quiet_logger
from .paths import resolve_database_paths
from .values import cursor_columns

DEFAULT_TIMEOUT_SECONDS = 5.0
# Virtual machine instructions between deadline checks.
PROGRESS_INTERVAL = 1000


def shard_id_for(index: int) -> str:
    return f"shard_{index + 1}"


def quote_identifier(name: str) -> str:
    """Quote a table/column/index name for direct interpolation into SQL."""
    return '"' + name.replace('"', '""') + '"'


@dataclass(frozen=True, slots=True)
class FetchResult:
    columns: list[str]
    rows: list[sqlite3.Row]


@dataclass(slots=True)
class Shard:
    """One opened database file. The connection is owned exclusively by this shard."""

    shard_id: str
    path: Path
    connection: sqlite3.Connection
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    read_only: bool = False

    def fetch_all(self, sql: str, params: Sequence[Any] | Mapping[str, Any] = ()) -> FetchResult:
        """Run a statement under the shard's timeout and return every row."""
        with statement_timeout(self.connection, self.timeout_seconds):
            try:
                cursor = self.connection.execute(sql, params)
                rows = cursor.fetchall()
            except sqlite3.Error as exc:
                raise QueryError(str(exc)) from exc
        return FetchResult(columns=cursor_columns(cursor), rows=rows)

    def fetch_many(self, sql: str, size: int) -> tuple[FetchResult, bool]:
        """Return at most ``size`` rows plus a flag telling whether more were available."""
        with statement_timeout(self.connection, self.timeout_seconds):
            try:
                cursor = self.connection.execute(sql)
                rows = cursor.fetchmany(size + 1)
            except sqlite3.Error as exc:
                raise QueryError(str(exc)) from exc
        truncated = len(rows) > size
        return FetchResult(columns=cursor_columns(cursor), rows=rows[:size]), truncated

    def fetch_value(self, sql: str, params: Sequence[Any] | Mapping[str, Any] = ()) -> Any:
        """Return the first column of the first row, or None when there are no rows."""
        result = self.fetch_all(sql, params)
        if not result.rows:
            return None
        return result.rows[0][0]

    def execute(self, sql: str, params: Sequence[Any] | Mapping[str, Any] = ()) -> None:
        with statement_timeout(self.connection, self.timeout_seconds):
            try:
                self.connection.execute(sql, params)
            except sqlite3.Error as exc:
                raise QueryError(str(exc)) from exc

    def table_exists(self, table: str) -> bool:
        """Check the live catalog (not a schema snapshot) for a base table."""
        found = self.fetch_value(
            "SELECT EXISTS(SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?)",
            (table,),
        )
        return bool(found)

    def close(self) -> None:
        self.connection.close()


class ShardSession:
    """All shard connections for one analysis run, keyed by shard id in input order."""

    def __init__(self, shards: Sequence[Shard], *, logger: Logger | None = None) -> None:
        self._shards: dict[str, Shard] = {shard.shard_id: shard for shard in shards}
        self.logger = logger or quiet_logger()

    @property
    def shard_ids(self) -> list[str]:
        return list(self._shards)

    def shards(self) -> list[Shard]:
        return list(self._shards.values())

    def get(self, shard_id: str) -> Shard | None:
        return self._shards.get(shard_id)

    def shard(self, shard_id: str) -> Shard:
        try:
            return self._shards[shard_id]
        except KeyError as exc:
            available = ", ".join(self._shards) or "none"
            raise UnknownShardError(
                f"Shard '{shard_id}' not found. Available shards: {available}."
            ) from exc

    def close(self) -> None:
        for shard in self._shards.values():
            shard.close()
        self._shards.clear()

    def __enter__(self) -> ShardSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._shards)


def open_shards(
    raw_paths: Sequence[str | Path],
    *,
    read_only: bool = False,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    logger: Logger | None = None,
) -> ShardSession:
    """Open one connection per path; any failure closes what was opened and raises."""
    logger = logger or quiet_logger()
    opened: list[Shard] = []
    try:
        for index, path in enumerate(resolve_database_paths(raw_paths)):
            shard_id = shard_id_for(index)
            connection = _open_connection(path, read_only=read_only, timeout_seconds=timeout_seconds)
            opened.append(
                Shard(
                    shard_id=shard_id,
                    path=path,
                    connection=connection,
                    timeout_seconds=timeout_seconds,
                    read_only=read_only,
                )
            )
            logger.debug(f"Connected to SQLite database: {path} as {shard_id}")
    except ConnectionFailedError:
        for shard in opened:
            shard.close()
        raise
    return ShardSession(opened, logger=logger)


def _open_connection(path: Path, *, read_only: bool, timeout_seconds: float) -> sqlite3.Connection:
    if not path.is_file():
        raise ConnectionFailedError(str(path), "file does not exist")
    try:
        if read_only:
            # as_uri percent-encodes "#", "?" and "%" so they stay part of the file name.
            uri = f"{path.resolve().as_uri()}?mode=ro"
            connection = sqlite3.connect(uri, uri=True, timeout=timeout_seconds, isolation_level=None)
        else:
            connection = sqlite3.connect(path, timeout=timeout_seconds, isolation_level=None)
    except sqlite3.Error as exc:
        raise ConnectionFailedError(str(path), str(exc)) from exc

    try:
        connection.row_factory = sqlite3.Row
        # Touches the file header, so corrupt or locked files fail here rather than mid-run.
        connection.execute("PRAGMA schema_version").fetchone()
        connection.execute("PRAGMA foreign_keys = ON")
    except sqlite3.Error as exc:
        connection.close()
        raise ConnectionFailedError(str(path), str(exc)) from exc
    return connection


@contextmanager
def statement_timeout(connection: sqlite3.Connection, seconds: float) -> Iterator[None]:
    """Abort statements on ``connection`` that run past ``seconds``."""
    deadline = time.monotonic() + seconds
    expired = False

    def _check_deadline() -> int:
        nonlocal expired
        if time.monotonic() > deadline:
            expired = True
            return 1
        return 0

    connection.set_progress_handler(_check_deadline, PROGRESS_INTERVAL)
    try:
        yield
    except QueryError as exc:
        if expired:
            raise QueryTimeoutError(f"Query exceeded {seconds:g}s timeout") from exc
        raise
    finally:
        connection.set_progress_handler(None, PROGRESS_INTERVAL)


@contextmanager
def foreign_keys_suspended(shard: Shard) -> Iterator[None]:
    """Turn foreign-key enforcement off for the block and back on afterwards, always.

    SQLite ignores this pragma inside an open transaction, so enter this before
    :func:`transaction`, never inside it.
    """
    shard.execute("PRAGMA foreign_keys = OFF")
    try:
        yield
    finally:
        shard.execute("PRAGMA foreign_keys = ON")


@contextmanager
def transaction(shard: Shard) -> Iterator[None]:
    """All-or-nothing block: COMMIT on success, ROLLBACK on any exception."""
    shard.execute("BEGIN")
    try:
        yield
        shard.execute("COMMIT")
    except BaseException:
        # RAISE(ROLLBACK) inside a trigger has already ended the transaction.
        if shard.connection.in_transaction:
            shard.connection.rollback()
        raise


def foreign_keys_enabled(shard: Shard) -> bool:
    return bool(shard.fetch_value("PRAGMA foreign_keys"))
