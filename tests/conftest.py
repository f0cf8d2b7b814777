"""Shared pytest fixtures for the sqlite-audit suite.

Every test builds its shard files from SQL scripts under ``tmp_path`` so schemas and
seed rows are visible right next to the assertions that depend on them.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from sqlite_audit.audit_schema.discovery import discover_schema
from sqlite_audit.audit_schema.models import DiscoveredSchema
from sqlite_audit.shared import paths
from sqlite_audit.shared.config import ENV_OVERRIDE_SPEC, default_config
from sqlite_audit.shared.database import ShardSession, open_shards

USERS_SCRIPT = """
CREATE TABLE users (id INTEGER PRIMARY KEY, email TEXT, password TEXT);
INSERT INTO users (email, password) VALUES ('alice@example.com', 'hunter2');
"""

SHOP_SCRIPT = """
CREATE TABLE customers (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT UNIQUE
);
CREATE TABLE orders (
    id INTEGER PRIMARY KEY,
    customer_id INTEGER REFERENCES customers(id),
    total REAL,
    created_at DATETIME
);
INSERT INTO customers (id, name, email) VALUES (1, 'Ada', 'ada@example.com');
INSERT INTO customers (id, name, email) VALUES (2, 'Grace', 'grace@example.com');
INSERT INTO orders (id, customer_id, total, created_at) VALUES (10, 1, 25.5, '2025-01-02');
INSERT INTO orders (id, customer_id, total, created_at) VALUES (11, 2, 310.0, '2025-01-03');
"""

DbFactory = Callable[[str, str], Path]


@pytest.fixture()
def make_db(tmp_path: Path) -> DbFactory:
    """Return a factory writing ``script`` into ``tmp_path / name`` and returning the path."""

    def _factory(name: str, script: str) -> Path:
        path = tmp_path / name
        connection = sqlite3.connect(path)
        try:
            connection.executescript(script)
            connection.commit()
        finally:
            connection.close()
        return path

    return _factory


@pytest.fixture()
def users_db(make_db: DbFactory) -> Path:
    return make_db("users.db", USERS_SCRIPT)


@pytest.fixture()
def shop_db(make_db: DbFactory) -> Path:
    return make_db("shop.db", SHOP_SCRIPT)


@pytest.fixture()
def open_session() -> Iterator[Callable[..., ShardSession]]:
    """Open sessions that are closed automatically at teardown."""

    sessions: list[ShardSession] = []

    def _open(*paths: Path, read_only: bool = False, timeout_seconds: float = 5.0) -> ShardSession:
        session = open_shards(list(paths), read_only=read_only, timeout_seconds=timeout_seconds)
        sessions.append(session)
        return session

    yield _open
    for session in sessions:
        session.close()


@pytest.fixture()
def discovered(open_session) -> Callable[..., tuple[ShardSession, DiscoveredSchema]]:
    """Open the given shard files and return the session with its schema snapshot."""

    def _discover(*paths: Path, read_only: bool = False) -> tuple[ShardSession, DiscoveredSchema]:
        session = open_session(*paths, read_only=read_only)
        return session, discover_schema(session)

    return _discover


@pytest.fixture()
def analysis_settings():
    return default_config().analysis


def count_rows(path: Path, table: str) -> int:
    connection = sqlite3.connect(path)
    try:
        return connection.execute(f'SELECT COUNT(*) FROM "{table}"').fetchone()[0]
    finally:
        connection.close()


@pytest.fixture()
def row_counter() -> Callable[[Path, str], int]:
    return count_rows


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point config discovery at an empty directory and drop any ambient overrides."""

    config_dir = tmp_path / "config"
    monkeypatch.setenv(paths.CONFIG_DIR_ENV, str(config_dir))
    monkeypatch.delenv(paths.CONFIG_FILE_ENV, raising=False)
    for env_key, _ in ENV_OVERRIDE_SPEC.values():
        monkeypatch.delenv(env_key, raising=False)
    return config_dir
