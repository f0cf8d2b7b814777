"""Project-wide custom exceptions."""

from __future__ import annotations


class SqliteAuditError(Exception):
    """Base exception for the sqlite-audit suite."""


class ConfigurationError(SqliteAuditError):
    """Raised when configuration loading or validation fails."""


class DatabaseError(SqliteAuditError):
    """Raised for database-related issues."""


class ConnectionFailedError(DatabaseError):
    """Raised when a shard database file cannot be opened."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Database connection failed: could not open database at {path}: {reason}")
        self.path = path
        self.reason = reason


class SchemaDiscoveryError(DatabaseError):
    """Raised when catalog metadata for a shard cannot be read."""

    def __init__(self, shard: str, path: str, reason: str) -> None:
        super().__init__(f"Schema discovery failed for {shard} ({path}): {reason}")
        self.shard = shard
        self.path = path
        self.reason = reason


class UnknownShardError(DatabaseError):
    """Raised when a shard id does not belong to the current session."""


class QueryError(DatabaseError):
    """Raised when query execution fails."""


class QueryTimeoutError(QueryError):
    """Raised when a statement runs past the configured timeout."""
