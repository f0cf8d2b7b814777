"""Data structures shared across audit-query modules."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Sequence

_SIZE_UNITS = ("KB", "MB", "GB")


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Structured result set; cells are already canonical display strings."""

    shard: str
    columns: tuple[str, ...]
    rows: Sequence[tuple[str, ...]]
    limit_value: int | None = None
    truncated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "shard": self.shard,
            "columns": list(self.columns),
            "rows": [list(row) for row in self.rows],
            "truncated": self.truncated,
        }


@dataclass(frozen=True, slots=True)
class DatabaseStats:
    """Catalog counts and on-disk size for one shard."""

    shard: str
    path: str
    table_count: int
    index_count: int
    trigger_count: int
    view_count: int
    page_count: int
    page_size: int

    @property
    def database_size(self) -> int:
        return self.page_count * self.page_size

    @property
    def formatted_size(self) -> str:
        """Size in KB, MB or GB with one decimal."""
        size = self.database_size / 1024
        for unit in _SIZE_UNITS[:-1]:
            if size < 1024:
                return f"{size:.1f} {unit}"
            size /= 1024
        return f"{size:.1f} {_SIZE_UNITS[-1]}"

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["database_size"] = self.database_size
        payload["formatted_size"] = self.formatted_size
        return payload
