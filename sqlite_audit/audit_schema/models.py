"""Schema snapshot records produced by discovery."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class ColumnInfo:
    name: str
    type: str
    nullable: bool


@dataclass(frozen=True, slots=True)
class ForeignKeyConstraint:
    """Table-local view of a foreign key."""

    constrained_columns: tuple[str, ...]
    referred_table: str
    referred_columns: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ForeignKeyRelationship:
    """Schema-wide, shard-tagged view of a foreign key."""

    shard: str
    from_table: str
    from_columns: tuple[str, ...]
    to_table: str
    to_columns: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class IndexInfo:
    """``origin`` is SQLite's: "c" for CREATE INDEX, "u" for UNIQUE, "pk" for PRIMARY KEY."""

    name: str
    columns: tuple[str, ...]
    unique: bool
    origin: str = "c"


@dataclass(frozen=True, slots=True)
class TriggerInfo:
    name: str
    table: str
    sql: str
    shard: str


@dataclass(frozen=True, slots=True)
class TableInfo:
    columns: tuple[ColumnInfo, ...] = ()
    primary_key: tuple[str, ...] = ()
    unique_constraints: tuple[tuple[str, ...], ...] = ()
    foreign_keys: tuple[ForeignKeyConstraint, ...] = ()
    indexes: tuple[IndexInfo, ...] = ()

    def column(self, name: str) -> ColumnInfo | None:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def is_indexed(self, column_name: str) -> bool:
        """True when any index on the table includes the column."""
        return any(column_name in index.columns for index in self.indexes)

    def has_covering_index(self, columns: tuple[str, ...], *, unique_only: bool = False) -> bool:
        """True when some index's column set is a superset of ``columns``."""
        wanted = set(columns)
        return any(
            wanted <= set(index.columns)
            for index in self.indexes
            if index.unique or not unique_only
        )

    @property
    def rowid_alias(self) -> str | None:
        """The INTEGER PRIMARY KEY column SQLite fills from the rowid, or None.

        Any other key (BIGINT, composite, DESC, WITHOUT ROWID) gets a "pk" index and is
        never assigned automatically.
        """
        if len(self.primary_key) != 1 or any(index.origin == "pk" for index in self.indexes):
            return None
        column = self.column(self.primary_key[0])
        if column is None or column.type.strip().upper() != "INTEGER":
            return None
        return column.name


@dataclass(frozen=True, slots=True)
class ShardInfo:
    tables: Mapping[str, TableInfo] = field(default_factory=dict)
    triggers: tuple[TriggerInfo, ...] = ()


@dataclass(frozen=True, slots=True)
class DiscoveredSchema:
    shards: Mapping[str, ShardInfo] = field(default_factory=dict)
    relationships: tuple[ForeignKeyRelationship, ...] = ()
    all_triggers: tuple[TriggerInfo, ...] = ()

    def table(self, shard: str, table: str) -> TableInfo | None:
        shard_info = self.shards.get(shard)
        if shard_info is None:
            return None
        return shard_info.tables.get(table)

    def to_dict(self) -> dict[str, Any]:
        return {
            "shards": {
                shard_id: {
                    "tables": {name: asdict(table) for name, table in shard.tables.items()},
                    "triggers": [asdict(trigger) for trigger in shard.triggers],
                }
                for shard_id, shard in self.shards.items()
            },
            "relationships": [asdict(rel) for rel in self.relationships],
            "all_triggers": [asdict(trigger) for trigger in self.all_triggers],
        }
