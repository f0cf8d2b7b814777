"""Rebuild the logical schema of every shard from SQLite catalog metadata."""

from __future__ import annotations

from types import MappingProxyType

from sqlite_audit.shared.database import Shard, ShardSession, quote_identifier
from sqlite_audit.shared.exceptions import QueryError, SchemaDiscoveryError
from sqlite_audit.shared.logging import Logger, quiet_logger

from .models import (
    ColumnInfo,
    DiscoveredSchema,
    ForeignKeyConstraint,
    ForeignKeyRelationship,
    IndexInfo,
    ShardInfo,
    TableInfo,
    TriggerInfo,
)

# Parent key used when a foreign key names neither columns nor a declared primary key.
IMPLICIT_PARENT_KEY = "rowid"


def discover_schema(session: ShardSession, *, logger: Logger | None = None) -> DiscoveredSchema:
    """Walk each shard's catalog, in shard order, into one immutable snapshot.

    Any catalog read failure aborts the whole discovery with a
    :class:`SchemaDiscoveryError` naming the shard and its file.
    """

    logger = logger or session.logger
    shards: dict[str, ShardInfo] = {}
    relationships: list[ForeignKeyRelationship] = []
    all_triggers: list[TriggerInfo] = []

    for shard in session.shards():
        try:
            shard_info, shard_relationships = _discover_shard(shard)
        except QueryError as exc:
            raise SchemaDiscoveryError(shard.shard_id, str(shard.path), str(exc)) from exc
        shards[shard.shard_id] = shard_info
        relationships.extend(shard_relationships)
        all_triggers.extend(shard_info.triggers)
        logger.debug(
            f"{shard.shard_id}: discovered {len(shard_info.tables)} tables, "
            f"{len(shard_relationships)} foreign keys, {len(shard_info.triggers)} triggers"
        )

    return DiscoveredSchema(
        shards=MappingProxyType(shards),
        relationships=tuple(relationships),
        all_triggers=tuple(all_triggers),
    )


def list_tables(shard: Shard) -> list[str]:
    """Base tables in catalog order, excluding SQLite's internal tables."""
    result = shard.fetch_all(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND substr(name, 1, 7) != 'sqlite_' ORDER BY rowid"
    )
    return [row["name"] for row in result.rows]


def read_columns(shard: Shard, table: str) -> tuple[tuple[ColumnInfo, ...], tuple[str, ...]]:
    """Return columns in declaration order and the primary-key columns in key order."""
    rows = shard.fetch_all(f"PRAGMA table_info({quote_identifier(table)})").rows
    columns = tuple(
        ColumnInfo(name=row["name"], type=row["type"] or "", nullable=not row["notnull"])
        for row in rows
    )
    key_rows = sorted((row for row in rows if row["pk"]), key=lambda row: row["pk"])
    return columns, tuple(row["name"] for row in key_rows)


def _discover_shard(shard: Shard) -> tuple[ShardInfo, list[ForeignKeyRelationship]]:
    tables: dict[str, TableInfo] = {}
    relationships: list[ForeignKeyRelationship] = []

    for table in list_tables(shard):
        columns, primary_key = read_columns(shard, table)
        known = {column.name for column in columns}
        foreign_keys = _read_foreign_keys(shard, table)
        indexes = _read_indexes(shard, table, known)
        unique_constraints = tuple(
            index.columns for index in indexes if index.unique and index.columns
        )
        tables[table] = TableInfo(
            columns=columns,
            primary_key=primary_key,
            unique_constraints=unique_constraints,
            foreign_keys=foreign_keys,
            indexes=indexes,
        )
        relationships.extend(
            ForeignKeyRelationship(
                shard=shard.shard_id,
                from_table=table,
                from_columns=fk.constrained_columns,
                to_table=fk.referred_table,
                to_columns=fk.referred_columns,
            )
            for fk in foreign_keys
        )

    triggers = tuple(
        TriggerInfo(name=row["name"], table=row["tbl_name"], sql=row["sql"] or "", shard=shard.shard_id)
        for row in shard.fetch_all(
            "SELECT name, tbl_name, sql FROM sqlite_master WHERE type = 'trigger' ORDER BY rowid"
        ).rows
    )
    return ShardInfo(tables=MappingProxyType(tables), triggers=triggers), relationships


def _read_foreign_keys(shard: Shard, table: str) -> tuple[ForeignKeyConstraint, ...]:
    # One constraint per (from, to) column pair; composite keys are flattened.
    rows = shard.fetch_all(f"PRAGMA foreign_key_list({quote_identifier(table)})").rows
    parent_keys: dict[str, tuple[str, ...]] = {}
    constraints: list[ForeignKeyConstraint] = []
    for row in rows:
        parent = row["table"]
        referred = row["to"]
        if referred is None:
            referred = _implicit_parent_column(shard, parent, row["seq"], parent_keys)
        constraints.append(
            ForeignKeyConstraint(
                constrained_columns=(row["from"],),
                referred_table=parent,
                referred_columns=(referred,),
            )
        )
    return tuple(constraints)


def _implicit_parent_column(
    shard: Shard, parent: str, seq: int, cache: dict[str, tuple[str, ...]]
) -> str:
    """``REFERENCES parent`` without columns targets the parent's primary key."""
    if parent not in cache:
        _, primary_key = read_columns(shard, parent)
        cache[parent] = primary_key
    primary_key = cache[parent]
    if seq < len(primary_key):
        return primary_key[seq]
    return IMPLICIT_PARENT_KEY


def _read_indexes(shard: Shard, table: str, known_columns: set[str]) -> tuple[IndexInfo, ...]:
    indexes: list[IndexInfo] = []
    for index_row in shard.fetch_all(f"PRAGMA index_list({quote_identifier(table)})").rows:
        name = index_row["name"]
        info_rows = shard.fetch_all(f"PRAGMA index_info({quote_identifier(name)})").rows
        # Expression and rowid entries have no column name.
        columns = tuple(
            row["name"]
            for row in sorted(info_rows, key=lambda row: row["seqno"])
            if row["name"] is not None and row["name"] in known_columns
        )
        indexes.append(
            IndexInfo(
                name=name,
                columns=columns,
                unique=bool(index_row["unique"]),
                origin=index_row["origin"],
            )
        )
    return tuple(indexes)
