"""Missing and redundant index detection with ready-to-run DDL."""

from __future__ import annotations

from enum import Enum

from sqlite_audit.audit_schema.models import ColumnInfo, DiscoveredSchema, TableInfo
from sqlite_audit.shared.database import quote_identifier

from .. import vocabulary
from ..types import AnalysisContext, IndexAdvice


class ColumnHint(Enum):
    ID = "id"
    DATE = "date"
    LOOKUP_TEXT = "text"


# Column heuristics run as separate passes in this order.
_HINT_ORDER: tuple[ColumnHint, ...] = (ColumnHint.ID, ColumnHint.DATE, ColumnHint.LOOKUP_TEXT)


class _AdviceCollector:
    """Keeps issues and suggestions aligned and drops repeated issue text."""

    def __init__(self) -> None:
        self.issues: list[str] = []
        self.suggestions: list[str] = []

    def add(self, issue: str, suggestion: str) -> None:
        if issue in self.issues:
            return
        self.issues.append(issue)
        self.suggestions.append(suggestion)

    def freeze(self) -> IndexAdvice:
        return IndexAdvice(issues=tuple(self.issues), suggestions=tuple(self.suggestions))


def analyze(context: AnalysisContext) -> IndexAdvice:
    advice = check_indexes(context.schema)
    context.logger.debug(f"Index advice produced {len(advice.issues)} issue(s).")
    return advice


def check_indexes(schema: DiscoveredSchema) -> IndexAdvice:
    """Evaluate every table of every shard. Pure function of the snapshot."""

    collector = _AdviceCollector()
    for shard_id, shard_info in schema.shards.items():
        for table_name, table in shard_info.tables.items():
            _check_foreign_keys(collector, shard_id, table_name, table)
            hints = _classify_unindexed_columns(table)
            for hint in _HINT_ORDER:
                for column in table.columns:
                    if hints.get(column.name) is hint:
                        _add_column_advice(collector, shard_id, table_name, column, hint)
            _check_redundant(collector, shard_id, table_name, table)
    return collector.freeze()


def classify_column(column: ColumnInfo) -> ColumnHint | None:
    """First matching heuristic wins: ID-like, then date/time, then lookup text."""
    if vocabulary.looks_like_id(column.name):
        return ColumnHint.ID
    if vocabulary.looks_like_date(column.name, column.type):
        return ColumnHint.DATE
    if vocabulary.looks_like_lookup_text(column.name):
        return ColumnHint.LOOKUP_TEXT
    return None


def _classify_unindexed_columns(table: TableInfo) -> dict[str, ColumnHint]:
    hints: dict[str, ColumnHint] = {}
    for column in table.columns:
        if table.is_indexed(column.name) or column.name in table.primary_key:
            continue
        hint = classify_column(column)
        if hint is not None:
            hints[column.name] = hint
    return hints


def _create_index_sql(shard_id: str, table_name: str, columns: tuple[str, ...], suffix: str) -> str:
    index_name = quote_identifier(f"idx_{table_name}_{'_'.join(columns)}_{suffix}")
    column_list = ", ".join(quote_identifier(column) for column in columns)
    return f"CREATE INDEX {index_name} ON {quote_identifier(table_name)}({column_list}); -- In {shard_id}"


def _check_foreign_keys(
    collector: _AdviceCollector, shard_id: str, table_name: str, table: TableInfo
) -> None:
    for fk in table.foreign_keys:
        if table.has_covering_index(fk.constrained_columns):
            continue
        columns = ", ".join(fk.constrained_columns)
        collector.add(
            f"[{shard_id}] Missing index on foreign key column(s) {columns} in table '{table_name}'.",
            _create_index_sql(shard_id, table_name, fk.constrained_columns, "fk"),
        )


def _add_column_advice(
    collector: _AdviceCollector,
    shard_id: str,
    table_name: str,
    column: ColumnInfo,
    hint: ColumnHint,
) -> None:
    if hint is ColumnHint.ID:
        issue = f"[{shard_id}] Missing index on potential ID column '{column.name}' in table '{table_name}'."
    elif hint is ColumnHint.DATE:
        issue = (
            f"[{shard_id}] Missing index on date/time column '{column.name}' in table "
            f"'{table_name}' (often used for filtering/sorting)."
        )
    else:
        issue = (
            f"[{shard_id}] Missing index on text column '{column.name}' in table "
            f"'{table_name}' (often used for filtering/joining)."
        )
    collector.add(issue, _create_index_sql(shard_id, table_name, (column.name,), hint.value))


def _check_redundant(
    collector: _AdviceCollector, shard_id: str, table_name: str, table: TableInfo
) -> None:
    for narrow in table.indexes:
        # Dropping a unique index loses its constraint; constraint-backed ones cannot be dropped.
        if not narrow.columns or narrow.unique:
            continue
        for wide in table.indexes:
            if narrow is wide or not set(narrow.columns) < set(wide.columns):
                continue
            collector.add(
                f"[{shard_id}] Potentially redundant index '{narrow.name}' on columns "
                f"{', '.join(narrow.columns)} in table '{table_name}'. "
                f"It's covered by '{wide.name}' on {', '.join(wide.columns)}.",
                f"DROP INDEX {quote_identifier(narrow.name)}; -- In {shard_id}",
            )
