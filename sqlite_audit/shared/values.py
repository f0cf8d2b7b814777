"""Discriminated representation of SQLite cell values and their display form."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from enum import Enum
from typing import Sequence


class ValueKind(Enum):
    NULL = "null"
    INTEGER = "integer"
    REAL = "real"
    TEXT = "text"
    BLOB = "blob"


@dataclass(frozen=True, slots=True)
class SqlValue:
    """One SQLite storage-class value.

    Driver values are classified once, in :meth:`from_sqlite`; everything downstream works
    with the ``kind`` tag and calls :meth:`display` for the canonical string form.
    """

    kind: ValueKind
    integer: int | None = None
    real: float | None = None
    text: str | None = None
    blob: bytes | None = None

    @classmethod
    def null(cls) -> SqlValue:
        return cls(ValueKind.NULL)

    @classmethod
    def from_sqlite(cls, raw: object) -> SqlValue:
        """Classify a value as returned by the ``sqlite3`` driver."""
        if raw is None:
            return cls(ValueKind.NULL)
        # bool is an int subclass; sqlite3 never returns it, but adapters might.
        if isinstance(raw, bool):
            return cls(ValueKind.INTEGER, integer=int(raw))
        if isinstance(raw, int):
            return cls(ValueKind.INTEGER, integer=raw)
        if isinstance(raw, float):
            return cls(ValueKind.REAL, real=raw)
        if isinstance(raw, str):
            return cls(ValueKind.TEXT, text=raw)
        if isinstance(raw, (bytes, bytearray, memoryview)):
            return cls(ValueKind.BLOB, blob=bytes(raw))
        raise TypeError(f"Unsupported SQLite value of type {type(raw).__name__}")

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    def display(self) -> str:
        """Canonical display string used in every report line."""
        if self.kind is ValueKind.NULL:
            return "NULL"
        if self.kind is ValueKind.INTEGER:
            return str(self.integer)
        if self.kind is ValueKind.REAL:
            return str(self.real)
        if self.kind is ValueKind.TEXT:
            return self.text or ""
        return f"<BLOB {len(self.blob or b'')} bytes>"


def row_values(row: sqlite3.Row | Sequence[object]) -> list[SqlValue]:
    return [SqlValue.from_sqlite(raw) for raw in row]


def format_row(columns: Sequence[str], row: sqlite3.Row | Sequence[object]) -> str:
    """Render a row as ``col: value, col: value``."""
    return ", ".join(
        f"{name}: {value.display()}" for name, value in zip(columns, row_values(row))
    )


def cursor_columns(cursor: sqlite3.Cursor) -> list[str]:
    return [col[0] for col in cursor.description or ()]
