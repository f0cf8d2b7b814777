"""Every substring the heuristics match on, in one place.

The analyzers never compare plan, trigger, or type text inline; they call the predicates
below so the matched vocabulary can be audited and tested on its own.
"""

from __future__ import annotations

import re

# Query plans. SQLite before 3.36 printed "SCAN TABLE t"; newer releases print "SCAN t" in the
# detail column, which shows up as "detail: SCAN t" in the flattened plan text.
FULL_SCAN_MARKERS: tuple[str, ...] = ("SCAN TABLE", "DETAIL: SCAN ")
INDEX_USAGE_MARKERS: tuple[str, ...] = (
    "USING INDEX",
    "USING COVERING INDEX",
    "USING INTEGER PRIMARY KEY",
    "USING PRIMARY KEY",
)

# Triggers.
AFTER_INSERT_MARKER = "AFTER INSERT"

# Declared column types (matched against the upper-cased declaration).
TEXT_TYPE_MARKERS: tuple[str, ...] = ("TEXT", "CHAR", "CLOB")
INTEGER_TYPE_MARKERS: tuple[str, ...] = ("INT",)
DECIMAL_TYPE_MARKERS: tuple[str, ...] = ("REAL", "DECIMAL", "NUMERIC", "FLOA", "DOUB")
DATETIME_TYPE_MARKERS: tuple[str, ...] = ("DATE", "TIME")

# Column names (matched against the upper-cased name).
ID_NAME_MARKER = "ID"
DATE_NAME_MARKERS: tuple[str, ...] = ("DATE",)
LOOKUP_NAME_MARKERS: tuple[str, ...] = ("NAME", "EMAIL", "USERNAME")
EMAIL_NAME_MARKER = "EMAIL"
PERSON_NAME_MARKER = "NAME"

# Security scanner name rules (matched against the lower-cased name), in priority order.
PASSWORD_NAME_MARKERS: tuple[str, ...] = ("password",)
EMAIL_PII_NAME_MARKERS: tuple[str, ...] = ("email",)
SSN_NAME_MARKERS: tuple[str, ...] = ("ssn", "social_security")
CARD_NAME_MARKERS: tuple[str, ...] = ("credit_card", "card_number", "cc_num")

# Audit tables picked up for the trigger benchmark's row-count enrichment.
AUDIT_TABLE_MARKER = "audit"

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
SSN_PATTERN = re.compile(r"^\d{3}-\d{2}-\d{4}$")
CREDIT_CARD_PATTERN = re.compile(
    r"^(?:4[0-9]{12}(?:[0-9]{3})?"
    r"|5[1-5][0-9]{14}"
    r"|6(?:011|5[0-9]{2})[0-9]{12}"
    r"|3[47][0-9]{13}"
    r"|(?:2131|1800|35\d{3})\d{11})$"
)
SHA256_HEX_PATTERN = re.compile(r"^[0-9a-fA-F]{64}$")
NON_WORD_PATTERN = re.compile(r"\W")


def _contains_any(text: str, markers: tuple[str, ...]) -> bool:
    return any(marker in text for marker in markers)


def has_full_scan(plan_text: str) -> bool:
    return _contains_any(plan_text.upper(), FULL_SCAN_MARKERS)


def uses_index(plan_text: str) -> bool:
    return _contains_any(plan_text.upper(), INDEX_USAGE_MARKERS)


def is_optimized(plan_text: str) -> bool:
    """A plan is optimized unless it scans a table without touching any index."""
    return not has_full_scan(plan_text) or uses_index(plan_text)


def is_after_insert_trigger(trigger_sql: str) -> bool:
    return AFTER_INSERT_MARKER in trigger_sql.upper()


def is_text_type(declared_type: str) -> bool:
    return _contains_any(declared_type.upper(), TEXT_TYPE_MARKERS)


def is_integer_type(declared_type: str) -> bool:
    return _contains_any(declared_type.upper(), INTEGER_TYPE_MARKERS)


def is_decimal_type(declared_type: str) -> bool:
    return _contains_any(declared_type.upper(), DECIMAL_TYPE_MARKERS)


def is_numeric_type(declared_type: str) -> bool:
    return is_integer_type(declared_type) or is_decimal_type(declared_type)


def is_datetime_type(declared_type: str) -> bool:
    return _contains_any(declared_type.upper(), DATETIME_TYPE_MARKERS)


def looks_like_id(column_name: str) -> bool:
    return ID_NAME_MARKER in column_name.upper()


def looks_like_date(column_name: str, declared_type: str) -> bool:
    return is_datetime_type(declared_type) or _contains_any(column_name.upper(), DATE_NAME_MARKERS)


def looks_like_lookup_text(column_name: str) -> bool:
    return _contains_any(column_name.upper(), LOOKUP_NAME_MARKERS)


def looks_like_email(column_name: str) -> bool:
    return EMAIL_NAME_MARKER in column_name.upper()


def looks_like_name(column_name: str) -> bool:
    return PERSON_NAME_MARKER in column_name.upper()


def looks_like_audit_table(table_name: str) -> bool:
    return AUDIT_TABLE_MARKER in table_name.lower()
