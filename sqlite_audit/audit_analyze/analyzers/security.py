"""Sensitive-data scan driven by column names and one sampled value per column."""

from __future__ import annotations

from enum import Enum

from sqlite_audit.audit_schema.models import DiscoveredSchema
from sqlite_audit.shared.database import Shard, ShardSession, quote_identifier
from sqlite_audit.shared.exceptions import QueryError
from sqlite_audit.shared.logging import Logger, quiet_logger
from sqlite_audit.shared.values import SqlValue

from .. import vocabulary
from ..types import AnalysisContext

# Password samples shorter than this, with no whitespace or symbols, look unhashed.
WEAK_PASSWORD_MAX_LENGTH = 20
SAMPLE_PREVIEW_LENGTH = 10


class SensitiveCategory(Enum):
    PASSWORD = "password"
    EMAIL = "email"
    SSN = "ssn"
    CREDIT_CARD = "credit_card"


class PasswordShape(Enum):
    SHA256 = "sha256"
    WEAK = "weak"
    UNKNOWN = "unknown"


def analyze(context: AnalysisContext) -> tuple[str, ...]:
    return check_security(context.session, context.schema, logger=context.logger)


def check_security(
    session: ShardSession,
    schema: DiscoveredSchema,
    *,
    logger: Logger | None = None,
) -> tuple[str, ...]:
    logger = logger or quiet_logger()
    findings: list[str] = []
    for shard_id, shard_info in schema.shards.items():
        shard = session.get(shard_id)
        if shard is None:
            logger.warning(f"No open connection for {shard_id}; skipping security scan.")
            continue
        for table_name, table in shard_info.tables.items():
            for column in table.columns:
                if not vocabulary.is_text_type(column.type):
                    continue
                category = categorize_column(column.name)
                if category is None:
                    continue
                try:
                    sample = sample_value(shard, table_name, column.name)
                except QueryError as exc:
                    findings.append(
                        f"[{shard_id}] Table '{table_name}', Column '{column.name}': "
                        f"Error sampling values: {exc}"
                    )
                    continue
                finding = evaluate_sample(category, sample)
                if finding is not None:
                    findings.append(f"[{shard_id}] Table '{table_name}', Column '{column.name}': {finding}")
    return tuple(findings)


def categorize_column(column_name: str) -> SensitiveCategory | None:
    """First matching name rule wins, in password, email, SSN, card order."""
    lowered = column_name.lower()
    rules = (
        (vocabulary.PASSWORD_NAME_MARKERS, SensitiveCategory.PASSWORD),
        (vocabulary.EMAIL_PII_NAME_MARKERS, SensitiveCategory.EMAIL),
        (vocabulary.SSN_NAME_MARKERS, SensitiveCategory.SSN),
        (vocabulary.CARD_NAME_MARKERS, SensitiveCategory.CREDIT_CARD),
    )
    for markers, category in rules:
        if any(marker in lowered for marker in markers):
            return category
    return None


def sample_value(shard: Shard, table_name: str, column_name: str) -> str | None:
    column = quote_identifier(column_name)
    raw = shard.fetch_value(
        f"SELECT {column} FROM {quote_identifier(table_name)} WHERE {column} IS NOT NULL LIMIT 1"
    )
    value = SqlValue.from_sqlite(raw)
    return None if value.is_null else value.display()


def classify_password(sample: str) -> PasswordShape:
    if vocabulary.SHA256_HEX_PATTERN.fullmatch(sample):
        return PasswordShape.SHA256
    if (
        len(sample) < WEAK_PASSWORD_MAX_LENGTH
        and " " not in sample
        and not vocabulary.NON_WORD_PATTERN.search(sample)
    ):
        return PasswordShape.WEAK
    return PasswordShape.UNKNOWN


def evaluate_sample(category: SensitiveCategory, sample: str | None) -> str | None:
    """Return the finding text for a sampled value, or None when nothing matched."""

    if category is SensitiveCategory.PASSWORD:
        if sample is None:
            return "Potential password field, but no data to analyze."
        preview = sample[:SAMPLE_PREVIEW_LENGTH]
        shape = classify_password(sample)
        if shape is PasswordShape.SHA256:
            return "Appears to be SHA256 hashed (Good practice)."
        if shape is PasswordShape.WEAK:
            return (
                "Might contain plaintext or weakly hashed passwords "
                f"(CRITICAL: Investigate immediately!). Sample: '{preview}...'"
            )
        return f"Password field has an unknown format. (WARNING: Verify hashing method). Sample: '{preview}...'"

    if sample is None:
        return None
    if category is SensitiveCategory.EMAIL:
        if vocabulary.EMAIL_PATTERN.fullmatch(sample):
            return "Contains email addresses (Sensitive PII)."
        return None
    if category is SensitiveCategory.SSN:
        if vocabulary.SSN_PATTERN.fullmatch(sample):
            return "Contains Social Security Numbers (Highly Sensitive PII)."
        return None
    cleaned = sample.replace(" ", "").replace("-", "")
    if vocabulary.CREDIT_CARD_PATTERN.fullmatch(cleaned):
        return "Contains Credit Card Numbers (PCI Sensitive Data). (CRITICAL: Should be encrypted/tokenized)."
    return None
