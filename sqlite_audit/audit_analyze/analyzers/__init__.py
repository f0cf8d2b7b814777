"""Analyzer module exports."""

from . import (
    index_advisor,
    integrity,
    query_performance,
    relationship_benchmark,
    security,
    trigger_benchmark,
)

__all__ = [
    "index_advisor",
    "integrity",
    "query_performance",
    "relationship_benchmark",
    "security",
    "trigger_benchmark",
]
