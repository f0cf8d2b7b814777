from __future__ import annotations

import io
import json

import pytest

from sqlite_audit.audit_analyze import render
from sqlite_audit.audit_analyze.types import AnalysisResults, IndexAdvice
from sqlite_audit.audit_schema.models import DiscoveredSchema
from sqlite_audit.shared.logging import quiet_logger


def _results(**overrides) -> AnalysisResults:
    values = {
        "schema": DiscoveredSchema(),
        "index_advice": IndexAdvice(issues=("[shard_1] idx issue",), suggestions=("CREATE INDEX x;",)),
        "security_findings": ("[shard_1] Table 'users', Column 'email': flagged",),
        "analyses_run": ("index-advice", "security", "data-integrity"),
    }
    values.update(overrides)
    return AnalysisResults(**values)


def test_text_report_has_one_section_per_analysis() -> None:
    buffer = io.StringIO()

    render.render_results(_results(), output_format="text", logger=quiet_logger(), stream=buffer)

    output = buffer.getvalue()
    assert output.startswith(render.REPORT_TITLE)
    assert "Index Advice" in output
    assert "Security Scan" in output
    assert "Data Integrity" in output
    assert "Query Performance" not in output
    assert "• [shard_1] idx issue" in output
    assert "  (none)" in output


def test_bracketed_shard_labels_are_not_treated_as_markup() -> None:
    buffer = io.StringIO()

    render.render_results(
        _results(analyses_run=("security",)),
        output_format="text",
        logger=quiet_logger(),
        stream=buffer,
    )

    assert "[shard_1]" in buffer.getvalue()


def test_json_output_is_sorted_and_complete() -> None:
    buffer = io.StringIO()

    render.render_results(_results(), output_format="JSON", logger=quiet_logger(), stream=buffer)

    payload = json.loads(buffer.getvalue())
    assert payload["index_issues"] == ["[shard_1] idx issue"]
    assert payload["index_suggestions"] == ["CREATE INDEX x;"]
    assert payload["analyses_run"] == ["index-advice", "security", "data-integrity"]
    assert list(payload) == sorted(payload)


def test_unknown_format_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unsupported output format 'xml'"):
        render.render_results(_results(), output_format="xml", logger=quiet_logger(), stream=io.StringIO())
