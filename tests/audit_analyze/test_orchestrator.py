from __future__ import annotations

import json
from pathlib import Path

import pytest

from sqlite_audit.audit_analyze.orchestrator import run_analysis
from sqlite_audit.audit_analyze.types import AnalysisConfigurationError
from sqlite_audit.shared.config import ANALYZER_SLUGS, default_config
from sqlite_audit.shared.exceptions import ConnectionFailedError

LEDGER_SCRIPT = """
CREATE TABLE ledger (id INTEGER PRIMARY KEY, memo TEXT, amount REAL);
CREATE TABLE audit_log (id INTEGER PRIMARY KEY, memo TEXT);
CREATE TRIGGER ledger_ai AFTER INSERT ON ledger
BEGIN
    INSERT INTO audit_log (memo) VALUES (NEW.memo);
END;
"""


@pytest.fixture()
def ledger_db(make_db) -> Path:
    return make_db("ledger.db", LEDGER_SCRIPT)


def test_full_run_populates_every_section(shop_db: Path, ledger_db: Path, row_counter) -> None:
    results = run_analysis([shop_db, ledger_db])

    assert tuple(results.analyses_run) == ANALYZER_SLUGS
    assert [stats.shard for stats in results.database_stats] == ["shard_1", "shard_2"]
    assert results.database_stats[0].table_count == 2
    assert results.database_stats[1].trigger_count == 1
    assert results.query_performance
    assert results.index_advice.issues
    assert results.relationship_performance[0].startswith("[shard_1] Analyzing relationship")
    assert any("Inserted 100 records" in line for line in results.trigger_performance)
    assert row_counter(ledger_db, "ledger") == 100

    payload = json.loads(json.dumps(results.to_dict()))
    assert payload["analyses_run"] == list(ANALYZER_SLUGS)
    assert set(payload["schema"]["shards"]) == {"shard_1", "shard_2"}


def test_only_runs_the_selected_analyses(shop_db: Path) -> None:
    results = run_analysis([shop_db], only=["integrity", "indexes"])

    assert list(results.analyses_run) == ["index-advice", "data-integrity"]
    assert results.query_performance == ()
    assert results.security_findings == ()


def test_configured_enabled_list_is_honoured(shop_db: Path) -> None:
    config = default_config().with_enabled(("security",))

    results = run_analysis([shop_db], config)

    assert list(results.analyses_run) == ["security"]


def test_dry_run_leaves_rows_untouched(ledger_db: Path, row_counter) -> None:
    results = run_analysis([ledger_db], only=["triggers"], dry_run=True)

    assert results.trigger_performance == (
        "[shard_1] Trigger 'ledger_ai' on 'ledger': Skipped synthetic inserts (dry run).",
    )
    assert row_counter(ledger_db, "ledger") == 0


def test_read_only_config_skips_inserts(ledger_db: Path, row_counter) -> None:
    config = default_config().with_read_only(True)

    results = run_analysis([ledger_db], config, only=["triggers"])

    assert "read-only connection" in results.trigger_performance[0]
    assert row_counter(ledger_db, "ledger") == 0


def test_empty_path_list_is_rejected() -> None:
    with pytest.raises(AnalysisConfigurationError):
        run_analysis([])


def test_selection_errors_surface_before_connecting(tmp_path: Path) -> None:
    with pytest.raises(AnalysisConfigurationError):
        run_analysis([tmp_path / "missing.db"], only=["nope"])


def test_connection_failure_propagates(shop_db: Path, tmp_path: Path) -> None:
    missing = tmp_path / "missing.db"

    with pytest.raises(ConnectionFailedError) as excinfo:
        run_analysis([shop_db, missing])

    assert str(missing) in str(excinfo.value)
    assert not missing.exists()
