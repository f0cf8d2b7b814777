from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from sqlite_audit.audit_query.main import cli


def test_sql_command_outputs_json(shop_db: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["--db", str(shop_db), "sql", "SELECT name FROM customers ORDER BY id", "--format", "json"],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload == {
        "shard": "shard_1",
        "columns": ["name"],
        "rows": [["Ada"], ["Grace"]],
        "truncated": False,
    }


def test_sql_command_targets_second_shard(shop_db: Path, users_db: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["--db", str(shop_db), "--db", str(users_db), "sql", "SELECT email FROM users", "--shard", "shard_2"],
    )

    assert result.exit_code == 0, result.output
    assert "alice@example.com" in result.output
    assert "shard_2" in result.output


def test_sql_command_warns_on_truncation(shop_db: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--db", str(shop_db), "sql", "SELECT * FROM customers", "--limit", "1"])

    assert result.exit_code == 0, result.output
    assert "Result truncated to 1 rows" in result.output


def test_sql_command_is_read_only(shop_db: Path, row_counter) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--db", str(shop_db), "sql", "DELETE FROM orders"])

    assert result.exit_code == 1
    assert row_counter(shop_db, "orders") == 2


def test_sample_command(shop_db: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--db", str(shop_db), "sample", "orders", "--format", "json"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["columns"] == ["id", "customer_id", "total", "created_at"]


def test_sample_missing_table(shop_db: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--db", str(shop_db), "sample", "ghosts"])

    assert result.exit_code == 1
    assert "Table 'ghosts' does not exist in shard_1." in result.output


def test_validate_command(shop_db: Path) -> None:
    runner = CliRunner()
    ok = runner.invoke(cli, ["--db", str(shop_db), "validate", "SELECT * FROM orders"])
    bad = runner.invoke(cli, ["--db", str(shop_db), "validate", "SELECT * FROM ghosts"])

    assert ok.exit_code == 0, ok.output
    assert "Query is valid for shard_1." in ok.output
    assert bad.exit_code == 1
    assert "no such table" in bad.output


def test_tables_command(shop_db: Path, users_db: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--db", str(shop_db), "--db", str(users_db), "tables"])

    assert result.exit_code == 0, result.output
    assert "shard_1" in result.output
    assert "customers" in result.output
    assert "users" in result.output


def test_stats_command_json(shop_db: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--db", str(shop_db), "stats", "--format", "json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload[0]["shard"] == "shard_1"
    assert payload[0]["table_count"] == 2


def test_commands_require_a_database() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["tables"])

    assert result.exit_code == 1
    assert "Pass at least one --db PATH." in result.output


def test_unknown_shard_is_reported(shop_db: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--db", str(shop_db), "sql", "SELECT 1", "--shard", "shard_3"])

    assert result.exit_code == 1
    assert "shard_3" in result.output
