from __future__ import annotations

from pathlib import Path

from sqlite_audit.shared import paths


def test_get_config_dir_uses_env_override(tmp_path: Path) -> None:
    env = {paths.CONFIG_DIR_ENV: str(tmp_path / "config")}
    result = paths.get_config_dir(create=True, env=env)
    assert result == tmp_path / "config"
    assert result.exists()


def test_default_config_path_prefers_explicit_file(tmp_path: Path) -> None:
    env = {
        paths.CONFIG_DIR_ENV: str(tmp_path / "config"),
        paths.CONFIG_FILE_ENV: str(tmp_path / "custom.yaml"),
    }
    assert paths.default_config_path(env=env) == tmp_path / "custom.yaml"
    assert paths.default_config_path(env={paths.CONFIG_DIR_ENV: str(tmp_path)}) == tmp_path / "config.yaml"


def test_resolve_path_expands_user(tmp_path: Path, monkeypatch) -> None:
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setenv("HOME", str(fake_home))
    result = paths.resolve_path("~/file.txt")
    assert result == fake_home / "file.txt"


def test_resolve_database_paths_keeps_order(tmp_path: Path) -> None:
    raw = [tmp_path / "b.db", str(tmp_path / "a.db")]
    assert paths.resolve_database_paths(raw) == [tmp_path / "b.db", tmp_path / "a.db"]
