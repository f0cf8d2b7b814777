"""Configuration loading utilities for the sqlite-audit suite."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml

from . import paths
from .exceptions import ConfigurationError

ANALYZER_SLUGS: tuple[str, ...] = (
    "query-performance",
    "index-advice",
    "data-integrity",
    "security",
    "trigger-performance",
    "relationship-performance",
)


@dataclass(frozen=True, slots=True)
class ConnectionSettings:
    """How shard files are opened."""

    read_only: bool


@dataclass(frozen=True, slots=True)
class AnalysisSettings:
    """Tunables for the analysis engine."""

    query_timeout_seconds: float
    trigger_batch_size: int
    audit_log_table: str
    enabled: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Top-level application configuration."""

    source_path: Path
    connection: ConnectionSettings
    analysis: AnalysisSettings

    def with_read_only(self, read_only: bool) -> AppConfig:
        """Return a copy with the connection mode replaced."""
        return replace(self, connection=replace(self.connection, read_only=read_only))

    def with_enabled(self, slugs: tuple[str, ...]) -> AppConfig:
        """Return a copy restricted to the given analyzers."""
        return replace(self, analysis=replace(self.analysis, enabled=slugs))


def _default_config() -> dict[str, Any]:
    return {
        "connection": {"read_only": False},
        "analysis": {
            "query_timeout_seconds": 5.0,
            "trigger_batch_size": 100,
            "audit_log_table": "audit_log",
            "enabled": list(ANALYZER_SLUGS),
        },
    }


ENV_OVERRIDE_SPEC: dict[str, tuple[str, type]] = {
    "connection.read_only": ("SQLITE_AUDIT_READ_ONLY", bool),
    "analysis.query_timeout_seconds": ("SQLITE_AUDIT_QUERY_TIMEOUT", float),
    "analysis.trigger_batch_size": ("SQLITE_AUDIT_TRIGGER_BATCH_SIZE", int),
    "analysis.audit_log_table": ("SQLITE_AUDIT_AUDIT_LOG_TABLE", str),
    "analysis.enabled": ("SQLITE_AUDIT_ENABLED_ANALYSES", list),
}


def load_config(
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load configuration from defaults, YAML file, and env overrides."""
    env = dict(os.environ if env is None else env)
    resolved_config_path = _resolve_config_path(config_path, env)
    file_data = _load_yaml(resolved_config_path)
    merged: dict[str, Any] = _deep_merge(_default_config(), file_data)
    merged = _apply_env_overrides(merged, env)
    return _build_config(merged, resolved_config_path)


def default_config() -> AppConfig:
    """Return the built-in defaults without touching the filesystem or environment."""
    return _build_config(_default_config(), Path(paths.DEFAULT_CONFIG_FILE))


def _resolve_config_path(config_path: str | Path | None, env: Mapping[str, str]) -> Path:
    if config_path:
        return paths.resolve_path(config_path)
    return paths.default_config_path(env=env)


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Config file at {path} is not valid YAML: {exc}") from exc
        if not isinstance(data, MutableMapping):
            raise ConfigurationError(f"Config file at {path} must define a mapping root object.")
        return dict(data)


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env_overrides(config: dict[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    config_copy = _deep_merge(config, {})
    for dotted_key, (env_key, expected_type) in ENV_OVERRIDE_SPEC.items():
        if env_key not in env:
            continue
        raw_value = env[env_key]
        try:
            value = _coerce_env_value(raw_value, expected_type)
        except ValueError as exc:
            raise ConfigurationError(
                f"Environment override {env_key} has invalid value '{raw_value}': {exc}"
            ) from exc
        _assign_nested(config_copy, dotted_key.split("."), value)
    return config_copy


def _coerce_env_value(raw: str, expected_type: type) -> Any:
    cleaned = raw.strip()
    if expected_type is bool:
        lowered = cleaned.lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
        raise ValueError("expected boolean (true/false)")
    if expected_type is int:
        return int(cleaned)
    if expected_type is float:
        return float(cleaned)
    if expected_type is list:
        if not cleaned:
            return []
        return tuple(part.strip() for part in cleaned.split(",") if part.strip())
    return cleaned


def _assign_nested(target: MutableMapping[str, Any], keys: list[str], value: Any) -> None:
    current = target
    for key in keys[:-1]:
        if key not in current or not isinstance(current[key], MutableMapping):
            current[key] = {}
        current = current[key]  # type: ignore[assignment]
    current[keys[-1]] = value


def _build_config(data: Mapping[str, Any], source_path: Path) -> AppConfig:
    try:
        connection = ConnectionSettings(read_only=bool(data["connection"]["read_only"]))
        analysis_cfg = data["analysis"]
        analysis = AnalysisSettings(
            query_timeout_seconds=float(analysis_cfg["query_timeout_seconds"]),
            trigger_batch_size=int(analysis_cfg["trigger_batch_size"]),
            audit_log_table=str(analysis_cfg["audit_log_table"]),
            enabled=tuple(str(slug) for slug in analysis_cfg["enabled"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid configuration structure: {exc}") from exc

    if analysis.query_timeout_seconds <= 0:
        raise ConfigurationError("analysis.query_timeout_seconds must be greater than zero.")
    if analysis.trigger_batch_size < 1:
        raise ConfigurationError("analysis.trigger_batch_size must be at least 1.")
    unknown = [slug for slug in analysis.enabled if slug not in ANALYZER_SLUGS]
    if unknown:
        raise ConfigurationError(f"Unknown analyses in analysis.enabled: {', '.join(unknown)}")

    return AppConfig(source_path=source_path, connection=connection, analysis=analysis)
