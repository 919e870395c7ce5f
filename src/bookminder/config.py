"""Bookminder configuration loader.

Priority (high → low):
  1. CLI flags           (--db, applied by the CLI callback)
  2. Environment variables  (BOOKMINDER_DB_PATH, BOOKMINDER_LOG_LEVEL, BOOKMINDER_LOG_FILE)
  3. Per-directory bookminder.yaml
  4. Global ~/.bookminder/config.yaml
  5. Hardcoded defaults

All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".bookminder"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_LOCAL_CONFIG_NAME: str = "bookminder.yaml"

_KNOWN_SECTIONS: frozenset[str] = frozenset(["database", "logging", "listing", "status"])
_LOG_LEVELS: frozenset[str] = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class DatabaseCfg:
    """SQLite store settings (bookminder.yaml: database:)."""

    path: str = "bookmarks.db"
    busy_timeout_ms: int = 10_000


@dataclass
class LoggingCfg:
    """Log routing (bookminder.yaml: logging:)."""

    level: str = "WARNING"
    file: str | None = None


@dataclass
class ListingCfg:
    """Default page sizes (bookminder.yaml: listing:)."""

    triage_limit: int = 10
    action_limit: int = 50


@dataclass
class StatusCfg:
    """Display-status thresholds in days (bookminder.yaml: status:)."""

    active_days: int = 7
    stale_days: int = 30


@dataclass
class BookminderConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    database: DatabaseCfg = field(default_factory=DatabaseCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)
    listing: ListingCfg = field(default_factory=ListingCfg)
    status: StatusCfg = field(default_factory=StatusCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' (ignored).",
                UserWarning,
                stacklevel=4,
            )


def _positive_int(section: str, key: str, value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{section}.{key} must be an integer, got {value!r}") from None
    if number < 1:
        raise ConfigError(f"{section}.{key} must be >= 1, got {number}")
    return number


def _log_level(value: Any) -> str:
    level = str(value).upper()
    if level not in _LOG_LEVELS:
        raise ConfigError(
            f"logging.level must be one of {', '.join(sorted(_LOG_LEVELS))}, got {value!r}"
        )
    return level


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> BookminderConfig:
    """Build a *BookminderConfig* from a merged raw YAML dict."""
    cfg = BookminderConfig()

    if "database" in data:
        d = data["database"] or {}
        cfg.database = DatabaseCfg(
            path=str(d.get("path", cfg.database.path)),
            busy_timeout_ms=_positive_int(
                "database", "busy_timeout_ms", d.get("busy_timeout_ms", cfg.database.busy_timeout_ms)
            ),
        )

    if "logging" in data:
        lg = data["logging"] or {}
        cfg.logging = LoggingCfg(
            level=_log_level(lg.get("level", cfg.logging.level)),
            file=lg.get("file") or cfg.logging.file,
        )

    if "listing" in data:
        ls = data["listing"] or {}
        cfg.listing = ListingCfg(
            triage_limit=_positive_int(
                "listing", "triage_limit", ls.get("triage_limit", cfg.listing.triage_limit)
            ),
            action_limit=_positive_int(
                "listing", "action_limit", ls.get("action_limit", cfg.listing.action_limit)
            ),
        )

    if "status" in data:
        st = data["status"] or {}
        active = _positive_int("status", "active_days", st.get("active_days", cfg.status.active_days))
        stale = _positive_int("status", "stale_days", st.get("stale_days", cfg.status.stale_days))
        if stale < active:
            raise ConfigError(
                f"status.stale_days ({stale}) must not be smaller than status.active_days ({active})"
            )
        cfg.status = StatusCfg(active_days=active, stale_days=stale)

    return cfg


def _apply_env_overrides(cfg: BookminderConfig) -> BookminderConfig:
    """Apply BOOKMINDER_* environment variable overrides."""
    if path := os.environ.get("BOOKMINDER_DB_PATH"):
        cfg.database.path = path
    if level := os.environ.get("BOOKMINDER_LOG_LEVEL"):
        cfg.logging.level = _log_level(level)
    if log_file := os.environ.get("BOOKMINDER_LOG_FILE"):
        cfg.logging.file = log_file
    return cfg


def _read_yaml(path: Path) -> dict[str, Any]:
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping at the top level.")
    return raw


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    config_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> BookminderConfig:
    """Load and return a merged *BookminderConfig*.

    Applies layers in order: global → per-directory → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        config_dir: Directory to search for *bookminder.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If a config file is not a mapping or holds an invalid value.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = config_dir if config_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    local_path = search_dir / _LOCAL_CONFIG_NAME
    if local_path.exists():
        raw_local = _read_yaml(local_path)
        _warn_unknown_keys(raw_local, local_path)
        merged = _deep_merge(merged, raw_local)

    cfg = _cfg_from_dict(merged)
    return _apply_env_overrides(cfg)
