"""Fixtures for CLI tests: isolated cwd, config and database path."""

from __future__ import annotations

import pytest

import bookminder.config


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Run each CLI test in tmp_path with no global config and no BOOKMINDER_* env."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(bookminder.config, "_GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml")
    for var in ("BOOKMINDER_DB_PATH", "BOOKMINDER_LOG_LEVEL", "BOOKMINDER_LOG_FILE"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "bookmarks.db"
