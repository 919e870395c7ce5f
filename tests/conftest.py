"""Shared pytest fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from bookminder.db.connection import Database
from bookminder.db.projects import ProjectResolver
from bookminder.db.repository import BookmarkRepository
from bookminder.db.schema import initialize
from bookminder.db.stats import StatsAggregator

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FixedClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / "bookmarks.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def resolver(tmp_db, clock):
    return ProjectResolver(tmp_db, clock=clock)


@pytest.fixture
def repo(tmp_db, resolver, clock):
    return BookmarkRepository(tmp_db, resolver, clock=clock)


@pytest.fixture
def stats(tmp_db, clock):
    return StatsAggregator(tmp_db, clock=clock)
