"""Bookminder database layer."""

from bookminder.db.connection import Database, read_snapshot, store_errors, write_transaction
from bookminder.db.migrations import MIGRATIONS, run_migrations
from bookminder.db.projects import ProjectResolver
from bookminder.db.repository import BookmarkRepository
from bookminder.db.schema import initialize
from bookminder.db.stats import StatsAggregator

__all__ = [
    "BookmarkRepository",
    "Database",
    "ProjectResolver",
    "StatsAggregator",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "read_snapshot",
    "store_errors",
    "write_transaction",
]
