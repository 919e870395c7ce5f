"""Database schema initialization."""

from __future__ import annotations

import sqlite3

from bookminder.db.connection import store_errors
from bookminder.db.migrations import MIGRATIONS, run_migrations

CURRENT_VERSION = MIGRATIONS[-1][0]


def initialize(conn: sqlite3.Connection) -> None:
    """Initialize the database schema via the migration runner (idempotent)."""
    with store_errors("schema migration"):
        run_migrations(conn)
