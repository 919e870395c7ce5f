"""SQLite connection layer and store-error translation."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from bookminder.errors import StoreError

logger = logging.getLogger(__name__)

DEFAULT_BUSY_TIMEOUT_MS = 10_000


class Database:
    """Single-user SQLite bookmark store."""

    def __init__(self, db_path: Path | str, busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS) -> None:
        """Store the database path. Call connect() to open the connection.

        Args:
            db_path: Path to the SQLite database file (created if missing).
            busy_timeout_ms: How long a writer waits on a locked database
                before the statement fails.
        """
        self.db_path = Path(db_path)
        self.busy_timeout_ms = busy_timeout_ms
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        """Open a connection with row access by name, foreign keys, WAL and busy timeout."""
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.busy_timeout_ms / 1000)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute(f"PRAGMA busy_timeout = {int(self.busy_timeout_ms)}")
        except sqlite3.Error as exc:
            logger.exception("Failed to open database %s", self.db_path)
            raise StoreError("open database") from exc
        logger.debug("Database connection established: %s", self.db_path)
        return conn

    def __enter__(self) -> sqlite3.Connection:
        """Open the database and return the connection (context manager support)."""
        self._conn = self.connect()
        return self._conn

    def __exit__(self, *args: object) -> None:
        """Close the connection when leaving the context manager."""
        if self._conn:
            self._conn.close()
            self._conn = None


@contextmanager
def store_errors(operation: str, **context: object) -> Iterator[None]:
    """Turn sqlite3 failures inside the block into an opaque StoreError.

    The driver error and *context* are logged here; callers only see the
    operation name.
    """
    try:
        yield
    except sqlite3.Error as exc:
        detail = ", ".join(f"{k}={v!r}" for k, v in context.items())
        logger.exception("Store failure during %s (%s)", operation, detail)
        raise StoreError(operation) from exc


@contextmanager
def read_snapshot(conn: sqlite3.Connection) -> Iterator[None]:
    """Run the enclosed SELECTs in one read transaction (one consistent snapshot).

    Nested use inside an already open transaction simply joins it.
    """
    if conn.in_transaction:
        yield
        return
    conn.execute("BEGIN")
    try:
        yield
    finally:
        conn.rollback()


@contextmanager
def write_transaction(conn: sqlite3.Connection) -> Iterator[None]:
    """Commit the enclosed writes on success, roll them back on error.

    Inside a transaction the caller already opened, the block joins it and
    leaves commit and rollback to the caller.
    """
    if conn.in_transaction:
        yield
        return
    with conn:
        yield
