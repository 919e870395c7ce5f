"""Opening the store for a CLI command and turning engine errors into exit codes."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import typer
from rich.console import Console

from bookminder.cli.errors import err_message, err_no_db
from bookminder.config import BookminderConfig
from bookminder.db.connection import Database
from bookminder.db.projects import ProjectResolver
from bookminder.db.repository import BookmarkRepository
from bookminder.db.schema import initialize
from bookminder.db.stats import StatsAggregator
from bookminder.errors import BookminderError

console = Console()


@dataclass
class Store:
    """Components bound to one open connection."""

    conn: sqlite3.Connection
    bookmarks: BookmarkRepository
    projects: ProjectResolver
    stats: StatsAggregator


def config_from(ctx: typer.Context) -> BookminderConfig:
    cfg = ctx.find_root().obj
    return cfg if isinstance(cfg, BookminderConfig) else BookminderConfig()


@contextmanager
def report_errors() -> Iterator[None]:
    """Print engine errors in the actionable format and exit with status 1."""
    try:
        yield
    except BookminderError as exc:
        console.print(err_message(exc))
        raise typer.Exit(1) from None


@contextmanager
def open_store(ctx: typer.Context) -> Iterator[Store]:
    """Open the configured database (which must exist) and build the components.

    Pending migrations are applied on open. Engine errors raised inside the
    block are reported and end the command with exit code 1.
    """
    cfg = config_from(ctx)
    db_path = Path(cfg.database.path)
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)

    with report_errors():
        conn = Database(db_path, busy_timeout_ms=cfg.database.busy_timeout_ms).connect()
        try:
            initialize(conn)
            resolver = ProjectResolver(
                conn,
                active_days=cfg.status.active_days,
                stale_days=cfg.status.stale_days,
            )
            yield Store(
                conn=conn,
                bookmarks=BookmarkRepository(conn, resolver),
                projects=resolver,
                stats=StatsAggregator(
                    conn,
                    active_days=cfg.status.active_days,
                    stale_days=cfg.status.stale_days,
                ),
            )
        finally:
            conn.close()
