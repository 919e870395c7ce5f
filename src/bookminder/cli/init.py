"""bookminder init: create the bookmark database or bring its schema up to date."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from bookminder.cli.session import config_from, report_errors
from bookminder.db.connection import Database, store_errors
from bookminder.db.migrations import current_version
from bookminder.db.schema import CURRENT_VERSION, initialize

console = Console()


def init_cmd(ctx: typer.Context) -> None:
    """Create the database (or migrate an existing one) at the configured path."""
    cfg = config_from(ctx)
    db_path = Path(cfg.database.path)
    existed = db_path.exists()
    if not existed:
        db_path.parent.mkdir(parents=True, exist_ok=True)

    with report_errors():
        with Database(db_path, busy_timeout_ms=cfg.database.busy_timeout_ms) as conn:
            with store_errors("read schema version"):
                before = current_version(conn)
            initialize(conn)

    if not existed:
        console.print(f"[green]✓[/] Created {db_path} (schema v{CURRENT_VERSION})")
    elif before < CURRENT_VERSION:
        console.print(f"[green]✓[/] Migrated {db_path}: schema v{before} → v{CURRENT_VERSION}")
    else:
        console.print(f"[dim]Already at schema v{CURRENT_VERSION}: {db_path}[/]")
