"""Bookminder CLI entry point."""

from __future__ import annotations

import importlib.metadata
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from bookminder.cli.bookmarks import (
    add_cmd,
    delete_cmd,
    edit_cmd,
    list_cmd,
    show_cmd,
    update_cmd,
)
from bookminder.cli.errors import err_config
from bookminder.cli.init import init_cmd
from bookminder.cli.projects import projects_app
from bookminder.cli.stats import stats_cmd
from bookminder.config import ConfigError, load_config
from bookminder.logs import configure_logging

console = Console()


def _installed_version() -> str:
    try:
        return importlib.metadata.version("bookminder")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"bookminder {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="bookminder",
    help=(
        "Bookminder: triage saved links into projects.\n\n"
        "  bookminder list    What still needs a decision.\n"
        "  bookminder update  Decide: read later, work on it, share it, archive it."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the bookmark database (overrides config)."),
    ] = None,
) -> None:
    """Bookminder: triage saved links into projects."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from None
    if db is not None:
        cfg.database.path = str(db)

    configure_logging(cfg.logging.level, cfg.logging.file)
    ctx.obj = cfg


app.command("init")(init_cmd)
app.command("add")(add_cmd)
app.command("show")(show_cmd)
app.command("list")(list_cmd)
app.command("update")(update_cmd)
app.command("edit")(edit_cmd)
app.command("delete")(delete_cmd)
app.command("stats")(stats_cmd)
app.add_typer(projects_app, name="projects")


@app.command("version")
def version_cmd() -> None:
    """Show the installed Bookminder version."""
    typer.echo(f"bookminder {_installed_version()}")


if __name__ == "__main__":
    app()
