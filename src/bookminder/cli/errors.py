"""Bookminder rich error messages.

Every error shown to the user names what went wrong and the command that
fixes it (or shows more).

Usage:
    from bookminder.cli.errors import err_no_db
    console.print(err_no_db("bookmarks.db"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from rich.markup import escape

from bookminder.errors import (
    BookminderError,
    ConflictError,
    NotFoundError,
    StoreError,
    ValidationError,
)


def err_no_db(db_path: str = "bookmarks.db") -> str:
    """No database file at *db_path*."""
    return (
        f"[red]Error:[/] No database found at '{escape(db_path)}'.\n"
        "  Run:  bookminder init"
    )


def err_config(message: str) -> str:
    """A config file or BOOKMINDER_* variable holds an invalid value."""
    return (
        f"[red]Error:[/] Invalid configuration: {escape(message)}\n"
        "  Fix bookminder.yaml (or ~/.bookminder/config.yaml) and retry."
    )


def err_validation(exc: ValidationError) -> str:
    """Request rejected before touching the store."""
    hint = "  Run:  bookminder <command> --help  for the accepted options."
    if "url" in exc.fields:
        hint = "  URLs must start with http:// or https://"
    return f"[red]Error:[/] {escape(str(exc))}\n{hint}"


def err_not_found(exc: NotFoundError) -> str:
    """Unknown bookmark or project."""
    if exc.kind == "project":
        hint = "  Run:  bookminder projects list  to see known projects."
    else:
        hint = "  Run:  bookminder list  to see bookmark ids."
    return f"[red]Error:[/] {exc.kind.capitalize()} not found: {escape(str(exc.key))}\n{hint}"


def err_conflict(exc: ConflictError) -> str:
    """Project name already taken."""
    return (
        f"[red]Error:[/] A project named '{escape(exc.name)}' already exists.\n"
        "  Pick another name, or run:  bookminder projects list"
    )


def err_store(exc: StoreError) -> str:
    """The database failed; details are in the log."""
    return (
        f"[red]Error:[/] Database error: {escape(exc.operation)} failed.\n"
        "  Re-run with BOOKMINDER_LOG_LEVEL=DEBUG for details."
    )


def err_message(exc: BookminderError) -> str:
    """Pick the message for any engine error."""
    if isinstance(exc, ValidationError):
        return err_validation(exc)
    if isinstance(exc, NotFoundError):
        return err_not_found(exc)
    if isinstance(exc, ConflictError):
        return err_conflict(exc)
    if isinstance(exc, StoreError):
        return err_store(exc)
    return f"[red]Error:[/] {escape(str(exc))}"
