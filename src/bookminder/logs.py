"""Logging setup for the CLI and helpers for logging user input."""

from __future__ import annotations

import html
import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def sanitize_for_log(value: str) -> str:
    """Strip CR/LF and HTML-escape *value* so it cannot forge or inject log lines."""
    return html.escape(value.replace("\r", "").replace("\n", ""))


def configure_logging(level: str | int = "WARNING", log_file: Path | str | None = None) -> None:
    """Route ``bookminder.*`` loggers to stderr (rich) and optionally to *log_file*.

    Safe to call more than once: handlers installed by a previous call are replaced.
    """
    root = logging.getLogger("bookminder")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    root.setLevel(level)

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    console_handler.setLevel(level)
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(Path(log_file), encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        file_handler.setLevel(level)
        root.addHandler(file_handler)
