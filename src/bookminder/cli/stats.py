"""bookminder stats: dashboard counts and the most active working topics."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from bookminder.cli.session import open_store
from bookminder.db.models import ProjectStat, SummaryStats

console = Console()

STATUS_STYLES = {"active": "green", "stale": "yellow", "inactive": "dim", "unknown": "dim"}


def stats_cmd(
    ctx: typer.Context,
    as_json: Annotated[bool, typer.Option("--json", help="Print the summary as JSON.")] = False,
) -> None:
    """Show bookmark counts by workflow stage and the most recently active projects."""
    with open_store(ctx) as store:
        summary = store.stats.summary()

    if as_json:
        console.print_json(data=summary.to_dict())
        return

    _show_counts_panel(summary)
    if summary.project_stats:
        _show_projects_table(summary.project_stats)


def _show_counts_panel(summary: SummaryStats) -> None:
    lines = [
        f"Total:          [bold]{summary.total_bookmarks}[/]",
        f"Needs triage:   [bold]{summary.needs_triage}[/]",
        f"Working topics: [bold]{summary.active_projects}[/]",
        f"Ready to share: [bold]{summary.ready_to_share}[/]",
        f"Archived:       [bold]{summary.archived}[/]",
    ]
    console.print(Panel("\n".join(lines), title="[bold]Bookmarks[/]", expand=False))


def _show_projects_table(stats: list[ProjectStat]) -> None:
    table = Table(title="Working topics", show_header=True, header_style="bold")
    table.add_column("Topic", style="bold")
    table.add_column("Links", justify="right")
    table.add_column("Last updated", style="dim")
    table.add_column("Status")
    table.add_column("Latest")

    for stat in stats:
        style = STATUS_STYLES.get(stat.status, "")
        table.add_row(
            escape(stat.topic),
            str(stat.count),
            stat.last_updated,
            f"[{style}]{stat.status}[/]" if style else stat.status,
            escape(stat.latest_title),
        )

    console.print(table)
