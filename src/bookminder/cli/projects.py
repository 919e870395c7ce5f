"""bookminder projects CLI commands.

Commands:
  bookminder projects list                 active projects and reference collections
  bookminder projects create NAME          create a project explicitly
  bookminder projects show ID|TOPIC        project summary and its bookmarks
  bookminder projects rename ID NAME       rename (bookmark topics are left as they are)
  bookminder projects archive ID           drop a project from the active listing
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from bookminder.cli.session import open_store
from bookminder.cli.stats import STATUS_STYLES
from bookminder.db.models import ProjectCreate, ProjectDetail, ProjectsOverview, ProjectUpdate

console = Console()

projects_app = typer.Typer(
    name="projects",
    help="Manage projects (list, create, show, rename, archive).",
    add_completion=False,
)

JsonOpt = Annotated[bool, typer.Option("--json", help="Print the record as JSON.")]


@projects_app.command("list")
def projects_list_cmd(ctx: typer.Context, as_json: JsonOpt = False) -> None:
    """List active projects and reference collections."""
    with open_store(ctx) as store:
        overview = store.projects.list_projects()

    if as_json:
        console.print_json(data=overview.to_dict())
        return
    _show_overview(overview)


@projects_app.command("create")
def projects_create_cmd(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Project name (unique).")],
    description: Annotated[str, typer.Option("--description", "-d")] = "",
    status: Annotated[str, typer.Option("--status", help="Administrative status.")] = "",
) -> None:
    """Create a project."""
    with open_store(ctx) as store:
        project = store.projects.create_project(
            ProjectCreate(name=name, description=description, status=status)
        )
    console.print(f"[green]✓[/] Created project [bold]{project.id}[/]: {escape(project.name)}")


@projects_app.command("show")
def projects_show_cmd(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Project id, or a topic name.")],
    as_json: JsonOpt = False,
) -> None:
    """Show a project (by id) or a legacy topic (by name) with its bookmarks."""
    with open_store(ctx) as store:
        if key.isdigit():
            detail = store.projects.project_detail_by_id(int(key))
        else:
            detail = store.projects.project_detail(key)

    if as_json:
        console.print_json(data=detail.to_dict())
        return
    _show_detail(detail)


@projects_app.command("rename")
def projects_rename_cmd(
    ctx: typer.Context,
    project_id: Annotated[int, typer.Argument(help="Project id.")],
    name: Annotated[str, typer.Argument(help="New project name.")],
) -> None:
    """Rename a project. Bookmarks keep their stored topic."""
    with open_store(ctx) as store:
        project = store.projects.update_project(project_id, ProjectUpdate(name=name))
    console.print(f"[green]✓[/] Project {project.id} is now [bold]{escape(project.name)}[/]")


@projects_app.command("archive")
def projects_archive_cmd(
    ctx: typer.Context,
    project_id: Annotated[int, typer.Argument(help="Project id.")],
) -> None:
    """Archive a project: it stays linked to its bookmarks but leaves the active list."""
    with open_store(ctx) as store:
        project = store.projects.archive_project(project_id)
    console.print(f"[green]✓[/] Archived project {project.id}: {escape(project.name)}")


# ---------------------------------------------------------------------------
# Renderers
# ---------------------------------------------------------------------------


def _status_cell(status: str) -> str:
    style = STATUS_STYLES.get(status)
    return f"[{style}]{status}[/]" if style else status


def _show_overview(overview: ProjectsOverview) -> None:
    if not overview.active_projects and not overview.reference_collections:
        console.print(
            "[yellow]No projects yet.[/]\n"
            "  Link a bookmark:  bookminder update <id> --action working --topic <name>"
        )
        return

    if overview.active_projects:
        table = Table(title="Active projects", show_header=True, header_style="bold")
        table.add_column("ID", justify="right")
        table.add_column("Topic", style="bold")
        table.add_column("Links", justify="right")
        table.add_column("Last updated", style="dim")
        table.add_column("Status")
        for p in overview.active_projects:
            table.add_row(
                str(p.id), escape(p.topic), str(p.link_count), p.last_updated, _status_cell(p.status)
            )
        console.print(table)

    if overview.reference_collections:
        table = Table(title="Reference collections", show_header=True, header_style="bold")
        table.add_column("Topic", style="bold")
        table.add_column("Links", justify="right")
        table.add_column("Last accessed", style="dim")
        for c in overview.reference_collections:
            table.add_row(escape(c.topic), str(c.link_count), c.last_accessed)
        console.print(table)


def _show_detail(detail: ProjectDetail) -> None:
    header = (
        f"Links: [bold]{detail.link_count}[/]  |  "
        f"Last updated: [dim]{detail.last_updated or 'never'}[/]  |  "
        f"Status: {_status_cell(detail.status)}"
    )
    console.print(Panel(header, title=f"[bold]{escape(detail.topic)}[/]", expand=False))

    if not detail.bookmarks:
        console.print("[dim]No bookmarks linked yet.[/]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", justify="right")
    table.add_column("Age", style="dim")
    table.add_column("Title")
    table.add_column("Action")
    for view in detail.bookmarks:
        b = view.bookmark
        table.add_row(str(b.id), view.age, escape(b.title), escape(b.action))
    console.print(table)
