"""bookminder bookmark commands.

Commands:
  bookminder add URL --title T     save a bookmark
  bookminder show ID               one bookmark with its derived fields
  bookminder list                  triage queue (or --action A for one action)
  bookminder update ID             triage: action, shareTo, project, tags, properties
  bookminder edit ID               replace every editable field
  bookminder delete ID             soft-delete
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from bookminder.cli.session import config_from, open_store
from bookminder.db.models import (
    ACTIONS,
    BookmarkCreate,
    BookmarkPatch,
    BookmarkReplace,
    BookmarkView,
    Page,
)

console = Console()

# ---------------------------------------------------------------------------
# Shared options
# ---------------------------------------------------------------------------

ActionOpt = Annotated[
    str,
    typer.Option(
        "--action",
        "-a",
        help=f"Workflow action: {', '.join(ACTIONS)}; other labels are kept as given.",
    ),
]
ShareToOpt = Annotated[str, typer.Option("--share-to", help="Audience for a share action.")]
TopicOpt = Annotated[
    str | None,
    typer.Option("--topic", help="Project name; created on first use."),
]
ProjectIdOpt = Annotated[
    int | None,
    typer.Option("--project-id", help="Existing project id (wins over --topic)."),
]
TagOpt = Annotated[
    list[str] | None,
    typer.Option("--tag", help="Tag; repeat for several."),
]
PropOpt = Annotated[
    list[str] | None,
    typer.Option("--prop", help="Custom property as KEY=VALUE; repeat for several."),
]
JsonOpt = Annotated[bool, typer.Option("--json", help="Print the record as JSON.")]


def parse_properties(values: list[str] | None) -> dict[str, str] | None:
    """Turn ``KEY=VALUE`` strings into a dict (None when none were given)."""
    if not values:
        return None
    props: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--prop")
        props[key.strip()] = value
    return props


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def add_cmd(
    ctx: typer.Context,
    url: Annotated[str, typer.Argument(help="http(s) URL to save.")],
    title: Annotated[str, typer.Option("--title", "-t", help="Bookmark title.")],
    description: Annotated[str, typer.Option("--description", "-d")] = "",
    content: Annotated[str, typer.Option("--content", help="Captured page text.")] = "",
    action: ActionOpt = "",
    share_to: ShareToOpt = "",
    topic: TopicOpt = None,
    project_id: ProjectIdOpt = None,
    tag: TagOpt = None,
    prop: PropOpt = None,
    as_json: JsonOpt = False,
) -> None:
    """Save a bookmark."""
    request = BookmarkCreate(
        url=url,
        title=title,
        description=description,
        content=content,
        action=action,
        share_to=share_to,
        topic=topic or None,
        project_id=project_id,
        tags=tag or None,
        custom_properties=parse_properties(prop),
    )
    with open_store(ctx) as store:
        view = store.bookmarks.create(request)

    if as_json:
        console.print_json(data=view.to_dict())
        return
    console.print(f"[green]✓[/] Saved bookmark [bold]{view.id}[/]: {escape(view.bookmark.title)}")


def show_cmd(
    ctx: typer.Context,
    bookmark_id: Annotated[int, typer.Argument(help="Bookmark id.")],
    as_json: JsonOpt = False,
) -> None:
    """Show one bookmark."""
    with open_store(ctx) as store:
        view = store.bookmarks.fetch_by_id(bookmark_id)

    if as_json:
        console.print_json(data=view.to_dict())
        return
    _show_bookmark_panel(view)


def list_cmd(
    ctx: typer.Context,
    action: Annotated[
        str | None,
        typer.Option("--action", "-a", help="Only this action. Default: the triage queue."),
    ] = None,
    limit: Annotated[int | None, typer.Option("--limit", "-n", min=1)] = None,
    offset: Annotated[int, typer.Option("--offset", min=0)] = 0,
    as_json: JsonOpt = False,
) -> None:
    """List bookmarks, newest first."""
    listing = config_from(ctx).listing
    with open_store(ctx) as store:
        if action:
            page = store.bookmarks.fetch_by_action(action, limit or listing.action_limit, offset)
        else:
            page = store.bookmarks.fetch_triage_queue(limit or listing.triage_limit, offset)

    if as_json:
        console.print_json(data=page.to_dict())
        return
    _show_page(page, title=f"Bookmarks: {action}" if action else "Triage queue")


def update_cmd(
    ctx: typer.Context,
    bookmark_id: Annotated[int, typer.Argument(help="Bookmark id.")],
    action: ActionOpt = "",
    share_to: ShareToOpt = "",
    topic: TopicOpt = None,
    project_id: ProjectIdOpt = None,
    tag: TagOpt = None,
    prop: PropOpt = None,
    as_json: JsonOpt = False,
) -> None:
    """Triage a bookmark.

    Action, share-to, tags and properties are all written: options left out are
    cleared. Giving neither --topic nor --project-id removes the project link.
    """
    request = BookmarkPatch(
        action=action,
        share_to=share_to,
        topic=topic or None,
        project_id=project_id,
        tags=tag or None,
        custom_properties=parse_properties(prop),
    )
    with open_store(ctx) as store:
        view = store.bookmarks.partial_update(bookmark_id, request)

    if as_json:
        console.print_json(data=view.to_dict())
        return
    label = view.bookmark.action or "no action"
    console.print(f"[green]✓[/] Updated bookmark [bold]{view.id}[/] → {escape(label)}")


def edit_cmd(
    ctx: typer.Context,
    bookmark_id: Annotated[int, typer.Argument(help="Bookmark id.")],
    title: Annotated[str, typer.Option("--title", "-t")],
    url: Annotated[str, typer.Option("--url")],
    description: Annotated[str, typer.Option("--description", "-d")] = "",
    action: ActionOpt = "",
    share_to: ShareToOpt = "",
    topic: TopicOpt = None,
    tag: TagOpt = None,
    prop: PropOpt = None,
    as_json: JsonOpt = False,
) -> None:
    """Replace a bookmark's editable fields. Options left out are cleared."""
    request = BookmarkReplace(
        title=title,
        url=url,
        description=description,
        action=action,
        share_to=share_to,
        topic=topic or None,
        tags=tag or None,
        custom_properties=parse_properties(prop),
    )
    with open_store(ctx) as store:
        view = store.bookmarks.full_update(bookmark_id, request)

    if as_json:
        console.print_json(data=view.to_dict())
        return
    console.print(f"[green]✓[/] Replaced bookmark [bold]{view.id}[/]")


def delete_cmd(
    ctx: typer.Context,
    bookmark_id: Annotated[int, typer.Argument(help="Bookmark id.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt.")] = False,
) -> None:
    """Delete a bookmark (it stays in the database, hidden from every listing)."""
    with open_store(ctx) as store:
        view = store.bookmarks.fetch_by_id(bookmark_id)
        console.print(f"\nDelete bookmark [bold]{view.id}[/]: {escape(view.bookmark.title)}")
        if not yes and not typer.confirm("Confirm delete?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)
        store.bookmarks.soft_delete(bookmark_id)

    console.print(f"[green]✓[/] Deleted bookmark {bookmark_id}")


# ---------------------------------------------------------------------------
# Renderers
# ---------------------------------------------------------------------------


def _show_bookmark_panel(view: BookmarkView) -> None:
    b = view.bookmark
    lines = [
        f"[bold]{escape(b.title)}[/]",
        f"URL:       {escape(b.url)}",
        f"Domain:    {escape(view.domain)}  [dim]({view.age})[/]",
        f"Saved:     {b.timestamp}",
        f"Action:    {escape(b.action) or '[dim]none[/]'}",
    ]
    if b.share_to:
        lines.append(f"Share to:  {escape(b.share_to)}")
    if b.topic:
        project = f" [dim](project {b.project_id})[/]" if b.project_id is not None else ""
        lines.append(f"Topic:     {escape(b.topic)}{project}")
    if b.tags:
        lines.append(f"Tags:      {escape(', '.join(b.tags))}")
    for key, value in sorted(b.custom_properties.items()):
        lines.append(f"  {escape(key)}: {escape(value)}")
    if b.description:
        lines.append(f"\n{escape(b.description)}")

    console.print(Panel("\n".join(lines), title=f"[bold]Bookmark {b.id}[/]", expand=False))


def _show_page(page: Page, title: str) -> None:
    if not page.bookmarks:
        console.print(f"[dim]{escape(title)}: nothing here ({page.total} total).[/]")
        return

    table = Table(title=escape(title), show_header=True, header_style="bold")
    table.add_column("ID", justify="right")
    table.add_column("Age", style="dim")
    table.add_column("Domain")
    table.add_column("Title")
    table.add_column("Action")
    table.add_column("Suggested", style="cyan")
    table.add_column("Topic", style="dim")

    for view in page.bookmarks:
        b = view.bookmark
        table.add_row(
            str(b.id),
            view.age,
            escape(view.domain),
            escape(b.title),
            escape(b.action),
            view.suggested or "",
            escape(b.topic or ""),
        )

    console.print(table)
    shown_to = page.offset + len(page.bookmarks)
    console.print(f"\n  {page.offset + 1}–{shown_to} of {page.total}")
