"""Row → model helpers shared by the repository, resolver and aggregator."""

from __future__ import annotations

import sqlite3
from datetime import datetime

from bookminder.codec import decode_properties, decode_tags
from bookminder.db.models import Bookmark, BookmarkView, Project
from bookminder.derive import calculate_age, extract_domain, suggest_action

BOOKMARK_COLUMNS = (
    "id, url, title, description, content, timestamp, action, shareTo, topic, "
    "project_id, tags, custom_properties, deleted"
)


def not_deleted(alias: str = "") -> str:
    """SQL predicate hiding soft-deleted rows; every read path applies it."""
    column = f"{alias}.deleted" if alias else "deleted"
    return f"({column} = 0 OR {column} IS NULL)"


NOT_DELETED = not_deleted()


def moment(alias: str = "") -> str:
    """SQL expression for a stored timestamp as canonical UTC text.

    Stored values may be canonical or legacy RFC 3339; compare and aggregate them
    only through this expression. Unparsable values come out as NULL.
    """
    column = f"{alias}.timestamp" if alias else "timestamp"
    return f"datetime({column})"


NEWEST_FIRST = f"{moment()} DESC, id DESC"

PROJECT_COLUMNS = "id, name, description, status, created_at, updated_at"


def row_to_bookmark(row: sqlite3.Row) -> Bookmark:
    return Bookmark(
        id=row["id"],
        url=row["url"],
        title=row["title"],
        timestamp=row["timestamp"] or "",
        description=row["description"] or "",
        content=row["content"] or "",
        action=row["action"] or "",
        share_to=row["shareTo"] or "",
        topic=row["topic"] or None,
        project_id=row["project_id"],
        tags=decode_tags(row["tags"]),
        custom_properties=decode_properties(row["custom_properties"]),
        deleted=bool(row["deleted"]),
    )


def row_to_project(row: sqlite3.Row) -> Project:
    return Project(
        id=row["id"],
        name=row["name"],
        description=row["description"] or "",
        status=row["status"] or "",
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def to_view(bookmark: Bookmark, now: datetime, *, suggest: bool = False) -> BookmarkView:
    """Attach the read-time fields (domain, age and, for listings, a suggested action)."""
    domain = extract_domain(bookmark.url)
    return BookmarkView(
        bookmark=bookmark,
        domain=domain,
        age=calculate_age(bookmark.timestamp, now),
        suggested=(
            suggest_action(domain, bookmark.title, bookmark.description) if suggest else None
        ),
    )
