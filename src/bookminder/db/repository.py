"""Bookmark repository: create, update, fetch and list bookmarks.

Writes go through the ProjectResolver for the topic/project pair and through
the codec for tags and custom properties. Reads attach the derived view fields.
Each write is a single transaction: a failed update leaves the store unchanged,
including any project the resolver created on the way.
"""

from __future__ import annotations

import logging
import sqlite3
import urllib.parse
from collections.abc import Callable
from datetime import datetime

from bookminder.codec import encode_properties, encode_tags
from bookminder.db.connection import read_snapshot, store_errors, write_transaction
from bookminder.db.models import (
    READ_LATER,
    BookmarkCreate,
    BookmarkPatch,
    BookmarkReplace,
    BookmarkView,
    Page,
)
from bookminder.db.projects import ProjectResolver
from bookminder.db.rows import (
    BOOKMARK_COLUMNS,
    NEWEST_FIRST,
    NOT_DELETED,
    row_to_bookmark,
    to_view,
)
from bookminder.derive import format_timestamp, utcnow
from bookminder.errors import NotFoundError, ValidationError
from bookminder.logs import sanitize_for_log

logger = logging.getLogger(__name__)

MAX_URL_LENGTH = 2048
MAX_TITLE_LENGTH = 500
MAX_DESCRIPTION_LENGTH = 2000
_ALLOWED_SCHEMES = {"http", "https"}

DEFAULT_TRIAGE_LIMIT = 10
DEFAULT_ACTION_LIMIT = 50

# Empty and missing actions are still waiting for triage, same as read-later.
_TRIAGE_FILTER = f"(action IS NULL OR action = '' OR action = '{READ_LATER}')"


def validate_create(request: BookmarkCreate) -> None:
    """Reject a create request with missing fields, a non-HTTP URL, or oversized text.

    Raises:
        ValidationError: Naming every missing field, or the first invalid one.
    """
    missing = [
        name
        for name, value in (("url", request.url), ("title", request.title))
        if not (value or "").strip()
    ]
    if missing:
        raise ValidationError.missing(*missing)

    try:
        scheme = urllib.parse.urlsplit(request.url).scheme
    except ValueError:
        scheme = ""
    if scheme.lower() not in _ALLOWED_SCHEMES:
        raise ValidationError("Invalid URL format: only http and https URLs are accepted", ["url"])

    for name, value, limit in (
        ("url", request.url, MAX_URL_LENGTH),
        ("title", request.title, MAX_TITLE_LENGTH),
        ("description", request.description, MAX_DESCRIPTION_LENGTH),
    ):
        if len(value or "") > limit:
            raise ValidationError(f"{name} too long (max {limit} characters)", [name])


def _check_page(limit: int, offset: int) -> None:
    if limit < 1:
        raise ValidationError(f"limit must be >= 1, got {limit}", ["limit"])
    if offset < 0:
        raise ValidationError(f"offset must be >= 0, got {offset}", ["offset"])


class BookmarkRepository:
    """Data access layer for bookmarks.

    Wraps an open sqlite3.Connection owned by the caller. The resolver must
    share that connection so project changes join the bookmark's transaction.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        resolver: ProjectResolver | None = None,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._conn = conn
        self._clock = clock
        self._resolver = resolver if resolver is not None else ProjectResolver(conn, clock=clock)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, request: BookmarkCreate) -> BookmarkView:
        """Validate and insert a bookmark; return the stored record.

        The creation timestamp is assigned here and never changed afterwards.

        Raises:
            ValidationError: Missing url/title, non-HTTP URL, or oversized field.
            NotFoundError: ``project_id`` names no project.
        """
        validate_create(request)
        timestamp = format_timestamp(self._clock())

        with store_errors("create bookmark", url=sanitize_for_log(request.url)):
            with write_transaction(self._conn):
                topic, project_id = self._resolver.associate(request.topic, request.project_id)
                cur = self._conn.execute(
                    """
                    INSERT INTO bookmarks
                        (url, title, description, content, action, shareTo, topic, project_id,
                         tags, custom_properties, timestamp)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        request.url,
                        request.title,
                        request.description,
                        request.content,
                        request.action,
                        request.share_to,
                        topic,
                        project_id,
                        encode_tags(request.tags),
                        encode_properties(request.custom_properties),
                        timestamp,
                    ),
                )

        logger.info("Created bookmark %s for %s", cur.lastrowid, sanitize_for_log(request.url))
        return self.fetch_by_id(cur.lastrowid)

    def full_update(self, bookmark_id: int, request: BookmarkReplace) -> BookmarkView:
        """Replace every mutable field with the values in *request*.

        Fields the caller left out are written as empty; nothing is merged from
        the stored row. A missing topic clears the project association.
        ``content`` and ``timestamp`` are not part of the request and stay as stored.

        Raises:
            ValidationError: title or url is empty.
            NotFoundError: No live bookmark has that id.
        """
        missing = [
            name
            for name, value in (("title", request.title), ("url", request.url))
            if not (value or "").strip()
        ]
        if missing:
            raise ValidationError.missing(*missing)

        with store_errors("update bookmark", bookmark_id=bookmark_id):
            with write_transaction(self._conn):
                topic, project_id = self._resolver.associate(request.topic, None)
                cur = self._conn.execute(
                    f"""
                    UPDATE bookmarks
                    SET url = ?, title = ?, description = ?, action = ?, shareTo = ?,
                        topic = ?, project_id = ?, tags = ?, custom_properties = ?
                    WHERE id = ? AND {NOT_DELETED}
                    """,
                    (
                        request.url,
                        request.title,
                        request.description,
                        request.action,
                        request.share_to,
                        topic,
                        project_id,
                        encode_tags(request.tags),
                        encode_properties(request.custom_properties),
                        bookmark_id,
                    ),
                )
                if cur.rowcount == 0:
                    raise NotFoundError("bookmark", bookmark_id)

        logger.info("Replaced bookmark %s", bookmark_id)
        return self.fetch_by_id(bookmark_id)

    def partial_update(self, bookmark_id: int, request: BookmarkPatch) -> BookmarkView:
        """Update action, shareTo, tags, custom properties and the project association.

        The four plain fields are always written, empty if absent. The project
        association follows :meth:`ProjectResolver.associate`: leaving out both
        topic and project id clears it.

        Raises:
            NotFoundError: No live bookmark has that id, or ``project_id`` names no
                project. The store is left unchanged either way.
        """
        with store_errors("update bookmark", bookmark_id=bookmark_id):
            with write_transaction(self._conn):
                topic, project_id = self._resolver.associate(request.topic, request.project_id)
                cur = self._conn.execute(
                    f"""
                    UPDATE bookmarks
                    SET action = ?, shareTo = ?, topic = ?, project_id = ?,
                        tags = ?, custom_properties = ?
                    WHERE id = ? AND {NOT_DELETED}
                    """,
                    (
                        request.action,
                        request.share_to,
                        topic,
                        project_id,
                        encode_tags(request.tags),
                        encode_properties(request.custom_properties),
                        bookmark_id,
                    ),
                )
                if cur.rowcount == 0:
                    raise NotFoundError("bookmark", bookmark_id)

        logger.info("Updated bookmark %s (action=%r)", bookmark_id, sanitize_for_log(request.action))
        return self.fetch_by_id(bookmark_id)

    def soft_delete(self, bookmark_id: int) -> None:
        """Hide a bookmark from every read path.

        Raises:
            NotFoundError: No live bookmark has that id.
        """
        with store_errors("delete bookmark", bookmark_id=bookmark_id):
            with write_transaction(self._conn):
                cur = self._conn.execute(
                    f"UPDATE bookmarks SET deleted = 1 WHERE id = ? AND {NOT_DELETED}",
                    (bookmark_id,),
                )
        if cur.rowcount == 0:
            raise NotFoundError("bookmark", bookmark_id)
        logger.info("Soft-deleted bookmark %s", bookmark_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_by_id(self, bookmark_id: int) -> BookmarkView:
        """Return one bookmark with domain and age computed now.

        Raises:
            NotFoundError: No live bookmark has that id.
        """
        with store_errors("fetch bookmark", bookmark_id=bookmark_id):
            row = self._conn.execute(
                f"SELECT {BOOKMARK_COLUMNS} FROM bookmarks WHERE id = ? AND {NOT_DELETED}",
                (bookmark_id,),
            ).fetchone()
        if row is None:
            raise NotFoundError("bookmark", bookmark_id)
        return to_view(row_to_bookmark(row), self._clock())

    def fetch_by_url(self, url: str) -> BookmarkView | None:
        """Return the newest live bookmark saved for *url*, or None."""
        with store_errors("fetch bookmark by url", url=sanitize_for_log(url)):
            row = self._conn.execute(
                f"""
                SELECT {BOOKMARK_COLUMNS} FROM bookmarks
                WHERE url = ? AND {NOT_DELETED}
                ORDER BY {NEWEST_FIRST}
                LIMIT 1
                """,
                (url,),
            ).fetchone()
        if row is None:
            return None
        return to_view(row_to_bookmark(row), self._clock(), suggest=True)

    def fetch_by_action(
        self, action: str, limit: int = DEFAULT_ACTION_LIMIT, offset: int = 0
    ) -> Page:
        """Page through bookmarks whose action is exactly *action*, newest first."""
        _check_page(limit, offset)
        return self._page("action = ?", (action,), limit, offset, f"list {action!r} bookmarks")

    def fetch_triage_queue(self, limit: int = DEFAULT_TRIAGE_LIMIT, offset: int = 0) -> Page:
        """Page through bookmarks with no action yet (missing, empty or read-later)."""
        _check_page(limit, offset)
        return self._page(_TRIAGE_FILTER, (), limit, offset, "list triage queue")

    def list_topics(self) -> list[str]:
        """Distinct non-empty topics in use, sorted."""
        with store_errors("list topics"):
            rows = self._conn.execute(
                f"""
                SELECT DISTINCT topic FROM bookmarks
                WHERE topic IS NOT NULL AND topic != '' AND {NOT_DELETED}
                ORDER BY topic
                """
            ).fetchall()
        return [r["topic"] for r in rows]

    def _page(
        self, where: str, params: tuple, limit: int, offset: int, operation: str
    ) -> Page:
        # Count and rows are separate statements; the read snapshot keeps them in step.
        with store_errors(operation, limit=limit, offset=offset), read_snapshot(self._conn):
            total = self._conn.execute(
                f"SELECT COUNT(*) FROM bookmarks WHERE {where} AND {NOT_DELETED}", params
            ).fetchone()[0]
            rows = self._conn.execute(
                f"""
                SELECT {BOOKMARK_COLUMNS} FROM bookmarks
                WHERE {where} AND {NOT_DELETED}
                ORDER BY {NEWEST_FIRST}
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            ).fetchall()

        now = self._clock()
        return Page(
            bookmarks=[to_view(row_to_bookmark(r), now, suggest=True) for r in rows],
            total=total,
            limit=limit,
            offset=offset,
        )
