"""Project resolution and project-level views.

A bookmark names its project two ways: the legacy free-text ``topic`` and the
normalized ``project_id``. The resolver turns either into both, creating a
project on first use of a new topic name, so that after any write it mediates
``topic`` equals the linked project's name.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime

from bookminder.db.connection import read_snapshot, store_errors, write_transaction
from bookminder.db.models import (
    PROJECT_ACTIVE,
    WORKING,
    ActiveProject,
    Project,
    ProjectCreate,
    ProjectDetail,
    ProjectsOverview,
    ProjectUpdate,
    ReferenceCollection,
)
from bookminder.db.rows import (
    BOOKMARK_COLUMNS,
    NEWEST_FIRST,
    NOT_DELETED,
    PROJECT_COLUMNS,
    moment,
    not_deleted,
    row_to_bookmark,
    row_to_project,
    to_view,
)
from bookminder.derive import (
    ACTIVE_DAYS,
    STALE_DAYS,
    display_status,
    format_timestamp,
    parse_timestamp,
    to_rfc3339,
    utcnow,
)
from bookminder.errors import ConflictError, NotFoundError, ValidationError
from bookminder.logs import sanitize_for_log

logger = logging.getLogger(__name__)

PROJECT_ARCHIVED = "archived"
REFERENCE_COLLECTION_LIMIT = 10

_ACTIVE_PROJECTS_SQL = f"""
SELECT
    p.id,
    p.name AS topic,
    COUNT(b.id) AS link_count,
    COALESCE(MAX({moment("b")}), datetime(p.updated_at)) AS last_updated
FROM projects p
LEFT JOIN bookmarks b
    ON (b.project_id = p.id OR b.topic = p.name) AND {not_deleted("b")}
WHERE p.status = '{PROJECT_ACTIVE}'
GROUP BY p.id, p.name, p.updated_at
HAVING COUNT(b.id) > 0
ORDER BY last_updated DESC, p.id DESC
"""

_REFERENCE_COLLECTIONS_SQL = f"""
SELECT topic, COUNT(*) AS link_count, MAX({moment()}) AS last_accessed
FROM bookmarks
WHERE topic IS NOT NULL AND topic != '' AND {NOT_DELETED}
  AND topic NOT IN (
      SELECT DISTINCT topic FROM bookmarks
      WHERE action = '{WORKING}' AND topic IS NOT NULL AND topic != '' AND {NOT_DELETED}
  )
GROUP BY topic
ORDER BY COUNT(*) DESC, last_accessed DESC
LIMIT ?
"""


class ProjectResolver:
    """Maps topics to projects and serves project listings and details.

    Wraps an open sqlite3.Connection owned by the caller.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        clock: Callable[[], datetime] = utcnow,
        active_days: int = ACTIVE_DAYS,
        stale_days: int = STALE_DAYS,
    ) -> None:
        self._conn = conn
        self._clock = clock
        self._active_days = active_days
        self._stale_days = stale_days

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_topic(self, name: str) -> int:
        """Return the id of the project called *name*, creating it if needed.

        Runs lookup and insert in one transaction, or inside the caller's if one
        is already open. The UNIQUE constraint on ``projects.name`` plus
        ``INSERT OR IGNORE`` means concurrent first use of the same name still
        ends with a single project.
        """
        if not name or not name.strip():
            raise ValidationError.missing("topic")
        with store_errors("resolve topic", topic=name):
            with write_transaction(self._conn):
                return self._find_or_create(name)

    def resolve_project_id(self, project_id: int) -> str:
        """Return the name of project *project_id*.

        Raises:
            NotFoundError: No project has that id.
        """
        with store_errors("resolve project", project_id=project_id):
            return self._name_for(project_id)

    def associate(self, topic: str | None, project_id: int | None) -> tuple[str | None, int | None]:
        """Work out the ``(topic, project_id)`` pair to store on a bookmark.

        * a project id wins: its name becomes the topic
        * otherwise a topic is found or created as a project
        * neither given, or a blank topic, clears the association: ``(None, None)``

        Statements run in the caller's transaction; nothing is committed here.
        """
        if project_id is not None:
            return self._name_for(project_id), project_id
        if topic and topic.strip():
            return topic, self._find_or_create(topic)
        return None, None

    def _name_for(self, project_id: int) -> str:
        row = self._conn.execute(
            "SELECT name FROM projects WHERE id = ?", (project_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError("project", project_id)
        return row["name"]

    def _find_or_create(self, name: str) -> int:
        row = self._conn.execute("SELECT id FROM projects WHERE name = ?", (name,)).fetchone()
        if row is not None:
            return row["id"]

        now = format_timestamp(self._clock())
        self._conn.execute(
            """
            INSERT OR IGNORE INTO projects (name, description, status, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (name, f"Auto-created for topic: {name}", PROJECT_ACTIVE, now, now),
        )
        row = self._conn.execute("SELECT id FROM projects WHERE name = ?", (name,)).fetchone()
        logger.info("Created project %r (id %s) for new topic", sanitize_for_log(name), row["id"])
        return row["id"]

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def list_active_projects(self) -> list[ActiveProject]:
        """Active projects that have at least one bookmark, most recent activity first.

        Bookmarks count towards a project when linked by id or, for legacy rows,
        when their topic equals the project name.
        """
        now = self._clock()
        with store_errors("list active projects"):
            rows = self._conn.execute(_ACTIVE_PROJECTS_SQL).fetchall()
        return [
            ActiveProject(
                id=r["id"],
                topic=r["topic"],
                link_count=r["link_count"],
                last_updated=to_rfc3339(r["last_updated"]),
                status=self._status(r["last_updated"], now),
            )
            for r in rows
        ]

    def list_reference_collections(self) -> list[ReferenceCollection]:
        """Topics with bookmarks that no ``working`` bookmark uses (top 10)."""
        with store_errors("list reference collections"):
            rows = self._conn.execute(
                _REFERENCE_COLLECTIONS_SQL, (REFERENCE_COLLECTION_LIMIT,)
            ).fetchall()
        return [
            ReferenceCollection(
                topic=r["topic"],
                link_count=r["link_count"],
                last_accessed=to_rfc3339(r["last_accessed"]),
            )
            for r in rows
        ]

    def list_projects(self) -> ProjectsOverview:
        with store_errors("list projects"), read_snapshot(self._conn):
            return ProjectsOverview(
                active_projects=self.list_active_projects(),
                reference_collections=self.list_reference_collections(),
            )

    # ------------------------------------------------------------------
    # Details
    # ------------------------------------------------------------------

    def project_detail(self, topic: str) -> ProjectDetail:
        """Summary and bookmarks for a legacy topic.

        Count and last activity come from the topic's ``working`` bookmarks when
        it has any, otherwise from all of its bookmarks.

        Raises:
            NotFoundError: No bookmark uses *topic*.
        """
        now = self._clock()
        with store_errors("project detail", topic=topic), read_snapshot(self._conn):
            count, last = self._conn.execute(
                f"""
                SELECT COUNT(*), MAX({moment()}) FROM bookmarks
                WHERE topic = ? AND action = '{WORKING}' AND {NOT_DELETED}
                """,
                (topic,),
            ).fetchone()
            if count == 0:
                count, last = self._conn.execute(
                    f"SELECT COUNT(*), MAX({moment()}) FROM bookmarks WHERE topic = ? AND {NOT_DELETED}",
                    (topic,),
                ).fetchone()
            if count == 0:
                raise NotFoundError("project", topic)
            rows = self._conn.execute(
                f"""
                SELECT {BOOKMARK_COLUMNS} FROM bookmarks
                WHERE topic = ? AND {NOT_DELETED}
                ORDER BY {NEWEST_FIRST}
                """,
                (topic,),
            ).fetchall()

        return ProjectDetail(
            topic=topic,
            link_count=count,
            last_updated=to_rfc3339(last),
            status=self._status(last, now),
            bookmarks=[to_view(row_to_bookmark(r), now) for r in rows],
        )

    def project_detail_by_id(self, project_id: int) -> ProjectDetail:
        """Summary and bookmarks for a project, by id.

        Last activity is the later of the project's ``updated_at`` and its newest
        linked bookmark.

        Raises:
            NotFoundError: No project has that id.
        """
        now = self._clock()
        with store_errors("project detail", project_id=project_id), read_snapshot(self._conn):
            row = self._conn.execute(
                f"SELECT {PROJECT_COLUMNS} FROM projects WHERE id = ?", (project_id,)
            ).fetchone()
            if row is None:
                raise NotFoundError("project", project_id)
            project = row_to_project(row)
            count, last_bookmark = self._conn.execute(
                f"SELECT COUNT(*), MAX({moment()}) FROM bookmarks WHERE project_id = ? AND {NOT_DELETED}",
                (project_id,),
            ).fetchone()
            rows = self._conn.execute(
                f"""
                SELECT {BOOKMARK_COLUMNS} FROM bookmarks
                WHERE project_id = ? AND {NOT_DELETED}
                ORDER BY {NEWEST_FIRST}
                """,
                (project_id,),
            ).fetchall()

        last = project.updated_at
        bookmark_time = parse_timestamp(last_bookmark)
        project_time = parse_timestamp(project.updated_at)
        if bookmark_time is not None and (project_time is None or bookmark_time > project_time):
            last = last_bookmark

        return ProjectDetail(
            topic=project.name,
            link_count=count,
            last_updated=to_rfc3339(last),
            status=self._status(last, now),
            bookmarks=[to_view(row_to_bookmark(r), now) for r in rows],
        )

    # ------------------------------------------------------------------
    # Project management
    # ------------------------------------------------------------------

    def create_project(self, request: ProjectCreate) -> Project:
        """Create a project explicitly.

        Raises:
            ValidationError: The name is blank.
            ConflictError: A project with that name already exists.
        """
        name = (request.name or "").strip()
        if not name:
            raise ValidationError.missing("name")
        status = request.status or PROJECT_ACTIVE
        now = format_timestamp(self._clock())

        with store_errors("create project", name=name):
            try:
                with write_transaction(self._conn):
                    cur = self._conn.execute(
                        """
                        INSERT INTO projects (name, description, status, created_at, updated_at)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        (name, request.description, status, now, now),
                    )
            except sqlite3.IntegrityError:
                raise ConflictError(name) from None

        logger.info("Created project %r (id %s)", sanitize_for_log(name), cur.lastrowid)
        return Project(
            id=cur.lastrowid,
            name=name,
            description=request.description,
            status=status,
            created_at=now,
            updated_at=now,
        )

    def get_project(self, project_id: int) -> Project:
        """Return a project with the count of its ``working`` bookmarks.

        Raises:
            NotFoundError: No project has that id.
        """
        with store_errors("get project", project_id=project_id):
            row = self._conn.execute(
                f"""
                SELECT p.id, p.name, p.description, p.status, p.created_at, p.updated_at,
                       COUNT(b.id) AS link_count
                FROM projects p
                LEFT JOIN bookmarks b
                    ON (b.project_id = p.id OR b.topic = p.name)
                    AND b.action = '{WORKING}'
                    AND {not_deleted("b")}
                WHERE p.id = ?
                GROUP BY p.id
                """,
                (project_id,),
            ).fetchone()
        if row is None:
            raise NotFoundError("project", project_id)
        project = row_to_project(row)
        project.link_count = row["link_count"]
        return project

    def update_project(self, project_id: int, request: ProjectUpdate) -> Project:
        """Apply the non-empty fields of *request* and refresh ``updated_at``.

        Renaming does not touch bookmark topics.

        Raises:
            ValidationError: ``name`` was given but is blank.
            NotFoundError: No project has that id.
            ConflictError: The new name is taken by another project.
        """
        if request.name is not None and not request.name.strip():
            raise ValidationError("Project name cannot be empty", ["name"])

        assignments: list[tuple[str, str]] = []
        if request.name:
            assignments.append(("name", request.name.strip()))
        if request.description:
            assignments.append(("description", request.description))
        if request.status:
            assignments.append(("status", request.status))
        if not assignments:
            return self.get_project(project_id)
        assignments.append(("updated_at", format_timestamp(self._clock())))

        # Column names come from the fixed list above, never from the caller.
        set_clause = ", ".join(f"{column} = ?" for column, _ in assignments)
        params = [value for _, value in assignments] + [project_id]

        with store_errors("update project", project_id=project_id):
            try:
                with write_transaction(self._conn):
                    cur = self._conn.execute(
                        f"UPDATE projects SET {set_clause} WHERE id = ?", params
                    )
            except sqlite3.IntegrityError:
                raise ConflictError(request.name or "") from None
        if cur.rowcount == 0:
            raise NotFoundError("project", project_id)

        return self.get_project(project_id)

    def archive_project(self, project_id: int) -> Project:
        """Set the administrative status to ``archived`` (drops it from active listings)."""
        return self.update_project(project_id, ProjectUpdate(status=PROJECT_ARCHIVED))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _status(self, last_updated: str | None, now: datetime) -> str:
        return display_status(
            last_updated, now, active_days=self._active_days, stale_days=self._stale_days
        )
