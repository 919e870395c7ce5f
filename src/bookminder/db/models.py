"""Domain models for the bookmark store: stored rows, requests, and view records.

Requests accept the camelCase wire keys through ``from_dict``; view records
render them back through ``to_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Recognised workflow actions. The set is open: other labels are stored as given.
READ_LATER = "read-later"
WORKING = "working"
SHARE = "share"
ARCHIVED = "archived"
IRRELEVANT = "irrelevant"
ACTIONS = (READ_LATER, WORKING, SHARE, ARCHIVED, IRRELEVANT)

PROJECT_ACTIVE = "active"


def _opt_int(value: Any) -> int | None:
    if value in (None, "", 0):
        return None
    return int(value)


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


# ---------------------------------------------------------------------------
# Stored entities
# ---------------------------------------------------------------------------


@dataclass
class Bookmark:
    id: int
    url: str
    title: str
    timestamp: str
    description: str = ""
    content: str = ""
    action: str = ""
    share_to: str = ""
    topic: str | None = None
    project_id: int | None = None
    tags: list[str] = field(default_factory=list)
    custom_properties: dict[str, str] = field(default_factory=dict)
    deleted: bool = False


@dataclass
class Project:
    id: int
    name: str
    description: str = ""
    status: str = PROJECT_ACTIVE
    created_at: str | None = None
    updated_at: str | None = None
    link_count: int = 0  # working bookmarks; only filled by get_project()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "linkCount": self.link_count,
            "createdAt": self.created_at or "",
            "updatedAt": self.updated_at or "",
        }


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


@dataclass
class BookmarkCreate:
    """Create request: ``{url, title, description?, content?, action?, shareTo?,
    topic?, projectId?, tags?, customProperties?}``."""

    url: str
    title: str
    description: str = ""
    content: str = ""
    action: str = ""
    share_to: str = ""
    topic: str | None = None
    project_id: int | None = None
    tags: list[str] | None = None
    custom_properties: dict[str, str] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BookmarkCreate:
        return cls(
            url=data.get("url") or "",
            title=data.get("title") or "",
            description=data.get("description") or "",
            content=data.get("content") or "",
            action=data.get("action") or "",
            share_to=data.get("shareTo") or "",
            topic=_opt_str(data.get("topic")),
            project_id=_opt_int(data.get("projectId")),
            tags=data.get("tags"),
            custom_properties=data.get("customProperties"),
        )


@dataclass
class BookmarkPatch:
    """Partial update: ``{action?, shareTo?, topic?, projectId?, tags?, customProperties?}``.

    action, shareTo, tags and customProperties are always written. Leaving out
    both topic and projectId clears the project association.
    """

    action: str = ""
    share_to: str = ""
    topic: str | None = None
    project_id: int | None = None
    tags: list[str] | None = None
    custom_properties: dict[str, str] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BookmarkPatch:
        return cls(
            action=data.get("action") or "",
            share_to=data.get("shareTo") or "",
            topic=_opt_str(data.get("topic")),
            project_id=_opt_int(data.get("projectId")),
            tags=data.get("tags"),
            custom_properties=data.get("customProperties"),
        )


@dataclass
class BookmarkReplace:
    """Full update: ``{title, url, description?, action?, shareTo?, topic?, tags?,
    customProperties?}``. Omitted fields are written as empty."""

    title: str
    url: str
    description: str = ""
    action: str = ""
    share_to: str = ""
    topic: str | None = None
    tags: list[str] | None = None
    custom_properties: dict[str, str] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BookmarkReplace:
        return cls(
            title=data.get("title") or "",
            url=data.get("url") or "",
            description=data.get("description") or "",
            action=data.get("action") or "",
            share_to=data.get("shareTo") or "",
            topic=_opt_str(data.get("topic")),
            tags=data.get("tags"),
            custom_properties=data.get("customProperties"),
        )


@dataclass
class ProjectCreate:
    name: str
    description: str = ""
    status: str = ""


@dataclass
class ProjectUpdate:
    """Only non-empty fields are applied. ``name=""`` (explicitly blank) is rejected."""

    name: str | None = None
    description: str = ""
    status: str = ""


# ---------------------------------------------------------------------------
# View records
# ---------------------------------------------------------------------------


@dataclass
class BookmarkView:
    """A bookmark as returned to callers, with read-time derived fields."""

    bookmark: Bookmark
    domain: str
    age: str
    suggested: str | None = None  # listings only

    @property
    def id(self) -> int:
        return self.bookmark.id

    def to_dict(self) -> dict[str, Any]:
        b = self.bookmark
        data: dict[str, Any] = {
            "id": b.id,
            "url": b.url,
            "title": b.title,
            "description": b.description,
            "content": b.content,
            "timestamp": b.timestamp,
            "domain": self.domain,
            "age": self.age,
            "action": b.action,
            "shareTo": b.share_to,
            "topic": b.topic or "",
        }
        if self.suggested is not None:
            data["suggested"] = self.suggested
        if b.project_id is not None:
            data["projectId"] = b.project_id
        if b.tags:
            data["tags"] = list(b.tags)
        if b.custom_properties:
            data["customProperties"] = dict(b.custom_properties)
        return data


@dataclass
class Page:
    """One page of a listing plus the total row count for the same filter."""

    bookmarks: list[BookmarkView]
    total: int
    limit: int
    offset: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "bookmarks": [b.to_dict() for b in self.bookmarks],
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
        }


@dataclass
class ActiveProject:
    id: int
    topic: str
    link_count: int
    last_updated: str
    status: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "topic": self.topic,
            "linkCount": self.link_count,
            "lastUpdated": self.last_updated,
            "status": self.status,
        }


@dataclass
class ReferenceCollection:
    topic: str
    link_count: int
    last_accessed: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "linkCount": self.link_count,
            "lastAccessed": self.last_accessed,
        }


@dataclass
class ProjectsOverview:
    active_projects: list[ActiveProject]
    reference_collections: list[ReferenceCollection]

    def to_dict(self) -> dict[str, Any]:
        return {
            "activeProjects": [p.to_dict() for p in self.active_projects],
            "referenceCollections": [c.to_dict() for c in self.reference_collections],
        }


@dataclass
class ProjectDetail:
    topic: str
    link_count: int
    last_updated: str
    status: str
    bookmarks: list[BookmarkView]

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "linkCount": self.link_count,
            "lastUpdated": self.last_updated,
            "status": self.status,
            "bookmarks": [b.to_dict() for b in self.bookmarks],
        }


@dataclass
class ProjectStat:
    topic: str
    count: int
    last_updated: str
    status: str
    latest_url: str = ""
    latest_title: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "count": self.count,
            "lastUpdated": self.last_updated,
            "status": self.status,
            "latestURL": self.latest_url,
            "latestTitle": self.latest_title,
        }


@dataclass
class SummaryStats:
    needs_triage: int
    active_projects: int
    ready_to_share: int
    archived: int
    total_bookmarks: int
    project_stats: list[ProjectStat] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "needsTriage": self.needs_triage,
            "activeProjects": self.active_projects,
            "readyToShare": self.ready_to_share,
            "archived": self.archived,
            "totalBookmarks": self.total_bookmarks,
            "projectStats": [p.to_dict() for p in self.project_stats],
        }
