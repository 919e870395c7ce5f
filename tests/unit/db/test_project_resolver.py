"""Tests for the ProjectResolver: topic resolution, listings, details, management."""

from __future__ import annotations

import pytest

from bookminder.db.connection import Database
from bookminder.db.models import BookmarkCreate, ProjectCreate, ProjectUpdate
from bookminder.db.projects import ProjectResolver
from bookminder.db.schema import initialize
from bookminder.errors import ConflictError, NotFoundError, ValidationError


def _bookmark(repo, title="B", action="", topic=None, url="https://example.com"):
    return repo.create(BookmarkCreate(url=url, title=title, action=action, topic=topic))


def _legacy_row(conn, topic, action="", timestamp="2024-05-01 10:00:00"):
    """A pre-projects row: topic set, no project_id."""
    conn.execute(
        "INSERT INTO bookmarks (url, title, action, topic, timestamp) VALUES (?, ?, ?, ?, ?)",
        ("https://legacy.example", "Legacy", action, topic, timestamp),
    )
    conn.commit()


# ------------------------------------------------------------------
# Resolution
# ------------------------------------------------------------------

def test_resolve_topic_creates_once(resolver, tmp_db):
    first = resolver.resolve_topic("NewTopic")
    second = resolver.resolve_topic("NewTopic")
    assert first == second
    count = tmp_db.execute("SELECT COUNT(*) FROM projects WHERE name = 'NewTopic'").fetchone()[0]
    assert count == 1


def test_resolve_topic_defaults(resolver, tmp_db):
    project_id = resolver.resolve_topic("Go")
    row = tmp_db.execute(
        "SELECT description, status, created_at FROM projects WHERE id = ?", (project_id,)
    ).fetchone()
    assert row["description"] == "Auto-created for topic: Go"
    assert row["status"] == "active"
    assert row["created_at"] == "2024-05-01 12:00:00"


def test_resolve_topic_is_exact_match(resolver):
    assert resolver.resolve_topic("go") != resolver.resolve_topic("Go")


def test_resolve_topic_blank(resolver):
    with pytest.raises(ValidationError):
        resolver.resolve_topic("  ")


def test_resolve_topic_shared_across_connections(tmp_path, clock):
    """Two connections resolving the same new name end with one project."""
    path = tmp_path / "shared.db"
    a = Database(path).connect()
    initialize(a)
    b = Database(path).connect()
    try:
        id_a = ProjectResolver(a, clock=clock).resolve_topic("Shared")
        id_b = ProjectResolver(b, clock=clock).resolve_topic("Shared")
        assert id_a == id_b
        assert a.execute("SELECT COUNT(*) FROM projects").fetchone()[0] == 1
    finally:
        a.close()
        b.close()


def test_resolve_project_id(resolver):
    project_id = resolver.resolve_topic("Go")
    assert resolver.resolve_project_id(project_id) == "Go"


def test_resolve_project_id_missing(resolver):
    with pytest.raises(NotFoundError) as excinfo:
        resolver.resolve_project_id(404)
    assert excinfo.value.kind == "project"


def test_associate_rules(resolver):
    go = resolver.resolve_topic("Go")
    assert resolver.associate(None, go) == ("Go", go)
    assert resolver.associate("Other", go) == ("Go", go)
    topic, project_id = resolver.associate("Fresh", None)
    assert topic == "Fresh" and project_id is not None
    assert resolver.associate(None, None) == (None, None)
    assert resolver.associate("", None) == (None, None)


# ------------------------------------------------------------------
# Active projects
# ------------------------------------------------------------------

def test_active_projects_need_a_bookmark(resolver, repo):
    resolver.resolve_topic("Empty")
    _bookmark(repo, topic="Busy")
    assert [p.topic for p in resolver.list_active_projects()] == ["Busy"]


def test_active_projects_count_legacy_topic_rows(resolver, repo, tmp_db):
    _bookmark(repo, topic="Go")
    _legacy_row(tmp_db, "Go")
    [project] = resolver.list_active_projects()
    assert project.topic == "Go"
    assert project.link_count == 2


def test_active_projects_ordered_by_recency(resolver, repo, clock):
    _bookmark(repo, topic="Old")
    clock.advance(days=10)
    _bookmark(repo, topic="New")
    projects = resolver.list_active_projects()
    assert [p.topic for p in projects] == ["New", "Old"]
    assert projects[0].status == "active"
    assert projects[1].status == "stale"
    assert projects[0].last_updated == "2024-05-11T12:00:00Z"


def test_active_projects_skip_archived(resolver, repo):
    view = _bookmark(repo, topic="Go")
    resolver.archive_project(view.bookmark.project_id)
    assert resolver.list_active_projects() == []


def test_active_projects_ignore_deleted_bookmarks(resolver, repo):
    view = _bookmark(repo, topic="Go")
    repo.soft_delete(view.id)
    assert resolver.list_active_projects() == []


# ------------------------------------------------------------------
# Reference collections
# ------------------------------------------------------------------

def test_reference_collections_exclude_working_topics(resolver, repo):
    _bookmark(repo, topic="Go", action="working")
    _bookmark(repo, topic="Go", action="read-later")
    _bookmark(repo, topic="Recipes", action="read-later")
    collections = resolver.list_reference_collections()
    assert [c.topic for c in collections] == ["Recipes"]
    assert collections[0].link_count == 1
    assert collections[0].last_accessed == "2024-05-01T12:00:00Z"


def test_reference_collections_order_and_cap(resolver, repo, clock):
    for i in range(12):
        for _ in range(i % 3 + 1):
            _bookmark(repo, topic=f"T{i:02d}")
        clock.advance(minutes=1)
    collections = resolver.list_reference_collections()
    assert len(collections) == 10
    counts = [c.link_count for c in collections]
    assert counts == sorted(counts, reverse=True)
    # Among equal counts the most recent topic comes first.
    assert collections[0].topic == "T11"


def test_list_projects_overview(resolver, repo):
    _bookmark(repo, topic="Go", action="working")
    _bookmark(repo, topic="Recipes")
    data = resolver.list_projects().to_dict()
    assert {p["topic"] for p in data["activeProjects"]} == {"Go", "Recipes"}
    assert [c["topic"] for c in data["referenceCollections"]] == ["Recipes"]


# ------------------------------------------------------------------
# Details
# ------------------------------------------------------------------

def test_project_detail_prefers_working_counts(resolver, repo):
    _bookmark(repo, topic="Go", action="working")
    _bookmark(repo, topic="Go", action="share")
    detail = resolver.project_detail("Go")
    assert detail.link_count == 1
    assert len(detail.bookmarks) == 2
    assert detail.status == "active"


def test_project_detail_falls_back_to_all_bookmarks(resolver, repo):
    _bookmark(repo, topic="Recipes")
    _bookmark(repo, topic="Recipes")
    assert resolver.project_detail("Recipes").link_count == 2


def test_project_detail_unknown_topic(resolver):
    with pytest.raises(NotFoundError):
        resolver.project_detail("Nope")


def test_project_detail_by_id(resolver, repo, clock):
    project_id = resolver.resolve_topic("Go")
    clock.advance(days=40)
    _bookmark(repo, topic="Go", title="linked")
    detail = resolver.project_detail_by_id(project_id)
    assert detail.topic == "Go"
    assert detail.link_count == 1
    assert detail.last_updated == "2024-06-10T12:00:00Z"
    assert detail.status == "active"
    assert [v.bookmark.title for v in detail.bookmarks] == ["linked"]


def test_project_detail_by_id_without_bookmarks(resolver, clock):
    project_id = resolver.resolve_topic("Quiet")
    clock.advance(days=45)
    detail = resolver.project_detail_by_id(project_id)
    assert detail.link_count == 0
    assert detail.bookmarks == []
    assert detail.status == "inactive"


def test_project_detail_by_id_missing(resolver):
    with pytest.raises(NotFoundError):
        resolver.project_detail_by_id(999)


# ------------------------------------------------------------------
# Management
# ------------------------------------------------------------------

def test_create_project(resolver):
    project = resolver.create_project(ProjectCreate(name=" Garden ", description="plants"))
    assert project.name == "Garden"
    assert project.status == "active"
    assert project.created_at == "2024-05-01 12:00:00"


def test_create_project_conflict(resolver):
    resolver.create_project(ProjectCreate(name="Garden"))
    with pytest.raises(ConflictError):
        resolver.create_project(ProjectCreate(name="Garden"))


def test_create_project_blank_name(resolver):
    with pytest.raises(ValidationError):
        resolver.create_project(ProjectCreate(name=""))


def test_get_project_counts_working_links(resolver, repo):
    view = _bookmark(repo, topic="Go", action="working")
    _bookmark(repo, topic="Go", action="share")
    project = resolver.get_project(view.bookmark.project_id)
    assert project.link_count == 1
    assert project.to_dict()["linkCount"] == 1


def test_update_project_rename(resolver, repo, clock):
    view = _bookmark(repo, topic="Go")
    clock.advance(hours=2)
    project = resolver.update_project(view.bookmark.project_id, ProjectUpdate(name="Golang"))
    assert project.name == "Golang"
    assert project.updated_at == "2024-05-01 14:00:00"
    # Stored bookmark topics are not rewritten.
    assert repo.fetch_by_id(view.id).bookmark.topic == "Go"


def test_update_project_blank_name(resolver):
    project_id = resolver.resolve_topic("Go")
    with pytest.raises(ValidationError):
        resolver.update_project(project_id, ProjectUpdate(name=" "))


def test_update_project_conflict(resolver):
    resolver.resolve_topic("Go")
    rust = resolver.resolve_topic("Rust")
    with pytest.raises(ConflictError):
        resolver.update_project(rust, ProjectUpdate(name="Go"))


def test_update_project_missing(resolver):
    with pytest.raises(NotFoundError):
        resolver.update_project(999, ProjectUpdate(description="x"))


def test_update_project_nothing_to_change(resolver):
    project_id = resolver.resolve_topic("Go")
    assert resolver.update_project(project_id, ProjectUpdate()).name == "Go"


def test_archive_project(resolver):
    project_id = resolver.resolve_topic("Go")
    assert resolver.archive_project(project_id).status == "archived"


def test_projects_survive_bookmark_deletion(resolver, repo, tmp_db):
    view = _bookmark(repo, topic="Go")
    repo.soft_delete(view.id)
    assert tmp_db.execute("SELECT COUNT(*) FROM projects").fetchone()[0] == 1


# ------------------------------------------------------------------
# Transactions and stored timestamp formats
# ------------------------------------------------------------------

def test_resolve_topic_joins_caller_transaction(resolver, tmp_db):
    tmp_db.execute("INSERT INTO projects (name) VALUES ('outer')")
    resolver.resolve_topic("Inner")
    assert tmp_db.in_transaction
    tmp_db.rollback()
    assert tmp_db.execute("SELECT COUNT(*) FROM projects").fetchone()[0] == 0


def test_active_projects_order_mixed_timestamp_formats(resolver, tmp_db):
    resolver.resolve_topic("Legacy")
    resolver.resolve_topic("Current")
    _legacy_row(tmp_db, "Legacy", timestamp="2024-05-01T09:00:00Z")
    _legacy_row(tmp_db, "Current", timestamp="2024-05-01 11:00:00")

    projects = resolver.list_active_projects()

    assert [p.topic for p in projects] == ["Current", "Legacy"]
    assert projects[0].last_updated == "2024-05-01T11:00:00Z"
    assert projects[1].last_updated == "2024-05-01T09:00:00Z"


def test_reference_collections_last_accessed_mixed_formats(resolver, tmp_db):
    _legacy_row(tmp_db, "Recipes", timestamp="2024-05-01 11:00:00")
    _legacy_row(tmp_db, "Recipes", timestamp="2024-05-01T09:00:00Z")
    _legacy_row(tmp_db, "Travel", timestamp="2024-05-01T10:00:00Z")
    _legacy_row(tmp_db, "Travel", timestamp="2024-05-01 08:00:00")

    collections = resolver.list_reference_collections()

    assert [c.topic for c in collections] == ["Recipes", "Travel"]
    assert collections[0].last_accessed == "2024-05-01T11:00:00Z"
    assert collections[1].last_accessed == "2024-05-01T10:00:00Z"
