"""Tests for request parsing and view rendering."""

from __future__ import annotations

from bookminder.db.models import (
    Bookmark,
    BookmarkCreate,
    BookmarkPatch,
    BookmarkReplace,
    BookmarkView,
    ProjectStat,
)


def test_create_from_dict_reads_camel_case():
    req = BookmarkCreate.from_dict(
        {
            "url": "https://a.b",
            "title": "T",
            "shareTo": "Team",
            "projectId": 4,
            "customProperties": {"k": "v"},
            "tags": ["x"],
        }
    )
    assert req.share_to == "Team"
    assert req.project_id == 4
    assert req.custom_properties == {"k": "v"}
    assert req.tags == ["x"]


def test_patch_from_dict_treats_empty_as_absent():
    req = BookmarkPatch.from_dict({"action": "share", "topic": "", "projectId": 0})
    assert req.topic is None
    assert req.project_id is None
    assert req.share_to == ""


def test_replace_from_dict_defaults():
    req = BookmarkReplace.from_dict({"title": "T", "url": "https://a.b"})
    assert req.description == ""
    assert req.topic is None
    assert req.tags is None


def test_view_to_dict_optional_keys():
    bookmark = Bookmark(id=1, url="https://a.b", title="T", timestamp="2024-05-01 12:00:00")
    data = BookmarkView(bookmark, domain="a.b", age="1h").to_dict()
    assert data["topic"] == ""
    for key in ("projectId", "suggested", "tags", "customProperties"):
        assert key not in data


def test_view_to_dict_with_project_and_suggestion():
    bookmark = Bookmark(
        id=1, url="https://a.b", title="T", timestamp="", topic="Go", project_id=3, tags=["x"]
    )
    data = BookmarkView(bookmark, domain="a.b", age="unknown", suggested="share").to_dict()
    assert data["topic"] == "Go"
    assert data["projectId"] == 3
    assert data["suggested"] == "share"
    assert data["tags"] == ["x"]


def test_project_stat_wire_keys():
    stat = ProjectStat("Go", 2, "2024-05-01T12:00:00Z", "active", "https://go.dev", "Go")
    assert stat.to_dict() == {
        "topic": "Go",
        "count": 2,
        "lastUpdated": "2024-05-01T12:00:00Z",
        "status": "active",
        "latestURL": "https://go.dev",
        "latestTitle": "Go",
    }


def test_whitespace_topic_is_absent():
    assert BookmarkPatch.from_dict({"topic": "  \t"}).topic is None
    assert BookmarkCreate.from_dict({"url": "https://a.b", "title": "T", "topic": " "}).topic is None
    assert BookmarkReplace.from_dict({"url": "https://a.b", "title": "T", "topic": "\n"}).topic is None
