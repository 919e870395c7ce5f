"""Tests for the bookmark commands: add, show, list, update, edit, delete."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from bookminder.cli.main import app

runner = CliRunner()


@pytest.fixture
def db(db_path: Path) -> Path:
    result = runner.invoke(app, ["--db", str(db_path), "init"])
    assert result.exit_code == 0, result.output
    return db_path


def _run(db: Path, *args: str, input: str | None = None):
    return runner.invoke(app, ["--db", str(db), *args], input=input)


def _json(db: Path, *args: str) -> dict:
    result = _run(db, *args, "--json")
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


# ---------------------------------------------------------------------------
# add / show
# ---------------------------------------------------------------------------


def test_add_and_show(db: Path) -> None:
    result = _run(db, "add", "https://golang.org/doc", "--title", "Go docs")
    assert result.exit_code == 0, result.output
    assert "Saved bookmark" in result.output

    data = _json(db, "show", "1")
    assert data["url"] == "https://golang.org/doc"
    assert data["domain"] == "golang.org"
    assert data["age"] == "just now"
    assert data["topic"] == ""
    assert "projectId" not in data


def test_add_with_everything(db: Path) -> None:
    data = _json(
        db, "add", "https://example.com", "-t", "Ex", "--action", "working", "--topic", "Go",
        "--tag", "a", "--tag", "b", "--prop", "priority=high",
    )
    assert data["action"] == "working"
    assert data["topic"] == "Go"
    assert isinstance(data["projectId"], int)
    assert data["tags"] == ["a", "b"]
    assert data["customProperties"] == {"priority": "high"}


def test_add_rejects_non_http_url(db: Path) -> None:
    result = _run(db, "add", "ftp://example.com/file", "--title", "F")
    assert result.exit_code == 1
    assert "http" in result.output


def test_add_rejects_blank_title(db: Path) -> None:
    result = _run(db, "add", "https://example.com", "--title", " ")
    assert result.exit_code == 1
    assert "title" in result.output


def test_add_bad_property_is_usage_error(db: Path) -> None:
    result = _run(db, "add", "https://example.com", "--title", "X", "--prop", "novalue")
    assert result.exit_code == 2


def test_show_missing_exits_1(db: Path) -> None:
    result = _run(db, "show", "42")
    assert result.exit_code == 1
    assert "not found" in result.output
    assert "bookminder list" in result.output


def test_show_panel(db: Path) -> None:
    _run(db, "add", "https://example.com", "--title", "Panel", "--topic", "Go")
    result = _run(db, "show", "1")
    assert result.exit_code == 0
    assert "Panel" in result.output
    assert "example.com" in result.output


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


def test_list_defaults_to_triage_queue(db: Path) -> None:
    _run(db, "add", "https://a.example", "--title", "A")
    _run(db, "add", "https://b.example", "--title", "B", "--action", "working")

    data = _json(db, "list")
    assert data["total"] == 1
    assert data["limit"] == 10
    assert [b["title"] for b in data["bookmarks"]] == ["A"]
    assert data["bookmarks"][0]["suggested"] == "read-later"


def test_list_by_action(db: Path) -> None:
    _run(db, "add", "https://a.example", "--title", "A")
    _run(db, "add", "https://b.example", "--title", "B", "--action", "working")

    data = _json(db, "list", "--action", "working", "--limit", "5")
    assert data["total"] == 1
    assert data["limit"] == 5
    assert data["bookmarks"][0]["title"] == "B"


def test_list_table_output(db: Path) -> None:
    _run(db, "add", "https://github.com/x", "--title", "Repo")
    result = _run(db, "list")
    assert result.exit_code == 0
    assert "Triage queue" in result.output
    assert "share" in result.output


def test_list_empty(db: Path) -> None:
    result = _run(db, "list")
    assert result.exit_code == 0
    assert "nothing here" in result.output


def test_list_limit_from_config(db: Path, tmp_path: Path) -> None:
    (tmp_path / "bookminder.yaml").write_text("listing:\n  triage_limit: 3\n", encoding="utf-8")
    assert _json(db, "list")["limit"] == 3


# ---------------------------------------------------------------------------
# update / edit
# ---------------------------------------------------------------------------


def test_update_without_topic_clears_project(db: Path) -> None:
    _run(db, "add", "https://a.example", "--title", "A", "--action", "working", "--topic", "Go")

    data = _json(db, "update", "1", "--action", "share", "--share-to", "Team")
    assert data["action"] == "share"
    assert data["shareTo"] == "Team"
    assert data["topic"] == ""
    assert "projectId" not in data


def test_update_with_project_id(db: Path) -> None:
    _run(db, "projects", "create", "Reading")
    _run(db, "add", "https://a.example", "--title", "A")
    data = _json(db, "update", "1", "--action", "working", "--project-id", "1")
    assert data["topic"] == "Reading"
    assert data["projectId"] == 1


def test_update_missing_bookmark(db: Path) -> None:
    result = _run(db, "update", "9", "--action", "share")
    assert result.exit_code == 1
    assert "not found" in result.output


def test_update_blank_topic_leaves_no_project(db: Path) -> None:
    _run(db, "add", "https://a.example", "--title", "A", "--topic", "Go")
    data = _json(db, "update", "1", "--action", "working", "--topic", "   ")
    assert data["topic"] == ""
    assert "projectId" not in data
    overview = _json(db, "projects", "list")
    assert overview["activeProjects"] == []


def test_update_help_lists_actions(db: Path) -> None:
    result = _run(db, "update", "--help")
    assert result.exit_code == 0
    assert "irrelevant" in result.output


def test_edit_replaces_fields(db: Path) -> None:
    _run(db, "add", "https://a.example", "--title", "A", "--description", "old")
    data = _json(db, "edit", "1", "--title", "New", "--url", "https://b.example")
    assert data["title"] == "New"
    assert data["url"] == "https://b.example"
    assert data["description"] == ""


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


def test_delete_with_yes(db: Path) -> None:
    _run(db, "add", "https://a.example", "--title", "A")
    result = _run(db, "delete", "1", "--yes")
    assert result.exit_code == 0
    assert "Deleted bookmark 1" in result.output
    assert _run(db, "show", "1").exit_code == 1


def test_delete_cancelled(db: Path) -> None:
    _run(db, "add", "https://a.example", "--title", "A")
    result = _run(db, "delete", "1", input="n\n")
    assert result.exit_code == 0
    assert "Cancelled" in result.output
    assert _run(db, "show", "1").exit_code == 0
