"""Forward-only migration runner for the bookmark store schema."""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

_V1_BOOKMARKS = """
CREATE TABLE IF NOT EXISTS bookmarks (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp   DATETIME DEFAULT CURRENT_TIMESTAMP,
    url         TEXT NOT NULL,
    title       TEXT NOT NULL,
    description TEXT,
    content     TEXT,
    action      TEXT,
    shareTo     TEXT,
    topic       TEXT
);
"""

_V2_PROJECTS = """
CREATE TABLE IF NOT EXISTS projects (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT NOT NULL UNIQUE,
    description TEXT,
    status      TEXT DEFAULT 'active',
    created_at  DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at  DATETIME DEFAULT CURRENT_TIMESTAMP
);
"""

_V3_PROJECT_ID = """
ALTER TABLE bookmarks ADD COLUMN project_id INTEGER REFERENCES projects(id);
"""

# Legacy rows only carried a free-text topic: give every topic a project.
_V4_TOPICS_TO_PROJECTS = """
INSERT OR IGNORE INTO projects (name, description, status, created_at, updated_at)
SELECT DISTINCT topic, 'Migrated from topic: ' || topic, 'active', CURRENT_TIMESTAMP, CURRENT_TIMESTAMP
FROM bookmarks
WHERE topic IS NOT NULL AND topic != '';

UPDATE bookmarks
SET project_id = (SELECT p.id FROM projects p WHERE p.name = bookmarks.topic)
WHERE topic IS NOT NULL AND topic != '' AND project_id IS NULL;
"""

_V5_TAGS_AND_PROPERTIES = """
ALTER TABLE bookmarks ADD COLUMN tags TEXT DEFAULT '[]';
ALTER TABLE bookmarks ADD COLUMN custom_properties TEXT DEFAULT '{}';
"""

_V6_SOFT_DELETE_AND_INDEXES = """
ALTER TABLE bookmarks ADD COLUMN deleted BOOLEAN NOT NULL DEFAULT 0;

CREATE INDEX IF NOT EXISTS idx_bookmarks_action ON bookmarks(action);
CREATE INDEX IF NOT EXISTS idx_bookmarks_topic ON bookmarks(topic);
CREATE INDEX IF NOT EXISTS idx_bookmarks_deleted ON bookmarks(deleted);
CREATE INDEX IF NOT EXISTS idx_bookmarks_timestamp ON bookmarks(timestamp DESC);
CREATE INDEX IF NOT EXISTS idx_bookmarks_project_id ON bookmarks(project_id);
CREATE INDEX IF NOT EXISTS idx_bookmarks_url ON bookmarks(url);
"""

# Append-only. Each entry: (version: int, sql: str).
# executescript() issues an implicit COMMIT before running.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_BOOKMARKS),
    (2, _V2_PROJECTS),
    (3, _V3_PROJECT_ID),
    (4, _V4_TOPICS_TO_PROJECTS),
    (5, _V5_TAGS_AND_PROPERTIES),
    (6, _V6_SOFT_DELETE_AND_INDEXES),
]


def current_version(conn: sqlite3.Connection) -> int:
    """Return the highest applied migration version (0 for a fresh database)."""
    conn.execute(_CREATE_SCHEMA_VERSION)
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return row[0] if row[0] is not None else 0


def run_migrations(conn: sqlite3.Connection) -> None:
    """Apply all pending migrations in ascending version order.

    Idempotent: safe to call on a database at any version.
    """
    current = current_version(conn)
    conn.commit()

    for version, sql in MIGRATIONS:
        if version > current:
            logger.info("Applying schema migration %d", version)
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (version,)
            )
            conn.commit()
