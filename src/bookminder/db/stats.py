"""Dashboard statistics over the bookmark store."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime

from bookminder.db.connection import read_snapshot, store_errors
from bookminder.db.models import ARCHIVED, READ_LATER, SHARE, WORKING, ProjectStat, SummaryStats
from bookminder.db.rows import NOT_DELETED, moment, not_deleted
from bookminder.derive import ACTIVE_DAYS, STALE_DAYS, display_status, to_rfc3339, utcnow

logger = logging.getLogger(__name__)

PROJECT_STATS_LIMIT = 10

_COUNTS_SQL = f"""
SELECT
    COUNT(*) AS total,
    COALESCE(SUM(CASE WHEN action IS NULL OR action = '' OR action = '{READ_LATER}'
                      THEN 1 ELSE 0 END), 0) AS needs_triage,
    COUNT(DISTINCT CASE WHEN action = '{WORKING}' AND topic IS NOT NULL AND topic != ''
                        THEN topic END) AS active_projects,
    COALESCE(SUM(CASE WHEN action = '{SHARE}' THEN 1 ELSE 0 END), 0) AS ready_to_share,
    COALESCE(SUM(CASE WHEN action = '{ARCHIVED}' THEN 1 ELSE 0 END), 0) AS archived
FROM bookmarks
WHERE {NOT_DELETED}
"""

# Newest working bookmark per topic; ties on timestamp go to the highest id.
_PROJECT_STATS_SQL = f"""
SELECT
    stats.topic,
    stats.count,
    stats.last_updated,
    latest.url AS latest_url,
    latest.title AS latest_title
FROM (
    SELECT topic, COUNT(*) AS count, MAX({moment()}) AS last_updated
    FROM bookmarks
    WHERE action = '{WORKING}' AND topic IS NOT NULL AND topic != '' AND {NOT_DELETED}
    GROUP BY topic
) stats
LEFT JOIN bookmarks latest ON latest.id = (
    SELECT MAX(b.id) FROM bookmarks b
    WHERE b.topic = stats.topic
      AND {moment("b")} = stats.last_updated
      AND b.action = '{WORKING}'
      AND {not_deleted("b")}
)
ORDER BY stats.last_updated DESC, stats.topic
LIMIT ?
"""


class StatsAggregator:
    """Computes the dashboard summary. Read-only; wraps a caller-owned connection."""

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

    def summary(self) -> SummaryStats:
        """Category counts plus the most recently active working topics.

        Counts and project stats are read from one snapshot, so the categories
        always agree with ``total_bookmarks``.
        """
        with store_errors("stats summary"), read_snapshot(self._conn):
            counts = self._conn.execute(_COUNTS_SQL).fetchone()
            project_stats = self.project_stats()

        stats = SummaryStats(
            needs_triage=counts["needs_triage"],
            active_projects=counts["active_projects"],
            ready_to_share=counts["ready_to_share"],
            archived=counts["archived"],
            total_bookmarks=counts["total"],
            project_stats=project_stats,
        )
        logger.debug(
            "Stats summary: total=%d triage=%d working_topics=%d share=%d archived=%d",
            stats.total_bookmarks,
            stats.needs_triage,
            stats.active_projects,
            stats.ready_to_share,
            stats.archived,
        )
        return stats

    def project_stats(self) -> list[ProjectStat]:
        """Top working topics by most recent bookmark, with that bookmark's url and title."""
        now = self._clock()
        with store_errors("project stats"):
            rows = self._conn.execute(_PROJECT_STATS_SQL, (PROJECT_STATS_LIMIT,)).fetchall()
        return [
            ProjectStat(
                topic=r["topic"],
                count=r["count"],
                last_updated=to_rfc3339(r["last_updated"]),
                status=display_status(
                    r["last_updated"],
                    now,
                    active_days=self._active_days,
                    stale_days=self._stale_days,
                ),
                latest_url=r["latest_url"] or "",
                latest_title=r["latest_title"] or "",
            )
            for r in rows
        ]
