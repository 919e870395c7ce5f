"""Read-time derived fields: domain, relative age, suggested action, display status.

Everything here is pure. Functions that depend on the current time take an
optional ``now`` so callers (and tests) can pin the clock.
"""

from __future__ import annotations

import urllib.parse
from datetime import datetime, timezone

# Canonical storage format (matches SQLite CURRENT_TIMESTAMP, always UTC).
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

UNKNOWN = "unknown"

ACTIVE_DAYS = 7
STALE_DAYS = 30

_SHARE_DOMAINS = ("github", "stackoverflow")
_SHARE_WORDS = ("tutorial", "guide", "share", "useful")
_WORKING_TITLE_WORDS = ("documentation", "docs", "api", "reference")
_WORKING_DESCRIPTION_WORDS = ("work", "project")


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Render *moment* in the canonical storage format (UTC)."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a stored timestamp in either recognised format.

    Accepts the canonical ``YYYY-MM-DD HH:MM:SS`` and the legacy RFC 3339 form
    (``2024-05-01T09:30:00Z`` or with an explicit offset). Naive values are UTC.

    Returns:
        An aware UTC datetime, or None if *value* matches neither format.
    """
    if not value:
        return None
    value = value.strip()
    try:
        parsed = datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError:
        if "T" not in value:
            return None
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_rfc3339(value: str | None) -> str:
    """Re-render a stored timestamp as RFC 3339 UTC; unparsable input is returned as-is."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return value or ""
    return parsed.strftime(_RFC3339_FORMAT)


# ---------------------------------------------------------------------------
# Derived view fields
# ---------------------------------------------------------------------------


def extract_domain(url: str | None) -> str:
    """Return the host of *url*, port included, without any userinfo.

    ``""`` for empty input; the input unchanged when it has no host.
    """
    if not url:
        return ""
    try:
        netloc = urllib.parse.urlsplit(url).netloc
    except ValueError:
        return url
    host = netloc.rpartition("@")[2]
    return host or url


def calculate_age(timestamp: str | None, now: datetime | None = None) -> str:
    """Bucket the time since *timestamp* into a short label.

    ``just now`` (< 1 minute), ``{n}m``, ``{n}h``, ``{n}d``, ``{n}w`` (< 4 weeks),
    then ``{n}mo`` with 30-day months. Unparsable timestamps give ``unknown``.
    """
    moment = parse_timestamp(timestamp)
    if moment is None:
        return UNKNOWN

    seconds = ((now or utcnow()) - moment).total_seconds()
    minutes = int(seconds / 60)
    hours = int(seconds / 3600)
    days = int(seconds / 86400)
    weeks = days // 7
    months = days // 30

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m"
    if hours < 24:
        return f"{hours}h"
    if days < 7:
        return f"{days}d"
    if weeks < 4:
        return f"{weeks}w"
    return f"{months}mo"


def suggest_action(domain: str | None, title: str | None, description: str | None) -> str:
    """Heuristic next action for a triage item; the first matching rule wins."""
    domain = (domain or "").lower()
    title = (title or "").lower()
    description = (description or "").lower()

    if any(d in domain for d in _SHARE_DOMAINS) or any(
        w in title or w in description for w in _SHARE_WORDS
    ):
        return "share"

    if any(w in title for w in _WORKING_TITLE_WORDS) or any(
        w in description for w in _WORKING_DESCRIPTION_WORDS
    ):
        return "working"

    return "read-later"


def display_status(
    last_updated: str | None,
    now: datetime | None = None,
    *,
    active_days: int = ACTIVE_DAYS,
    stale_days: int = STALE_DAYS,
) -> str:
    """Classify a project by days since *last_updated*: active, stale or inactive."""
    moment = parse_timestamp(last_updated)
    if moment is None:
        return UNKNOWN
    days_since = ((now or utcnow()) - moment).total_seconds() / 86400
    if days_since <= active_days:
        return "active"
    if days_since <= stale_days:
        return "stale"
    return "inactive"
