"""
Timezone-aware time helpers shared by the cache layer and repositories.
"""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """
    Return timezone-aware UTC datetime.

    Replaces deprecated datetime.utcnow() which is scheduled for removal in Python 3.14.
    """
    return datetime.now(UTC)


def utcfromtimestamp(timestamp: float) -> datetime:
    """Return timezone-aware UTC datetime from POSIX timestamp."""
    return datetime.fromtimestamp(timestamp, UTC)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (MongoDB returns naive values by default)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def parse_iso(value: str | None) -> datetime | None:
    """Parse an ISO-8601 string into an aware datetime, or None if unparseable."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return ensure_utc(parsed)


def age_seconds(since: datetime, now: datetime) -> int:
    """Whole seconds elapsed between two instants, never negative."""
    return max(0, int((ensure_utc(now) - ensure_utc(since)).total_seconds()))
