"""Datetime helpers shared by the entity classes."""

from calendar import monthrange
from datetime import UTC, date, datetime, time


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def isoformat(dt: datetime | None) -> str | None:
    dt = ensure_utc_aware(dt)
    return dt.isoformat() if dt else None


def day_start(day: date) -> datetime:
    """Midnight UTC of a calendar day."""
    return datetime.combine(day, time.min, tzinfo=UTC)


def sort_key(dt: datetime | None) -> datetime:
    """Sort key that places missing timestamps last in descending order."""
    return ensure_utc_aware(dt) or datetime.min.replace(tzinfo=UTC)


def months_ago(dt: datetime, months: int) -> datetime:
    """Same wall-clock time ``months`` calendar months earlier.

    The day is clamped to the length of the target month.
    """
    total = dt.year * 12 + (dt.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    last_day = monthrange(year, month)[1]
    return dt.replace(year=year, month=month, day=min(dt.day, last_day))
