import math
from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def whole_minutes_between(start: datetime, end: datetime) -> int:
    return max(0, int((ensure_utc(end) - ensure_utc(start)).total_seconds() // 60))


def whole_hours_between(start: datetime, end: datetime) -> int:
    return whole_minutes_between(start, end) // 60


def billable_hours(minutes: int) -> int:
    """Ceiling hours for a stay, never less than one."""
    return max(1, math.ceil(minutes / 60))
