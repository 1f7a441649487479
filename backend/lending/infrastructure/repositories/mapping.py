"""Row mapping helpers shared by the repositories."""

from datetime import datetime, timezone


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as the UTC they were stored as."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def page_offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit
