"""UTC time helpers."""

from __future__ import annotations

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_today(now: datetime | None = None) -> date:
    """Calendar day of ``now`` (default: current time) in UTC."""
    return as_utc(now or utcnow()).date()
