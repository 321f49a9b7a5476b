from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (the form stored in every table)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.min)


def end_of_day(dt: datetime) -> datetime:
    """Last representable instant of ``dt``'s calendar day."""
    return start_of_day(dt) + timedelta(days=1) - timedelta(microseconds=1)


def is_date_only(value: str) -> bool:
    """True for plain ``YYYY-MM-DD`` strings."""
    try:
        date.fromisoformat(value.strip())
    except ValueError:
        return False
    return True


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a query-string timestamp into naive UTC.

    Accepts a date ("2025-03-01"), a naive datetime (read as UTC), or an
    offset/"Z" suffixed datetime which is shifted to UTC. Blank means None.
    Raises ValueError on anything else.
    """
    if value is None or not value.strip():
        return None

    text = value.strip()
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 with a trailing "Z", second precision; naive input is UTC."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"
