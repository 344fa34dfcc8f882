"""
UTC time helpers.

Timestamps are stored naive and always mean UTC. Day boundaries used by
reporting are UTC calendar days.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def day_start(value: date | datetime) -> datetime:
    """Midnight (UTC-naive) of the calendar day containing `value`."""
    return datetime(value.year, value.month, value.day)


def trailing_days(count: int, now: Optional[datetime] = None) -> list[date]:
    """The last `count` calendar days, oldest first, ending today."""
    today = (now or utcnow()).date()
    return [today - timedelta(days=offset) for offset in range(count - 1, -1, -1)]


def days_range(days: list[date]) -> tuple[datetime, datetime]:
    """Half-open [start, end) covering a run of consecutive days."""
    return day_start(days[0]), day_start(days[-1]) + timedelta(days=1)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse ISO-8601 into a UTC-naive datetime; None or blank gives None.

    A trailing Z or an explicit offset is converted to UTC. Naive input is
    taken as UTC already.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed
    return parsed.astimezone(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 with a trailing Z; naive values are UTC."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.isoformat() + "Z"
