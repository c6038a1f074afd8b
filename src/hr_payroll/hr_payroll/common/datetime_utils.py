from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


def parse_hhmm(value: str) -> tuple[int, int]:
    """Parse an "HH:MM" wall-clock string into (hour, minute)."""
    try:
        parsed = datetime.strptime((value or "").strip(), "%H:%M")
    except ValueError:
        raise ValidationError(f"Invalid time: {value!r} (expected HH:MM)")
    return parsed.hour, parsed.minute


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def to_date(value: date | datetime) -> date:
    """Truncate a timestamp to its calendar day (local midnight)."""
    if isinstance(value, datetime):
        return value.date()
    return value


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
