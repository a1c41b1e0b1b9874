from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    """Parse HH:MM string into time."""
    return datetime.strptime(value, "%H:%M").time()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Local midnight of `day` and of the following day (half-open window)."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def inclusive_day_span(start: date, end: date) -> int:
    """Number of calendar days from start to end, both included."""
    return (end - start).days + 1


def hours_between(start: time, end: time) -> float:
    """Hours from start to end on the same day, one decimal, never negative.

    An end before the start (crossing midnight) is not handled and yields 0.
    """
    minutes = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
    if minutes <= 0:
        return 0.0
    # Half-up to one decimal; a tenth of an hour is 6 minutes.
    return math.floor(minutes / 6 + 0.5) / 10
