from __future__ import annotations

from datetime import date, datetime, timedelta


def as_date(value: date) -> date:
    """Normalize datetimes to their calendar date."""
    if isinstance(value, datetime):
        return value.date()
    return value


def date_range(start: date, end: date) -> tuple[date, ...]:
    """
    Every calendar day in [start, end], ascending.

    Returns an empty tuple when start is after end; callers validate ordering
    before asking for the range.
    """
    start = as_date(start)
    end = as_date(end)
    if end < start:
        return ()
    return tuple(start + timedelta(days=offset) for offset in range((end - start).days + 1))


def day_count(start: date, end: date) -> int:
    start = as_date(start)
    end = as_date(end)
    if end < start:
        return 0
    return (end - start).days + 1


__all__ = ["as_date", "date_range", "day_count"]
