"""Next-occurrence arithmetic for yearly recurring dates.

Only month and day of a stored birth date are used. A (month, day) pair that
does not exist in the target year (Feb 29 in a common year) is clamped to the
last valid day of that month.
"""
from __future__ import annotations

import calendar
from datetime import date, datetime, timezone, tzinfo


def _on_year(year: int, month: int, day: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def next_occurrence(month: int, day: int, today: date) -> date:
    """First date on or after ``today`` that falls on ``month``/``day``."""
    candidate = _on_year(today.year, month, day)
    if candidate < today:
        candidate = _on_year(today.year + 1, month, day)
    return candidate


def days_until(birth_date: date, today: date) -> int:
    """Whole days from ``today`` to the next anniversary of ``birth_date`` (0 on the day itself)."""
    return (next_occurrence(birth_date.month, birth_date.day, today) - today).days


def local_today(now: datetime, tz: tzinfo) -> date:
    """Calendar date of ``now`` in ``tz``. Naive datetimes are taken as UTC."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz).date()
