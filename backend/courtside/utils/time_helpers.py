# backend/courtside/utils/time_helpers.py
"""Calendar and clock-string helpers shared by generation and booking views."""

import calendar
from datetime import date, datetime, time
from typing import Tuple

from ..core.config import WEEKDAY_ABBREVIATIONS


def parse_clock(value: str) -> time:
    """Parse ``HH:MM`` (or ``HH:MM:SS``) into a time."""
    text = value.strip()
    fmt = "%H:%M:%S" if text.count(":") == 2 else "%H:%M"
    return datetime.strptime(text, fmt).time()


def parse_slot(value: str) -> Tuple[time, time]:
    """Parse ``HH:MM-HH:MM`` into (start, end)."""
    start_raw, sep, end_raw = value.partition("-")
    if not sep:
        raise ValueError(f"Slot must look like HH:MM-HH:MM, got {value!r}")
    start, end = parse_clock(start_raw), parse_clock(end_raw)
    if end <= start:
        raise ValueError(f"Slot end must be after start: {value!r}")
    return start, end


def weekday_index(name: str) -> int:
    """Map ``Mon``/``Monday``/``mon`` to Python's weekday number (Monday=0)."""
    key = name.strip()[:3].title()
    try:
        return WEEKDAY_ABBREVIATIONS.index(key)
    except ValueError:
        raise ValueError(f"Unknown weekday: {name!r}") from None


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last date of a month."""
    return date(year, month, 1), date(year, month, days_in_month(year, month))


def next_month(year: int, month: int) -> Tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def is_in_final_days_of_month(day: date, window_days: int = 7) -> bool:
    """True when ``day`` is within the last ``window_days`` days of its month."""
    return day.day > days_in_month(day.year, day.month) - window_days


def minutes_between(start: time, end: time) -> int:
    return (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
