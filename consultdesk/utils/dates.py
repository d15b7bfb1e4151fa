"""Calendar helpers for the reminder run and the public pages.

All "today" values are wall-clock dates in REMINDER_TIMEZONE, never UTC.
Month and weekday names are English regardless of the process locale.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from consultdesk.core.config import settings

MONTH_NAMES: list[str] = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

WEEKDAY_NAMES: list[str] = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def local_today(tz_name: str | None = None) -> date:
    """Current calendar date in the reminder timezone."""
    return datetime.now(ZoneInfo(tz_name or settings.REMINDER_TIMEZONE)).date()


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative when end is earlier)."""
    return (end - start).days


def previous_month(run_date: date) -> tuple[int, str]:
    """Year and English month name of the month before run_date."""
    first_of_month = run_date.replace(day=1)
    last_of_previous = first_of_month - timedelta(days=1)
    return last_of_previous.year, MONTH_NAMES[last_of_previous.month - 1]


def format_long_date(value: date) -> str:
    """e.g. "Monday, March 02, 2026"."""
    return (
        f"{WEEKDAY_NAMES[value.weekday()]}, "
        f"{MONTH_NAMES[value.month - 1]} {value.day:02d}, {value.year}"
    )


def is_valid_time(value: str | None) -> bool:
    """True for a 24h HH:MM string."""
    return bool(value and TIME_PATTERN.match(value))
