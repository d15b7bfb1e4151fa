"""Utility modules."""

from consultdesk.utils.dates import (
    MONTH_NAMES,
    days_between,
    format_long_date,
    is_valid_time,
    local_today,
    previous_month,
)

__all__ = [
    "MONTH_NAMES",
    "days_between",
    "format_long_date",
    "is_valid_time",
    "local_today",
    "previous_month",
]
