"""
Centralized calendar date utilities
All date arithmetic for views and review sessions should use functions from this module
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Optional, Union

DateLike = Union[date, datetime, str]


def get_current_date() -> date:
    """
    Get today's date (local time)

    Returns:
        Current date
    """
    return datetime.now().date()


def to_date(value: Optional[DateLike]) -> Optional[date]:
    """
    Convert a date, datetime or ISO string to a calendar date

    Args:
        value: Date-like value ("2024-11-05", "2024-11-05T10:00:00+00:00", date, datetime)

    Returns:
        Calendar date or None if value is empty

    Raises:
        ValueError: If the string is not a valid ISO date
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if "T" in text or " " in text:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    return date.fromisoformat(text)


def format_date(value: date) -> str:
    """Format date for backing store columns (YYYY-MM-DD)"""
    return value.strftime("%Y-%m-%d")


def format_display_date(value: date) -> str:
    """Format date for display, e.g. 'Nov 05, 2024'"""
    return value.strftime("%b %d, %Y")


def add_weeks(value: date, weeks: int) -> date:
    return value + timedelta(weeks=weeks)


def add_months(value: date, months: int) -> date:
    """
    Add calendar months, clamping the day to the target month's length

    Example: Jan 31 + 1 month -> Feb 28 (or 29)
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def start_of_week(value: date) -> date:
    """Sunday on or before the given date"""
    # weekday(): Monday=0 ... Sunday=6
    return value - timedelta(days=(value.weekday() + 1) % 7)


def end_of_week(value: date) -> date:
    """Saturday on or after the given date"""
    return start_of_week(value) + timedelta(days=6)


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative if end is before start)"""
    return (end - start).days
