"""
Date utilities for periods, month ranges and month labels.

Dates travel to and from the backend as "YYYY-MM-DD" strings and months
as "YYYY-MM" keys.
"""

import calendar
from datetime import datetime, timedelta
from typing import Tuple

DATE_FORMAT = "%Y-%m-%d"

# Rolling periods ending today
_ROLLING_DAYS = {
    "last_7_days": 7,
    "last_30_days": 30,
    "last_90_days": 90,
}


def parse_period(period: str) -> Tuple[str, str]:
    """
    Parse a period shorthand into (date_from, date_to).

    Supported periods:
    - "this_month", "last_month"
    - "this_year", "last_year", "ytd"
    - "last_7_days", "last_30_days", "last_90_days"

    Raises:
        ValueError: If period is not recognized
    """
    today = datetime.now()

    if period in _ROLLING_DAYS:
        start = today - timedelta(days=_ROLLING_DAYS[period])
        return start.strftime(DATE_FORMAT), today.strftime(DATE_FORMAT)

    if period == "this_month":
        return get_month_range(today.year, today.month)

    if period == "last_month":
        previous = today.replace(day=1) - timedelta(days=1)
        return get_month_range(previous.year, previous.month)

    if period == "this_year":
        return f"{today.year}-01-01", f"{today.year}-12-31"

    if period == "last_year":
        return f"{today.year - 1}-01-01", f"{today.year - 1}-12-31"

    if period == "ytd":
        return f"{today.year}-01-01", today.strftime(DATE_FORMAT)

    raise ValueError(f"Unknown period: {period}")


def get_month_range(year: int, month: int) -> Tuple[str, str]:
    """
    Get the first and last date of a month.

    Raises:
        ValueError: If month is not in valid range (1-12)
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")

    _, last_day = calendar.monthrange(year, month)
    return f"{year:04d}-{month:02d}-01", f"{year:04d}-{month:02d}-{last_day:02d}"


THAI_MONTH_ABBREVIATIONS = [
    "ม.ค.", "ก.พ.", "มี.ค.", "เม.ย.", "พ.ค.", "มิ.ย.",
    "ก.ค.", "ส.ค.", "ก.ย.", "ต.ค.", "พ.ย.", "ธ.ค.",
]


def parse_month_key(month_key: str) -> Tuple[int, int]:
    """
    Split a "YYYY-MM" month key into (year, month).

    Raises:
        ValueError: If the key is not a valid YYYY-MM month
    """
    try:
        year_part, month_part = month_key.split("-")[:2]
        year, month = int(year_part), int(month_part)
    except ValueError as e:
        raise ValueError(f"Invalid month key: {month_key!r}") from e
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    return year, month


def get_month_range_for_key(month_key: str) -> Tuple[str, str]:
    """Date range of a "YYYY-MM" month as ("YYYY-MM-01", "YYYY-MM-<last>")."""
    year, month = parse_month_key(month_key)
    return get_month_range(year, month)


def current_month_key() -> str:
    """The current month as "YYYY-MM"."""
    return datetime.now().strftime("%Y-%m")


def format_month_label(month_key: str) -> str:
    """
    Short Thai label for a month, e.g. "2025-10" -> "ต.ค. 25".

    The year is the two-digit Gregorian year.
    """
    year, month = parse_month_key(month_key)
    return f"{THAI_MONTH_ABBREVIATIONS[month - 1]} {year % 100:02d}"
