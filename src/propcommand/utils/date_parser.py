"""Date and month parsing utilities."""

import re
from datetime import date, timedelta
from typing import Optional
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "last month", "this month", etc.

    Args:
        date_str: Date string in various formats
        today: Reference date for relative dates (defaults to date.today())

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = today or date.today()

    # Handle relative dates
    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    if date_str == "last month":
        return (today - relativedelta(months=1)).replace(day=1)
    if date_str == "this month":
        return today.replace(day=1)
    if date_str == "next month":
        return (today + relativedelta(months=1)).replace(day=1)

    # Try parsing as absolute date
    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_month(month_str: str) -> str:
    """Validate a "YYYY-MM" month key and return it normalised.

    Raises:
        ValueError: If the string is not a valid month key
    """
    month_str = month_str.strip()
    if not MONTH_PATTERN.match(month_str):
        raise ValueError(f"Invalid month '{month_str}': expected YYYY-MM")
    return month_str


def month_of(value: date) -> str:
    """Return the "YYYY-MM" month key containing value."""
    return value.strftime("%Y-%m")


def add_months(month: str, count: int) -> str:
    """Shift a "YYYY-MM" key by count months."""
    first = date.fromisoformat(f"{parse_month(month)}-01")
    return month_of(first + relativedelta(months=count))
