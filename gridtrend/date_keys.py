"""
Date key parsing and calendar arithmetic.

Every date that enters the store passes through ``parse_date_key``: the
accepted textual forms are ``DD-MM-YYYY`` (primary) and ``YYYY-MM-DD``, and the
day/month/year triple must name a real Gregorian date. Month and year shifts
clamp to the last valid day of the target month, so ``29-02-2024`` shifted back
a year lands on ``28-02-2023``.
"""
import calendar
import re
from datetime import date, datetime, timedelta
from typing import Optional

from dateutil import relativedelta

from gridtrend.constants import CANONICAL_DATE_FORMAT, DISPLAY_DATE_FORMAT

DD_MM_YYYY_PATTERN = re.compile(r'^([0-9]{2})-([0-9]{2})-([0-9]{4})$')
YYYY_MM_DD_PATTERN = re.compile(r'^([0-9]{4})-([0-9]{2})-([0-9]{2})$')


def _build_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        # 31-02-2024, month 13, year 0000 and friends
        return None


def parse_date_key(raw) -> Optional[date]:
    """
    Parse a raw date into a validated ``datetime.date``.

    Args:
        raw: A ``DD-MM-YYYY`` or ``YYYY-MM-DD`` string, or an existing date/datetime/Timestamp.

    Returns:
        datetime.date: The parsed date, or None when the input is malformed or names an impossible date.
    """
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        return None

    text = raw.strip()
    match = DD_MM_YYYY_PATTERN.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return _build_date(year, month, day)

    match = YYYY_MM_DD_PATTERN.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _build_date(year, month, day)

    return None


def normalize_date_key(raw) -> Optional[str]:
    """Return the canonical YYYY-MM-DD key for ``raw``, or None when it does not parse."""
    parsed = parse_date_key(raw)
    return format_key(parsed) if parsed is not None else None


def format_key(d: date) -> str:
    return d.strftime(CANONICAL_DATE_FORMAT)


def format_dd_mm_yyyy(d: date) -> str:
    return d.strftime(DISPLAY_DATE_FORMAT)


def compare_keys(a: str, b: str) -> int:
    """Order two canonical keys; zero padding makes string order equal date order."""
    if a < b:
        return -1
    return 1 if a > b else 0


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def add_months(d: date, months: int) -> date:
    return d + relativedelta.relativedelta(months=months)


def add_years(d: date, years: int) -> date:
    return d + relativedelta.relativedelta(years=years)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def last_day_of_month(d: date) -> date:
    return d.replace(day=days_in_month(d.year, d.month))


def is_last_day_of_month(d: date) -> bool:
    """
    Check if the given date is the last day of its month.

    Args:
        d (datetime.date): The date to check.

    Returns:
        bool: True if the date is the last day of the month, False otherwise.
    """
    return d.day == days_in_month(d.year, d.month)


def same_day_previous_month(d: date) -> Optional[date]:
    """
    The same day-of-month one calendar month earlier.

    Unlike ``add_months`` there is no clamping: 31-03-2024 has no counterpart
    in February and yields None.
    """
    first_of_previous = d.replace(day=1) - relativedelta.relativedelta(months=1)
    if d.day > days_in_month(first_of_previous.year, first_of_previous.month):
        return None
    return first_of_previous.replace(day=d.day)


def start_of_week(d: date) -> date:
    """Monday of the ISO week containing ``d``."""
    return d - timedelta(days=d.weekday())
