# portfolio_engine/utils/date_utils.py
"""
Date and timestamp helpers shared across the engine.

All engine timestamps are timezone-aware UTC datetimes. Centralizing the
conversion here keeps ordering and window comparisons consistent: a naive
datetime compared with an aware one raises TypeError in Python.

Usage:
    from portfolio_engine.utils.date_utils import ensure_utc, parse_timestamp

    ts = parse_timestamp("2024-03-01T09:30:00Z")
"""

import calendar
from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Return the datetime as aware UTC.

    Naive datetimes are taken to already be in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: datetime | date | str | None) -> datetime | None:
    """
    Convert a transaction timestamp to aware UTC, or None if unparseable.

    Only ISO-8601 strings are accepted (a trailing "Z" is allowed). There is
    deliberately no multi-format guessing: a record in any other format is
    a data-quality issue for the caller to fix upstream.

    Args:
        value: datetime, date (taken as midnight UTC) or ISO-8601 string

    Returns:
        Aware UTC datetime, or None when the value cannot be parsed
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def subtract_months(value: datetime, months: int) -> datetime:
    """
    Move a datetime back by a number of calendar months.

    The day is clamped to the last day of the target month, so
    March 31 minus one month is February 28/29.
    """
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, last_day))


def days_between(start: datetime, end: datetime) -> float:
    """Length of a window in (fractional) days."""
    return (end - start).total_seconds() / 86400


def day_of(value: datetime) -> date:
    """UTC calendar day of a timestamp."""
    return ensure_utc(value).date()
