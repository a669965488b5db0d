"""
Date and time helpers.

All timestamps are stored as naive UTC datetimes.
"""

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Current UTC time without tzinfo, matching the stored columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    return utcnow().date()


def nights_between(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


def format_us_date(value: date) -> str:
    return value.strftime("%m/%d/%Y")


def format_us_datetime(value: datetime) -> str:
    return value.strftime("%m/%d/%Y %H:%M:%S")
