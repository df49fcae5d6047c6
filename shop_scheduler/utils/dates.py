"""Calendar date parsing and formatting.

Dates are handled as calendar days only. Strings are read component by
component and datetimes are truncated to their own date, so no timezone
conversion can ever shift a day.
"""

from datetime import date as Date, datetime
from typing import Optional, Union

from shop_scheduler.constants import DATE_FORMAT

DateLike = Union[Date, datetime, str]


def parse_calendar_date(value: DateLike) -> Date:
    """Convert a date, datetime or ``YYYY-MM-DD`` string to a date.

    Strings may carry a time suffix (``2025-12-23T00:00:00Z``); only the
    leading year-month-day components are used.

    Raises:
        ValueError: If the value cannot be read as a calendar date
    """
    if isinstance(value, datetime):
        # Also covers pandas Timestamp
        return value.date()
    if isinstance(value, Date):
        return value
    if isinstance(value, str):
        text = value.strip()
        parts = text[:10].split('-')
        if len(parts) != 3 or not all(p.isdigit() for p in parts):
            raise ValueError(f"Invalid calendar date: {value!r}")
        year, month, day = (int(p) for p in parts)
        return Date(year, month, day)
    raise ValueError(f"Cannot interpret {value!r} as a calendar date")


def parse_optional_date(value: Optional[DateLike]) -> Optional[Date]:
    """Like ``parse_calendar_date`` but passes None and empty strings through."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_calendar_date(value)


def to_date_string(value: DateLike) -> str:
    """Format a calendar date as ``YYYY-MM-DD``."""
    return parse_calendar_date(value).strftime(DATE_FORMAT)
