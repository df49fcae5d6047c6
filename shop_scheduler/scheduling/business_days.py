"""Business-day arithmetic.

A business day is Monday-Friday, excluding holidays when a holiday
calendar is supplied. A calendar can be a ``HolidayRegistry`` (anything
with an ``is_holiday(date)`` method) or an iterable of dates, ISO date
strings or ``Holiday`` models.
"""

import math
from datetime import date as Date, timedelta
from typing import Callable, List, Optional

from shop_scheduler.constants import HOURS_PER_DAY, MIN_PHASE_DAYS
from shop_scheduler.utils.dates import DateLike, parse_calendar_date, to_date_string

__all__ = [
    'add_business_days',
    'subtract_business_days',
    'is_weekend',
    'is_working_day',
    'working_days_in_range',
    'phase_duration_days',
    'parse_calendar_date',
    'to_date_string',
]

_ONE_DAY = timedelta(days=1)


def _holiday_checker(holidays) -> Callable[[Date], bool]:
    if holidays is None:
        return lambda day: False
    if hasattr(holidays, "is_holiday"):
        return holidays.is_holiday
    keys = set()
    for item in holidays:
        if isinstance(item, (Date, str)):
            keys.add(parse_calendar_date(item))
        else:
            keys.add(parse_calendar_date(item.date))
    return keys.__contains__


def is_weekend(day: DateLike) -> bool:
    return parse_calendar_date(day).weekday() >= 5


def is_working_day(day: DateLike, holidays=None) -> bool:
    """True if the day is neither a weekend nor a holiday."""
    day = parse_calendar_date(day)
    return day.weekday() < 5 and not _holiday_checker(holidays)(day)


def _step_business_days(start: Date, days: int, direction: int, holidays) -> Date:
    is_holiday = _holiday_checker(holidays)
    current = start
    remaining = days
    step = _ONE_DAY * direction
    while remaining > 0:
        current += step
        if current.weekday() < 5 and not is_holiday(current):
            remaining -= 1
    return current


def add_business_days(start: DateLike, days: int, holidays=None) -> Date:
    """
    Return the ``days``-th business day after ``start``.

    The start date itself is never counted, so the result may land on a
    business day even when ``start`` is a weekend. ``days == 0`` returns
    the start unchanged and a negative count walks backward.

    Args:
        start: Starting calendar date
        days: Number of business days to move
        holidays: Optional holiday calendar to skip

    Returns:
        Resulting calendar date
    """
    start = parse_calendar_date(start)
    if days < 0:
        return _step_business_days(start, -days, -1, holidays)
    return _step_business_days(start, days, 1, holidays)


def subtract_business_days(start: DateLike, days: int, holidays=None) -> Date:
    """Return the ``days``-th business day before ``start``.

    Mirror image of ``add_business_days``.
    """
    return add_business_days(start, -days, holidays)


def working_days_in_range(start: DateLike, end: DateLike, holidays=None) -> List[Date]:
    """Working days in ``[start, end]`` in chronological order (empty if end < start)."""
    start = parse_calendar_date(start)
    end = parse_calendar_date(end)
    is_holiday = _holiday_checker(holidays)
    days = []
    current = start
    while current <= end:
        if current.weekday() < 5 and not is_holiday(current):
            days.append(current)
        current += _ONE_DAY
    return days


def phase_duration_days(
    hours: Optional[float],
    hours_per_day: int = HOURS_PER_DAY,
    min_days: int = MIN_PHASE_DAYS,
) -> int:
    """Business days a phase occupies: ceil(hours / hours_per_day), at least ``min_days``."""
    if not hours or hours <= 0:
        return min_days
    return max(min_days, math.ceil(hours / hours_per_day))
