"""Holiday registry with a fail-open cache.

The registry owns the set of shop holidays. It is loaded once from a
``HolidaySource`` and injected into the phase date calculator and the
allocators. If the source cannot be read the previous cache is kept
(possibly empty), a warning is logged and the failure is recorded on
``status``; date calculations carry on without the missing holidays.
"""

import logging
from dataclasses import dataclass
from datetime import date as Date, datetime
from typing import Dict, Iterable, List, Optional

from shop_scheduler.models import Holiday
from shop_scheduler.utils.dates import DateLike, parse_calendar_date, to_date_string

logger = logging.getLogger(__name__)


@dataclass
class HolidayLoadStatus:
    """Outcome of the most recent holiday load.

    Attributes:
        loaded: True once a load has succeeded at least once
        holidays: Number of holidays currently cached
        error: Message of the last failed load (None after a success)
        loaded_at: Time of the last successful load
    """
    loaded: bool = False
    holidays: int = 0
    error: Optional[str] = None
    loaded_at: Optional[datetime] = None

    @property
    def degraded(self) -> bool:
        """True if the last load failed and lookups use a stale or empty cache."""
        return self.error is not None


class _StaticHolidaySource:
    def __init__(self, holidays: List[Holiday]):
        self._holidays = holidays

    def fetch_holidays(self) -> List[Holiday]:
        return list(self._holidays)


class HolidayRegistry:
    """Cached holiday lookups keyed by ``YYYY-MM-DD``.

    Example:
        >>> registry = HolidayRegistry(store)
        >>> registry.load()
        >>> registry.is_working_day(date(2025, 12, 25))
        False
    """

    def __init__(self, source):
        self.source = source
        self._by_key: Dict[str, Holiday] = {}
        self._status = HolidayLoadStatus()
        self._attempted = False

    @classmethod
    def from_holidays(cls, holidays: Iterable) -> 'HolidayRegistry':
        """Build an already loaded registry from holidays, dates or ISO strings."""
        items = [
            h if isinstance(h, Holiday) else Holiday(date=h)
            for h in holidays
        ]
        registry = cls(_StaticHolidaySource(items))
        registry.load()
        return registry

    def load(self) -> HolidayLoadStatus:
        """Fetch holidays on first use; later calls return the cached status."""
        if not self._attempted:
            self._fetch()
        return self.status

    def force_reload(self) -> HolidayLoadStatus:
        """Invalidate the cache and fetch again."""
        self._fetch()
        return self.status

    def _fetch(self) -> None:
        self._attempted = True
        try:
            holidays = list(self.source.fetch_holidays())
        except Exception as e:
            # Fail open: keep whatever was cached before
            self._status = HolidayLoadStatus(
                loaded=self._status.loaded,
                holidays=len(self._by_key),
                error=str(e) or e.__class__.__name__,
                loaded_at=self._status.loaded_at,
            )
            logger.warning(
                f"Failed to load holidays, continuing with {len(self._by_key)} cached: {e}"
            )
            return

        self._by_key = {h.key: h for h in holidays}
        self._status = HolidayLoadStatus(
            loaded=True,
            holidays=len(self._by_key),
            error=None,
            loaded_at=datetime.now(),
        )
        logger.info(f"Loaded {len(self._by_key)} holidays")

    @property
    def status(self) -> HolidayLoadStatus:
        return self._status

    @property
    def is_loaded(self) -> bool:
        return self._status.loaded

    def is_holiday(self, day: DateLike) -> bool:
        return to_date_string(day) in self._by_key

    def is_working_day(self, day: DateLike) -> bool:
        """True for Monday-Friday dates that are not holidays."""
        day = parse_calendar_date(day)
        return day.weekday() < 5 and not self.is_holiday(day)

    def get(self, day: DateLike) -> Optional[Holiday]:
        return self._by_key.get(to_date_string(day))

    @property
    def holidays(self) -> List[Holiday]:
        """Cached holidays in date order."""
        return sorted(self._by_key.values(), key=lambda h: h.date)

    def holidays_between(self, start: DateLike, end: DateLike) -> List[Holiday]:
        start_date: Date = parse_calendar_date(start)
        end_date: Date = parse_calendar_date(end)
        return [h for h in self.holidays if start_date <= h.date <= end_date]

    def __contains__(self, day) -> bool:
        return self.is_holiday(day)

    def __len__(self) -> int:
        return len(self._by_key)
