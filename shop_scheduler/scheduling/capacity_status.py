"""Daily staffing status from hour-block allocations."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date as Date
from enum import Enum
from typing import Dict, Iterable, List, Optional

from shop_scheduler.models import WORK_PHASES, DailyHourAllocation, PhaseKind
from shop_scheduler.scheduling.capacity_allocator import CapacityTable
from shop_scheduler.utils.dates import DateLike, parse_calendar_date


class StaffingStatus(str, Enum):
    """Staffing level of a day."""
    FULLY_STAFFED = "fully-staffed"
    PARTIALLY_STAFFED = "partially-staffed"
    UNDER_STAFFED = "under-staffed"
    OVER_ALLOCATED = "over-allocated"
    NO_WORK = "no-work"


@dataclass
class DayCapacityInfo:
    """
    Hour-block usage of one phase on one day.

    Attributes:
        phase: Work phase
        allocated: Hour blocks booked on the phase
        capacity: Effective capacity (override if any, else default)
        default_capacity: Default capacity of the phase
        has_override: True if an override applies to the day
        override_reason: Reason recorded with the override
    """
    phase: PhaseKind
    allocated: int
    capacity: int
    default_capacity: int
    has_override: bool = False
    override_reason: Optional[str] = None

    @property
    def is_over_allocated(self) -> bool:
        return self.allocated > self.capacity

    @property
    def utilization_percent(self) -> int:
        if self.capacity <= 0:
            return 0
        return round(self.allocated / self.capacity * 100)


@dataclass
class DailyCapacityStatus:
    """Staffing summary of one day across all phases."""
    date: Date
    phases: List[DayCapacityInfo] = field(default_factory=list)

    @property
    def total_allocated(self) -> int:
        return sum(info.allocated for info in self.phases)

    @property
    def total_capacity(self) -> int:
        return sum(info.capacity for info in self.phases)

    @property
    def has_over_allocation(self) -> bool:
        return any(info.is_over_allocated for info in self.phases)

    @property
    def utilization_percent(self) -> int:
        if self.total_capacity <= 0:
            return 0
        return round(self.total_allocated / self.total_capacity * 100)

    @property
    def status(self) -> StaffingStatus:
        """
        Staffing level.

        Over-allocation of any phase wins; otherwise utilization of at
        least 100% is fully staffed, at least 50% partially staffed, and
        anything booked below that under-staffed.
        """
        if self.total_capacity <= 0:
            return StaffingStatus.NO_WORK
        if self.has_over_allocation:
            return StaffingStatus.OVER_ALLOCATED
        if self.utilization_percent >= 100:
            return StaffingStatus.FULLY_STAFFED
        if self.utilization_percent >= 50:
            return StaffingStatus.PARTIALLY_STAFFED
        if self.total_allocated > 0:
            return StaffingStatus.UNDER_STAFFED
        return StaffingStatus.NO_WORK

    def phase_info(self, phase: PhaseKind) -> Optional[DayCapacityInfo]:
        phase = PhaseKind(phase)
        return next((info for info in self.phases if info.phase == phase), None)


def day_capacity_info(
    day: DateLike,
    allocations: Iterable[DailyHourAllocation],
    capacity_table: CapacityTable,
) -> DailyCapacityStatus:
    """Per-phase hour-block usage against effective capacity for one day."""
    day = parse_calendar_date(day)
    counts: Dict[PhaseKind, int] = defaultdict(int)
    for allocation in allocations:
        if allocation.date == day:
            counts[allocation.phase] += 1

    status = DailyCapacityStatus(date=day)
    for phase in WORK_PHASES:
        default = capacity_table.default_capacity(phase)
        override = capacity_table.override_for(day, phase)
        if default is None and override is None:
            continue
        status.phases.append(DayCapacityInfo(
            phase=phase,
            allocated=counts[phase],
            capacity=override.adjusted_capacity if override else default,
            default_capacity=default or 0,
            has_override=override is not None,
            override_reason=override.reason if override else None,
        ))
    return status


def capacity_status_by_day(
    days: Iterable[DateLike],
    allocations: Iterable[DailyHourAllocation],
    capacity_table: CapacityTable,
) -> Dict[Date, DailyCapacityStatus]:
    """Staffing status for each of ``days``."""
    by_day: Dict[Date, List[DailyHourAllocation]] = defaultdict(list)
    for allocation in allocations:
        by_day[allocation.date].append(allocation)
    result = {}
    for day in days:
        day = parse_calendar_date(day)
        result[day] = day_capacity_info(day, by_day.get(day, []), capacity_table)
    return result
