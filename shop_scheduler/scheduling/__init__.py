"""Scheduling and capacity-allocation engine.

- Business-day arithmetic and the holiday registry
- Backward phase date calculation from the install date
- Capacity-based daily phase allocation
- Hour-block allocation of team members
- Rescheduling with optimistic update and rollback
"""

from .business_days import (
    add_business_days,
    is_working_day,
    phase_duration_days,
    subtract_business_days,
    working_days_in_range,
)
from .holidays import HolidayLoadStatus, HolidayRegistry
from .phase_dates import ProjectScheduler
from .phase_generator import generate_project_phases
from .capacity_allocator import CapacityAllocator, CapacityScheduleResult, CapacityTable
from .hour_block_allocator import (
    HourBlockAllocator,
    HourBlockPlan,
    HourBlockScheduleResult,
    HourSlot,
)
from .rescheduler import (
    OptimisticProjectList,
    ProjectRescheduler,
    RescheduleOutcome,
    RescheduleResult,
    RescheduleState,
)
from .recompute import PhaseRecomputeScheduler
from .capacity_status import (
    DailyCapacityStatus,
    DayCapacityInfo,
    StaffingStatus,
    capacity_status_by_day,
    day_capacity_info,
)
from .double_bookings import cleanup_double_bookings, find_double_bookings

__all__ = [
    'add_business_days',
    'subtract_business_days',
    'is_working_day',
    'working_days_in_range',
    'phase_duration_days',
    'HolidayRegistry',
    'HolidayLoadStatus',
    'ProjectScheduler',
    'generate_project_phases',
    'CapacityAllocator',
    'CapacityScheduleResult',
    'CapacityTable',
    'HourBlockAllocator',
    'HourBlockPlan',
    'HourBlockScheduleResult',
    'HourSlot',
    'ProjectRescheduler',
    'OptimisticProjectList',
    'RescheduleOutcome',
    'RescheduleResult',
    'RescheduleState',
    'PhaseRecomputeScheduler',
    'DailyCapacityStatus',
    'DayCapacityInfo',
    'StaffingStatus',
    'capacity_status_by_day',
    'day_capacity_info',
    'cleanup_double_bookings',
    'find_double_bookings',
]
