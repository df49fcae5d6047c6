"""
Capacity-based phase allocation.

Spreads a project's phase hours across the working days of each phase's
date window without exceeding the daily phase capacity, and without any
single job taking more than half (``per_job_capacity_share``) of a day's
capacity. Hours that do not fit are reported as ``UnscheduledHours``.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date as Date
from typing import Dict, Iterable, List, Optional, Tuple

from shop_scheduler.config import DEFAULT_RULES, SchedulingRules
from shop_scheduler.models import (
    WORK_PHASES,
    DailyCapacityOverride,
    DailyPhaseAllocation,
    DailyPhaseCapacity,
    PhaseKind,
    Project,
    UnscheduledHours,
)
from shop_scheduler.scheduling.business_days import working_days_in_range
from shop_scheduler.scheduling.phase_dates import ProjectScheduler
from shop_scheduler.utils.dates import DateLike, parse_calendar_date, to_date_string

logger = logging.getLogger(__name__)


class CapacityTable:
    """
    Effective daily capacity per (date, phase).

    An override for the exact (date, phase) wins; otherwise the phase's
    default ``max_hours`` applies; a phase with neither has no capacity
    (None).
    """

    def __init__(
        self,
        capacities: Iterable[DailyPhaseCapacity] = (),
        overrides: Iterable[DailyCapacityOverride] = (),
    ):
        self.defaults: Dict[PhaseKind, int] = {c.phase: c.max_hours for c in capacities}
        self.overrides: Dict[Tuple[Date, PhaseKind], DailyCapacityOverride] = {
            (o.date, o.phase): o for o in overrides
        }

    def default_capacity(self, phase: PhaseKind) -> Optional[int]:
        return self.defaults.get(PhaseKind(phase))

    def override_for(self, day: DateLike, phase: PhaseKind) -> Optional[DailyCapacityOverride]:
        return self.overrides.get((parse_calendar_date(day), PhaseKind(phase)))

    def effective_capacity(self, day: DateLike, phase: PhaseKind) -> Optional[int]:
        override = self.override_for(day, phase)
        if override is not None:
            return override.adjusted_capacity
        return self.default_capacity(phase)

    def has_capacity(self, phase: PhaseKind) -> bool:
        """True if the phase has a default or at least one override."""
        phase = PhaseKind(phase)
        return phase in self.defaults or any(p == phase for _, p in self.overrides)


@dataclass
class CapacityScheduleResult:
    """
    Outcome of capacity-scheduling one project.

    Attributes:
        project_id: Scheduled project
        allocations: New phase allocations to persist as one batch
        unscheduled: One row per phase with hours left over
        scheduled_hours: Hours placed
        unscheduled_hours: Hours that could not be placed
    """
    project_id: str
    allocations: List[DailyPhaseAllocation] = field(default_factory=list)
    unscheduled: List[UnscheduledHours] = field(default_factory=list)
    scheduled_hours: int = 0
    unscheduled_hours: int = 0

    @property
    def allocations_created(self) -> int:
        return len(self.allocations)

    @property
    def is_partial(self) -> bool:
        """True if some hours could not be placed."""
        return self.unscheduled_hours > 0

    def hours_by_phase(self) -> Dict[PhaseKind, int]:
        totals: Dict[PhaseKind, int] = defaultdict(int)
        for allocation in self.allocations:
            totals[allocation.phase] += allocation.allocated_hours
        return dict(totals)

    def __str__(self) -> str:
        return (
            f"{self.scheduled_hours}h scheduled, {self.unscheduled_hours}h unscheduled "
            f"in {self.allocations_created} allocations"
        )


class CapacityAllocator:
    """
    Allocates project phase hours into daily phase capacity.

    The allocator works from a snapshot of existing allocations plus
    whatever it placed earlier in the same run, so a run never pushes a
    (phase, date) over its effective capacity.
    """

    def __init__(self, holidays=None, rules: SchedulingRules = DEFAULT_RULES):
        self.holidays = holidays
        self.rules = rules
        self.scheduler = ProjectScheduler(holidays, rules)

    def per_job_cap(self, capacity: int) -> int:
        """Most hours one job may hold on one day of a phase."""
        return math.floor(capacity * self.rules.per_job_capacity_share)

    def allocate_phase(
        self,
        project_id: str,
        phase: PhaseKind,
        hours: int,
        start: DateLike,
        end: DateLike,
        capacity_table: CapacityTable,
        existing: Iterable[DailyPhaseAllocation] = (),
    ) -> Tuple[List[DailyPhaseAllocation], Optional[UnscheduledHours]]:
        """
        Place ``hours`` of one phase on the working days of [start, end].

        Days are visited in chronological order. Each day receives
        min(remaining, capacity - phase hours already on the day,
        per-job cap - this project's hours already on the day).

        Args:
            project_id: Project being scheduled
            phase: Work phase
            hours: Hours to place
            start: First day of the window
            end: Last day of the window (inclusive)
            capacity_table: Effective capacities
            existing: Allocations already in place (all projects)

        Returns:
            (new allocations, unscheduled row or None)
        """
        phase = PhaseKind(phase)
        start = parse_calendar_date(start)
        end = parse_calendar_date(end)
        if hours <= 0:
            return [], None

        if not capacity_table.has_capacity(phase):
            logger.warning(f"No capacity configured for {phase.value}; {hours}h left unscheduled")
            return [], UnscheduledHours(
                project_id=project_id,
                phase=phase,
                hours=hours,
                reason=f"No daily capacity configured for phase {phase.value}",
            )

        phase_totals: Dict[Date, int] = defaultdict(int)
        job_totals: Dict[Date, int] = defaultdict(int)
        for allocation in existing:
            if allocation.phase != phase:
                continue
            phase_totals[allocation.date] += allocation.allocated_hours
            if allocation.project_id == project_id:
                job_totals[allocation.date] += allocation.allocated_hours

        allocations = []
        remaining = hours
        for day in working_days_in_range(start, end, self.holidays):
            if remaining <= 0:
                break
            capacity = capacity_table.effective_capacity(day, phase)
            if not capacity:
                continue
            available = min(
                remaining,
                capacity - phase_totals[day],
                self.per_job_cap(capacity) - job_totals[day],
            )
            if available <= 0:
                continue
            allocations.append(DailyPhaseAllocation(
                project_id=project_id,
                phase=phase,
                date=day,
                allocated_hours=available,
            ))
            phase_totals[day] += available
            job_totals[day] += available
            remaining -= available
            logger.debug(f"Scheduled {available}h for {phase.value} on {day}")

        unscheduled = None
        if remaining > 0:
            unscheduled = UnscheduledHours(
                project_id=project_id,
                phase=phase,
                hours=remaining,
                reason=(
                    f"Insufficient capacity in date range "
                    f"{to_date_string(start)} to {to_date_string(end)}"
                ),
            )
            logger.warning(f"Could not schedule {remaining}h for {phase.value}")
        return allocations, unscheduled

    def schedule_project(
        self,
        project: Project,
        capacity_table: CapacityTable,
        existing: Iterable[DailyPhaseAllocation] = (),
    ) -> CapacityScheduleResult:
        """
        Allocate all four work phases of a project.

        Args:
            project: Project with derived dates
            capacity_table: Effective capacities
            existing: Snapshot of allocations already in place

        Returns:
            CapacityScheduleResult for the caller to persist atomically

        Raises:
            MissingPhaseDatesError: If a phase with hours has no dates
        """
        # Resolve every window first so a missing date fails before any work
        windows = [
            (phase, self.scheduler.phase_date_range(project, phase))
            for phase in WORK_PHASES
            if project.hours_for(phase) > 0
        ]

        snapshot = list(existing)
        result = CapacityScheduleResult(project_id=project.id)
        for phase, (start, end) in windows:
            allocations, unscheduled = self.allocate_phase(
                project.id,
                phase,
                project.hours_for(phase),
                start,
                end,
                capacity_table,
                snapshot,
            )
            snapshot.extend(allocations)
            result.allocations.extend(allocations)
            result.scheduled_hours += sum(a.allocated_hours for a in allocations)
            if unscheduled is not None:
                result.unscheduled.append(unscheduled)
                result.unscheduled_hours += unscheduled.hours

        logger.info(f"Capacity scheduling for {project.job_name}: {result}")
        return result
