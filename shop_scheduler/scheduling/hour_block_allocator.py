"""
Hour-block allocation.

Books individual team members into one-hour blocks (8:00-17:00) on the
working days of a phase. Planning is a pure function of the existing
allocations; committing writes the plan to an ``AllocationStore`` and
turns uniqueness rejections from concurrent sessions into conflict
counts instead of errors.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date as Date
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from shop_scheduler.config import DEFAULT_RULES, SchedulingRules
from shop_scheduler.exceptions import DuplicateAllocationError
from shop_scheduler.models import (
    DailyHourAllocation,
    PhaseKind,
    Project,
    ProjectAssignment,
    TeamMember,
)
from shop_scheduler.scheduling.business_days import working_days_in_range
from shop_scheduler.scheduling.capacity_allocator import CapacityTable
from shop_scheduler.scheduling.phase_dates import ProjectScheduler
from shop_scheduler.utils.dates import DateLike, parse_calendar_date

logger = logging.getLogger(__name__)

#: Daily phase capacity given as a table, a flat number of hour blocks, or None (default)
CapacityLike = Union[CapacityTable, int, None]


@dataclass(frozen=True)
class HourSlot:
    """A free (date, hour block) pair."""
    date: Date
    hour_block: int


@dataclass
class HourBlockPlan:
    """
    Hour blocks chosen for a request, not yet persisted.

    Attributes:
        project_id: Project the hours belong to
        phase: Work phase
        requested_hours: Hours asked for
        allocations: Planned allocations in (day, hour) order
    """
    project_id: str
    phase: PhaseKind
    requested_hours: int
    allocations: List[DailyHourAllocation] = field(default_factory=list)

    @property
    def planned_hours(self) -> int:
        return len(self.allocations)

    @property
    def shortfall(self) -> int:
        """Requested hours that found no free slot."""
        return max(0, self.requested_hours - self.planned_hours)

    @property
    def is_partial(self) -> bool:
        return self.shortfall > 0


@dataclass
class HourBlockScheduleResult:
    """
    Outcome of writing hour blocks to a store.

    Attributes:
        allocations: Rows actually stored
        requested_hours: Hours asked for
        conflicts: Slots skipped because they were already taken
    """
    allocations: List[DailyHourAllocation] = field(default_factory=list)
    requested_hours: int = 0
    conflicts: int = 0

    @property
    def scheduled_hours(self) -> int:
        return len(self.allocations)

    @property
    def shortfall(self) -> int:
        return max(0, self.requested_hours - self.scheduled_hours)

    @property
    def days_spread(self) -> int:
        """Distinct days the stored hours fall on."""
        return len({a.date for a in self.allocations})

    @property
    def is_partial(self) -> bool:
        return self.shortfall > 0

    def __str__(self) -> str:
        return (
            f"{self.scheduled_hours} of {self.requested_hours}h across "
            f"{self.days_spread} days ({self.conflicts} conflicts)"
        )


class _Occupancy:
    """Worker and phase hour-block usage per day, updated as slots are handed out."""

    def __init__(self, existing: Iterable[DailyHourAllocation]):
        self.worker_hours: Dict[Tuple[str, Date], Set[int]] = defaultdict(set)
        self.phase_counts: Dict[Tuple[PhaseKind, Date], int] = defaultdict(int)
        for allocation in existing:
            self.add(allocation.team_member_id, allocation.phase, allocation.date,
                     allocation.hour_block)

    def add(self, team_member_id: str, phase: PhaseKind, day: Date, hour: int) -> None:
        self.worker_hours[(team_member_id, day)].add(hour)
        self.phase_counts[(phase, day)] += 1

    def is_taken(self, team_member_id: str, day: Date, hour: int) -> bool:
        return hour in self.worker_hours[(team_member_id, day)]


class HourBlockAllocator:
    """
    Assigns team members to hour blocks within a phase's date window.

    A worker is never booked twice in the same hour of the same day, and
    automatic planning never puts more hour blocks on a (phase, day) than
    the phase's daily capacity.
    """

    def __init__(self, holidays=None, rules: SchedulingRules = DEFAULT_RULES):
        self.holidays = holidays
        self.rules = rules
        self.scheduler = ProjectScheduler(holidays, rules)

    def daily_capacity(self, capacity: CapacityLike, day: Date, phase: PhaseKind) -> int:
        """Hour blocks the phase may hold on a day."""
        if isinstance(capacity, CapacityTable):
            value = capacity.effective_capacity(day, phase)
        else:
            value = capacity
        if value is None:
            return self.rules.default_hour_block_capacity
        return value

    def _collect_slots(
        self,
        team_member_id: str,
        phase: PhaseKind,
        working_days: Iterable[Date],
        capacity: CapacityLike,
        occupancy: _Occupancy,
        limit: Optional[int] = None,
        per_day_limit: Optional[int] = None,
    ) -> List[HourSlot]:
        slots = []
        for day in working_days:
            day_capacity = self.daily_capacity(capacity, day, phase)
            taken_today = len(occupancy.worker_hours[(team_member_id, day)])
            for hour in self.rules.hour_blocks:
                if limit is not None and len(slots) >= limit:
                    return slots
                if occupancy.phase_counts[(phase, day)] >= day_capacity:
                    break
                if per_day_limit is not None and taken_today >= per_day_limit:
                    break
                if occupancy.is_taken(team_member_id, day, hour):
                    continue
                slots.append(HourSlot(day, hour))
                occupancy.add(team_member_id, phase, day, hour)
                taken_today += 1
        return slots

    def find_available_slots(
        self,
        team_member_id: str,
        phase: PhaseKind,
        working_days: Iterable[DateLike],
        capacity: CapacityLike,
        existing: Iterable[DailyHourAllocation] = (),
    ) -> List[HourSlot]:
        """
        Free (day, hour) slots for a worker on a phase.

        Excludes hours the worker already holds on a day (any project or
        phase) and days where the phase's hour-block count meets its daily
        capacity. Slots handed out count against that day's capacity.

        Args:
            team_member_id: Worker to book
            phase: Work phase
            working_days: Days to search, in order
            capacity: CapacityTable, flat capacity, or None for the default
            existing: Current hour allocations (all workers)

        Returns:
            Slots in (day, hour) order
        """
        days = [parse_calendar_date(d) for d in working_days]
        return self._collect_slots(
            team_member_id, PhaseKind(phase), days, capacity, _Occupancy(existing)
        )

    def _window_days(self, project: Project, phase: PhaseKind,
                     start: Optional[Date] = None, end: Optional[Date] = None) -> List[Date]:
        if start is None or end is None:
            phase_start, phase_end = self.scheduler.phase_date_range(project, phase)
            start = start or phase_start
            end = end or phase_end
        return working_days_in_range(start, end, self.holidays)

    def plan_assignment(
        self,
        project: Project,
        assignment: ProjectAssignment,
        capacity: CapacityLike,
        existing: Iterable[DailyHourAllocation] = (),
    ) -> HourBlockPlan:
        """
        Plan hour blocks for one worker assignment.

        Slots are taken greedily in (day, hour) order across the phase's
        working days. Running out of slots yields a partial plan with a
        shortfall rather than an error.

        Raises:
            MissingPhaseDatesError: If the phase window cannot be determined
        """
        phase = PhaseKind(assignment.phase)
        days = self._window_days(project, phase, assignment.start_date, assignment.end_date)
        slots = self._collect_slots(
            assignment.team_member_id,
            phase,
            days,
            capacity,
            _Occupancy(existing),
            limit=assignment.assigned_hours,
        )
        plan = HourBlockPlan(
            project_id=project.id,
            phase=phase,
            requested_hours=assignment.assigned_hours,
            allocations=[
                DailyHourAllocation(
                    project_id=project.id,
                    team_member_id=assignment.team_member_id,
                    phase=phase,
                    date=slot.date,
                    hour_block=slot.hour_block,
                )
                for slot in slots
            ],
        )
        if plan.is_partial:
            logger.warning(
                f"Only {plan.planned_hours} of {plan.requested_hours}h available for "
                f"{assignment.team_member_id} on {project.job_name} {phase.value}"
            )
        return plan

    @staticmethod
    def worker_priority(team_members: Sequence[TeamMember], phase: PhaseKind) -> List[TeamMember]:
        """Active workers, those eligible for the phase first, otherwise in given order."""
        active = [m for m in team_members if m.is_active]
        eligible = [m for m in active if m.can_do(phase)]
        others = [m for m in active if not m.can_do(phase)]
        return eligible + others

    def plan_auto_fill(
        self,
        project: Project,
        phase: PhaseKind,
        team_members: Sequence[TeamMember],
        capacity: CapacityLike,
        existing: Iterable[DailyHourAllocation] = (),
        hours: Optional[int] = None,
    ) -> HourBlockPlan:
        """
        Plan a phase's hours across the team, one full worker-day at a time.

        For each working day, workers are taken in priority order and each
        one's day is filled (up to the personal daily cap) before the next
        worker is used.

        Args:
            project: Project with derived dates
            phase: Work phase
            team_members: Candidate workers in priority order
            capacity: CapacityTable, flat capacity, or None for the default
            existing: Current hour allocations (all workers)
            hours: Hours to place; defaults to phase hours not yet booked

        Returns:
            HourBlockPlan (possibly partial)
        """
        phase = PhaseKind(phase)
        existing = list(existing)
        if hours is None:
            booked = sum(1 for a in existing if a.project_id == project.id and a.phase == phase)
            hours = max(0, project.hours_for(phase) - booked)

        plan = HourBlockPlan(project_id=project.id, phase=phase, requested_hours=hours)
        if hours == 0:
            return plan

        workers = self.worker_priority(team_members, phase)
        occupancy = _Occupancy(existing)
        for day in self._window_days(project, phase):
            for worker in workers:
                remaining = hours - plan.planned_hours
                if remaining <= 0:
                    break
                slots = self._collect_slots(
                    worker.id,
                    phase,
                    [day],
                    capacity,
                    occupancy,
                    limit=remaining,
                    per_day_limit=self.rules.personal_daily_hour_cap,
                )
                plan.allocations.extend(
                    DailyHourAllocation(
                        project_id=project.id,
                        team_member_id=worker.id,
                        phase=phase,
                        date=slot.date,
                        hour_block=slot.hour_block,
                    )
                    for slot in slots
                )
            if plan.planned_hours >= hours:
                break

        if plan.is_partial:
            logger.warning(
                f"Auto-fill for {project.job_name} {phase.value}: "
                f"{plan.shortfall}h could not be placed"
            )
        return plan

    def commit(self, plan: HourBlockPlan, store) -> HourBlockScheduleResult:
        """
        Persist a plan.

        The plan is inserted as one batch. If the store rejects it because
        a slot was taken meanwhile, rows are retried one by one and every
        rejected row is counted as a conflict.
        """
        result = HourBlockScheduleResult(requested_hours=plan.requested_hours)
        if not plan.allocations:
            return result
        try:
            store.insert_hour_allocations(plan.allocations)
            result.allocations = list(plan.allocations)
        except DuplicateAllocationError:
            logger.warning("Batch insert hit a taken slot, retrying row by row")
            for allocation in plan.allocations:
                try:
                    store.insert_hour_allocations([allocation])
                except DuplicateAllocationError:
                    result.conflicts += 1
                    continue
                result.allocations.append(allocation)

        logger.info(f"Committed hour blocks for {plan.phase.value}: {result}")
        return result

    def assign_manual(
        self,
        project_id: str,
        phase: PhaseKind,
        day: DateLike,
        team_member_ids: Sequence[str],
        hour_blocks: Sequence[int],
        existing: Iterable[DailyHourAllocation],
        store,
    ) -> HourBlockScheduleResult:
        """
        Book chosen workers into chosen hours on one day.

        Each (worker, hour) pair is written on its own. Pairs already taken
        in the snapshot are skipped before writing; pairs the store rejects
        are skipped after. Both count as conflicts. Phase capacity is not
        enforced here; over-allocation shows up in the capacity status.

        Raises:
            ValueError: If an hour falls outside the working day
        """
        phase = PhaseKind(phase)
        day = parse_calendar_date(day)
        outside = sorted(set(hour_blocks) - set(self.rules.hour_blocks))
        if outside:
            raise ValueError(
                f"Hour blocks {outside} are outside working hours "
                f"{self.rules.workday_start_hour}-{self.rules.workday_end_hour}"
            )
        occupancy = _Occupancy(existing)
        result = HourBlockScheduleResult(requested_hours=len(team_member_ids) * len(hour_blocks))

        for member_id in team_member_ids:
            for hour in hour_blocks:
                if occupancy.is_taken(member_id, day, hour):
                    result.conflicts += 1
                    continue
                allocation = DailyHourAllocation(
                    project_id=project_id,
                    team_member_id=member_id,
                    phase=phase,
                    date=day,
                    hour_block=hour,
                )
                try:
                    store.insert_hour_allocations([allocation])
                except DuplicateAllocationError:
                    result.conflicts += 1
                    continue
                occupancy.add(member_id, phase, day, hour)
                result.allocations.append(allocation)

        if result.conflicts:
            logger.warning(f"Manual assignment on {day}: {result.conflicts} slots already taken")
        return result
