"""Project scheduling workflow.

Wires a store, the holiday registry and the allocators together into the
operations the shop performs: creating and rescheduling projects,
capacity scheduling, booking team members into hour blocks, clearing
bookings and managing capacity.

Workflow Steps (new project):
    1. calculate_project_dates() - derive phase dates from the install date
    2. add_project() - persist the project
    3. schedule_project_capacity() - spread phase hours over daily capacity
    4. auto_schedule_assignment() / auto_fill_phase() - book team members
"""

import logging
from dataclasses import dataclass
from datetime import date as Date
from typing import Dict, Iterable, List, Optional, Sequence, Union

from shop_scheduler.config import DEFAULT_RULES, SchedulingRules
from shop_scheduler.exceptions import PersistenceError, SchedulingError
from shop_scheduler.models import (
    CapacityTemplate,
    DailyCapacityOverride,
    PhaseKind,
    Project,
    ProjectAssignment,
    ProjectPhase,
)
from shop_scheduler.persistence.interfaces import AllocationFilter
from shop_scheduler.scheduling.business_days import working_days_in_range
from shop_scheduler.scheduling.capacity_allocator import (
    CapacityAllocator,
    CapacityScheduleResult,
    CapacityTable,
)
from shop_scheduler.scheduling.capacity_status import DailyCapacityStatus, capacity_status_by_day
from shop_scheduler.scheduling.double_bookings import cleanup_double_bookings
from shop_scheduler.scheduling.holidays import HolidayRegistry
from shop_scheduler.scheduling.hour_block_allocator import (
    HourBlockAllocator,
    HourBlockScheduleResult,
)
from shop_scheduler.scheduling.phase_dates import ProjectScheduler
from shop_scheduler.scheduling.phase_generator import generate_project_phases
from shop_scheduler.scheduling.rescheduler import (
    ConfirmCallback,
    OptimisticProjectList,
    ProjectRescheduler,
    RescheduleResult,
)
from shop_scheduler.utils.dates import DateLike, parse_calendar_date
from shop_scheduler.validation.schedule_validator import ScheduleValidator

logger = logging.getLogger(__name__)


@dataclass
class ProjectCreationResult:
    """Result of creating a project.

    Attributes:
        project: Stored project with derived dates
        capacity_result: Capacity scheduling outcome (None if not requested)
    """
    project: Project
    capacity_result: Optional[CapacityScheduleResult] = None


class ProjectSchedulingWorkflow:
    """Orchestrates scheduling operations against one store.

    Example Usage:
        ```python
        store = ShopDataFile("shop.json").load()
        workflow = ProjectSchedulingWorkflow(store)

        created = workflow.create_project(Project(job_name="Kitchen", install_date="2025-12-23",
                                                  millwork_hrs=16, box_construction_hrs=16,
                                                  stain_hrs=16, install_hrs=8))
        workflow.auto_fill_phase(created.project.id, PhaseKind.MILLWORK)
        workflow.reschedule_project(created.project.id, date(2026, 1, 6), confirmed=True)
        ```
    """

    def __init__(
        self,
        store,
        holidays: Optional[HolidayRegistry] = None,
        rules: SchedulingRules = DEFAULT_RULES,
        confirm: Optional[ConfirmCallback] = None,
    ):
        """Initialize workflow.

        Args:
            store: Store implementing every persistence protocol
            holidays: Holiday registry (default: loaded from the store)
            rules: Scheduling rules
            confirm: Callback approving large reschedules
        """
        self.store = store
        self.rules = rules
        self.holidays = holidays if holidays is not None else HolidayRegistry(store)
        self.holidays.load()

        self.scheduler = ProjectScheduler(self.holidays, rules)
        self.capacity_allocator = CapacityAllocator(self.holidays, rules)
        self.hour_allocator = HourBlockAllocator(self.holidays, rules)
        self.project_list = OptimisticProjectList(store.list_projects())
        self.rescheduler = ProjectRescheduler(
            store,
            self.scheduler,
            rules,
            confirm=confirm,
            project_list=self.project_list,
        )

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def _get_project(self, project: Union[Project, str]) -> Project:
        project_id = project.id if isinstance(project, Project) else project
        stored = self.store.get_project(project_id)
        if stored is None:
            raise SchedulingError("Project not found", {"project_id": project_id})
        return stored

    def create_project(self, project: Project, schedule_capacity: bool = True) -> ProjectCreationResult:
        """Derive dates, persist, and optionally capacity-schedule a new project."""
        project = self.scheduler.calculate_project_dates(project)
        stored = self.store.add_project(project) or project
        self.project_list.apply(stored)
        logger.info(f"Created project {stored.job_name} (install {stored.install_date})")

        result = ProjectCreationResult(project=stored)
        if schedule_capacity:
            result.capacity_result = self.schedule_project_capacity(stored)
        return result

    def reschedule_project(
        self,
        project: Union[Project, str],
        new_install_date: DateLike,
        confirmed: bool = False,
    ) -> RescheduleResult:
        """Move a project's install date and re-derive its phase dates."""
        return self.rescheduler.reschedule(self._get_project(project), new_install_date, confirmed)

    def delete_project(self, project_id: str) -> bool:
        """Delete a project together with its allocations, assignments and unscheduled rows."""
        project_filter = AllocationFilter(project_id=project_id)
        phase_rows = self.store.delete_phase_allocations(project_filter)
        hour_rows = self.store.delete_hour_allocations(project_filter)
        self.store.clear_unscheduled_hours(project_id)
        self.store.delete_assignments(project_id)
        deleted = self.store.delete_project(project_id)

        snapshot = self.project_list.snapshot()
        snapshot.pop(project_id, None)
        self.project_list.restore(snapshot)
        logger.info(
            f"Deleted project {project_id} ({phase_rows} phase allocations, "
            f"{hour_rows} hour allocations)"
        )
        return deleted

    def phases_for_calendar(self, projects: Optional[Iterable[Project]] = None) -> List[ProjectPhase]:
        """Calendar phases of all (or the given) projects."""
        if projects is None:
            projects = self.store.list_projects()
        return generate_project_phases(projects, self.holidays, self.rules)

    # ------------------------------------------------------------------
    # Capacity scheduling
    # ------------------------------------------------------------------

    def capacity_table(self) -> CapacityTable:
        return CapacityTable(
            self.store.fetch_phase_capacities(),
            self.store.fetch_capacity_overrides(),
        )

    def schedule_project_capacity(self, project: Union[Project, str]) -> CapacityScheduleResult:
        """
        Re-run capacity scheduling for one project.

        The project's previous phase allocations are replaced by the new
        run and its unscheduled rows are rewritten. If the new batch
        cannot be stored the previous allocations are put back.

        Raises:
            MissingPhaseDatesError: If a phase with hours has no dates
            PersistenceError: If the store rejects the new allocations
        """
        project = self._get_project(project)
        project_filter = AllocationFilter(project_id=project.id)

        previous = self.store.query_phase_allocations(project_filter)
        others = [
            a for a in self.store.query_phase_allocations(AllocationFilter())
            if a.project_id != project.id
        ]
        result = self.capacity_allocator.schedule_project(project, self.capacity_table(), others)

        self.store.delete_phase_allocations(project_filter)
        try:
            if result.allocations:
                self.store.insert_phase_allocations(result.allocations)
        except PersistenceError:
            logger.error(f"Failed to store allocations for {project.job_name}, restoring previous run")
            if previous:
                self.store.insert_phase_allocations(previous)
            raise

        self.store.clear_unscheduled_hours(project.id)
        for row in result.unscheduled:
            self.store.upsert_unscheduled_hours(row)

        if result.is_partial:
            logger.warning(
                f"Partially scheduled {project.job_name}: {result.scheduled_hours}h scheduled, "
                f"{result.unscheduled_hours}h could not be placed"
            )
        return result

    # ------------------------------------------------------------------
    # Hour blocks
    # ------------------------------------------------------------------

    def auto_schedule_assignment(self, assignment: ProjectAssignment) -> HourBlockScheduleResult:
        """Record an assignment and book its hours into free hour blocks."""
        project = self._get_project(assignment.project_id)
        if assignment not in self.store.list_assignments(project.id):
            self.store.add_assignment(assignment)

        existing = self.store.query_hour_allocations(AllocationFilter())
        plan = self.hour_allocator.plan_assignment(project, assignment, self.capacity_table(), existing)
        return self.hour_allocator.commit(plan, self.store)

    def auto_fill_phase(
        self,
        project_id: str,
        phase: PhaseKind,
        hours: Optional[int] = None,
        team_member_ids: Optional[Sequence[str]] = None,
    ) -> HourBlockScheduleResult:
        """Book a phase's remaining hours across the team, one full worker-day at a time."""
        project = self._get_project(project_id)
        members = self.store.list_team_members()
        if team_member_ids is not None:
            by_id = {m.id: m for m in members}
            members = [by_id[i] for i in team_member_ids if i in by_id]

        existing = self.store.query_hour_allocations(AllocationFilter())
        plan = self.hour_allocator.plan_auto_fill(
            project, phase, members, self.capacity_table(), existing, hours
        )
        return self.hour_allocator.commit(plan, self.store)

    def assign_hours(
        self,
        project_id: str,
        phase: PhaseKind,
        day: DateLike,
        team_member_ids: Sequence[str],
        hour_blocks: Sequence[int],
    ) -> HourBlockScheduleResult:
        """Manually book workers into hour blocks on one day."""
        project = self._get_project(project_id)
        existing = self.store.query_hour_allocations(AllocationFilter(date=day))
        return self.hour_allocator.assign_manual(
            project.id, phase, day, team_member_ids, hour_blocks, existing, self.store
        )

    def clear_auto_scheduled_hours(
        self,
        project_id: str,
        phase: Optional[PhaseKind] = None,
        team_member_id: Optional[str] = None,
    ) -> int:
        """Remove a project's hour blocks (optionally one phase or one worker)."""
        removed = self.store.delete_hour_allocations(AllocationFilter(
            project_id=project_id, phase=phase, team_member_id=team_member_id,
        ))
        logger.info(f"Cleared {removed} hour allocations for project {project_id}")
        return removed

    def clear_day(self, day: DateLike) -> int:
        """Remove every hour block on a day."""
        return self.store.delete_hour_allocations(AllocationFilter(date=day))

    def clear_person_day(self, day: DateLike, team_member_id: str) -> int:
        """Remove one worker's hour blocks on a day."""
        return self.store.delete_hour_allocations(
            AllocationFilter(date=day, team_member_id=team_member_id)
        )

    def remove_hour_allocations(self, allocation_ids: Sequence[str]) -> int:
        if not allocation_ids:
            return 0
        return self.store.delete_hour_allocations(AllocationFilter(ids=allocation_ids))

    def cleanup_double_bookings(self) -> int:
        return cleanup_double_bookings(self.store)

    # ------------------------------------------------------------------
    # Capacity configuration and status
    # ------------------------------------------------------------------

    def apply_capacity_template(self, template: Union[CapacityTemplate, str]) -> CapacityTemplate:
        """Replace the default capacity of every work phase with a template's values."""
        if isinstance(template, str):
            found = self.store.get_capacity_template(template)
            if found is None:
                raise SchedulingError("Capacity template not found", {"name": template})
            template = found
        for phase, hours in template.capacities().items():
            self.store.set_phase_capacity(phase, hours)
        logger.info(f"Applied capacity template {template.name}")
        return template

    def set_capacity_override(
        self,
        day: DateLike,
        phase: PhaseKind,
        adjusted_capacity: int,
        reason: Optional[str] = None,
    ) -> DailyCapacityOverride:
        override = DailyCapacityOverride(
            date=day, phase=phase, adjusted_capacity=adjusted_capacity, reason=reason,
        )
        self.store.upsert_capacity_override(override)
        return override

    def reset_capacity_override(self, day: DateLike, phase: PhaseKind) -> bool:
        """Drop an override so the phase's default capacity applies again."""
        return self.store.delete_capacity_override(day, phase)

    def capacity_status(self, start: DateLike, end: DateLike) -> Dict[Date, DailyCapacityStatus]:
        """Staffing status for each working day in [start, end]."""
        start = parse_calendar_date(start)
        end = parse_calendar_date(end)
        allocations = self.store.query_hour_allocations(
            AllocationFilter(start_date=start, end_date=end)
        )
        days = working_days_in_range(start, end, self.holidays)
        return capacity_status_by_day(days, allocations, self.capacity_table())

    def validate(self):
        """Check the store against the scheduling rules. Returns (is_valid, issues)."""
        return ScheduleValidator(self.store, self.holidays, self.rules).validate()
