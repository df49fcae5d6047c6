"""In-memory implementation of every store protocol.

Used by the workflow, the JSON data file and the tests. Writes are
validated up front and applied only if the whole call succeeds, and a
failure can be injected for any operation to exercise rollback paths.
"""

import logging
from collections import defaultdict
from datetime import date as Date
from typing import Dict, Iterable, List, Optional, Tuple

from shop_scheduler.exceptions import DuplicateAllocationError, PersistenceError
from shop_scheduler.models import (
    CapacityTemplate,
    DailyCapacityOverride,
    DailyHourAllocation,
    DailyPhaseAllocation,
    DailyPhaseCapacity,
    Holiday,
    PhaseKind,
    Project,
    ProjectAssignment,
    TeamMember,
    UnscheduledHours,
)
from shop_scheduler.persistence.interfaces import AllocationFilter
from shop_scheduler.utils.dates import DateLike, parse_calendar_date, parse_optional_date

logger = logging.getLogger(__name__)


class InMemoryShopStore:
    """
    Dictionary-backed shop data store.

    Implements HolidaySource, CapacitySource, AllocationStore and
    ProjectStore.

    Example:
        >>> store = InMemoryShopStore()
        >>> store.set_phase_capacity(PhaseKind.MILLWORK, 16)
        >>> store.inject_failure("update_project")
        >>> store.update_project(project)   # raises PersistenceError
    """

    def __init__(self):
        self.projects: Dict[str, Project] = {}
        self.holidays: Dict[Date, Holiday] = {}
        self.phase_capacities: Dict[PhaseKind, DailyPhaseCapacity] = {}
        self.capacity_overrides: Dict[Tuple[Date, PhaseKind], DailyCapacityOverride] = {}
        self.capacity_templates: Dict[str, CapacityTemplate] = {}
        self.team_members: Dict[str, TeamMember] = {}
        self.assignments: List[ProjectAssignment] = []
        self.phase_allocations: List[DailyPhaseAllocation] = []
        self.hour_allocations: List[DailyHourAllocation] = []
        self.unscheduled_hours: Dict[Tuple[str, PhaseKind], UnscheduledHours] = {}
        self._failures: Dict[str, List[Exception]] = defaultdict(list)

    # ------------------------------------------------------------------
    # Failure injection
    # ------------------------------------------------------------------

    def inject_failure(self, operation: str, error: Optional[Exception] = None, times: int = 1) -> None:
        """Make the next ``times`` calls of ``operation`` raise ``error``."""
        error = error or PersistenceError(f"Injected failure in {operation}")
        self._failures[operation].extend([error] * times)

    def _check_failure(self, operation: str) -> None:
        pending = self._failures.get(operation)
        if pending:
            raise pending.pop(0)

    # ------------------------------------------------------------------
    # HolidaySource
    # ------------------------------------------------------------------

    def fetch_holidays(self) -> List[Holiday]:
        self._check_failure("fetch_holidays")
        return sorted(self.holidays.values(), key=lambda h: h.date)

    def add_holiday(self, holiday: Holiday) -> None:
        self.holidays[holiday.date] = holiday

    def delete_holiday(self, day: DateLike) -> bool:
        return self.holidays.pop(parse_calendar_date(day), None) is not None

    # ------------------------------------------------------------------
    # CapacitySource and capacity configuration
    # ------------------------------------------------------------------

    def fetch_phase_capacities(self) -> List[DailyPhaseCapacity]:
        self._check_failure("fetch_phase_capacities")
        return list(self.phase_capacities.values())

    def fetch_capacity_overrides(self, date: Optional[DateLike] = None) -> List[DailyCapacityOverride]:
        self._check_failure("fetch_capacity_overrides")
        day = parse_optional_date(date)
        return [
            o for (o_date, _), o in sorted(self.capacity_overrides.items(), key=lambda kv: kv[0][0])
            if day is None or o_date == day
        ]

    def set_phase_capacity(self, phase: PhaseKind, max_hours: int) -> DailyPhaseCapacity:
        capacity = DailyPhaseCapacity(phase=phase, max_hours=max_hours)
        self.phase_capacities[capacity.phase] = capacity
        return capacity

    def upsert_capacity_override(self, override: DailyCapacityOverride) -> None:
        self._check_failure("upsert_capacity_override")
        self.capacity_overrides[(override.date, override.phase)] = override

    def delete_capacity_override(self, day: DateLike, phase: PhaseKind) -> bool:
        key = (parse_calendar_date(day), PhaseKind(phase))
        return self.capacity_overrides.pop(key, None) is not None

    def add_capacity_template(self, template: CapacityTemplate) -> None:
        self.capacity_templates[template.name] = template

    def get_capacity_template(self, name: str) -> Optional[CapacityTemplate]:
        return self.capacity_templates.get(name)

    def list_capacity_templates(self) -> List[CapacityTemplate]:
        return sorted(self.capacity_templates.values(), key=lambda t: t.name)

    # ------------------------------------------------------------------
    # Team members and assignments
    # ------------------------------------------------------------------

    def add_team_member(self, member: TeamMember) -> None:
        self.team_members[member.id] = member

    def get_team_member(self, member_id: str) -> Optional[TeamMember]:
        return self.team_members.get(member_id)

    def list_team_members(self, active_only: bool = False) -> List[TeamMember]:
        members = list(self.team_members.values())
        if active_only:
            members = [m for m in members if m.is_active]
        return members

    def add_assignment(self, assignment: ProjectAssignment) -> None:
        self.assignments.append(assignment)

    def list_assignments(self, project_id: Optional[str] = None) -> List[ProjectAssignment]:
        return [a for a in self.assignments if project_id is None or a.project_id == project_id]

    def delete_assignments(self, project_id: str) -> int:
        before = len(self.assignments)
        self.assignments = [a for a in self.assignments if a.project_id != project_id]
        return before - len(self.assignments)

    # ------------------------------------------------------------------
    # AllocationStore: phase allocations
    # ------------------------------------------------------------------

    def insert_phase_allocations(self, batch: Iterable[DailyPhaseAllocation]) -> None:
        batch = list(batch)
        self._check_failure("insert_phase_allocations")
        self.phase_allocations.extend(batch)

    def delete_phase_allocations(self, filter: AllocationFilter) -> int:
        self._check_failure("delete_phase_allocations")
        before = len(self.phase_allocations)
        self.phase_allocations = [a for a in self.phase_allocations if not filter.matches(a)]
        return before - len(self.phase_allocations)

    def query_phase_allocations(self, filter: AllocationFilter) -> List[DailyPhaseAllocation]:
        rows = [a for a in self.phase_allocations if filter.matches(a)]
        return sorted(rows, key=lambda a: (a.date, a.phase.value, a.project_id))

    # ------------------------------------------------------------------
    # AllocationStore: hour allocations
    # ------------------------------------------------------------------

    def insert_hour_allocations(self, batch: Iterable[DailyHourAllocation]) -> None:
        batch = list(batch)
        self._check_failure("insert_hour_allocations")
        taken = {a.slot_key for a in self.hour_allocations}
        for allocation in batch:
            if allocation.slot_key in taken:
                raise DuplicateAllocationError(
                    allocation.team_member_id,
                    allocation.date.isoformat(),
                    allocation.hour_block,
                )
            taken.add(allocation.slot_key)
        self.hour_allocations.extend(batch)

    def import_hour_allocations(self, rows: Iterable[DailyHourAllocation]) -> None:
        """Load rows as-is, without the uniqueness check (legacy snapshots)."""
        self.hour_allocations.extend(rows)

    def delete_hour_allocations(self, filter: AllocationFilter) -> int:
        self._check_failure("delete_hour_allocations")
        before = len(self.hour_allocations)
        self.hour_allocations = [a for a in self.hour_allocations if not filter.matches(a)]
        return before - len(self.hour_allocations)

    def query_hour_allocations(self, filter: AllocationFilter) -> List[DailyHourAllocation]:
        rows = [a for a in self.hour_allocations if filter.matches(a)]
        return sorted(rows, key=lambda a: (a.date, a.team_member_id, a.hour_block, a.created_at))

    # ------------------------------------------------------------------
    # AllocationStore: unscheduled hours
    # ------------------------------------------------------------------

    def upsert_unscheduled_hours(self, row: UnscheduledHours) -> None:
        self._check_failure("upsert_unscheduled_hours")
        self.unscheduled_hours[(row.project_id, row.phase)] = row

    def clear_unscheduled_hours(self, project_id: str, phase: Optional[PhaseKind] = None) -> int:
        keys = [
            key for key in self.unscheduled_hours
            if key[0] == project_id and (phase is None or key[1] == PhaseKind(phase))
        ]
        for key in keys:
            del self.unscheduled_hours[key]
        return len(keys)

    def list_unscheduled_hours(self, project_id: Optional[str] = None) -> List[UnscheduledHours]:
        return [
            row for (pid, _), row in self.unscheduled_hours.items()
            if project_id is None or pid == project_id
        ]

    # ------------------------------------------------------------------
    # ProjectStore
    # ------------------------------------------------------------------

    def add_project(self, project: Project) -> Project:
        self._check_failure("add_project")
        if project.id in self.projects:
            raise PersistenceError("Project already exists", {"project_id": project.id})
        self.projects[project.id] = project
        return project

    def update_project(self, project: Project) -> Project:
        self._check_failure("update_project")
        if project.id not in self.projects:
            raise PersistenceError("Project not found", {"project_id": project.id})
        self.projects[project.id] = project
        return project

    def get_project(self, project_id: str) -> Optional[Project]:
        return self.projects.get(project_id)

    def list_projects(self) -> List[Project]:
        return sorted(self.projects.values(), key=lambda p: (p.install_date, p.job_name))

    def delete_project(self, project_id: str) -> bool:
        self._check_failure("delete_project")
        return self.projects.pop(project_id, None) is not None
