"""Contracts between the scheduling engine and its data stores.

The engine never talks to a database directly. It reads holidays and
capacities and reads/writes allocations and projects through these
protocols; ``InMemoryShopStore`` implements all of them.
"""

from dataclasses import dataclass
from datetime import date as Date
from typing import Any, Iterable, List, Optional, Protocol, Sequence, runtime_checkable

from shop_scheduler.models import (
    DailyCapacityOverride,
    DailyHourAllocation,
    DailyPhaseAllocation,
    DailyPhaseCapacity,
    Holiday,
    PhaseKind,
    Project,
    UnscheduledHours,
)
from shop_scheduler.utils.dates import parse_calendar_date, parse_optional_date


@dataclass(frozen=True)
class AllocationFilter:
    """
    Row filter for allocation queries and deletes.

    Unset fields match everything; an empty filter matches every row.
    ``team_member_id`` only narrows hour allocations.

    Attributes:
        project_id: Exact project
        team_member_id: Exact worker (hour allocations only)
        phase: Exact phase
        date: Exact date
        start_date: Earliest date (inclusive)
        end_date: Latest date (inclusive)
        ids: Allocation IDs (hour allocations only)
    """
    project_id: Optional[str] = None
    team_member_id: Optional[str] = None
    phase: Optional[PhaseKind] = None
    date: Optional[Date] = None
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    ids: Optional[Sequence[str]] = None

    def __post_init__(self):
        # Frozen dataclass: normalize through object.__setattr__
        if self.phase is not None:
            object.__setattr__(self, "phase", PhaseKind(self.phase))
        for name in ("date", "start_date", "end_date"):
            object.__setattr__(self, name, parse_optional_date(getattr(self, name)))
        if self.ids is not None:
            object.__setattr__(self, "ids", tuple(self.ids))

    def matches(self, row: Any) -> bool:
        """True if an allocation row passes every set criterion."""
        if self.project_id is not None and row.project_id != self.project_id:
            return False
        if self.phase is not None and row.phase != self.phase:
            return False
        row_date = parse_calendar_date(row.date)
        if self.date is not None and row_date != self.date:
            return False
        if self.start_date is not None and row_date < self.start_date:
            return False
        if self.end_date is not None and row_date > self.end_date:
            return False
        if self.team_member_id is not None:
            if getattr(row, "team_member_id", None) != self.team_member_id:
                return False
        if self.ids is not None:
            if getattr(row, "id", None) not in self.ids:
                return False
        return True


@runtime_checkable
class HolidaySource(Protocol):
    def fetch_holidays(self) -> List[Holiday]:
        ...


@runtime_checkable
class CapacitySource(Protocol):
    def fetch_phase_capacities(self) -> List[DailyPhaseCapacity]:
        ...

    def fetch_capacity_overrides(self, date: Optional[Date] = None) -> List[DailyCapacityOverride]:
        """Overrides for one date, or all overrides when date is None."""
        ...


@runtime_checkable
class AllocationStore(Protocol):
    """
    Allocation persistence.

    Batch inserts are all-or-nothing. Inserting an hour allocation whose
    (team_member_id, date, hour_block) is already taken raises
    ``DuplicateAllocationError`` and stores nothing from the batch.
    Deletes return the number of rows removed.
    """

    def insert_phase_allocations(self, batch: Iterable[DailyPhaseAllocation]) -> None:
        ...

    def delete_phase_allocations(self, filter: AllocationFilter) -> int:
        ...

    def query_phase_allocations(self, filter: AllocationFilter) -> List[DailyPhaseAllocation]:
        ...

    def insert_hour_allocations(self, batch: Iterable[DailyHourAllocation]) -> None:
        ...

    def delete_hour_allocations(self, filter: AllocationFilter) -> int:
        ...

    def query_hour_allocations(self, filter: AllocationFilter) -> List[DailyHourAllocation]:
        ...

    def upsert_unscheduled_hours(self, row: UnscheduledHours) -> None:
        ...

    def clear_unscheduled_hours(self, project_id: str, phase: Optional[PhaseKind] = None) -> int:
        ...


@runtime_checkable
class ProjectStore(Protocol):
    """
    Project persistence.

    ``update_project`` is all-or-nothing and raises ``PersistenceError``
    on failure; it returns the stored project.
    """

    def update_project(self, project: Project) -> Project:
        ...

    def get_project(self, project_id: str) -> Optional[Project]:
        ...

    def list_projects(self) -> List[Project]:
        ...

    def add_project(self, project: Project) -> Project:
        ...

    def delete_project(self, project_id: str) -> bool:
        ...
