"""Data models for the cabinet shop scheduler."""

from .phase import PhaseKind, ProjectStatus, ProjectPhase, WORK_PHASES
from .project import Project, DERIVED_DATE_FIELDS
from .holiday import Holiday
from .capacity import (
    CapacityTemplate,
    DailyCapacityOverride,
    DailyPhaseAllocation,
    DailyPhaseCapacity,
    UnscheduledHours,
)
from .team import DailyHourAllocation, ProjectAssignment, TeamMember

__all__ = [
    # Phases and projects
    "PhaseKind",
    "ProjectStatus",
    "ProjectPhase",
    "WORK_PHASES",
    "Project",
    "DERIVED_DATE_FIELDS",
    # Calendar
    "Holiday",
    # Capacity
    "DailyPhaseCapacity",
    "DailyCapacityOverride",
    "CapacityTemplate",
    "DailyPhaseAllocation",
    "UnscheduledHours",
    # Team and hour blocks
    "TeamMember",
    "ProjectAssignment",
    "DailyHourAllocation",
]
