"""Capacity configuration and phase allocation models."""

from datetime import date as Date
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from shop_scheduler.utils.dates import parse_calendar_date
from .phase import PhaseKind


def _work_phase(value: Any) -> PhaseKind:
    phase = PhaseKind(value)
    if not phase.is_work_phase:
        raise ValueError(f"{phase.value} does not carry capacity")
    return phase


class DailyPhaseCapacity(BaseModel):
    """
    Default daily hour ceiling of a work phase.

    Attributes:
        phase: Work phase
        max_hours: Hours the shop can put into the phase per day
    """
    phase: PhaseKind = Field(..., description="Work phase")
    max_hours: int = Field(..., description="Default daily capacity (hours)", ge=0)

    @field_validator("phase", mode="before")
    @classmethod
    def _check_phase(cls, value: Any) -> PhaseKind:
        return _work_phase(value)


class DailyCapacityOverride(BaseModel):
    """
    Per-date replacement of a phase's default capacity.

    Attributes:
        date: Calendar date the override applies to
        phase: Work phase
        adjusted_capacity: Capacity used instead of the default
        reason: Optional explanation shown with the override
    """
    date: Date = Field(..., description="Override date")
    phase: PhaseKind = Field(..., description="Work phase")
    adjusted_capacity: int = Field(..., description="Adjusted capacity (hours)", ge=0)
    reason: Optional[str] = Field(None, description="Reason for the adjustment")

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Date:
        return parse_calendar_date(value)

    @field_validator("phase", mode="before")
    @classmethod
    def _check_phase(cls, value: Any) -> PhaseKind:
        return _work_phase(value)


class CapacityTemplate(BaseModel):
    """
    Named set of default capacities for the four work phases.

    Applying a template replaces every default ``DailyPhaseCapacity``.
    """
    name: str = Field(..., description="Template name", min_length=1)
    millwork_hours: int = Field(..., description="Millwork capacity", ge=0)
    box_construction_hours: int = Field(..., description="Box construction capacity", ge=0)
    stain_hours: int = Field(..., description="Stain capacity", ge=0)
    install_hours: int = Field(..., description="Install capacity", ge=0)

    def capacities(self) -> Dict[PhaseKind, int]:
        return {
            PhaseKind.MILLWORK: self.millwork_hours,
            PhaseKind.BOX_CONSTRUCTION: self.box_construction_hours,
            PhaseKind.STAIN: self.stain_hours,
            PhaseKind.INSTALL: self.install_hours,
        }

    def to_phase_capacities(self) -> list:
        return [
            DailyPhaseCapacity(phase=phase, max_hours=hours)
            for phase, hours in self.capacities().items()
        ]


class DailyPhaseAllocation(BaseModel):
    """
    Hours of one project placed on one day of a phase.

    Attributes:
        project_id: Project the hours belong to
        phase: Work phase
        date: Business day the hours are placed on
        allocated_hours: Hours placed
    """
    project_id: str = Field(..., description="Project ID")
    phase: PhaseKind = Field(..., description="Work phase")
    date: Date = Field(..., description="Allocation date")
    allocated_hours: int = Field(..., description="Allocated hours", gt=0)

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Date:
        return parse_calendar_date(value)


class UnscheduledHours(BaseModel):
    """
    Hours of a phase that could not be placed in its date range.

    One row per (project_id, phase); re-running the scheduler replaces it.
    """
    project_id: str = Field(..., description="Project ID")
    phase: PhaseKind = Field(..., description="Work phase")
    hours: int = Field(..., description="Hours left unscheduled", gt=0)
    reason: str = Field(..., description="Why the hours could not be placed")
