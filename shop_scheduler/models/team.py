"""Team members, assignments and hour-block allocations."""

import uuid
from datetime import date as Date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from shop_scheduler.utils.dates import parse_calendar_date, parse_optional_date
from .phase import PhaseKind


class TeamMember(BaseModel):
    """
    A shop worker and the phases they can work on.

    Attributes:
        id: Team member ID
        name: Display name
        email: Contact email
        weekly_hours: Contracted hours per week
        hourly_rate: Hourly labor rate ($/hour)
        can_do_millwork: Eligible for millwork
        can_do_boxes: Eligible for box construction
        can_do_stain: Eligible for stain
        can_do_install: Eligible for install
        is_active: Inactive members are never scheduled
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Team member ID")
    name: str = Field(..., description="Display name", min_length=1)
    email: Optional[str] = Field(None, description="Contact email")
    weekly_hours: float = Field(default=40.0, description="Weekly hours", ge=0)
    hourly_rate: float = Field(default=0.0, description="Hourly rate ($/hour)", ge=0)
    can_do_millwork: bool = Field(default=False, description="Eligible for millwork")
    can_do_boxes: bool = Field(default=False, description="Eligible for box construction")
    can_do_stain: bool = Field(default=False, description="Eligible for stain")
    can_do_install: bool = Field(default=False, description="Eligible for install")
    is_active: bool = Field(default=True, description="Active team member")

    def can_do(self, phase: PhaseKind) -> bool:
        """Check whether this member is active and eligible for a work phase."""
        if not self.is_active:
            return False
        phase = PhaseKind(phase)
        if phase == PhaseKind.MILLWORK:
            return self.can_do_millwork
        if phase == PhaseKind.BOX_CONSTRUCTION:
            return self.can_do_boxes
        if phase == PhaseKind.STAIN:
            return self.can_do_stain
        if phase == PhaseKind.INSTALL:
            return self.can_do_install
        return False


class ProjectAssignment(BaseModel):
    """
    Request for a team member to work hours on a project phase.

    The hour-block scheduler fulfils it by booking hour blocks inside
    the phase's date range.
    """
    project_id: str = Field(..., description="Project ID")
    team_member_id: str = Field(..., description="Team member ID")
    phase: PhaseKind = Field(..., description="Work phase")
    assigned_hours: int = Field(..., description="Hours to schedule", ge=0)
    actual_hours: Optional[float] = Field(None, description="Hours actually worked", ge=0)
    start_date: Optional[Date] = Field(None, description="Optional window start")
    end_date: Optional[Date] = Field(None, description="Optional window end")

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> Optional[Date]:
        return parse_optional_date(value)


class DailyHourAllocation(BaseModel):
    """
    One team member booked for one hour block on one day.

    ``(team_member_id, date, hour_block)`` is unique across all projects
    and phases.

    Attributes:
        id: Allocation ID
        project_id: Project the hour is worked on
        team_member_id: Worker booked
        phase: Work phase
        date: Working day
        hour_block: Clock hour the block starts (8 = 8:00-9:00); the working
            day itself comes from SchedulingRules
        created_at: Creation timestamp (oldest wins during cleanup)
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Allocation ID")
    project_id: str = Field(..., description="Project ID")
    team_member_id: str = Field(..., description="Team member ID")
    phase: PhaseKind = Field(..., description="Work phase")
    date: Date = Field(..., description="Allocation date")
    hour_block: int = Field(
        ...,
        description="Hour block",
        ge=0,
        lt=24,
    )
    created_at: datetime = Field(default_factory=datetime.now, description="Creation time")

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Date:
        return parse_calendar_date(value)

    @model_validator(mode='after')
    def validate_phase(self) -> 'DailyHourAllocation':
        if not self.phase.is_work_phase:
            raise ValueError("Hour blocks can only be booked on work phases")
        return self

    @property
    def slot_key(self) -> tuple:
        """Uniqueness key (team_member_id, date, hour_block)."""
        return (self.team_member_id, self.date, self.hour_block)
