"""Phase kinds, project status and the derived phase view."""

from datetime import date as Date
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from shop_scheduler.utils.dates import parse_calendar_date


class PhaseKind(str, Enum):
    """Production phases of a cabinet job."""
    MATERIAL_ORDER = "materialOrder"
    MILLWORK = "millwork"
    BOX_CONSTRUCTION = "boxConstruction"
    STAIN = "stain"
    INSTALL = "install"

    @property
    def is_work_phase(self) -> bool:
        """True if the phase carries labor hours and daily capacity."""
        return self is not PhaseKind.MATERIAL_ORDER


#: Phases that carry hours and capacity, in production order
WORK_PHASES = (
    PhaseKind.MILLWORK,
    PhaseKind.BOX_CONSTRUCTION,
    PhaseKind.STAIN,
    PhaseKind.INSTALL,
)


class ProjectStatus(str, Enum):
    """Workflow status of a project."""
    PLANNING = "planning"
    SHOP = "shop"
    STAIN = "stain"
    INSTALL = "install"
    COMPLETED = "completed"
    CUSTOM = "custom"


class ProjectPhase(BaseModel):
    """
    One phase of a project materialized for display or export.

    Derived from a project's dates on demand and never stored as a
    source of truth.

    Attributes:
        project_id: Owning project
        project_name: Job name of the owning project
        phase: Phase kind
        start_date: First business day of the phase
        end_date: Business day the phase ends on
        hours: Labor hours of the phase (0 for material ordering)
    """
    project_id: str = Field(..., description="Owning project ID")
    project_name: str = Field(..., description="Job name of the owning project")
    phase: PhaseKind = Field(..., description="Phase kind")
    start_date: Date = Field(..., description="Phase start date")
    end_date: Date = Field(..., description="Phase end date")
    hours: int = Field(default=0, description="Labor hours", ge=0)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> Date:
        return parse_calendar_date(value)

    @model_validator(mode='after')
    def validate_range(self) -> 'ProjectPhase':
        if self.end_date < self.start_date:
            raise ValueError(
                f"end_date ({self.end_date}) must be on or after start_date ({self.start_date})"
            )
        return self

    @property
    def duration_days(self) -> int:
        """Calendar days spanned, inclusive."""
        return (self.end_date - self.start_date).days + 1
