"""Project data model."""

import uuid
from datetime import date as Date
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from shop_scheduler.utils.dates import parse_calendar_date, parse_optional_date
from .phase import PhaseKind, ProjectStatus


#: Derived date fields in production order (install_date is the anchor)
DERIVED_DATE_FIELDS = (
    "material_order_date",
    "millwork_start_date",
    "box_construction_start_date",
    "box_toekick_assembly_date",
    "milling_fillers_date",
    "stain_start_date",
    "stain_lacquer_date",
)

_HOURS_FIELDS: Dict[PhaseKind, str] = {
    PhaseKind.MILLWORK: "millwork_hrs",
    PhaseKind.BOX_CONSTRUCTION: "box_construction_hrs",
    PhaseKind.STAIN: "stain_hrs",
    PhaseKind.INSTALL: "install_hrs",
}


def _new_id() -> str:
    return str(uuid.uuid4())


class Project(BaseModel):
    """
    A cabinet job scheduled backward from its install date.

    Attributes:
        id: Unique project identifier
        job_name: Short job name shown on the calendar
        job_description: Free-text description
        millwork_hrs: Millwork labor hours
        box_construction_hrs: Box construction labor hours
        stain_hrs: Stain labor hours
        install_hrs: Install labor hours
        install_date: Fixed install date every other date is derived from
        material_order_date: Derived material order date
        millwork_start_date: Derived millwork start
        box_construction_start_date: Derived box construction start
        box_toekick_assembly_date: Derived box/toekick assembly date
        milling_fillers_date: Derived milling fillers date
        stain_start_date: Derived stain start
        stain_lacquer_date: Derived stain/lacquer completion date
        status: Workflow status
    """
    id: str = Field(default_factory=_new_id, description="Project ID")
    job_name: str = Field(..., description="Job name", min_length=1)
    job_description: str = Field(default="", description="Job description")
    millwork_hrs: int = Field(default=0, description="Millwork hours", ge=0)
    box_construction_hrs: int = Field(default=0, description="Box construction hours", ge=0)
    stain_hrs: int = Field(default=0, description="Stain hours", ge=0)
    install_hrs: int = Field(default=0, description="Install hours", ge=0)
    install_date: Date = Field(..., description="Install date (scheduling anchor)")
    material_order_date: Optional[Date] = Field(None, description="Material order date")
    millwork_start_date: Optional[Date] = Field(None, description="Millwork start date")
    box_construction_start_date: Optional[Date] = Field(
        None, description="Box construction start date"
    )
    box_toekick_assembly_date: Optional[Date] = Field(
        None, description="Box/toekick assembly date"
    )
    milling_fillers_date: Optional[Date] = Field(None, description="Milling fillers date")
    stain_start_date: Optional[Date] = Field(None, description="Stain start date")
    stain_lacquer_date: Optional[Date] = Field(None, description="Stain/lacquer date")
    status: ProjectStatus = Field(default=ProjectStatus.PLANNING, description="Project status")

    @field_validator("install_date", mode="before")
    @classmethod
    def _parse_install_date(cls, value: Any) -> Date:
        return parse_calendar_date(value)

    @field_validator(*DERIVED_DATE_FIELDS, mode="before")
    @classmethod
    def _parse_derived_dates(cls, value: Any) -> Optional[Date]:
        return parse_optional_date(value)

    def hours_for(self, phase: PhaseKind) -> int:
        """Labor hours of a phase (0 for material ordering)."""
        field = _HOURS_FIELDS.get(PhaseKind(phase))
        return getattr(self, field) if field else 0

    @property
    def total_hours(self) -> int:
        return sum(self.hours_for(phase) for phase in _HOURS_FIELDS)

    @property
    def has_derived_dates(self) -> bool:
        return all(getattr(self, name) is not None for name in DERIVED_DATE_FIELDS)

    def derived_dates(self) -> Dict[str, Optional[Date]]:
        """Derived dates keyed by field name, in production order."""
        return {name: getattr(self, name) for name in DERIVED_DATE_FIELDS}

    def __str__(self) -> str:
        return f"{self.job_name} (install {self.install_date})"
