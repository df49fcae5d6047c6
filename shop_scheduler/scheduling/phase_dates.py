"""
Phase date calculator.

Derives every production date of a project by walking backward from the
fixed install date, one business day at a time:

    stain_lacquer        = install - 1
    stain_start          = stain_lacquer - duration(stain)
    milling_fillers      = stain_start - 1
    box_toekick_assembly = milling_fillers - 1
    box_construction     = box_toekick_assembly - duration(boxes)
    millwork_start       = box_construction - duration(millwork)
    material_order       = millwork_start - 10

where duration(phase) = max(1, ceil(hours / 8)) business days. Gaps and
lead times come from ``SchedulingRules``.
"""

import logging
from datetime import date as Date
from typing import Optional, Tuple

from shop_scheduler.config import DEFAULT_RULES, SchedulingRules
from shop_scheduler.exceptions import MissingPhaseDatesError
from shop_scheduler.models import PhaseKind, Project
from shop_scheduler.scheduling.business_days import (
    add_business_days,
    phase_duration_days,
    subtract_business_days,
)

logger = logging.getLogger(__name__)


class ProjectScheduler:
    """
    Backward scheduler for project phase dates.

    Example:
        >>> scheduler = ProjectScheduler(holidays=registry)
        >>> project = scheduler.calculate_project_dates(project)
        >>> project.stain_lacquer_date
        datetime.date(2025, 12, 22)
    """

    def __init__(self, holidays=None, rules: SchedulingRules = DEFAULT_RULES):
        """
        Initialize scheduler.

        Args:
            holidays: Holiday calendar (``HolidayRegistry`` or iterable of dates)
            rules: Scheduling rules (durations, gaps, lead times)
        """
        self.holidays = holidays
        self.rules = rules

    def duration_days(self, hours: Optional[float]) -> int:
        """Business days a phase with ``hours`` occupies."""
        return phase_duration_days(hours, self.rules.hours_per_day, self.rules.min_phase_days)

    def _back(self, day: Date, days: int) -> Date:
        return subtract_business_days(day, days, self.holidays)

    def calculate_project_dates(self, project: Project) -> Project:
        """
        Derive all phase dates from the project's install date.

        The input is not modified. Running the calculation twice on the
        same input yields identical dates.

        Args:
            project: Project with install_date and phase hours

        Returns:
            Copy of the project with every derived date filled
        """
        rules = self.rules

        stain_lacquer = self._back(project.install_date, rules.stain_lacquer_gap_business_days)
        stain_start = self._back(stain_lacquer, self.duration_days(project.stain_hrs))
        milling_fillers = self._back(stain_start, rules.milling_fillers_gap_business_days)
        box_toekick = self._back(milling_fillers, rules.box_toekick_gap_business_days)
        box_construction = self._back(box_toekick, self.duration_days(project.box_construction_hrs))
        millwork_start = self._back(box_construction, self.duration_days(project.millwork_hrs))
        material_order = self._back(millwork_start, rules.material_lead_business_days)

        logger.debug(
            f"Calculated dates for {project.job_name}: material order {material_order}, "
            f"install {project.install_date}"
        )

        return project.model_copy(update={
            "stain_lacquer_date": stain_lacquer,
            "stain_start_date": stain_start,
            "milling_fillers_date": milling_fillers,
            "box_toekick_assembly_date": box_toekick,
            "box_construction_start_date": box_construction,
            "millwork_start_date": millwork_start,
            "material_order_date": material_order,
        })

    def install_end_date(self, project: Project) -> Date:
        """Last day of install: install_date + (duration - 1) business days."""
        return add_business_days(
            project.install_date,
            self.duration_days(project.install_hrs) - 1,
            self.holidays,
        )

    def phase_date_range(self, project: Project, phase: PhaseKind) -> Tuple[Date, Date]:
        """
        Date window a work phase's hours may be allocated in.

        Args:
            project: Project with derived dates
            phase: Work phase

        Returns:
            (start, end) inclusive

        Raises:
            MissingPhaseDatesError: If the phase has hours but no start or end date
            ValueError: If called for material ordering
        """
        phase = PhaseKind(phase)
        if phase == PhaseKind.MILLWORK:
            start, end = project.millwork_start_date, project.milling_fillers_date
        elif phase == PhaseKind.BOX_CONSTRUCTION:
            start, end = project.box_construction_start_date, project.box_toekick_assembly_date
        elif phase == PhaseKind.STAIN:
            start, end = project.stain_start_date, project.stain_lacquer_date
        elif phase == PhaseKind.INSTALL:
            start, end = project.install_date, self.install_end_date(project)
        else:
            raise ValueError(f"{phase.value} has no allocation window")

        if start is None or end is None:
            raise MissingPhaseDatesError(phase.value, project.id)
        return start, end
