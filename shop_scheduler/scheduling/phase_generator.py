"""Expand projects into calendar phases."""

from typing import Iterable, List

from shop_scheduler.config import DEFAULT_RULES, SchedulingRules
from shop_scheduler.models import PhaseKind, Project, ProjectPhase
from shop_scheduler.scheduling.business_days import add_business_days, phase_duration_days

#: Phase kinds in display order with the project field holding their start date
PHASE_START_FIELDS = (
    (PhaseKind.MATERIAL_ORDER, "material_order_date"),
    (PhaseKind.MILLWORK, "millwork_start_date"),
    (PhaseKind.BOX_CONSTRUCTION, "box_construction_start_date"),
    (PhaseKind.STAIN, "stain_start_date"),
    (PhaseKind.INSTALL, "install_date"),
)


def generate_project_phases(
    projects: Iterable[Project],
    holidays=None,
    rules: SchedulingRules = DEFAULT_RULES,
) -> List[ProjectPhase]:
    """
    Materialize the phases of each project for display.

    Every phase with a start date yields one ``ProjectPhase`` ending
    ``max(1, ceil(hours / 8))`` business days after its start. Phases
    without a start date are skipped. Pure and idempotent.

    Args:
        projects: Projects with derived dates
        holidays: Optional holiday calendar
        rules: Scheduling rules

    Returns:
        Flat list of phases, grouped by project in input order
    """
    phases = []
    for project in projects:
        for phase, start_field in PHASE_START_FIELDS:
            start = getattr(project, start_field)
            if start is None:
                continue
            hours = project.hours_for(phase)
            duration = phase_duration_days(hours, rules.hours_per_day, rules.min_phase_days)
            phases.append(ProjectPhase(
                project_id=project.id,
                project_name=project.job_name,
                phase=phase,
                start_date=start,
                end_date=add_business_days(start, duration, holidays),
                hours=hours,
            ))
    return phases
