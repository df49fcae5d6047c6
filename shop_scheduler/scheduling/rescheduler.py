"""
Project rescheduling.

Moving a project's install date re-derives every phase date. The new
timeline is shown immediately through an optimistic update of the
displayed project list and rolled back if the store rejects the write.
"""

import logging
from dataclasses import dataclass
from datetime import date as Date
from enum import Enum
from typing import Callable, Dict, List, Optional

from shop_scheduler.config import DEFAULT_RULES, SchedulingRules
from shop_scheduler.exceptions import RescheduleError, RescheduleInProgressError
from shop_scheduler.models import Project
from shop_scheduler.scheduling.phase_dates import ProjectScheduler
from shop_scheduler.utils.dates import DateLike, parse_calendar_date

logger = logging.getLogger(__name__)

#: Callback asked to approve a large move: (project, days moved) -> approved
ConfirmCallback = Callable[[Project, int], bool]


class RescheduleState(str, Enum):
    """Rescheduler state."""
    IDLE = "idle"
    RESCHEDULING = "rescheduling"


class RescheduleOutcome(str, Enum):
    """How a reschedule request ended."""
    RESCHEDULED = "rescheduled"
    CANCELLED = "cancelled"


@dataclass
class RescheduleResult:
    """
    Result of a reschedule request.

    Attributes:
        outcome: RESCHEDULED or CANCELLED
        project: Stored project after the move (the unchanged project if cancelled)
        previous_install_date: Install date before the request
        days_moved: Calendar days between old and new install dates (absolute)
        message: Human-readable summary
    """
    outcome: RescheduleOutcome
    project: Project
    previous_install_date: Date
    days_moved: int
    message: str = ""

    @property
    def rescheduled(self) -> bool:
        return self.outcome == RescheduleOutcome.RESCHEDULED


class OptimisticProjectList:
    """
    The project list a user is looking at, updated ahead of persistence.

    ``snapshot``/``apply``/``restore`` form the compensating action used
    when a write fails.
    """

    def __init__(self, projects: Optional[List[Project]] = None):
        self._projects: Dict[str, Project] = {p.id: p for p in projects or []}

    @property
    def projects(self) -> List[Project]:
        return list(self._projects.values())

    def get(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def snapshot(self) -> Dict[str, Project]:
        return dict(self._projects)

    def apply(self, project: Project) -> None:
        self._projects[project.id] = project

    def restore(self, snapshot: Dict[str, Project]) -> None:
        self._projects = dict(snapshot)

    def __len__(self) -> int:
        return len(self._projects)


def confirmation_message(project: Project, days: int) -> str:
    """Prompt shown before a large move."""
    return (
        f'You are moving "{project.job_name}" by {days} days. '
        f'This will recalculate all project dates. Continue?'
    )


class ProjectRescheduler:
    """
    Two-state machine (IDLE, RESCHEDULING) that moves a project's install date.

    Example:
        >>> rescheduler = ProjectRescheduler(store, ProjectScheduler(registry))
        >>> result = rescheduler.reschedule(project, date(2026, 1, 6))
        >>> result.outcome
        <RescheduleOutcome.RESCHEDULED: 'rescheduled'>
    """

    def __init__(
        self,
        project_store,
        scheduler: Optional[ProjectScheduler] = None,
        rules: SchedulingRules = DEFAULT_RULES,
        confirm: Optional[ConfirmCallback] = None,
        project_list: Optional[OptimisticProjectList] = None,
    ):
        """
        Initialize rescheduler.

        Args:
            project_store: ProjectStore the new dates are written to
            scheduler: Phase date calculator (holiday-aware)
            rules: Scheduling rules (confirmation threshold)
            confirm: Callback approving moves beyond the threshold
            project_list: Displayed projects, updated optimistically
        """
        self.project_store = project_store
        self.scheduler = scheduler or ProjectScheduler(rules=rules)
        self.rules = rules
        self.confirm = confirm
        self.project_list = project_list if project_list is not None else OptimisticProjectList()
        self.state = RescheduleState.IDLE

    @property
    def is_rescheduling(self) -> bool:
        return self.state == RescheduleState.RESCHEDULING

    def requires_confirmation(self, project: Project, new_install_date: DateLike) -> bool:
        days = abs((parse_calendar_date(new_install_date) - project.install_date).days)
        return days > self.rules.large_move_confirmation_days

    def reschedule(
        self,
        project: Project,
        new_install_date: DateLike,
        confirmed: bool = False,
    ) -> RescheduleResult:
        """
        Move a project to a new install date.

        Args:
            project: Project as currently displayed
            new_install_date: New install date
            confirmed: Pre-approval for a large move

        Returns:
            RescheduleResult; CANCELLED if a large move was not approved

        Raises:
            RescheduleInProgressError: If another reschedule is running
            RescheduleError: If the store rejected the update (state rolled back)
        """
        if self.is_rescheduling:
            raise RescheduleInProgressError(
                "A reschedule is already in progress", {"project_id": project.id}
            )

        new_date = parse_calendar_date(new_install_date)
        previous = project.install_date
        days = abs((new_date - previous).days)

        if days > self.rules.large_move_confirmation_days and not confirmed:
            approved = self.confirm(project, days) if self.confirm else False
            if not approved:
                logger.info(f"Reschedule of {project.job_name} by {days} days cancelled")
                return RescheduleResult(
                    outcome=RescheduleOutcome.CANCELLED,
                    project=project,
                    previous_install_date=previous,
                    days_moved=days,
                    message=confirmation_message(project, days),
                )

        self.state = RescheduleState.RESCHEDULING
        try:
            recalculated = self.scheduler.calculate_project_dates(
                project.model_copy(update={"install_date": new_date})
            )
            snapshot = self.project_list.snapshot()
            self.project_list.apply(recalculated)
            try:
                stored = self.project_store.update_project(recalculated)
            except Exception as e:
                self.project_list.restore(snapshot)
                logger.error(f"Failed to reschedule {project.job_name}, rolled back: {e}")
                raise RescheduleError(
                    "Failed to reschedule project",
                    {"project_id": project.id, "install_date": new_date.isoformat()},
                ) from e

            stored = stored or recalculated
            self.project_list.apply(stored)
        finally:
            self.state = RescheduleState.IDLE

        logger.info(f"Rescheduled {project.job_name} from {previous} to {new_date}")
        return RescheduleResult(
            outcome=RescheduleOutcome.RESCHEDULED,
            project=stored,
            previous_install_date=previous,
            days_moved=days,
            message=f"{stored.job_name} has been rescheduled successfully.",
        )
