"""Exceptions raised by the scheduling engine and its stores."""

from typing import Dict, Optional


class SchedulingError(Exception):
    """Base exception for scheduling errors with context."""

    def __init__(self, message: str, context: Optional[Dict] = None):
        self.message = message
        self.context = context or {}
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with context."""
        msg = self.message
        if self.context:
            details = ", ".join(f"{key}={value}" for key, value in self.context.items())
            msg += f" ({details})"
        return msg


class MissingPhaseDatesError(SchedulingError):
    """A phase has hours to schedule but no start or end date."""

    def __init__(self, phase: str, project_id: Optional[str] = None):
        self.phase = phase
        self.project_id = project_id
        context = {"project_id": project_id} if project_id else None
        super().__init__(f"Unable to determine dates for phase: {phase}", context)


class PersistenceError(SchedulingError):
    """A store could not apply a write. Nothing from the call was applied."""


class DuplicateAllocationError(PersistenceError):
    """A write would book the same worker twice in one hour block."""

    def __init__(self, team_member_id: str, date: str, hour_block: int):
        self.team_member_id = team_member_id
        self.date = date
        self.hour_block = hour_block
        super().__init__(
            "Hour block already allocated",
            {"team_member_id": team_member_id, "date": date, "hour_block": hour_block},
        )


class RescheduleError(SchedulingError):
    """A reschedule could not be persisted; optimistic state was rolled back."""


class RescheduleInProgressError(SchedulingError):
    """A reschedule was requested while another one is in flight."""
