"""Schedule validation module for post-scheduling checks."""

from .schedule_validator import ScheduleValidationIssue, ScheduleValidator

__all__ = ["ScheduleValidator", "ScheduleValidationIssue"]
