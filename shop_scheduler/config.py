"""Scheduling rule configuration.

All tunable business rules of the scheduling engine live in one
``SchedulingRules`` instance that is injected into the calculator, the
allocators and the rescheduler. The defaults reproduce the legacy shop
behaviour exactly.
"""

from dataclasses import dataclass, replace

from shop_scheduler import constants


@dataclass(frozen=True)
class SchedulingRules:
    """Business rules used by the scheduling engine.

    Attributes:
        hours_per_day: Labor hours converted into one working day
        min_phase_days: Floor applied to every phase duration
        material_lead_business_days: Days between material order and millwork start
        stain_lacquer_gap_business_days: Days between stain/lacquer and install
        milling_fillers_gap_business_days: Days between milling fillers and stain start
        box_toekick_gap_business_days: Days between box/toekick assembly and milling fillers
        per_job_capacity_share: Share of a phase's daily capacity one job may use
        personal_daily_hour_cap: Hour blocks a worker may be auto-filled per day
        default_hour_block_capacity: Hour-block capacity when a phase has none configured
        workday_start_hour: First hour block of the day
        workday_end_hour: End of the working day (exclusive)
        large_move_confirmation_days: Reschedules beyond this need confirmation
        recompute_debounce_seconds: Debounce after ordinary data changes
        drag_recompute_debounce_seconds: Debounce after a drag gesture ends
    """
    hours_per_day: int = constants.HOURS_PER_DAY
    min_phase_days: int = constants.MIN_PHASE_DAYS
    material_lead_business_days: int = constants.MATERIAL_LEAD_BUSINESS_DAYS
    stain_lacquer_gap_business_days: int = constants.STAIN_LACQUER_GAP_BUSINESS_DAYS
    milling_fillers_gap_business_days: int = constants.MILLING_FILLERS_GAP_BUSINESS_DAYS
    box_toekick_gap_business_days: int = constants.BOX_TOEKICK_GAP_BUSINESS_DAYS
    per_job_capacity_share: float = constants.PER_JOB_CAPACITY_SHARE
    personal_daily_hour_cap: int = constants.PERSONAL_DAILY_HOUR_CAP
    default_hour_block_capacity: int = constants.DEFAULT_HOUR_BLOCK_CAPACITY
    workday_start_hour: int = constants.WORKDAY_START_HOUR
    workday_end_hour: int = constants.WORKDAY_END_HOUR
    large_move_confirmation_days: int = constants.LARGE_MOVE_CONFIRMATION_DAYS
    recompute_debounce_seconds: float = constants.RECOMPUTE_DEBOUNCE_SECONDS
    drag_recompute_debounce_seconds: float = constants.DRAG_RECOMPUTE_DEBOUNCE_SECONDS

    def __post_init__(self):
        """Validate configuration."""
        if self.hours_per_day <= 0:
            raise ValueError(f"hours_per_day must be positive, got {self.hours_per_day}")
        if self.min_phase_days < 1:
            raise ValueError(f"min_phase_days must be at least 1, got {self.min_phase_days}")
        for name in (
            "material_lead_business_days",
            "stain_lacquer_gap_business_days",
            "milling_fillers_gap_business_days",
            "box_toekick_gap_business_days",
            "large_move_confirmation_days",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if not 0 < self.per_job_capacity_share <= 1:
            raise ValueError(
                f"per_job_capacity_share must be in (0, 1], got {self.per_job_capacity_share}"
            )
        if self.personal_daily_hour_cap < 1:
            raise ValueError(
                f"personal_daily_hour_cap must be at least 1, got {self.personal_daily_hour_cap}"
            )
        if self.default_hour_block_capacity < 0:
            raise ValueError("default_hour_block_capacity must be non-negative")
        if not 0 <= self.workday_start_hour < self.workday_end_hour <= 24:
            raise ValueError(
                f"Invalid working hours: {self.workday_start_hour}-{self.workday_end_hour}"
            )
        if self.recompute_debounce_seconds < 0 or self.drag_recompute_debounce_seconds < 0:
            raise ValueError("Debounce delays must be non-negative")

    @property
    def hour_blocks(self) -> range:
        """Hour blocks of a working day (8..16 with the default hours)."""
        return range(self.workday_start_hour, self.workday_end_hour)

    def with_overrides(self, **changes) -> "SchedulingRules":
        """Return a copy with some rules replaced."""
        return replace(self, **changes)


DEFAULT_RULES = SchedulingRules()
