"""Centralized constants for cabinet shop scheduling.

This module contains the business constants used across the scheduling
engine: working-day conversion, backward-scheduling lead times, capacity
sharing rules and the shop's working hours. Existing project data was
scheduled with these exact values, so changing a default changes every
derived date downstream.
"""

# ============================================================================
# DURATION CONSTANTS
# ============================================================================

#: Labor hours that make up one working day for a phase
#: Phase durations are ceil(hours / HOURS_PER_DAY) with a floor of 1 day
HOURS_PER_DAY = 8

#: Minimum number of business days any phase occupies (even with 0 hours)
MIN_PHASE_DAYS = 1


# ============================================================================
# BACKWARD SCHEDULING CONSTANTS (business days)
# ============================================================================

#: Business days between material ordering and millwork start
MATERIAL_LEAD_BUSINESS_DAYS = 10

#: Gap between stain/lacquer completion and install
STAIN_LACQUER_GAP_BUSINESS_DAYS = 1

#: Gap between milling fillers and stain start
MILLING_FILLERS_GAP_BUSINESS_DAYS = 1

#: Gap between box/toekick assembly and milling fillers
BOX_TOEKICK_GAP_BUSINESS_DAYS = 1


# ============================================================================
# CAPACITY CONSTANTS
# ============================================================================

#: Share of a phase's daily capacity a single job may consume
#: Leaves room for concurrent jobs on the same phase
PER_JOB_CAPACITY_SHARE = 0.5

#: Maximum hour blocks one worker is booked for in a single day (auto-fill)
PERSONAL_DAILY_HOUR_CAP = 9

#: Daily capacity assumed for hour-block scheduling when a phase has none
DEFAULT_HOUR_BLOCK_CAPACITY = 8


# ============================================================================
# WORKING HOURS
# ============================================================================

#: First hour block of the working day (8:00)
WORKDAY_START_HOUR = 8

#: End of the working day (17:00, exclusive)
#: Hour blocks run 8..16 inclusive, nine blocks per day
WORKDAY_END_HOUR = 17


# ============================================================================
# RESCHEDULING CONSTANTS
# ============================================================================

#: Install-date moves larger than this (calendar days) need confirmation
LARGE_MOVE_CONFIRMATION_DAYS = 7

#: Debounce before recomputing phases after an ordinary data change (seconds)
RECOMPUTE_DEBOUNCE_SECONDS = 0.3

#: Debounce before recomputing phases after a drag gesture ends (seconds)
DRAG_RECOMPUTE_DEBOUNCE_SECONDS = 1.0


# ============================================================================
# DATE FORMAT
# ============================================================================

#: Canonical calendar-date format at every boundary of the scheduling core
DATE_FORMAT = "%Y-%m-%d"
