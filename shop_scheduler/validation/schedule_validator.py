"""Schedule validation - invariant checks over a store snapshot.

Runs after scheduling (or after importing a data file) and reports every
place where stored data breaks a scheduling rule. A store that passes
has ordered business-day dates, no over-capacity phase days and no
double-booked hour blocks.
"""

import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from shop_scheduler.config import DEFAULT_RULES, SchedulingRules
from shop_scheduler.models import DERIVED_DATE_FIELDS
from shop_scheduler.persistence.interfaces import AllocationFilter
from shop_scheduler.scheduling.business_days import is_working_day
from shop_scheduler.scheduling.capacity_allocator import CapacityTable
from shop_scheduler.scheduling.double_bookings import find_double_bookings


@dataclass
class ScheduleValidationIssue:
    """Represents a schedule rule violation."""
    category: str
    message: str
    details: Dict = field(default_factory=dict)


class ScheduleValidator:
    """Validates stored schedules against the scheduling rules."""

    def __init__(self, store, holidays=None, rules: SchedulingRules = DEFAULT_RULES):
        """Initialize validator.

        Args:
            store: Store with projects, capacities and allocations
            holidays: Holiday calendar used for business-day checks
            rules: Scheduling rules (per-job share)
        """
        self.store = store
        self.holidays = holidays
        self.rules = rules

    def validate(self) -> Tuple[bool, List[ScheduleValidationIssue]]:
        """Run all validation checks.

        Returns:
            Tuple of (is_valid, list of issues)
        """
        issues = []
        issues.extend(self._validate_project_dates())
        issues.extend(self._validate_phase_capacity())
        issues.extend(self._validate_allocation_days())
        issues.extend(self._validate_double_bookings())
        issues.extend(self._validate_orphans())
        return (len(issues) == 0, issues)

    def _validate_project_dates(self) -> List[ScheduleValidationIssue]:
        """Derived dates are business days in production order, ending before install."""
        issues = []
        for project in self.store.list_projects():
            if not project.has_derived_dates:
                continue
            chain = [(name, getattr(project, name)) for name in DERIVED_DATE_FIELDS]
            chain.append(("install_date", project.install_date))

            for name, value in chain[:-1]:
                if not is_working_day(value, self.holidays):
                    issues.append(ScheduleValidationIssue(
                        category='Non-Business Day',
                        message=f"{project.job_name}: {name} {value} is not a business day",
                        details={'project_id': project.id, 'field': name, 'date': value},
                    ))

            for (earlier, earlier_date), (later, later_date) in zip(chain, chain[1:]):
                if earlier_date > later_date:
                    issues.append(ScheduleValidationIssue(
                        category='Date Order',
                        message=(
                            f"{project.job_name}: {earlier} {earlier_date} "
                            f"is after {later} {later_date}"
                        ),
                        details={'project_id': project.id, 'earlier': earlier, 'later': later},
                    ))
        return issues

    def _validate_phase_capacity(self) -> List[ScheduleValidationIssue]:
        """Phase hours per day stay within effective capacity and the per-job share."""
        issues = []
        table = CapacityTable(
            self.store.fetch_phase_capacities(),
            self.store.fetch_capacity_overrides(),
        )
        phase_day_totals = defaultdict(int)
        job_day_totals = defaultdict(int)
        for allocation in self.store.query_phase_allocations(AllocationFilter()):
            phase_day_totals[(allocation.phase, allocation.date)] += allocation.allocated_hours
            job_day_totals[(allocation.project_id, allocation.phase, allocation.date)] += (
                allocation.allocated_hours
            )

        for (phase, day), total in sorted(phase_day_totals.items(), key=lambda kv: (kv[0][1], kv[0][0].value)):
            capacity = table.effective_capacity(day, phase)
            if capacity is None or total > capacity:
                issues.append(ScheduleValidationIssue(
                    category='Over Capacity',
                    message=f"{phase.value} on {day}: {total}h allocated, capacity {capacity}",
                    details={'phase': phase.value, 'date': day, 'allocated': total, 'capacity': capacity},
                ))

        for (project_id, phase, day), total in job_day_totals.items():
            capacity = table.effective_capacity(day, phase)
            if capacity is None:
                continue
            cap = math.floor(capacity * self.rules.per_job_capacity_share)
            if total > cap:
                issues.append(ScheduleValidationIssue(
                    category='Per-Job Cap',
                    message=f"Project {project_id} holds {total}h of {phase.value} on {day} (cap {cap}h)",
                    details={'project_id': project_id, 'phase': phase.value, 'date': day},
                ))
        return issues

    def _validate_allocation_days(self) -> List[ScheduleValidationIssue]:
        """Allocations only fall on working days."""
        issues = []
        everything = AllocationFilter()
        rows = list(self.store.query_phase_allocations(everything))
        rows.extend(self.store.query_hour_allocations(everything))
        for row in rows:
            if not is_working_day(row.date, self.holidays):
                issues.append(ScheduleValidationIssue(
                    category='Non-Working Day Allocation',
                    message=f"{row.phase.value} allocation on {row.date} for project {row.project_id}",
                    details={'project_id': row.project_id, 'date': row.date},
                ))
        return issues

    def _validate_double_bookings(self) -> List[ScheduleValidationIssue]:
        """No worker is booked twice in the same hour block."""
        issues = []
        for group in find_double_bookings(self.store.query_hour_allocations(AllocationFilter())):
            member_id, day, hour = group.slot
            issues.append(ScheduleValidationIssue(
                category='Double Booking',
                message=(
                    f"Team member {member_id} booked {len(group.duplicates) + 1} times "
                    f"at {hour:02d}:00 on {day}"
                ),
                details={'team_member_id': member_id, 'date': day, 'hour_block': hour},
            ))
        return issues

    def _validate_orphans(self) -> List[ScheduleValidationIssue]:
        """Every allocation belongs to an existing project."""
        known = {p.id for p in self.store.list_projects()}
        everything = AllocationFilter()
        orphaned = {
            row.project_id
            for row in list(self.store.query_phase_allocations(everything))
            + list(self.store.query_hour_allocations(everything))
            if row.project_id not in known
        }
        return [
            ScheduleValidationIssue(
                category='Orphaned Allocation',
                message=f"Allocations reference unknown project {project_id}",
                details={'project_id': project_id},
            )
            for project_id in sorted(orphaned)
        ]
