"""Tests for hour-block allocation."""

import pytest
from datetime import date

from shop_scheduler.config import SchedulingRules
from shop_scheduler.exceptions import MissingPhaseDatesError
from shop_scheduler.models import (
    DailyHourAllocation,
    PhaseKind,
    ProjectAssignment,
    TeamMember,
)
from shop_scheduler.persistence import AllocationFilter, InMemoryShopStore
from shop_scheduler.scheduling import HourBlockAllocator, HourSlot

DAY = date(2025, 12, 10)
NEXT_DAY = date(2025, 12, 11)


def _hour(member, hour, day=DAY, phase=PhaseKind.MILLWORK, project_id="OTHER"):
    return DailyHourAllocation(
        project_id=project_id,
        team_member_id=member,
        phase=phase,
        date=day,
        hour_block=hour,
    )


class TestFindAvailableSlots:
    """Tests for free-slot search."""

    def test_skips_hours_worker_already_holds(self):
        existing = [_hour("T-ANA", 8), _hour("T-ANA", 9, phase=PhaseKind.STAIN)]

        slots = HourBlockAllocator().find_available_slots(
            "T-ANA", PhaseKind.MILLWORK, [DAY], 16, existing
        )

        assert slots[0] == HourSlot(DAY, 10)
        assert [s.hour_block for s in slots] == list(range(10, 17))

    def test_phase_capacity_counts_all_workers(self):
        existing = [_hour("T-BEN", 8), _hour("T-CAL", 8)]

        slots = HourBlockAllocator().find_available_slots(
            "T-ANA", PhaseKind.MILLWORK, [DAY, NEXT_DAY], 3, existing
        )

        assert slots == [HourSlot(DAY, 8), HourSlot(NEXT_DAY, 8), HourSlot(NEXT_DAY, 9),
                         HourSlot(NEXT_DAY, 10)]

    def test_default_capacity_when_unconfigured(self):
        slots = HourBlockAllocator().find_available_slots(
            "T-ANA", PhaseKind.MILLWORK, ["2025-12-10"], None
        )
        assert len(slots) == 8
        assert slots[-1].hour_block == 15

    def test_capacity_table_override(self, capacity_table):
        assert HourBlockAllocator().daily_capacity(capacity_table, DAY, PhaseKind.INSTALL) == 8

    def test_slots_handed_out_count_against_capacity(self):
        """A day under capacity offers only what is left of it, not every free hour."""
        existing = [_hour("T-BEN", 8)]

        slots = HourBlockAllocator().find_available_slots(
            "T-ANA", PhaseKind.MILLWORK, [DAY], 4, existing
        )

        assert [s.hour_block for s in slots] == [8, 9, 10]


class TestPlanAssignment:
    """Tests for planning one worker's assignment."""

    def test_greedy_day_then_hour_order(self, scheduled_project, capacity_table):
        assignment = ProjectAssignment(
            project_id="P1", team_member_id="T-ANA", phase=PhaseKind.MILLWORK, assigned_hours=12
        )

        plan = HourBlockAllocator().plan_assignment(scheduled_project, assignment, capacity_table)

        assert plan.planned_hours == 12
        assert not plan.is_partial
        assert [(a.date, a.hour_block) for a in plan.allocations[:9]] == [
            (DAY, hour) for hour in range(8, 17)
        ]
        assert [(a.date, a.hour_block) for a in plan.allocations[9:]] == [
            (NEXT_DAY, 8), (NEXT_DAY, 9), (NEXT_DAY, 10)
        ]
        assert all(a.project_id == "P1" for a in plan.allocations)

    def test_explicit_window_limits_slots(self, scheduled_project, capacity_table):
        assignment = ProjectAssignment(
            project_id="P1",
            team_member_id="T-ANA",
            phase=PhaseKind.MILLWORK,
            assigned_hours=12,
            start_date="2025-12-10",
            end_date="2025-12-10",
        )

        plan = HourBlockAllocator().plan_assignment(scheduled_project, assignment, capacity_table)

        assert plan.planned_hours == 9
        assert plan.shortfall == 3
        assert plan.is_partial

    def test_missing_dates_raise(self, kitchen_project, capacity_table):
        assignment = ProjectAssignment(
            project_id="P1", team_member_id="T-ANA", phase=PhaseKind.STAIN, assigned_hours=4
        )
        with pytest.raises(MissingPhaseDatesError):
            HourBlockAllocator().plan_assignment(kitchen_project, assignment, capacity_table)


class TestCommit:
    """Tests for persisting plans."""

    def test_clean_batch_is_stored(self, scheduled_project, capacity_table):
        store = InMemoryShopStore()
        allocator = HourBlockAllocator()
        assignment = ProjectAssignment(
            project_id="P1", team_member_id="T-ANA", phase=PhaseKind.MILLWORK, assigned_hours=3
        )
        plan = allocator.plan_assignment(scheduled_project, assignment, capacity_table)

        result = allocator.commit(plan, store)

        assert result.scheduled_hours == 3
        assert result.conflicts == 0
        assert result.days_spread == 1
        assert len(store.hour_allocations) == 3

    def test_slot_taken_meanwhile_becomes_conflict(self, scheduled_project, capacity_table):
        """A stale plan is retried row by row and the taken slot is counted."""
        store = InMemoryShopStore()
        allocator = HourBlockAllocator()
        assignment = ProjectAssignment(
            project_id="P1", team_member_id="T-ANA", phase=PhaseKind.MILLWORK, assigned_hours=2
        )
        plan = allocator.plan_assignment(scheduled_project, assignment, capacity_table)
        store.insert_hour_allocations([_hour("T-ANA", 8)])

        result = allocator.commit(plan, store)

        assert result.conflicts == 1
        assert [a.hour_block for a in result.allocations] == [9]
        assert result.shortfall == 1
        assert len(store.query_hour_allocations(AllocationFilter(team_member_id="T-ANA"))) == 2

    def test_empty_plan_writes_nothing(self, scheduled_project):
        store = InMemoryShopStore()
        allocator = HourBlockAllocator()
        plan = allocator.plan_auto_fill(scheduled_project, PhaseKind.MILLWORK, [], 16, hours=0)
        result = allocator.commit(plan, store)
        assert result.scheduled_hours == 0
        assert store.hour_allocations == []


class TestAutoFill:
    """Tests for automatic team fill."""

    def test_fills_one_worker_day_before_next(self, scheduled_project, capacity_table, team_members):
        plan = HourBlockAllocator().plan_auto_fill(
            scheduled_project, PhaseKind.MILLWORK, team_members, capacity_table
        )

        assert plan.requested_hours == 16
        assert plan.planned_hours == 16
        ana = [a for a in plan.allocations if a.team_member_id == "T-ANA"]
        ben = [a for a in plan.allocations if a.team_member_id == "T-BEN"]
        assert len(ana) == 9
        assert len(ben) == 7
        assert {a.date for a in plan.allocations} == {DAY}
        assert plan.allocations[0].team_member_id == "T-ANA"

    def test_personal_cap_spreads_across_workers(self, scheduled_project, capacity_table, team_members):
        allocator = HourBlockAllocator(rules=SchedulingRules(personal_daily_hour_cap=4))

        plan = allocator.plan_auto_fill(
            scheduled_project, PhaseKind.MILLWORK, team_members, capacity_table
        )

        first_day = [a.team_member_id for a in plan.allocations if a.date == DAY]
        # Eligible workers first, then the non-millwork worker
        assert first_day == ["T-ANA"] * 4 + ["T-BEN"] * 4 + ["T-CAL"] * 4
        assert [a.team_member_id for a in plan.allocations if a.date == NEXT_DAY] == ["T-ANA"] * 4

    def test_inactive_workers_never_used(self, scheduled_project, capacity_table):
        members = [
            TeamMember(id="T-OLD", name="Old", can_do_millwork=True, is_active=False),
            TeamMember(id="T-NEW", name="New", can_do_millwork=True),
        ]
        plan = HourBlockAllocator().plan_auto_fill(
            scheduled_project, PhaseKind.MILLWORK, members, capacity_table, hours=4
        )
        assert {a.team_member_id for a in plan.allocations} == {"T-NEW"}

    def test_default_target_excludes_booked_hours(self, scheduled_project, capacity_table, team_members):
        existing = [_hour("T-ANA", h, project_id="P1") for h in range(8, 14)]

        plan = HourBlockAllocator().plan_auto_fill(
            scheduled_project, PhaseKind.MILLWORK, team_members, capacity_table, existing
        )

        assert plan.requested_hours == 10
        assert plan.planned_hours == 10
        booked = {(a.team_member_id, a.date, a.hour_block) for a in existing}
        assert not booked & {a.slot_key for a in plan.allocations}

    def test_capacity_never_exceeded(self, scheduled_project, team_members):
        plan = HourBlockAllocator().plan_auto_fill(
            scheduled_project, PhaseKind.MILLWORK, team_members, 5, hours=12
        )
        per_day = {}
        for allocation in plan.allocations:
            per_day[allocation.date] = per_day.get(allocation.date, 0) + 1
        assert max(per_day.values()) <= 5
        assert plan.planned_hours == 12

    def test_partial_when_window_full(self, scheduled_project, team_members):
        plan = HourBlockAllocator().plan_auto_fill(
            scheduled_project, PhaseKind.INSTALL, team_members, 2, hours=8
        )
        # Install window is the single day 2025-12-23
        assert plan.planned_hours == 2
        assert plan.shortfall == 6


class TestAssignManual:
    """Tests for manual hour assignment."""

    def test_taken_pairs_are_conflicts(self):
        store = InMemoryShopStore()
        existing = [_hour("T-ANA", 10)]
        store.insert_hour_allocations(existing)

        result = HourBlockAllocator().assign_manual(
            "P1", PhaseKind.MILLWORK, "2025-12-10", ["T-ANA", "T-BEN"], [9, 10],
            existing, store,
        )

        assert result.requested_hours == 4
        assert result.conflicts == 1
        assert sorted((a.team_member_id, a.hour_block) for a in result.allocations) == [
            ("T-ANA", 9), ("T-BEN", 9), ("T-BEN", 10)
        ]
        assert len(store.hour_allocations) == 4

    def test_store_rejection_counts_as_conflict(self):
        store = InMemoryShopStore()
        store.insert_hour_allocations([_hour("T-ANA", 9)])

        result = HourBlockAllocator().assign_manual(
            "P1", PhaseKind.MILLWORK, DAY, ["T-ANA"], [9, 10], [], store
        )

        assert result.conflicts == 1
        assert [a.hour_block for a in result.allocations] == [10]

    def test_not_capped_by_phase_capacity(self):
        store = InMemoryShopStore()
        result = HourBlockAllocator().assign_manual(
            "P1", PhaseKind.INSTALL, DAY, ["T-ANA", "T-BEN", "T-CAL"], list(range(8, 17)), [], store
        )
        assert result.scheduled_hours == 27

    def test_hours_outside_working_day_rejected(self):
        store = InMemoryShopStore()
        with pytest.raises(ValueError, match="outside working hours 8-17"):
            HourBlockAllocator().assign_manual(
                "P1", PhaseKind.MILLWORK, DAY, ["T-ANA"], [16, 17], [], store
            )
        assert store.hour_allocations == []


class TestCustomWorkingHours:
    """Tests for hour blocks under non-default working hours."""

    @pytest.fixture
    def early_rules(self):
        """Fixture for a 7:00-16:00 working day."""
        return SchedulingRules(workday_start_hour=7, workday_end_hour=16)

    def test_slots_follow_working_day(self, early_rules):
        slots = HourBlockAllocator(rules=early_rules).find_available_slots(
            "T-ANA", PhaseKind.MILLWORK, [DAY], 16
        )
        assert [s.hour_block for s in slots] == list(range(7, 16))

    def test_plan_books_early_hours(self, early_rules, scheduled_project, capacity_table):
        assignment = ProjectAssignment(
            project_id="P1", team_member_id="T-ANA", phase=PhaseKind.MILLWORK, assigned_hours=2
        )

        plan = HourBlockAllocator(rules=early_rules).plan_assignment(
            scheduled_project, assignment, capacity_table
        )

        assert [(a.date, a.hour_block) for a in plan.allocations] == [(DAY, 7), (DAY, 8)]

    def test_manual_assignment_uses_rules(self, early_rules):
        store = InMemoryShopStore()
        allocator = HourBlockAllocator(rules=early_rules)

        result = allocator.assign_manual("P1", PhaseKind.MILLWORK, DAY, ["T-ANA"], [7], [], store)
        assert [a.hour_block for a in result.allocations] == [7]

        with pytest.raises(ValueError, match="outside working hours 7-16"):
            allocator.assign_manual("P1", PhaseKind.MILLWORK, DAY, ["T-ANA"], [16], [], store)
