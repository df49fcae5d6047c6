"""Tests for the project scheduling workflow."""

import pytest
from datetime import date

from shop_scheduler.exceptions import PersistenceError, SchedulingError
from shop_scheduler.models import (
    CapacityTemplate,
    DailyHourAllocation,
    Holiday,
    PhaseKind,
    ProjectAssignment,
)
from shop_scheduler.persistence import AllocationFilter
from shop_scheduler.scheduling import RescheduleOutcome, StaffingStatus
from shop_scheduler.workflows import ProjectSchedulingWorkflow


@pytest.fixture
def workflow(store):
    return ProjectSchedulingWorkflow(store)


@pytest.fixture
def created(workflow, kitchen_project):
    return workflow.create_project(kitchen_project)


class TestCreateAndSchedule:
    """Tests for project creation and capacity scheduling."""

    def test_create_derives_dates_and_schedules(self, workflow, created, store):
        assert created.project.millwork_start_date == date(2025, 12, 10)
        assert created.capacity_result.scheduled_hours == 52
        assert store.get_project("P1").has_derived_dates
        assert len(store.query_phase_allocations(AllocationFilter(project_id="P1"))) > 0
        assert [u.hours for u in store.list_unscheduled_hours("P1")] == [4]
        assert workflow.project_list.get("P1") == created.project

    def test_holidays_loaded_from_store(self, store, kitchen_project):
        store.add_holiday(Holiday(date="2025-12-25", name="Christmas Day"))
        store.add_holiday(Holiday(date="2025-12-26", name="Boxing Day"))
        workflow = ProjectSchedulingWorkflow(store)

        result = workflow.create_project(
            kitchen_project.model_copy(update={"install_date": date(2025, 12, 29)}),
            schedule_capacity=False,
        )

        assert workflow.holidays.is_loaded
        assert result.capacity_result is None
        assert result.project.stain_lacquer_date == date(2025, 12, 24)

    def test_rescheduling_replaces_previous_run(self, workflow, created, store):
        store.set_phase_capacity(PhaseKind.INSTALL, 16)

        result = workflow.schedule_project_capacity("P1")

        assert result.unscheduled == []
        rows = store.query_phase_allocations(AllocationFilter(project_id="P1"))
        assert sum(a.allocated_hours for a in rows) == 56
        assert store.list_unscheduled_hours("P1") == []

    def test_failed_insert_restores_previous_allocations(self, workflow, created, store):
        before = store.query_phase_allocations(AllocationFilter(project_id="P1"))
        store.set_phase_capacity(PhaseKind.INSTALL, 16)
        store.inject_failure("insert_phase_allocations")

        with pytest.raises(PersistenceError):
            workflow.schedule_project_capacity("P1")

        assert store.query_phase_allocations(AllocationFilter(project_id="P1")) == before

    def test_other_projects_consume_capacity(self, workflow, created, kitchen_project):
        second = workflow.create_project(kitchen_project.model_copy(update={"id": "P2"}))
        # Install capacity of 8 leaves 4h for each of the two jobs
        assert second.capacity_result.hours_by_phase()[PhaseKind.INSTALL] == 4

        third = workflow.create_project(kitchen_project.model_copy(update={"id": "P3"}))
        assert third.capacity_result.hours_by_phase().get(PhaseKind.INSTALL, 0) == 0
        install = [u for u in third.capacity_result.unscheduled if u.phase == PhaseKind.INSTALL]
        assert [u.hours for u in install] == [8]

    def test_unknown_project(self, workflow):
        with pytest.raises(SchedulingError, match="Project not found"):
            workflow.schedule_project_capacity("missing")

    def test_phases_for_calendar(self, workflow, created):
        phases = workflow.phases_for_calendar()
        assert len(phases) == 5
        assert phases[-1].phase == PhaseKind.INSTALL


class TestRescheduleAndDelete:
    """Tests for reschedule and delete."""

    def test_reschedule_small_move(self, workflow, created, store):
        result = workflow.reschedule_project("P1", "2025-12-26")
        assert result.outcome == RescheduleOutcome.RESCHEDULED
        assert store.get_project("P1").stain_lacquer_date == date(2025, 12, 25)

    def test_reschedule_large_move_needs_confirmation(self, workflow, created, store):
        result = workflow.reschedule_project("P1", "2026-01-13")
        assert result.outcome == RescheduleOutcome.CANCELLED

        result = workflow.reschedule_project("P1", "2026-01-13", confirmed=True)
        assert result.rescheduled
        assert store.get_project("P1").install_date == date(2026, 1, 13)

    def test_delete_cascades(self, workflow, created, store):
        workflow.auto_fill_phase("P1", PhaseKind.MILLWORK, hours=4)
        store.add_assignment(ProjectAssignment(
            project_id="P1", team_member_id="T-ANA", phase="millwork", assigned_hours=4
        ))

        assert workflow.delete_project("P1")

        assert store.get_project("P1") is None
        assert store.phase_allocations == []
        assert store.hour_allocations == []
        assert store.list_unscheduled_hours() == []
        assert store.list_assignments("P1") == []
        assert workflow.project_list.get("P1") is None


class TestHourBlockOperations:
    """Tests for booking and clearing hour blocks."""

    def test_auto_schedule_assignment_records_assignment(self, workflow, created, store):
        assignment = ProjectAssignment(
            project_id="P1", team_member_id="T-BEN", phase="stain", assigned_hours=10
        )

        result = workflow.auto_schedule_assignment(assignment)

        assert result.scheduled_hours == 10
        assert result.days_spread == 2
        assert store.list_assignments("P1") == [assignment]

        workflow.auto_schedule_assignment(assignment)
        assert len(store.list_assignments("P1")) == 1

    def test_auto_fill_is_idempotent(self, workflow, created, store):
        first = workflow.auto_fill_phase("P1", PhaseKind.MILLWORK)
        second = workflow.auto_fill_phase("P1", PhaseKind.MILLWORK)

        assert first.scheduled_hours == 16
        assert second.requested_hours == 0
        assert len(store.hour_allocations) == 16

    def test_auto_fill_restricted_team(self, workflow, created, store):
        result = workflow.auto_fill_phase("P1", PhaseKind.MILLWORK, hours=3, team_member_ids=["T-BEN"])
        assert {a.team_member_id for a in result.allocations} == {"T-BEN"}

    def test_assign_and_clear(self, workflow, created, store):
        workflow.assign_hours("P1", PhaseKind.MILLWORK, "2025-12-10", ["T-ANA", "T-BEN"], [8, 9])
        workflow.assign_hours("P1", PhaseKind.MILLWORK, "2025-12-11", ["T-ANA"], [8])
        conflict = workflow.assign_hours("P1", PhaseKind.MILLWORK, "2025-12-10", ["T-ANA"], [8])
        assert conflict.conflicts == 1

        assert workflow.clear_person_day("2025-12-10", "T-BEN") == 2
        assert workflow.clear_day("2025-12-11") == 1
        ids = [a.id for a in store.hour_allocations]
        assert workflow.remove_hour_allocations(ids[:1]) == 1
        assert workflow.remove_hour_allocations([]) == 0
        assert workflow.clear_auto_scheduled_hours("P1", PhaseKind.MILLWORK) == 1

    def test_cleanup_double_bookings(self, workflow, created, store):
        row = dict(project_id="P1", team_member_id="T-ANA", phase="millwork",
                   date="2025-12-10", hour_block=8)
        store.import_hour_allocations([DailyHourAllocation(**row), DailyHourAllocation(**row)])

        assert workflow.cleanup_double_bookings() == 1
        assert workflow.validate()[0]


class TestCapacityManagement:
    """Tests for capacity templates, overrides and status."""

    def test_apply_template_by_name(self, workflow, store):
        store.add_capacity_template(CapacityTemplate(
            name="Holiday Crew", millwork_hours=8, box_construction_hours=8,
            stain_hours=4, install_hours=0,
        ))

        workflow.apply_capacity_template("Holiday Crew")

        capacities = {c.phase: c.max_hours for c in store.fetch_phase_capacities()}
        assert capacities[PhaseKind.STAIN] == 4
        assert capacities[PhaseKind.INSTALL] == 0

    def test_unknown_template(self, workflow):
        with pytest.raises(SchedulingError, match="Capacity template not found"):
            workflow.apply_capacity_template("Nope")

    def test_override_and_reset(self, workflow):
        workflow.set_capacity_override("2025-12-18", PhaseKind.STAIN, 4, "Booth service")
        assert workflow.capacity_table().effective_capacity(date(2025, 12, 18), PhaseKind.STAIN) == 4

        assert workflow.reset_capacity_override("2025-12-18", PhaseKind.STAIN)
        assert workflow.capacity_table().effective_capacity(date(2025, 12, 18), PhaseKind.STAIN) == 16

    def test_capacity_status(self, workflow, created):
        workflow.auto_fill_phase("P1", PhaseKind.MILLWORK)

        status = workflow.capacity_status("2025-12-10", "2025-12-14")

        assert list(status) == [date(2025, 12, 10), date(2025, 12, 11), date(2025, 12, 12)]
        assert status[date(2025, 12, 10)].phase_info(PhaseKind.MILLWORK).allocated == 16
        assert status[date(2025, 12, 11)].status == StaffingStatus.NO_WORK
