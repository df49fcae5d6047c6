"""Tests for project rescheduling."""

import pytest
from datetime import date

from shop_scheduler.exceptions import (
    PersistenceError,
    RescheduleError,
    RescheduleInProgressError,
)
from shop_scheduler.persistence import InMemoryShopStore
from shop_scheduler.scheduling import (
    OptimisticProjectList,
    ProjectRescheduler,
    ProjectScheduler,
    RescheduleOutcome,
    RescheduleState,
)


@pytest.fixture
def project_store(scheduled_project):
    store = InMemoryShopStore()
    store.add_project(scheduled_project)
    return store


@pytest.fixture
def project_list(scheduled_project):
    return OptimisticProjectList([scheduled_project])


class TestReschedule:
    """Tests for ProjectRescheduler.reschedule."""

    def test_small_move_recalculates_dates(self, scheduled_project, project_store, project_list):
        rescheduler = ProjectRescheduler(project_store, project_list=project_list)

        result = rescheduler.reschedule(scheduled_project, "2025-12-26")

        assert result.outcome == RescheduleOutcome.RESCHEDULED
        assert result.rescheduled
        assert result.days_moved == 3
        assert result.previous_install_date == date(2025, 12, 23)
        assert result.project.install_date == date(2025, 12, 26)
        assert result.project.stain_lacquer_date == date(2025, 12, 25)
        assert result.message == "Kitchen Remodel has been rescheduled successfully."
        assert project_store.get_project("P1").install_date == date(2025, 12, 26)
        assert project_list.get("P1").install_date == date(2025, 12, 26)
        assert rescheduler.state == RescheduleState.IDLE

    def test_move_of_exactly_threshold_needs_no_confirmation(self, scheduled_project, project_store):
        rescheduler = ProjectRescheduler(project_store)
        assert not rescheduler.requires_confirmation(scheduled_project, date(2025, 12, 30))

        result = rescheduler.reschedule(scheduled_project, date(2025, 12, 30))

        assert result.rescheduled
        assert result.days_moved == 7

    def test_large_move_without_confirmation_is_cancelled(self, scheduled_project, project_store):
        rescheduler = ProjectRescheduler(project_store)

        result = rescheduler.reschedule(scheduled_project, date(2026, 1, 2))

        assert result.outcome == RescheduleOutcome.CANCELLED
        assert result.days_moved == 10
        assert result.message == (
            'You are moving "Kitchen Remodel" by 10 days. '
            'This will recalculate all project dates. Continue?'
        )
        assert project_store.get_project("P1").install_date == date(2025, 12, 23)

    def test_confirm_callback_decides(self, scheduled_project, project_store):
        asked = []

        def approve(project, days):
            asked.append((project.id, days))
            return True

        rescheduler = ProjectRescheduler(project_store, confirm=approve)
        result = rescheduler.reschedule(scheduled_project, date(2025, 12, 9))

        assert asked == [("P1", 14)]
        assert result.rescheduled
        assert result.project.install_date == date(2025, 12, 9)

    def test_confirmed_flag_skips_prompt(self, scheduled_project, project_store):
        def refuse(project, days):
            raise AssertionError("should not be asked")

        rescheduler = ProjectRescheduler(project_store, confirm=refuse)
        result = rescheduler.reschedule(scheduled_project, date(2026, 2, 3), confirmed=True)

        assert result.rescheduled

    def test_holidays_used_for_new_dates(self, scheduled_project, project_store, christmas_holidays):
        rescheduler = ProjectRescheduler(
            project_store, ProjectScheduler(christmas_holidays)
        )

        result = rescheduler.reschedule(scheduled_project, date(2025, 12, 29))

        assert result.project.stain_lacquer_date == date(2025, 12, 24)
        assert result.project.stain_start_date == date(2025, 12, 22)


class TestRescheduleRollback:
    """Tests for failed writes."""

    def test_store_failure_restores_displayed_projects(
        self, scheduled_project, project_store, project_list
    ):
        project_store.inject_failure("update_project")
        rescheduler = ProjectRescheduler(project_store, project_list=project_list)

        with pytest.raises(RescheduleError) as exc_info:
            rescheduler.reschedule(scheduled_project, date(2025, 12, 26))

        assert isinstance(exc_info.value.__cause__, PersistenceError)
        assert project_list.get("P1") == scheduled_project
        assert project_store.get_project("P1") == scheduled_project
        assert rescheduler.state == RescheduleState.IDLE

    def test_retry_after_failure_succeeds(self, scheduled_project, project_store):
        project_store.inject_failure("update_project")
        rescheduler = ProjectRescheduler(project_store)

        with pytest.raises(RescheduleError):
            rescheduler.reschedule(scheduled_project, date(2025, 12, 26))
        result = rescheduler.reschedule(scheduled_project, date(2025, 12, 26))

        assert result.rescheduled

    def test_concurrent_request_rejected(self, scheduled_project):
        class ReentrantStore:
            def __init__(self):
                self.rescheduler = None
                self.nested_error = None

            def update_project(self, project):
                try:
                    self.rescheduler.reschedule(project, date(2025, 12, 24))
                except RescheduleInProgressError as e:
                    self.nested_error = e
                return project

        store = ReentrantStore()
        rescheduler = ProjectRescheduler(store)
        store.rescheduler = rescheduler

        result = rescheduler.reschedule(scheduled_project, date(2025, 12, 26))

        assert result.rescheduled
        assert isinstance(store.nested_error, RescheduleInProgressError)
        assert not rescheduler.is_rescheduling
