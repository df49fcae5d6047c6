"""Tests for the backward phase date calculator."""

import pytest
from datetime import date

from shop_scheduler.config import SchedulingRules
from shop_scheduler.exceptions import MissingPhaseDatesError
from shop_scheduler.models import DERIVED_DATE_FIELDS, PhaseKind, Project
from shop_scheduler.scheduling import ProjectScheduler
from shop_scheduler.scheduling.business_days import is_working_day


class TestCalculateProjectDates:
    """Tests for ProjectScheduler.calculate_project_dates."""

    def test_kitchen_dates_from_install(self, kitchen_project):
        """Install Tue 2025-12-23 with 16/16/16 hours."""
        project = ProjectScheduler().calculate_project_dates(kitchen_project)

        assert project.stain_lacquer_date == date(2025, 12, 22)
        assert project.stain_start_date == date(2025, 12, 18)
        assert project.milling_fillers_date == date(2025, 12, 17)
        assert project.box_toekick_assembly_date == date(2025, 12, 16)
        assert project.box_construction_start_date == date(2025, 12, 12)
        assert project.millwork_start_date == date(2025, 12, 10)
        assert project.material_order_date == date(2025, 11, 26)

    def test_input_project_not_modified(self, kitchen_project):
        ProjectScheduler().calculate_project_dates(kitchen_project)
        assert kitchen_project.stain_lacquer_date is None

    def test_zero_hour_phase_occupies_one_day(self, kitchen_project):
        """A 0-hour stain phase still spans exactly one business day."""
        project = kitchen_project.model_copy(update={"stain_hrs": 0})
        project = ProjectScheduler().calculate_project_dates(project)

        assert project.stain_lacquer_date == date(2025, 12, 22)
        assert project.stain_start_date == date(2025, 12, 19)

    def test_recalculation_is_idempotent(self, kitchen_project):
        scheduler = ProjectScheduler()
        once = scheduler.calculate_project_dates(kitchen_project)
        twice = scheduler.calculate_project_dates(once)
        assert once.derived_dates() == twice.derived_dates()

    def test_holidays_are_skipped(self, christmas_holidays):
        """Install Mon 2025-12-29: stain/lacquer skips the weekend and both holidays."""
        project = Project(job_name="Vanity", install_date=date(2025, 12, 29), stain_hrs=8)
        project = ProjectScheduler(christmas_holidays).calculate_project_dates(project)

        assert project.stain_lacquer_date == date(2025, 12, 24)
        assert project.stain_start_date == date(2025, 12, 23)

    def test_rules_can_change_material_lead(self, kitchen_project):
        rules = SchedulingRules(material_lead_business_days=5)
        project = ProjectScheduler(rules=rules).calculate_project_dates(kitchen_project)
        assert project.millwork_start_date == date(2025, 12, 10)
        assert project.material_order_date == date(2025, 12, 3)

    @pytest.mark.parametrize("install_date", [
        date(2025, 12, 23),
        date(2026, 1, 2),
        date(2026, 3, 2),
        date(2026, 5, 29),
    ])
    @pytest.mark.parametrize("hours", [(0, 0, 0), (16, 16, 16), (7, 41, 25)])
    def test_dates_ordered_and_on_business_days(self, christmas_holidays, install_date, hours):
        millwork, boxes, stain = hours
        project = Project(
            job_name="Property",
            install_date=install_date,
            millwork_hrs=millwork,
            box_construction_hrs=boxes,
            stain_hrs=stain,
        )
        project = ProjectScheduler(christmas_holidays).calculate_project_dates(project)

        chain = [getattr(project, name) for name in DERIVED_DATE_FIELDS] + [project.install_date]
        assert chain == sorted(chain)
        for value in chain[:-1]:
            assert is_working_day(value, christmas_holidays)


class TestPhaseDateRange:
    """Tests for ProjectScheduler.phase_date_range."""

    def test_work_phase_windows(self, scheduled_project):
        scheduler = ProjectScheduler()
        assert scheduler.phase_date_range(scheduled_project, PhaseKind.MILLWORK) == (
            date(2025, 12, 10), date(2025, 12, 17)
        )
        assert scheduler.phase_date_range(scheduled_project, PhaseKind.BOX_CONSTRUCTION) == (
            date(2025, 12, 12), date(2025, 12, 16)
        )
        assert scheduler.phase_date_range(scheduled_project, PhaseKind.STAIN) == (
            date(2025, 12, 18), date(2025, 12, 22)
        )

    def test_install_window_extends_by_duration(self, scheduled_project):
        scheduler = ProjectScheduler()
        assert scheduler.phase_date_range(scheduled_project, PhaseKind.INSTALL) == (
            date(2025, 12, 23), date(2025, 12, 23)
        )
        longer = scheduled_project.model_copy(update={"install_hrs": 16})
        assert scheduler.phase_date_range(longer, PhaseKind.INSTALL) == (
            date(2025, 12, 23), date(2025, 12, 24)
        )

    def test_missing_dates_raise(self, kitchen_project):
        with pytest.raises(MissingPhaseDatesError, match="millwork"):
            ProjectScheduler().phase_date_range(kitchen_project, PhaseKind.MILLWORK)

    def test_material_order_has_no_window(self, scheduled_project):
        with pytest.raises(ValueError):
            ProjectScheduler().phase_date_range(scheduled_project, PhaseKind.MATERIAL_ORDER)
