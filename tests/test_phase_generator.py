"""Tests for calendar phase generation."""

from datetime import date

from shop_scheduler.models import PhaseKind, Project
from shop_scheduler.scheduling import generate_project_phases


class TestGenerateProjectPhases:
    """Tests for generate_project_phases."""

    def test_five_phases_per_scheduled_project(self, scheduled_project):
        phases = generate_project_phases([scheduled_project])

        assert [p.phase for p in phases] == [
            PhaseKind.MATERIAL_ORDER,
            PhaseKind.MILLWORK,
            PhaseKind.BOX_CONSTRUCTION,
            PhaseKind.STAIN,
            PhaseKind.INSTALL,
        ]
        assert all(p.project_id == "P1" for p in phases)
        assert all(p.project_name == "Kitchen Remodel" for p in phases)

    def test_end_date_is_start_plus_duration(self, scheduled_project):
        by_phase = {p.phase: p for p in generate_project_phases([scheduled_project])}

        millwork = by_phase[PhaseKind.MILLWORK]
        assert millwork.start_date == date(2025, 12, 10)
        assert millwork.end_date == date(2025, 12, 12)
        assert millwork.hours == 16

        material = by_phase[PhaseKind.MATERIAL_ORDER]
        assert material.hours == 0
        assert material.end_date == date(2025, 11, 27)

        install = by_phase[PhaseKind.INSTALL]
        assert install.start_date == date(2025, 12, 23)
        assert install.end_date == date(2025, 12, 24)

    def test_end_date_skips_holidays(self, scheduled_project, christmas_holidays):
        by_phase = {
            p.phase: p
            for p in generate_project_phases([scheduled_project], christmas_holidays)
        }
        assert by_phase[PhaseKind.INSTALL].end_date == date(2025, 12, 24)

        later = scheduled_project.model_copy(update={"install_date": date(2025, 12, 24)})
        by_phase = {p.phase: p for p in generate_project_phases([later], christmas_holidays)}
        assert by_phase[PhaseKind.INSTALL].end_date == date(2025, 12, 29)

    def test_phases_without_start_are_skipped(self, kitchen_project):
        phases = generate_project_phases([kitchen_project])
        assert [p.phase for p in phases] == [PhaseKind.INSTALL]

    def test_zero_hour_phase_spans_one_business_day(self):
        project = Project(
            job_name="Shelving",
            install_date=date(2025, 12, 19),  # Friday
            install_hrs=0,
        )
        phases = generate_project_phases([project])
        assert phases[0].end_date == date(2025, 12, 22)

    def test_generation_is_idempotent(self, scheduled_project):
        first = generate_project_phases([scheduled_project, scheduled_project])
        second = generate_project_phases([scheduled_project, scheduled_project])
        assert first == second
        assert len(first) == 10

    def test_empty_input(self):
        assert generate_project_phases([]) == []
