"""Pytest configuration and shared fixtures."""

import pytest
from datetime import date

from shop_scheduler.models import (
    DailyPhaseCapacity,
    PhaseKind,
    Project,
    TeamMember,
)
from shop_scheduler.persistence import InMemoryShopStore
from shop_scheduler.scheduling import CapacityTable, HolidayRegistry, ProjectScheduler


@pytest.fixture
def kitchen_project():
    """Fixture for a project without derived dates (install Tue 2025-12-23)."""
    return Project(
        id="P1",
        job_name="Kitchen Remodel",
        job_description="Shaker cabinets",
        millwork_hrs=16,
        box_construction_hrs=16,
        stain_hrs=16,
        install_hrs=8,
        install_date=date(2025, 12, 23),
    )


@pytest.fixture
def scheduled_project(kitchen_project):
    """Fixture for the kitchen project with derived dates (no holidays)."""
    return ProjectScheduler().calculate_project_dates(kitchen_project)


@pytest.fixture
def no_holidays():
    """Fixture for an empty, loaded holiday registry."""
    return HolidayRegistry.from_holidays([])


@pytest.fixture
def christmas_holidays():
    """Fixture for a registry with Christmas Day and Boxing Day 2025."""
    return HolidayRegistry.from_holidays(["2025-12-25", "2025-12-26"])


@pytest.fixture
def phase_capacities():
    """Fixture for default daily phase capacities."""
    return [
        DailyPhaseCapacity(phase=PhaseKind.MILLWORK, max_hours=16),
        DailyPhaseCapacity(phase=PhaseKind.BOX_CONSTRUCTION, max_hours=16),
        DailyPhaseCapacity(phase=PhaseKind.STAIN, max_hours=16),
        DailyPhaseCapacity(phase=PhaseKind.INSTALL, max_hours=8),
    ]


@pytest.fixture
def capacity_table(phase_capacities):
    """Fixture for a capacity table without overrides."""
    return CapacityTable(phase_capacities)


@pytest.fixture
def team_members():
    """Fixture for a small shop team."""
    return [
        TeamMember(id="T-ANA", name="Ana", can_do_millwork=True, can_do_boxes=True),
        TeamMember(id="T-BEN", name="Ben", can_do_millwork=True, can_do_stain=True),
        TeamMember(id="T-CAL", name="Cal", can_do_install=True),
    ]


@pytest.fixture
def store(phase_capacities, team_members):
    """Fixture for an in-memory store with capacities and team members."""
    shop_store = InMemoryShopStore()
    for capacity in phase_capacities:
        shop_store.set_phase_capacity(capacity.phase, capacity.max_hours)
    for member in team_members:
        shop_store.add_team_member(member)
    return shop_store
