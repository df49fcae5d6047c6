"""Tests for double-booking detection and cleanup."""

from datetime import date, datetime

from shop_scheduler.models import DailyHourAllocation, PhaseKind
from shop_scheduler.persistence import InMemoryShopStore
from shop_scheduler.scheduling import cleanup_double_bookings, find_double_bookings


def _row(member, hour, created, project_id="P1"):
    return DailyHourAllocation(
        project_id=project_id,
        team_member_id=member,
        phase=PhaseKind.MILLWORK,
        date=date(2025, 12, 10),
        hour_block=hour,
        created_at=datetime(2025, 12, 1, created),
    )


class TestDoubleBookings:
    """Tests for find_double_bookings and cleanup_double_bookings."""

    def test_earliest_allocation_is_kept(self):
        first = _row("T-ANA", 8, created=9)
        second = _row("T-ANA", 8, created=11, project_id="P2")
        third = _row("T-ANA", 8, created=10, project_id="P3")

        groups = find_double_bookings([second, first, third, _row("T-ANA", 9, created=9)])

        assert len(groups) == 1
        assert groups[0].keep is first
        assert groups[0].duplicates == [third, second]

    def test_cleanup_deletes_duplicates_only(self):
        store = InMemoryShopStore()
        keep = _row("T-ANA", 8, created=9)
        store.import_hour_allocations([
            keep,
            _row("T-ANA", 8, created=10, project_id="P2"),
            _row("T-BEN", 8, created=9),
            _row("T-BEN", 8, created=12),
            _row("T-BEN", 9, created=12),
        ])

        deleted = cleanup_double_bookings(store)

        assert deleted == 2
        remaining = {a.slot_key for a in store.hour_allocations}
        assert len(store.hour_allocations) == len(remaining) == 3
        assert keep in store.hour_allocations

    def test_cleanup_without_duplicates(self):
        store = InMemoryShopStore()
        store.insert_hour_allocations([_row("T-ANA", 8, created=9)])
        assert cleanup_double_bookings(store) == 0

    def test_row_imported_twice_keeps_one_copy(self):
        store = InMemoryShopStore()
        row = _row("T-ANA", 8, created=9)
        store.import_hour_allocations([row, row.model_copy(), _row("T-BEN", 8, created=9)])

        deleted = cleanup_double_bookings(store)

        assert deleted == 1
        assert [a.id for a in store.hour_allocations if a.team_member_id == "T-ANA"] == [row.id]
        assert len(store.hour_allocations) == 2
