"""Detection and cleanup of double-booked hour blocks.

Stores enforce one allocation per (team member, date, hour block), but
data imported from older snapshots may still hold duplicates. The
oldest allocation of each group is kept.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from shop_scheduler.models import DailyHourAllocation
from shop_scheduler.persistence.interfaces import AllocationFilter

logger = logging.getLogger(__name__)


@dataclass
class DoubleBookingGroup:
    """Allocations sharing one (team member, date, hour block) slot."""
    slot: Tuple
    keep: DailyHourAllocation
    duplicates: List[DailyHourAllocation] = field(default_factory=list)


def find_double_bookings(
    allocations: Iterable[DailyHourAllocation],
) -> List[DoubleBookingGroup]:
    """Group allocations by slot and return the groups with more than one entry."""
    groups: Dict[Tuple, List[DailyHourAllocation]] = defaultdict(list)
    for allocation in allocations:
        groups[allocation.slot_key].append(allocation)

    result = []
    for slot, group in sorted(groups.items(), key=lambda item: item[0]):
        if len(group) < 2:
            continue
        ordered = sorted(group, key=lambda a: a.created_at)
        result.append(DoubleBookingGroup(slot=slot, keep=ordered[0], duplicates=ordered[1:]))
    return result


def cleanup_double_bookings(store) -> int:
    """
    Delete every duplicate hour allocation, keeping the earliest created.

    Args:
        store: AllocationStore holding hour allocations

    Returns:
        Number of allocations deleted
    """
    rows = store.query_hour_allocations(AllocationFilter())
    groups = find_double_bookings(rows)
    if not groups:
        logger.info("No double bookings found")
        return 0

    ids = {a.id for group in groups for a in group.duplicates}
    for group in groups:
        logger.debug(f"Keeping allocation {group.keep.id}, deleting {len(group.duplicates)} duplicates")
    # Deletes go by id, so surviving rows that share an id with a duplicate are written back
    group_slots = {group.slot for group in groups}
    restore = [group.keep for group in groups if group.keep.id in ids]
    restore += [a for a in rows if a.id in ids and a.slot_key not in group_slots]
    deleted = store.delete_hour_allocations(AllocationFilter(ids=sorted(ids)))
    if restore:
        store.insert_hour_allocations(restore)
        deleted -= len(restore)
    logger.info(f"Removed {deleted} double-booked allocations in {len(groups)} slots")
    return deleted
