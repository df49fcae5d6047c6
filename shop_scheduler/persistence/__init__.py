"""Store contracts, the in-memory store and the JSON data file."""

from .interfaces import (
    AllocationFilter,
    AllocationStore,
    CapacitySource,
    HolidaySource,
    ProjectStore,
)
from .memory_store import InMemoryShopStore
from .shop_file import ShopDataFile

__all__ = [
    'AllocationFilter',
    'AllocationStore',
    'CapacitySource',
    'HolidaySource',
    'ProjectStore',
    'InMemoryShopStore',
    'ShopDataFile',
]
