"""Shop data file serialization.

Saves the full contents of an ``InMemoryShopStore`` to a JSON document
and loads it back. Dates are written as ``YYYY-MM-DD`` strings.
"""

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict

from shop_scheduler.models import (
    CapacityTemplate,
    DailyCapacityOverride,
    DailyHourAllocation,
    DailyPhaseAllocation,
    DailyPhaseCapacity,
    Holiday,
    Project,
    ProjectAssignment,
    TeamMember,
    UnscheduledHours,
)
from shop_scheduler.persistence.memory_store import InMemoryShopStore

logger = logging.getLogger(__name__)

#: Bumped when the document layout changes incompatibly
FILE_FORMAT_VERSION = 1

#: Document section -> model of its rows
_SECTIONS = {
    "projects": Project,
    "holidays": Holiday,
    "phase_capacities": DailyPhaseCapacity,
    "capacity_overrides": DailyCapacityOverride,
    "capacity_templates": CapacityTemplate,
    "team_members": TeamMember,
    "assignments": ProjectAssignment,
    "phase_allocations": DailyPhaseAllocation,
    "hour_allocations": DailyHourAllocation,
    "unscheduled_hours": UnscheduledHours,
}


class ShopDataFile:
    """Reads and writes a store snapshot as JSON.

    File Format:
        {
            "format_version": 1,
            "saved_at": "2025-12-01T08:30:00",
            "projects": [{"id": "...", "job_name": "...", "install_date": "2025-12-23", ...}],
            "holidays": [{"date": "2025-12-25", "name": "Christmas"}],
            "phase_capacities": [...],
            "capacity_overrides": [...],
            "capacity_templates": [...],
            "team_members": [...],
            "assignments": [...],
            "phase_allocations": [...],
            "hour_allocations": [...],
            "unscheduled_hours": [...]
        }

    Example Usage:
        ```python
        data_file = ShopDataFile("shop.json")
        data_file.save(store)
        store = data_file.load()
        ```
    """

    def __init__(self, file_path: Path | str):
        """Initialize ShopDataFile.

        Args:
            file_path: Path to JSON file for save/load operations
        """
        self.file_path = Path(file_path)

    def exists(self) -> bool:
        return self.file_path.exists()

    def save(self, store: InMemoryShopStore) -> None:
        """Write the store's contents to the file.

        Raises:
            IOError: If file cannot be written
        """
        logger.info(f"Saving shop data to {self.file_path}")
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

        data = self._store_to_dict(store)
        with open(self.file_path, 'w') as f:
            json.dump(data, f, indent=2, default=self._json_serializer)

        logger.info(
            f"Saved {len(data['projects'])} projects and "
            f"{len(data['hour_allocations'])} hour allocations"
        )

    def load(self) -> InMemoryShopStore:
        """Read the file into a new store.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file format is invalid
        """
        logger.info(f"Loading shop data from {self.file_path}")
        if not self.file_path.exists():
            raise FileNotFoundError(f"Shop data file not found: {self.file_path}")

        with open(self.file_path, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid shop data file {self.file_path}: {e}") from e

        store = self._dict_to_store(data)
        logger.info(f"Loaded {len(store.projects)} projects")
        return store

    def _store_to_dict(self, store: InMemoryShopStore) -> Dict[str, Any]:
        sections = {
            "projects": store.list_projects(),
            "holidays": store.fetch_holidays(),
            "phase_capacities": store.fetch_phase_capacities(),
            "capacity_overrides": store.fetch_capacity_overrides(),
            "capacity_templates": store.list_capacity_templates(),
            "team_members": store.list_team_members(),
            "assignments": store.list_assignments(),
            "phase_allocations": list(store.phase_allocations),
            "hour_allocations": list(store.hour_allocations),
            "unscheduled_hours": store.list_unscheduled_hours(),
        }
        data: Dict[str, Any] = {
            "format_version": FILE_FORMAT_VERSION,
            "saved_at": datetime.now().isoformat(timespec="seconds"),
        }
        for name, rows in sections.items():
            data[name] = [row.model_dump(mode="json") for row in rows]
        return data

    def _dict_to_store(self, data: Dict[str, Any]) -> InMemoryShopStore:
        if not isinstance(data, dict):
            raise ValueError("Shop data file must contain a JSON object")
        version = data.get("format_version", FILE_FORMAT_VERSION)
        if version > FILE_FORMAT_VERSION:
            raise ValueError(f"Unsupported shop data format version: {version}")

        rows = {
            name: [model.model_validate(item) for item in data.get(name, [])]
            for name, model in _SECTIONS.items()
        }

        store = InMemoryShopStore()
        for project in rows["projects"]:
            store.add_project(project)
        for holiday in rows["holidays"]:
            store.add_holiday(holiday)
        for capacity in rows["phase_capacities"]:
            store.set_phase_capacity(capacity.phase, capacity.max_hours)
        for override in rows["capacity_overrides"]:
            store.upsert_capacity_override(override)
        for template in rows["capacity_templates"]:
            store.add_capacity_template(template)
        for member in rows["team_members"]:
            store.add_team_member(member)
        for assignment in rows["assignments"]:
            store.add_assignment(assignment)
        store.insert_phase_allocations(rows["phase_allocations"])
        # Older snapshots may hold double bookings; keep them for cleanup
        store.import_hour_allocations(rows["hour_allocations"])
        for row in rows["unscheduled_hours"]:
            store.upsert_unscheduled_hours(row)
        return store

    @staticmethod
    def _json_serializer(obj: Any) -> Any:
        """JSON serializer for objects not serializable by default."""
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        raise TypeError(f"Type {type(obj)} not serializable")
