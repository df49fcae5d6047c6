"""Excel parser for shop planning workbooks (.xlsx/.xlsm)."""

import logging
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd
from openpyxl import load_workbook

from shop_scheduler.models import (
    DailyCapacityOverride,
    DailyPhaseCapacity,
    Holiday,
    Project,
    TeamMember,
)
from shop_scheduler.persistence.memory_store import InMemoryShopStore
from shop_scheduler.utils.dates import DateLike, parse_optional_date

logger = logging.getLogger(__name__)


def _optional(row: pd.Series, column: str, default: Any = None) -> Any:
    """Cell value, or ``default`` if the column is absent or the cell empty."""
    if column in row and pd.notna(row[column]):
        return row[column]
    return default


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "y", "1", "x")
    return bool(value)


class ShopWorkbookParser:
    """
    Parser for shop planning workbooks.

    Expected file format:
    - Sheet 'Projects': columns [job_name, install_date, id?, job_description?,
      millwork_hrs?, box_construction_hrs?, stain_hrs?, install_hrs?, status?]
    - Sheet 'Holidays': columns [date, name?]
    - Sheet 'PhaseCapacities': columns [phase, max_hours]
    - Sheet 'CapacityOverrides' (optional): columns [date, phase, adjusted_capacity, reason?]
    - Sheet 'TeamMembers' (optional): columns [name, id?, email?, weekly_hours?,
      hourly_rate?, can_do_millwork?, can_do_boxes?, can_do_stain?,
      can_do_install?, is_active?]

    The parser is also a read-only HolidaySource and CapacitySource.
    """

    def __init__(self, file_path: Path | str):
        """
        Initialize parser with Excel file path.

        Args:
            file_path: Path to the Excel file (.xlsm or .xlsx)

        Raises:
            FileNotFoundError: If file does not exist
            ValueError: If file is not .xlsm or .xlsx
        """
        self.file_path = Path(file_path)
        if not self.file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        if self.file_path.suffix.lower() not in [".xlsm", ".xlsx"]:
            raise ValueError(f"File must be .xlsm or .xlsx: {file_path}")
        self._sheet_names: Optional[List[str]] = None

    @property
    def sheet_names(self) -> List[str]:
        if self._sheet_names is None:
            workbook = load_workbook(self.file_path, read_only=True)
            try:
                self._sheet_names = list(workbook.sheetnames)
            finally:
                workbook.close()
        return self._sheet_names

    def has_sheet(self, sheet_name: str) -> bool:
        return sheet_name in self.sheet_names

    def _read_sheet(self, sheet_name: str, required_cols: set) -> pd.DataFrame:
        if not self.has_sheet(sheet_name):
            raise ValueError(f"Sheet '{sheet_name}' not found in {self.file_path.name}")
        df = pd.read_excel(
            self.file_path,
            sheet_name=sheet_name,
            engine="openpyxl"
        )

        # Validate required columns
        if not required_cols.issubset(df.columns):
            missing = required_cols - set(df.columns)
            raise ValueError(f"Missing required columns: {missing}")

        return df.dropna(how="all")

    def parse_projects(self, sheet_name: str = "Projects") -> List[Project]:
        """
        Parse projects. Derived dates are not read; they are recalculated.

        Raises:
            ValueError: If sheet is missing or malformed
        """
        df = self._read_sheet(sheet_name, {"job_name", "install_date"})

        projects = []
        for _, row in df.iterrows():
            fields = dict(
                job_name=str(row["job_name"]).strip(),
                job_description=str(_optional(row, "job_description", "")),
                install_date=pd.to_datetime(row["install_date"]).date(),
                millwork_hrs=int(_optional(row, "millwork_hrs", 0)),
                box_construction_hrs=int(_optional(row, "box_construction_hrs", 0)),
                stain_hrs=int(_optional(row, "stain_hrs", 0)),
                install_hrs=int(_optional(row, "install_hrs", 0)),
            )
            if _optional(row, "id") is not None:
                fields["id"] = str(row["id"])
            if _optional(row, "status") is not None:
                fields["status"] = str(row["status"]).strip().lower()
            projects.append(Project(**fields))

        logger.info(f"Parsed {len(projects)} projects from {self.file_path.name}")
        return projects

    def parse_holidays(self, sheet_name: str = "Holidays") -> List[Holiday]:
        df = self._read_sheet(sheet_name, {"date"})
        return [
            Holiday(
                date=pd.to_datetime(row["date"]).date(),
                name=str(_optional(row, "name", "")),
            )
            for _, row in df.iterrows()
        ]

    def parse_phase_capacities(self, sheet_name: str = "PhaseCapacities") -> List[DailyPhaseCapacity]:
        df = self._read_sheet(sheet_name, {"phase", "max_hours"})
        return [
            DailyPhaseCapacity(phase=str(row["phase"]).strip(), max_hours=int(row["max_hours"]))
            for _, row in df.iterrows()
        ]

    def parse_capacity_overrides(
        self, sheet_name: str = "CapacityOverrides"
    ) -> List[DailyCapacityOverride]:
        """Parse per-date capacity overrides. Returns [] if the sheet is absent."""
        if not self.has_sheet(sheet_name):
            return []
        df = self._read_sheet(sheet_name, {"date", "phase", "adjusted_capacity"})
        overrides = []
        for _, row in df.iterrows():
            reason = _optional(row, "reason")
            overrides.append(DailyCapacityOverride(
                date=pd.to_datetime(row["date"]).date(),
                phase=str(row["phase"]).strip(),
                adjusted_capacity=int(row["adjusted_capacity"]),
                reason=str(reason) if reason is not None else None,
            ))
        return overrides

    def parse_team_members(self, sheet_name: str = "TeamMembers") -> List[TeamMember]:
        """Parse team members. Returns [] if the sheet is absent."""
        if not self.has_sheet(sheet_name):
            return []
        df = self._read_sheet(sheet_name, {"name"})
        members = []
        for _, row in df.iterrows():
            fields = dict(
                name=str(row["name"]).strip(),
                email=_optional(row, "email"),
                weekly_hours=float(_optional(row, "weekly_hours", 40.0)),
                hourly_rate=float(_optional(row, "hourly_rate", 0.0)),
                can_do_millwork=_to_bool(_optional(row, "can_do_millwork", False)),
                can_do_boxes=_to_bool(_optional(row, "can_do_boxes", False)),
                can_do_stain=_to_bool(_optional(row, "can_do_stain", False)),
                can_do_install=_to_bool(_optional(row, "can_do_install", False)),
                is_active=_to_bool(_optional(row, "is_active", True)),
            )
            if _optional(row, "id") is not None:
                fields["id"] = str(row["id"])
            members.append(TeamMember(**fields))
        return members

    # HolidaySource / CapacitySource

    def fetch_holidays(self) -> List[Holiday]:
        return self.parse_holidays()

    def fetch_phase_capacities(self) -> List[DailyPhaseCapacity]:
        return self.parse_phase_capacities()

    def fetch_capacity_overrides(self, date: Optional[DateLike] = None) -> List[DailyCapacityOverride]:
        day = parse_optional_date(date)
        return [o for o in self.parse_capacity_overrides() if day is None or o.date == day]

    def load_store(self) -> InMemoryShopStore:
        """Parse every sheet into a new in-memory store."""
        store = InMemoryShopStore()
        for holiday in self.parse_holidays():
            store.add_holiday(holiday)
        for capacity in self.parse_phase_capacities():
            store.set_phase_capacity(capacity.phase, capacity.max_hours)
        for override in self.parse_capacity_overrides():
            store.upsert_capacity_override(override)
        for member in self.parse_team_members():
            store.add_team_member(member)
        for project in self.parse_projects():
            store.add_project(project)
        return store
