"""
Excel export templates for shop schedules.

The schedule workbook has five sheets:
1. Phases - calendar phases of every project
2. Daily Allocations - capacity-scheduled hours per project, phase and day
3. Hour Blocks - team member bookings
4. Unscheduled Hours - hours that did not fit their phase window
5. Capacity Status - daily staffing level against phase capacity
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from shop_scheduler.config import DEFAULT_RULES, SchedulingRules
from shop_scheduler.persistence.interfaces import AllocationFilter
from shop_scheduler.scheduling.business_days import working_days_in_range
from shop_scheduler.scheduling.capacity_allocator import CapacityTable
from shop_scheduler.scheduling.capacity_status import StaffingStatus, capacity_status_by_day
from shop_scheduler.scheduling.phase_generator import generate_project_phases

logger = logging.getLogger(__name__)

# Color constants (matching design system)
HEADER_COLOR = "1E88E5"
ALT_ROW_COLOR = "F5F5F5"
WARNING_COLOR = "FBC02D"
HIGH_UTIL_COLOR = "C8E6C9"  # Green
MEDIUM_UTIL_COLOR = "BBDEFB"  # Blue
LOW_UTIL_COLOR = "FFF9C4"  # Yellow
OVERLOAD_COLOR = "FFCDD2"  # Red

STATUS_COLORS = {
    StaffingStatus.FULLY_STAFFED: HIGH_UTIL_COLOR,
    StaffingStatus.PARTIALLY_STAFFED: MEDIUM_UTIL_COLOR,
    StaffingStatus.UNDER_STAFFED: LOW_UTIL_COLOR,
    StaffingStatus.OVER_ALLOCATED: OVERLOAD_COLOR,
}

PHASE_LABELS = {
    "materialOrder": "Material Order",
    "millwork": "Millwork",
    "boxConstruction": "Box Construction",
    "stain": "Stain",
    "install": "Install",
}


def create_header_style() -> Dict[str, Any]:
    """Create header row style (blue background, white text, bold)."""
    return {
        'font': Font(name='Calibri', size=11, bold=True, color='FFFFFF'),
        'fill': PatternFill(start_color=HEADER_COLOR, end_color=HEADER_COLOR, fill_type='solid'),
        'alignment': Alignment(horizontal='center', vertical='center', wrap_text=True),
        'border': Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )
    }


def apply_alternating_rows(worksheet, start_row: int, end_row: int, start_col: int = 1, end_col: int = 10):
    """Apply alternating row colors (white / light gray)."""
    for row_idx in range(start_row, end_row + 1):
        if (row_idx - start_row) % 2 == 1:  # Alternate rows
            for col_idx in range(start_col, end_col + 1):
                cell = worksheet.cell(row=row_idx, column=col_idx)
                cell.fill = PatternFill(start_color=ALT_ROW_COLOR, end_color=ALT_ROW_COLOR, fill_type='solid')


def add_filters(worksheet, end_column: int, header_row: int = 1):
    """Add Excel filters to header row."""
    end_col_letter = get_column_letter(end_column)
    worksheet.auto_filter.ref = f"A{header_row}:{end_col_letter}{header_row}"


def auto_fit_columns(worksheet, max_width: int = 50):
    """Auto-fit column widths based on content."""
    for column in worksheet.columns:
        column_letter = get_column_letter(column[0].column)
        max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        worksheet.column_dimensions[column_letter].width = min(max_length + 2, max_width)


def _write_table(
    worksheet,
    headers: Sequence[str],
    rows: List[Sequence[Any]],
    row_colors: Optional[List[Optional[str]]] = None,
) -> None:
    """Write a header row and data rows with the standard formatting."""
    style = create_header_style()
    for col_idx, header in enumerate(headers, 1):
        cell = worksheet.cell(row=1, column=col_idx)
        cell.value = header
        cell.font = style['font']
        cell.fill = style['fill']
        cell.alignment = style['alignment']
        cell.border = style['border']

    for row_idx, row_data in enumerate(rows, 2):
        for col_idx, value in enumerate(row_data, 1):
            cell = worksheet.cell(row=row_idx, column=col_idx)
            cell.value = value
            if isinstance(value, date):
                cell.number_format = 'yyyy-mm-dd'

    if rows:
        apply_alternating_rows(worksheet, 2, len(rows) + 1, 1, len(headers))
    if row_colors:
        for row_idx, color in enumerate(row_colors, 2):
            if not color:
                continue
            for col_idx in range(1, len(headers) + 1):
                worksheet.cell(row=row_idx, column=col_idx).fill = PatternFill(
                    start_color=color, end_color=color, fill_type='solid'
                )

    add_filters(worksheet, len(headers))
    worksheet.freeze_panes = 'A2'
    auto_fit_columns(worksheet)


def export_shop_schedule(
    store,
    output_path: str,
    holidays=None,
    rules: SchedulingRules = DEFAULT_RULES,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> str:
    """
    Export the shop schedule to a formatted Excel file.

    Args:
        store: Store with projects, capacities and allocations
        output_path: Path to save Excel file
        holidays: Holiday calendar used for phase end dates and status days
        rules: Scheduling rules
        start_date: First day of the Capacity Status sheet (default: first booked day)
        end_date: Last day of the Capacity Status sheet (default: last booked day)

    Returns:
        Path to created file
    """
    wb = Workbook()
    wb.remove(wb.active)  # Remove default sheet

    projects = store.list_projects()
    names = {p.id: p.job_name for p in projects}
    members = {m.id: m.name for m in store.list_team_members()}
    everything = AllocationFilter()

    # Sheet 1: Phases
    phases = generate_project_phases(projects, holidays, rules)
    _write_table(
        wb.create_sheet("Phases"),
        ['Project', 'Phase', 'Start Date', 'End Date', 'Hours'],
        [
            (p.project_name, PHASE_LABELS[p.phase.value], p.start_date, p.end_date, p.hours)
            for p in phases
        ],
    )

    # Sheet 2: Daily Allocations
    phase_allocations = store.query_phase_allocations(everything)
    _write_table(
        wb.create_sheet("Daily Allocations"),
        ['Date', 'Day', 'Project', 'Phase', 'Allocated Hours'],
        [
            (a.date, a.date.strftime('%A'), names.get(a.project_id, a.project_id),
             PHASE_LABELS[a.phase.value], a.allocated_hours)
            for a in phase_allocations
        ],
    )

    # Sheet 3: Hour Blocks
    hour_allocations = store.query_hour_allocations(everything)
    _write_table(
        wb.create_sheet("Hour Blocks"),
        ['Date', 'Hour', 'Team Member', 'Project', 'Phase'],
        [
            (a.date, f"{a.hour_block:02d}:00", members.get(a.team_member_id, a.team_member_id),
             names.get(a.project_id, a.project_id), PHASE_LABELS[a.phase.value])
            for a in hour_allocations
        ],
    )

    # Sheet 4: Unscheduled Hours
    unscheduled = store.list_unscheduled_hours()
    _write_table(
        wb.create_sheet("Unscheduled Hours"),
        ['Project', 'Phase', 'Hours', 'Reason'],
        [
            (names.get(u.project_id, u.project_id), PHASE_LABELS[u.phase.value], u.hours, u.reason)
            for u in unscheduled
        ],
        row_colors=[WARNING_COLOR] * len(unscheduled),
    )

    # Sheet 5: Capacity Status
    booked_days = sorted({a.date for a in hour_allocations})
    first = start_date or (booked_days[0] if booked_days else None)
    last = end_date or (booked_days[-1] if booked_days else None)
    status_rows = []
    status_colors = []
    if first is not None and last is not None:
        table = CapacityTable(store.fetch_phase_capacities(), store.fetch_capacity_overrides())
        days = working_days_in_range(first, last, holidays)
        for day, status in capacity_status_by_day(days, hour_allocations, table).items():
            status_rows.append((
                day, day.strftime('%A'), status.total_allocated, status.total_capacity,
                status.utilization_percent / 100, status.status.value,
            ))
            status_colors.append(STATUS_COLORS.get(status.status))
    ws5 = wb.create_sheet("Capacity Status")
    _write_table(
        ws5,
        ['Date', 'Day', 'Allocated Hours', 'Capacity', 'Utilization %', 'Status'],
        status_rows,
        row_colors=status_colors,
    )
    for row_idx in range(2, len(status_rows) + 2):
        ws5.cell(row=row_idx, column=5).number_format = '0.0%'

    wb.save(output_path)
    logger.info(
        f"Exported schedule for {len(projects)} projects to {output_path}"
    )
    return output_path
