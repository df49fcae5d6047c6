"""
Excel exporters for shop schedules.

This module provides a formatted Excel export of phases, allocations,
hour blocks, unscheduled hours and daily capacity status.
"""

from .excel_templates import export_shop_schedule

__all__ = [
    'export_shop_schedule',
]
