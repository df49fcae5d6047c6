"""Shared helpers."""

from .dates import parse_calendar_date, parse_optional_date, to_date_string

__all__ = [
    'parse_calendar_date',
    'parse_optional_date',
    'to_date_string',
]
