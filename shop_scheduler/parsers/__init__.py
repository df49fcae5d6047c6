"""Parsers for input data files."""

from .excel_parser import ShopWorkbookParser

__all__ = ["ShopWorkbookParser"]
