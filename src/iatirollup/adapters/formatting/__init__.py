# src/iatirollup/adapters/formatting/__init__.py
"""
Formatting Adapters - Report Formatting

This package contains plain text formatting for parse reports and totals.
"""

from iatirollup.adapters.formatting.formatter import (
    format_parse_report,
    format_type_sums,
    format_year_type_sums,
)

__all__ = [
    "format_parse_report",
    "format_type_sums",
    "format_year_type_sums",
]
