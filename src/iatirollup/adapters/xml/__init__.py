# src/iatirollup/adapters/xml/__init__.py
"""
XML Adapters - IATI Activity XML Parsing

This package turns IATI activity XML into domain model objects.
"""

from iatirollup.adapters.xml.parser import (
    ActivityFailure,
    ParsePolicy,
    ParseReport,
    iter_activities,
    parse_activities,
    parse_activity,
)

__all__ = [
    "ActivityFailure",
    "ParsePolicy",
    "ParseReport",
    "iter_activities",
    "parse_activities",
    "parse_activity",
]
