# src/iatirollup/__init__.py
"""
IATI Rollup - IATI Activity Parsing and Transaction Aggregation

Streams IATI activity XML into a strict, IO-free domain model and rolls
transaction values up by transaction type, year and currency using exact
decimal arithmetic.
"""

__version__ = "0.3.0"
