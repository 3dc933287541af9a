# src/iatirollup/adapters/persistence/__init__.py
"""
Persistence Adapters - Reading Stored Data

This package loads FX rate tables from JSON files.
"""

from iatirollup.adapters.persistence.fx_store import load_fx_table

__all__ = ["load_fx_table"]
