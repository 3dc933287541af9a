# src/iatirollup/application/__init__.py
"""
Application Layer - Use Cases and Services

This package contains the aggregation engine and FX conversion.
No direct I/O dependencies - documents and rate tables come in through adapters.
"""

from iatirollup.application.rollup_service import (
    NATIVE,
    UNKNOWN_CURRENCY,
    FxMode,
    TypeSums,
    YearTypeSums,
    aggregate_by_type,
    aggregate_by_year_and_type,
)
from iatirollup.application.fx import FxProvider, FxTable, YearMonth, convert_activity, convert_money

__all__ = [
    "NATIVE",
    "UNKNOWN_CURRENCY",
    "FxMode",
    "TypeSums",
    "YearTypeSums",
    "aggregate_by_type",
    "aggregate_by_year_and_type",
    "FxProvider",
    "FxTable",
    "YearMonth",
    "convert_activity",
    "convert_money",
]
