# src/iatirollup/adapters/persistence/fx_store.py
"""
FX Store - Loading FX Rate Tables from JSON

This module reads monthly FX rates (national currency units per USD) from
a JSON file into an FxTable. Numbers are parsed as Decimal so rates never
pass through float.

Expected file shape:

    {"rates": [
        {"currency": "EUR", "year": 2024, "month": 3, "ncu_per_usd": "0.9"},
        ...
    ]}

Files that USE this module:
- iatirollup.app (loads the table when FX conversion is configured)
- tests.test_fx (unit tests)

Files that this module USES:
- iatirollup.application.fx (FxTable, YearMonth)
- iatirollup.domain.errors (SourceUnavailableError)
"""
from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Union

from iatirollup.application.fx import FxTable, YearMonth
from iatirollup.domain.errors import DomainError, SourceUnavailableError

log = logging.getLogger(__name__)


def _to_rate(raw) -> Decimal:
    if isinstance(raw, bool) or isinstance(raw, float):
        raise ValueError(f"rate must be a decimal string or number, got {raw!r}")
    if isinstance(raw, (Decimal, int)):
        return Decimal(raw)
    if isinstance(raw, str):
        try:
            return Decimal(raw.strip())
        except InvalidOperation:
            raise ValueError(f"rate is not a decimal number: {raw!r}")
    raise ValueError(f"rate must be a decimal string or number, got {raw!r}")


def load_fx_table(path: Union[str, Path]) -> FxTable:
    """
    Load an FX table from a JSON file.

    Args:
        path: Path to the JSON rates file

    Returns:
        FxTable with every rate in the file

    Raises:
        SourceUnavailableError: If the file is missing, not JSON, or has
            entries that are not valid rates
    """
    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as f:
            data = json.load(f, parse_float=Decimal)
    except OSError as e:
        raise SourceUnavailableError(f"Cannot read FX rates file {p}: {e}") from e
    except json.JSONDecodeError as e:
        raise SourceUnavailableError(f"FX rates file {p} is not valid JSON: {e}") from e

    entries = data.get("rates") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise SourceUnavailableError(f"FX rates file {p} has no 'rates' list")

    table = FxTable()
    for index, entry in enumerate(entries):
        try:
            table.add_rate(
                entry["currency"],
                YearMonth(int(entry["year"]), int(entry["month"])),
                _to_rate(entry["ncu_per_usd"]),
            )
        except (KeyError, TypeError, ValueError, DomainError) as e:
            raise SourceUnavailableError(f"Invalid FX rate entry #{index} in {p}: {e}") from e

    log.info("Loaded %d FX rate(s) from %s", len(table), p)
    return table
