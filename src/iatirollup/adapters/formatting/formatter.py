# src/iatirollup/adapters/formatting/formatter.py
"""
Report Formatter - Plain Text Rendering of Results

This module renders parse reports and aggregation tables as plain text for
the console and the log.

Files that USE this module:
- iatirollup.app (prints reports)
- tests.test_formatter (unit tests)

Files that this module USES:
- iatirollup.application.rollup_service (TypeSums, YearTypeSums)
- iatirollup.adapters.xml.parser (ParseReport)
"""
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from iatirollup.adapters.xml.parser import ParseReport
from iatirollup.application.rollup_service import TypeSums, YearTypeSums
from iatirollup.domain.models import AnyTxType, CurrencyCode

UNKNOWN_CURRENCY_LABEL = "(unknown currency)"


def _fmt_amount(amount: Decimal) -> str:
    return f"{amount:,}"


def _fmt_currency(currency: Optional[CurrencyCode]) -> str:
    return currency.code if currency is not None else UNKNOWN_CURRENCY_LABEL


def _fmt_tx_type(tx_type: AnyTxType) -> str:
    return f"{tx_type.code} {tx_type.label}"


def _type_lines(sums: TypeSums) -> List[str]:
    return [
        f"— {_fmt_tx_type(tx_type)}: {_fmt_currency(currency)} {_fmt_amount(amount)}"
        for (tx_type, currency), amount in sums.items()
    ]


def format_type_sums(sums: TypeSums, title: str = "Totals by transaction type") -> str:
    """
    Format totals by transaction type and currency.

    Args:
        sums: Aggregation result
        title: First line of the output

    Returns:
        One line per (type, currency) bucket, unknown currency last
    """
    lines = _type_lines(sums) or ["— no transactions"]
    return "\n".join([title] + lines)


def format_year_type_sums(sums: YearTypeSums, title: str = "Totals by year and transaction type") -> str:
    """Format totals grouped by year, then by transaction type and currency."""
    lines = [title]
    years = sums.years()
    if not years:
        lines.append("— no transactions")
    for year in years:
        lines.append(f"{year}:")
        lines.extend(f"  {line}" for line in _type_lines(sums.for_year(year)))
    return "\n".join(lines)


def format_parse_report(report: ParseReport, source: Optional[str] = None) -> str:
    """
    Format the "N parsed, M failed" summary with one line per failure.

    Args:
        report: Result of parse_activities
        source: Optional document name shown before the summary
    """
    head = report.summary()
    if source:
        head = f"{source}: {head}"
    lines = [head]
    for failure in report.failures:
        ident = failure.iati_identifier or "(no identifier)"
        lines.append(f"— #{failure.position} {ident}: {failure.error.kind.value}: {failure.reason}")
    return "\n".join(lines)
