# src/iatirollup/domain/currency.py
"""
Currency Resolution - The IATI Currency Fallback Chain

Decides which currency governs a monetary value. The first code present
wins, in this order:

1. ``value/@currency`` on the transaction value
2. the transaction-scoped default currency (``Transaction.currency_hint``)
3. ``iati-activity/@default-currency``

If none is present the result is None and the caller decides how to bucket
the amount. The parser and the aggregation engine both go through this
module so the chain is applied identically everywhere.

Files that USE this module:
- iatirollup.adapters.xml.parser (flags transactions without a currency)
- iatirollup.application.rollup_service (groups amounts by currency)
- iatirollup.application.fx (picks the source currency for conversion)

Files that this module USES:
- iatirollup.domain.models (CurrencyCode, Transaction)
"""

from __future__ import annotations

from typing import Optional

from iatirollup.domain.models import CurrencyCode, Transaction


def resolve_currency(
    value_currency: Optional[CurrencyCode],
    currency_hint: Optional[CurrencyCode],
    activity_default: Optional[CurrencyCode],
) -> Optional[CurrencyCode]:
    """Return the first present code of value currency, hint and activity default."""
    if value_currency is not None:
        return value_currency
    if currency_hint is not None:
        return currency_hint
    return activity_default


def resolve_transaction_currency(
    transaction: Transaction,
    activity_default: Optional[CurrencyCode],
) -> Optional[CurrencyCode]:
    return resolve_currency(transaction.value.currency, transaction.currency_hint, activity_default)
