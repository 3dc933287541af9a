# src/iatirollup/application/fx.py
"""
FX Conversion - Exchange Rate Tables and Money Conversion

This module converts IATI monetary values between currencies. Rates come
from an FxProvider; FxTable is the built-in provider, holding IMF-style
monthly "national currency units per USD" rates and deriving cross rates
from them.

Files that USE this module:
- iatirollup.application.rollup_service (conversion mode of FxMode)
- iatirollup.adapters.persistence.fx_store (builds FxTable from JSON)
- tests.test_fx (unit tests)

Files that this module USES:
- iatirollup.domain.models (CurrencyCode, Money, Activity)
- iatirollup.domain.currency (source currency resolution)
- iatirollup.domain.errors (FxError hierarchy)
"""
from __future__ import annotations  # Enable postponed evaluation of annotations

from dataclasses import dataclass, replace  # Data classes and immutable updates
from datetime import date  # Rate lookup dates
from decimal import Decimal  # Exact rates
from typing import Dict, Mapping, Optional, Protocol, Tuple, Union  # Type hints

from iatirollup.domain.currency import resolve_currency
from iatirollup.domain.errors import FxError, InvalidMoneyError, MissingDateError, MissingRateError
from iatirollup.domain.models import Activity, CurrencyCode, Money, as_currency

USD = CurrencyCode("USD")


class FxProvider(Protocol):
    """Protocol for exchange rate providers."""
    def get_rate(self, source: CurrencyCode, target: CurrencyCode, on: date) -> Decimal:  # target units per 1 source
        ...


@dataclass(frozen=True, order=True)
class YearMonth:
    """Calendar month (IMF rates are monthly)."""
    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be 1-12, got {self.month}")

    @classmethod
    def from_date(cls, d: date) -> "YearMonth":
        return cls(d.year, d.month)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


class FxTable:
    """
    Monthly national-currency-units-per-USD rates.

    Cross rate for 1 unit of ``source`` in ``target`` is
    ``ncu_per_usd[target] / ncu_per_usd[source]``. USD is 1 unless the
    table says otherwise.
    """

    def __init__(self, ncu_per_usd: Optional[Mapping[Tuple[CurrencyCode, YearMonth], Decimal]] = None):
        self._ncu_per_usd: Dict[Tuple[CurrencyCode, YearMonth], Decimal] = {}
        for (currency, year_month), rate in (ncu_per_usd or {}).items():
            self.add_rate(currency, year_month, rate)

    def add_rate(self, currency: Union[CurrencyCode, str], year_month: YearMonth, ncu_per_usd: Decimal) -> None:
        """
        Add or replace the rate for a currency and month.

        Raises:
            InvalidMoneyError: If the rate is not a positive Decimal
        """
        if not isinstance(ncu_per_usd, Decimal):
            raise InvalidMoneyError(f"FX rate must be a Decimal, got {type(ncu_per_usd).__name__}")
        if not ncu_per_usd.is_finite() or ncu_per_usd <= 0:
            raise InvalidMoneyError(f"FX rate must be positive, got {ncu_per_usd}")
        self._ncu_per_usd[(as_currency(currency), year_month)] = ncu_per_usd

    def __len__(self) -> int:
        return len(self._ncu_per_usd)

    def _monthly_usd_rate(self, code: CurrencyCode, on: date) -> Decimal:
        rate = self._ncu_per_usd.get((code, YearMonth.from_date(on)))
        if rate is None:
            if code == USD:
                return Decimal(1)
            raise MissingRateError(f"No FX rate for {code} in {YearMonth.from_date(on)}")
        return rate

    def get_rate(self, source: CurrencyCode, target: CurrencyCode, on: date) -> Decimal:
        if source == target:
            return Decimal(1)
        r_from = self._monthly_usd_rate(source, on)
        r_to = self._monthly_usd_rate(target, on)
        return r_to / r_from


def convert_money(
    money: Money,
    target: Union[CurrencyCode, str],
    provider: FxProvider,
    *,
    currency_hint: Optional[CurrencyCode] = None,
    activity_default: Optional[CurrencyCode] = None,
    on: Optional[date] = None,
) -> Money:
    """
    Convert ``money`` into ``target``.

    The source currency goes through the usual fallback chain. The rate
    date is ``on`` if given, else ``money.value_date``.

    Raises:
        FxError: If there is no source currency, no date, or no rate
    """
    target = as_currency(target)
    source = resolve_currency(money.currency, currency_hint, activity_default)
    if source is None:
        raise FxError("Cannot convert an amount with no resolvable currency")
    rate_date = on or money.value_date
    if rate_date is None:
        raise MissingDateError("Conversion needs a value date or transaction date")
    rate = provider.get_rate(source, target, rate_date)
    return Money(amount=money.amount * rate, currency=target, value_date=money.value_date)


def convert_activity(activity: Activity, target: Union[CurrencyCode, str], provider: FxProvider) -> Activity:
    """
    Return a copy of ``activity`` with every transaction value in ``target``.

    Each transaction converts at its value date, falling back to the
    transaction date. Fails on the first transaction that cannot convert.
    """
    target = as_currency(target)
    transactions = tuple(
        tx.with_value(
            convert_money(
                tx.value,
                target,
                provider,
                currency_hint=tx.currency_hint,
                activity_default=activity.default_currency,
                on=tx.value.value_date or tx.date,
            )
        ).with_currency_hint(None)
        for tx in activity.transactions
    )
    return replace(activity, default_currency=target, transactions=transactions)
