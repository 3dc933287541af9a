# src/iatirollup/application/rollup_service.py
"""
Rollup Service - Transaction Aggregation by Type, Year and Currency

This module contains the aggregation engine. It folds the transactions of
many activities into totals keyed by transaction type (and optionally
year), split by the currency resolved through the fallback chain.

- Amounts whose currency cannot be resolved go to the unknown-currency
  bucket (``UNKNOWN_CURRENCY``); nothing is dropped.
- Sums use an exact decimal context, so totals never round and the input
  order never changes a result.

Files that USE this module:
- iatirollup.app (aggregates parsed activities)
- iatirollup.adapters.formatting.formatter (renders TypeSums/YearTypeSums)
- tests.test_rollup_service (unit tests)

Files that this module USES:
- iatirollup.domain.models (Activity, Transaction, TxType, CurrencyCode)
- iatirollup.domain.currency (resolve_transaction_currency)
- iatirollup.application.fx (FxProvider, convert_money for conversion mode)
"""
from __future__ import annotations  # Enable postponed evaluation of annotations

import logging  # Standard library for logging messages
from dataclasses import dataclass, field  # Decorator for FxMode
from decimal import MAX_EMAX, MAX_PREC, MIN_EMIN, Context, Decimal  # Exact arithmetic
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union  # Type hints

from iatirollup.application.fx import FxProvider, convert_money
from iatirollup.domain.currency import resolve_transaction_currency
from iatirollup.domain.errors import FxError
from iatirollup.domain.models import (
    Activity,
    AnyTxType,
    CurrencyCode,
    Transaction,
    TxType,
    UnknownTxType,
    as_currency,
    as_tx_type,
)

log = logging.getLogger(__name__)

UNKNOWN_CURRENCY: Optional[CurrencyCode] = None

# Large enough that addition is always exact
_EXACT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN)

TxTypeLike = Union[TxType, UnknownTxType, int]
CurrencyLike = Union[CurrencyCode, str, None]
TypeKey = Tuple[AnyTxType, Optional[CurrencyCode]]
YearTypeKey = Tuple[int, AnyTxType, Optional[CurrencyCode]]


@dataclass(frozen=True)
class FxMode:
    """
    How aggregation treats currencies.

    ``FxMode.native()`` groups by resolved currency with no conversion.
    ``FxMode.convert_to(target, provider)`` converts every amount with a
    resolved currency into ``target``; amounts without a rate stay in their
    native bucket.
    """
    target: Optional[CurrencyCode] = None
    provider: Optional[FxProvider] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "target", as_currency(self.target))
        if (self.target is None) != (self.provider is None):
            raise ValueError("FxMode conversion needs both a target currency and a provider")

    @classmethod
    def native(cls) -> "FxMode":
        return cls()

    @classmethod
    def convert_to(cls, target: Union[CurrencyCode, str], provider: FxProvider) -> "FxMode":
        return cls(target=as_currency(target), provider=provider)

    @property
    def is_native(self) -> bool:
        return self.target is None


NATIVE = FxMode.native()


def _currency_order(currency: Optional[CurrencyCode]) -> Tuple[bool, str]:
    # Unknown bucket sorts last
    return (currency is None, currency.code if currency is not None else "")


def _add(sums: Dict, key, amount: Decimal) -> None:
    current = sums.get(key)
    sums[key] = amount if current is None else _EXACT.add(current, amount)


class _SumTable:
    """Read-only mapping of keys to exact decimal totals."""

    def __init__(self, sums: Optional[Mapping] = None):
        self._sums: Dict = dict(sums or {})

    def _sort_key(self, key) -> tuple:
        raise NotImplementedError

    def keys(self) -> List:
        return sorted(self._sums, key=self._sort_key)

    def items(self) -> List[Tuple]:
        return [(key, self._sums[key]) for key in self.keys()]

    def grand_total(self) -> Decimal:
        """Sum of every bucket regardless of currency (for reconciliation checks)."""
        total = Decimal(0)
        for amount in self._sums.values():
            total = _EXACT.add(total, amount)
        return total

    def __len__(self) -> int:
        return len(self._sums)

    def __eq__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._sums == other._sums

    __hash__ = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._sums!r})"


class TypeSums(_SumTable):
    """Totals keyed by (transaction type, resolved currency)."""

    def _sort_key(self, key: TypeKey) -> tuple:
        tx_type, currency = key
        return (tx_type.code,) + _currency_order(currency)

    def total_for(self, tx_type: TxTypeLike, currency: CurrencyLike) -> Optional[Decimal]:
        """
        Total for a transaction type and currency.

        Args:
            tx_type: TxType, UnknownTxType or integer code
            currency: CurrencyCode or code string; None for the unknown bucket

        Returns:
            Exact total, or None if nothing was added under this key
        """
        return self._sums.get((as_tx_type(tx_type), as_currency(currency)))

    def unknown_total(self, tx_type: TxTypeLike) -> Optional[Decimal]:
        return self.total_for(tx_type, UNKNOWN_CURRENCY)

    def tx_types(self) -> List[AnyTxType]:
        return sorted({tx_type for tx_type, _ in self._sums}, key=lambda t: t.code)

    def currencies_for(self, tx_type: TxTypeLike) -> List[Optional[CurrencyCode]]:
        wanted = as_tx_type(tx_type)
        return sorted(
            (currency for tx_type_, currency in self._sums if tx_type_ == wanted),
            key=_currency_order,
        )


class YearTypeSums(_SumTable):
    """Totals keyed by (transaction year, transaction type, resolved currency)."""

    def _sort_key(self, key: YearTypeKey) -> tuple:
        year, tx_type, currency = key
        return (year, tx_type.code) + _currency_order(currency)

    def total_for(self, year: int, tx_type: TxTypeLike, currency: CurrencyLike) -> Optional[Decimal]:
        return self._sums.get((year, as_tx_type(tx_type), as_currency(currency)))

    def years(self) -> List[int]:
        return sorted({year for year, _, _ in self._sums})

    def for_year(self, year: int) -> TypeSums:
        return TypeSums({
            (tx_type, currency): amount
            for (year_, tx_type, currency), amount in self._sums.items()
            if year_ == year
        })


def _convert(tx: Transaction, currency: CurrencyCode, fx_mode: FxMode) -> Tuple[CurrencyCode, Decimal]:
    try:
        money = convert_money(
            tx.value.with_currency(currency),
            fx_mode.target,
            fx_mode.provider,
            on=tx.value.value_date or tx.date,
        )
    except FxError as e:
        log.warning("Keeping %s %s unconverted: %s", tx.value.amount, currency, e)
        return currency, tx.value.amount
    return money.currency, money.amount


def _contributions(
    activities: Iterable[Activity], fx_mode: FxMode
) -> Iterator[Tuple[Transaction, Optional[CurrencyCode], Decimal]]:
    for activity in activities:
        for tx in activity.transactions:
            currency = resolve_transaction_currency(tx, activity.default_currency)
            amount = tx.value.amount
            if currency is not None and not fx_mode.is_native:
                currency, amount = _convert(tx, currency, fx_mode)
            yield tx, currency, amount


def aggregate_by_type(activities: Iterable[Activity], fx_mode: FxMode = NATIVE) -> TypeSums:
    """
    Sum transaction values by (transaction type, resolved currency).

    Args:
        activities: Activities to aggregate, in any order
        fx_mode: Currency handling; native grouping by default

    Returns:
        TypeSums snapshot
    """
    sums: Dict[TypeKey, Decimal] = {}
    count = 0
    for tx, currency, amount in _contributions(activities, fx_mode):
        _add(sums, (tx.tx_type, currency), amount)
        count += 1
    log.debug("Aggregated %d transaction(s) into %d type/currency bucket(s)", count, len(sums))
    return TypeSums(sums)


def aggregate_by_year_and_type(activities: Iterable[Activity], fx_mode: FxMode = NATIVE) -> YearTypeSums:
    """
    Sum transaction values by (transaction year, type, resolved currency).

    The year comes from each transaction's own date, not the activity dates.
    """
    sums: Dict[YearTypeKey, Decimal] = {}
    count = 0
    for tx, currency, amount in _contributions(activities, fx_mode):
        _add(sums, (tx.year, tx.tx_type, currency), amount)
        count += 1
    log.debug("Aggregated %d transaction(s) into %d year/type/currency bucket(s)", count, len(sums))
    return YearTypeSums(sums)
