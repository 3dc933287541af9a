# src/iatirollup/domain/models.py
"""
Domain Models - Pure Business Objects

This module contains the typed vocabulary for IATI activity data:
- Currency codes and monetary values
- Transaction types (IATI TransactionType codelist)
- Organisation references
- Transactions and activities

All values are immutable. Optional fields are filled in with builder-style
``with_*`` methods that return a new instance.

Files that USE this module:
- iatirollup.adapters.xml.parser (builds activities from XML)
- iatirollup.domain.currency (resolves currency codes)
- iatirollup.application.* (aggregation and FX conversion)
- tests.* (tests use domain models for test data)

Files that this module USES:
- iatirollup.domain.errors (construction errors)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

import re  # Regular expressions for currency code shape
from dataclasses import dataclass, field, replace  # Immutable value objects
from datetime import date  # Calendar dates for transactions and activities
from decimal import Decimal, InvalidOperation  # Exact decimal amounts
from enum import IntEnum  # Closed transaction type codelist
from typing import Iterable, Optional, Tuple, Union  # Type hints

from iatirollup.domain.errors import (
    InvalidCurrencyError,
    InvalidIdentifierError,
    InvalidMoneyError,
)

_CURRENCY_RE = re.compile(r"[A-Z]{3}")
_CODE_RE = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True, order=True)
class CurrencyCode:
    """
    ISO 4217 style currency code.

    The code is stripped and uppercased once, at construction, so equality
    and hashing work on the normalized form.
    """
    code: str

    def __post_init__(self) -> None:
        if not isinstance(self.code, str):
            raise InvalidCurrencyError(f"Currency code must be a string, got {type(self.code).__name__}")
        normalized = self.code.strip().upper()
        if not _CURRENCY_RE.fullmatch(normalized):
            raise InvalidCurrencyError(f"Invalid currency code: {self.code!r}")
        object.__setattr__(self, "code", normalized)

    def __str__(self) -> str:
        return self.code


def as_currency(value: Union[CurrencyCode, str, None]) -> Optional[CurrencyCode]:
    """Coerce a string or CurrencyCode to CurrencyCode, passing None through."""
    if value is None or isinstance(value, CurrencyCode):
        return value
    return CurrencyCode(value)


def _to_decimal(value) -> Decimal:
    # bool is an int subclass; True is not an amount
    if isinstance(value, (bool, float)):
        raise InvalidMoneyError(f"Amount must be an exact decimal, got {type(value).__name__}")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidMoneyError(f"Amount is not a decimal number: {value!r}")
    else:
        raise InvalidMoneyError(f"Unsupported amount type: {type(value).__name__}")
    if not amount.is_finite():
        raise InvalidMoneyError(f"Amount must be finite, got {amount}")
    return amount


@dataclass(frozen=True)
class Money:
    """
    Monetary amount as carried by an IATI ``<value>`` element.

    Attributes:
        amount: Exact decimal amount (never a float)
        currency: ``value/@currency``; None means "resolve via the fallback chain"
        value_date: ``value/@value-date``; metadata only, not a resolver input
    """
    amount: Decimal
    currency: Optional[CurrencyCode] = None
    value_date: Optional[date] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _to_decimal(self.amount))
        object.__setattr__(self, "currency", as_currency(self.currency))

    def with_currency(self, currency: Union[CurrencyCode, str, None]) -> "Money":
        return replace(self, currency=as_currency(currency))

    def with_value_date(self, value_date: Optional[date]) -> "Money":
        return replace(self, value_date=value_date)


class TxType(IntEnum):
    """IATI TransactionType codelist (codes 1-13)."""
    INCOMING_FUNDS = 1
    OUTGOING_COMMITMENT = 2
    DISBURSEMENT = 3
    EXPENDITURE = 4
    INTEREST_PAYMENT = 5
    LOAN_REPAYMENT = 6
    REIMBURSEMENT = 7
    PURCHASE_OF_EQUITY = 8
    SALE_OF_EQUITY = 9
    CREDIT_GUARANTEE = 10
    INCOMING_COMMITMENT = 11
    OUTGOING_PLEDGE = 12
    INCOMING_PLEDGE = 13

    @property
    def code(self) -> int:
        return int(self)

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title().replace(" Of ", " of ")


_KNOWN_CODES = frozenset(t.value for t in TxType)


@dataclass(frozen=True)
class UnknownTxType:
    """
    Transaction type code outside the known codelist.

    ``UnknownTxType(0)`` stands for an absent or non-numeric code.
    """
    code: int

    def __post_init__(self) -> None:
        if self.code in _KNOWN_CODES:
            raise ValueError(f"Code {self.code} is a known transaction type; use TxType")

    @property
    def label(self) -> str:
        return f"Unknown ({self.code})"


AnyTxType = Union[TxType, UnknownTxType]

MISSING_TX_TYPE = UnknownTxType(0)


def tx_type_from_code(code: int) -> AnyTxType:
    """Map an integer code to TxType, or UnknownTxType for anything else."""
    try:
        return TxType(code)
    except ValueError:
        return UnknownTxType(code)


def parse_tx_type(text: Optional[str]) -> AnyTxType:
    """
    Parse a ``transaction-type/@code`` attribute value.

    Never raises: absent or non-numeric input gives ``UnknownTxType(0)``.
    """
    if text is None:
        return MISSING_TX_TYPE
    text = text.strip()
    if not _CODE_RE.fullmatch(text):
        return MISSING_TX_TYPE
    return tx_type_from_code(int(text))


def as_tx_type(value: Union[AnyTxType, int]) -> AnyTxType:
    if isinstance(value, (TxType, UnknownTxType)):
        return value
    return tx_type_from_code(int(value))


@dataclass(frozen=True)
class OrgRef:
    """
    Organisation reference (``@ref`` plus narrative name).

    Both fields may be absent; such a reference is legal but carries nothing.
    """
    ref_id: Optional[str] = None
    name: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "ref_id", _blank_to_none(self.ref_id))
        object.__setattr__(self, "name", _blank_to_none(self.name))

    @property
    def is_empty(self) -> bool:
        return self.ref_id is None and self.name is None

    @property
    def label(self) -> Optional[str]:
        return self.name or self.ref_id


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class Transaction:
    """
    A single dated financial event within an activity.

    ``currency_hint`` is the transaction-scoped default currency, distinct
    from ``value.currency``. Resolution order is value currency, then hint,
    then the owning activity's default (see iatirollup.domain.currency).
    """
    tx_type: AnyTxType
    date: date
    value: Money
    provider: Optional[OrgRef] = None
    receiver: Optional[OrgRef] = None
    currency_hint: Optional[CurrencyCode] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "tx_type", as_tx_type(self.tx_type))
        if not isinstance(self.date, date):
            raise TypeError(f"Transaction date must be a date, got {type(self.date).__name__}")
        if not isinstance(self.value, Money):
            raise TypeError(f"Transaction value must be Money, got {type(self.value).__name__}")
        object.__setattr__(self, "currency_hint", as_currency(self.currency_hint))

    @property
    def year(self) -> int:
        return self.date.year

    def with_provider(self, org: Optional[OrgRef]) -> "Transaction":
        return replace(self, provider=org)

    def with_receiver(self, org: Optional[OrgRef]) -> "Transaction":
        return replace(self, receiver=org)

    def with_currency_hint(self, code: Union[CurrencyCode, str, None]) -> "Transaction":
        return replace(self, currency_hint=as_currency(code))

    def with_value(self, value: Money) -> "Transaction":
        return replace(self, value=value)


@dataclass(frozen=True)
class Activity:
    """
    One IATI activity record.

    Attributes:
        iati_identifier: Non-empty identifier, fixed at construction
        default_currency: ``iati-activity/@default-currency``, None if absent
        transactions: Transactions in document order
        reporting_org: Publishing organisation
        start_date: Actual start date, else planned start date
        end_date: Actual end date, else planned end date
    """
    iati_identifier: str
    default_currency: Optional[CurrencyCode] = None
    transactions: Tuple[Transaction, ...] = field(default_factory=tuple)
    reporting_org: Optional[OrgRef] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def __post_init__(self) -> None:
        if not isinstance(self.iati_identifier, str) or not self.iati_identifier.strip():
            raise InvalidIdentifierError("Activity identifier must be a non-empty string")
        object.__setattr__(self, "iati_identifier", self.iati_identifier.strip())
        object.__setattr__(self, "default_currency", as_currency(self.default_currency))
        object.__setattr__(self, "transactions", tuple(self.transactions))

    def with_default_currency(self, code: Union[CurrencyCode, str, None]) -> "Activity":
        return replace(self, default_currency=as_currency(code))

    def with_transaction(self, transaction: Transaction) -> "Activity":
        return replace(self, transactions=self.transactions + (transaction,))

    def with_transactions(self, transactions: Iterable[Transaction]) -> "Activity":
        return replace(self, transactions=self.transactions + tuple(transactions))

    def with_reporting_org(self, org: Optional[OrgRef]) -> "Activity":
        return replace(self, reporting_org=org)

    def with_dates(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> "Activity":
        return replace(self, start_date=start_date, end_date=end_date)
