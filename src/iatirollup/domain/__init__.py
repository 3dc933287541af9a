# src/iatirollup/domain/__init__.py
"""
Domain Layer - Pure Business Objects

This package contains the IATI domain model, the currency fallback chain
and the domain exceptions. No dependencies on XML, files or the network.
"""

from iatirollup.domain.models import (
    Activity,
    AnyTxType,
    CurrencyCode,
    Money,
    OrgRef,
    Transaction,
    TxType,
    UnknownTxType,
    parse_tx_type,
    tx_type_from_code,
)
from iatirollup.domain.currency import resolve_currency, resolve_transaction_currency
from iatirollup.domain.errors import (
    DomainError,
    FxError,
    InvalidAmountError,
    InvalidCurrencyError,
    InvalidCurrencyValueError,
    InvalidIdentifierError,
    InvalidMoneyError,
    MalformedXmlError,
    MissingDateError,
    MissingIdentifierError,
    MissingRateError,
    MissingRequiredFieldError,
    MissingTransactionDateError,
    ParseError,
    ParseErrorKind,
    SourceUnavailableError,
)

__all__ = [
    "Activity",
    "AnyTxType",
    "CurrencyCode",
    "Money",
    "OrgRef",
    "Transaction",
    "TxType",
    "UnknownTxType",
    "parse_tx_type",
    "tx_type_from_code",
    "resolve_currency",
    "resolve_transaction_currency",
    "DomainError",
    "FxError",
    "InvalidAmountError",
    "InvalidCurrencyError",
    "InvalidCurrencyValueError",
    "InvalidIdentifierError",
    "InvalidMoneyError",
    "MalformedXmlError",
    "MissingDateError",
    "MissingIdentifierError",
    "MissingRateError",
    "MissingRequiredFieldError",
    "MissingTransactionDateError",
    "ParseError",
    "ParseErrorKind",
    "SourceUnavailableError",
]
