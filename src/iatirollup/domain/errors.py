# src/iatirollup/domain/errors.py
"""
Domain Errors - Business Logic Exceptions

This module defines domain-specific exceptions for model construction,
XML parsing, currency conversion and document loading.

Files that USE this module:
- iatirollup.domain.models (raises Invalid*Error on bad construction input)
- iatirollup.adapters.xml.parser (raises ParseError subclasses)
- iatirollup.application.fx (raises FxError subclasses)
- iatirollup.adapters.sources (raises SourceUnavailableError)

Files that this module USES:
- None (pure domain layer)
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class DomainError(Exception):
    """Base exception for domain errors."""
    pass


class InvalidCurrencyError(DomainError):
    """Raised when a currency token is not a 3-letter ISO 4217 style code."""
    pass


class InvalidIdentifierError(DomainError):
    """Raised when an activity identifier is empty or blank."""
    pass


class InvalidMoneyError(DomainError):
    """Raised when a monetary amount is not an exact, finite decimal."""
    pass


class ParseErrorKind(str, Enum):
    MALFORMED = "malformed"
    MISSING_IDENTIFIER = "missing_identifier"
    MISSING_TRANSACTION_DATE = "missing_transaction_date"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_CURRENCY = "invalid_currency"


class ParseError(DomainError):
    """
    Base class for errors raised while turning IATI XML into an Activity.

    Attributes:
        kind: Which rule was violated
        activity_id: Identifier of the failing activity, when it was read
            before the failure
    """
    kind: ParseErrorKind = ParseErrorKind.MALFORMED

    def __init__(self, message: str, activity_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.activity_id = activity_id

    def __str__(self) -> str:
        if self.activity_id:
            return f"{self.message} (activity {self.activity_id})"
        return self.message


class MalformedXmlError(ParseError):
    """Raised on XML syntax or encoding errors."""
    kind = ParseErrorKind.MALFORMED


class MissingRequiredFieldError(ParseError):
    """Raised when a field the model cannot default is absent."""

    def __init__(self, field: str, message: Optional[str] = None, activity_id: Optional[str] = None):
        super().__init__(message or f"missing required field: {field}", activity_id)
        self.field = field


class MissingIdentifierError(MissingRequiredFieldError):
    kind = ParseErrorKind.MISSING_IDENTIFIER

    def __init__(self, message: Optional[str] = None, activity_id: Optional[str] = None):
        super().__init__("iati-identifier", message, activity_id)


class MissingTransactionDateError(MissingRequiredFieldError):
    kind = ParseErrorKind.MISSING_TRANSACTION_DATE

    def __init__(self, message: Optional[str] = None, activity_id: Optional[str] = None):
        super().__init__("transaction-date/@iso-date", message, activity_id)


class InvalidAmountError(ParseError):
    """Raised when a transaction value is missing or not a decimal number."""
    kind = ParseErrorKind.INVALID_AMOUNT


class InvalidCurrencyValueError(ParseError):
    """Raised when value/@currency holds something that is not a currency code."""
    kind = ParseErrorKind.INVALID_CURRENCY


class FxError(DomainError):
    """Base exception for currency conversion failures."""
    pass


class MissingRateError(FxError):
    """Raised when an FX table has no rate for a currency and month."""
    pass


class MissingDateError(FxError):
    """Raised when a conversion has no date to look a rate up for."""
    pass


class SourceUnavailableError(DomainError):
    """Raised when an IATI document cannot be read or downloaded."""
    pass
