# src/iatirollup/adapters/xml/parser.py
"""
IATI XML Parser - Streaming XML to Domain Model

This module turns IATI activity XML into Activity objects. It reads the
document as a stream of start/end events (lxml iterparse) through a small
cursor that can descend into an element, read its text, or skip its whole
subtree. Elements the model does not use are skipped, so newer schema
versions parse without errors.

Parsing rules:
- ``iati-identifier`` text (trimmed) is required
- ``iati-activity/@default-currency`` is optional, never defaulted
- ``transaction-type/@code`` degrades to UnknownTxType, never fails
- ``transaction-date/@iso-date`` is required per transaction
- ``value`` text is an exact decimal; ``@currency``/``@value-date`` optional
- ``transaction/@default-currency`` is the transaction-scoped currency hint

Files that USE this module:
- iatirollup.app (parses loaded documents)
- tests.test_parser (unit tests)

Files that this module USES:
- lxml.etree (incremental XML parsing)
- iatirollup.domain.models (Activity, Transaction, Money, OrgRef, ...)
- iatirollup.domain.currency (flags transactions without a currency)
- iatirollup.domain.errors (ParseError hierarchy)
"""
from __future__ import annotations  # Enable postponed evaluation of annotations

import io  # In-memory byte streams for str/bytes input
import logging  # Standard library for logging messages
import re  # Regular expressions for amount and date shapes
from dataclasses import dataclass  # Decorator for result data classes
from datetime import date  # Calendar dates
from decimal import Decimal, InvalidOperation  # Exact amounts
from enum import Enum  # Parse policy choice
from typing import IO, Dict, Iterator, List, Optional, Tuple, Union  # Type hints

from lxml import etree  # Incremental XML parser

from iatirollup.domain.currency import resolve_transaction_currency
from iatirollup.domain.errors import (
    InvalidAmountError,
    InvalidCurrencyError,
    InvalidCurrencyValueError,
    MalformedXmlError,
    MissingIdentifierError,
    MissingTransactionDateError,
    ParseError,
)
from iatirollup.domain.models import (
    Activity,
    CurrencyCode,
    Money,
    OrgRef,
    Transaction,
    UnknownTxType,
    parse_tx_type,
)

log = logging.getLogger(__name__)

XmlSource = Union[bytes, bytearray, str, IO[bytes]]

ACTIVITY_TAG = "iati-activity"

# activity-date/@type: 1 planned start, 2 actual start, 3 planned end, 4 actual end
_PLANNED_START, _ACTUAL_START, _PLANNED_END, _ACTUAL_END = "1", "2", "3", "4"

# xs:decimal lexical form: no exponent
_AMOUNT_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)", re.ASCII)
_DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})(?:[T ].*|Z|[+-]\d{2}:\d{2})?", re.ASCII)
_DECL_ENCODING_RE = re.compile(r"""^(\ufeff?\s*<\?xml\b[^>]*?)\s+encoding\s*=\s*(["'])[^"']*\2""")


class ParsePolicy(str, Enum):
    """What parse_activities does when one activity fails."""
    COLLECT = "collect"  # record the failure, keep parsing siblings
    FAIL_FAST = "fail_fast"  # raise the first ParseError


@dataclass(frozen=True)
class ActivityFailure:
    """
    An activity that could not be parsed.

    Attributes:
        position: Zero-based index of the ``<iati-activity>`` in the document
        iati_identifier: Identifier, if it was read before the failure
        error: The ParseError describing what went wrong
    """
    position: int
    iati_identifier: Optional[str]
    error: ParseError

    @property
    def reason(self) -> str:
        return self.error.message


@dataclass(frozen=True)
class ParseReport:
    """Outcome of parsing a multi-activity document under the COLLECT policy."""
    activities: Tuple[Activity, ...] = ()
    failures: Tuple[ActivityFailure, ...] = ()

    @property
    def parsed_count(self) -> int:
        return len(self.activities)

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        return f"{self.parsed_count} activities parsed, {self.failed_count} failed"


def _local_name(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.split("}", 1)[-1] if "}" in tag else tag


def _as_stream(source: XmlSource) -> IO[bytes]:
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(source)
    if isinstance(source, str):
        # Text is re-encoded as UTF-8, so a declared encoding no longer applies
        source = _DECL_ENCODING_RE.sub(r"\1", source, count=1)
        return io.BytesIO(source.encode("utf-8"))
    return source


class _EventCursor:
    """
    Pull cursor over iterparse start/end events.

    Handlers receive an element at its start event (attributes are complete)
    and must consume it up to its end event, either with ``skip``,
    ``read_text`` or their own ``children`` loop.
    """

    def __init__(self, source: XmlSource):
        self._events = etree.iterparse(
            _as_stream(source),
            events=("start", "end"),
            resolve_entities=False,
            remove_comments=True,
            remove_pis=True,
            huge_tree=True,
        )

    def next_event(self) -> Optional[Tuple[str, etree._Element]]:
        try:
            return next(self._events)
        except StopIteration:
            return None
        except etree.XMLSyntaxError as e:
            raise MalformedXmlError(f"XML syntax error: {e}") from e

    def _require_event(self, within: etree._Element) -> Tuple[str, etree._Element]:
        event = self.next_event()
        if event is None:
            raise MalformedXmlError(f"Unexpected end of document inside <{_local_name(within.tag)}>")
        return event

    def children(self, parent: etree._Element) -> Iterator[etree._Element]:
        """Yield each direct child of ``parent`` at its start event."""
        while True:
            kind, element = self._require_event(parent)
            if kind == "end":
                if element is parent:
                    return
                continue
            yield element

    def skip(self, element: etree._Element) -> None:
        """Ignore the rest of ``element``'s subtree."""
        while True:
            kind, current = self._require_event(element)
            if kind == "end" and current is element:
                return

    def read_text(self, element: etree._Element) -> str:
        self.skip(element)
        return "".join(element.itertext())


def _release(element: etree._Element) -> None:
    # Drop finished activities from the partial tree so memory stays flat
    element.clear()
    parent = element.getparent()
    if parent is not None:
        while element.getprevious() is not None:
            del parent[0]


def _parse_iso_date(text: Optional[str]) -> Optional[date]:
    if text is None:
        return None
    match = _DATE_RE.fullmatch(text.strip())
    if not match:
        return None
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None


def _parse_optional_date(text: Optional[str], where: str) -> Optional[date]:
    if text is None or not text.strip():
        return None
    parsed = _parse_iso_date(text)
    if parsed is None:
        log.warning("Ignoring unparsable %s: %r", where, text)
    return parsed


def _parse_amount(text: Optional[str]) -> Decimal:
    if text is None or not text.strip():
        raise InvalidAmountError("Transaction <value> has no amount")
    text = text.strip()
    if not _AMOUNT_RE.fullmatch(text):
        raise InvalidAmountError(f"Transaction <value> is not a decimal number: {text!r}")
    try:
        return Decimal(text)
    except InvalidOperation:
        raise InvalidAmountError(f"Transaction <value> is not a decimal number: {text!r}")


def _parse_currency(text: Optional[str], where: str) -> Optional[CurrencyCode]:
    if text is None or not text.strip():
        return None
    try:
        return CurrencyCode(text)
    except InvalidCurrencyError:
        raise InvalidCurrencyValueError(f"Invalid currency code in {where}: {text!r}")


def _read_org(cursor: _EventCursor, element: etree._Element) -> OrgRef:
    ref = element.get("ref")
    name = None
    for child in cursor.children(element):
        if _local_name(child.tag) == "narrative":
            text = cursor.read_text(child).strip()
            if name is None and text:
                name = text
        else:
            cursor.skip(child)
    # IATI 1.x puts the organisation name directly in the element
    if name is None and element.text:
        name = element.text
    return OrgRef(ref_id=ref, name=name)


def _read_transaction(cursor: _EventCursor, element: etree._Element) -> Transaction:
    """
    Read one ``<transaction>``.

    The whole subtree is consumed before any ParseError is raised, so the
    caller can carry on with the next sibling.
    """
    hint_text = element.get("default-currency")
    type_code: Optional[str] = None
    iso_date: Optional[str] = None
    value_seen = False
    amount_text: Optional[str] = None
    value_currency: Optional[str] = None
    value_date: Optional[str] = None
    provider: Optional[OrgRef] = None
    receiver: Optional[OrgRef] = None
    seen = set()

    for child in cursor.children(element):
        name = _local_name(child.tag)
        if name in seen:
            cursor.skip(child)
            continue
        if name == "transaction-type":
            type_code = child.get("code")
            cursor.skip(child)
        elif name == "transaction-date":
            iso_date = child.get("iso-date")
            cursor.skip(child)
        elif name == "value":
            value_seen = True
            value_currency = child.get("currency")
            value_date = child.get("value-date")
            amount_text = cursor.read_text(child)
        elif name == "provider-org":
            provider = _read_org(cursor, child)
        elif name == "receiver-org":
            receiver = _read_org(cursor, child)
        else:
            cursor.skip(child)
            continue
        seen.add(name)

    tx_type = parse_tx_type(type_code)
    if isinstance(tx_type, UnknownTxType):
        log.debug("Unrecognized transaction-type code %r, using %s", type_code, tx_type.label)

    tx_date = _parse_iso_date(iso_date)
    if tx_date is None:
        if iso_date is None:
            raise MissingTransactionDateError("Transaction has no transaction-date/@iso-date")
        raise MissingTransactionDateError(f"Transaction has an unparsable transaction-date: {iso_date!r}")

    if not value_seen:
        raise InvalidAmountError("Transaction has no <value>")
    money = Money(
        amount=_parse_amount(amount_text),
        currency=_parse_currency(value_currency, "value/@currency"),
        value_date=_parse_optional_date(value_date, "value/@value-date"),
    )

    return (
        Transaction(tx_type, tx_date, money)
        .with_provider(provider)
        .with_receiver(receiver)
        .with_currency_hint(_parse_currency(hint_text, "transaction/@default-currency"))
    )


def _read_activity(cursor: _EventCursor, element: etree._Element) -> Activity:
    identifier: Optional[str] = None
    transactions: List[Transaction] = []
    reporting_org: Optional[OrgRef] = None
    dates: Dict[str, date] = {}
    first_error: Optional[ParseError] = None

    try:
        for child in cursor.children(element):
            name = _local_name(child.tag)
            if name == "iati-identifier":
                text = cursor.read_text(child).strip()
                if identifier is None and text:
                    identifier = text
            elif name == "transaction":
                try:
                    transactions.append(_read_transaction(cursor, child))
                except MalformedXmlError:
                    raise
                except ParseError as e:
                    if first_error is None:
                        first_error = e
            elif name == "reporting-org" and reporting_org is None:
                reporting_org = _read_org(cursor, child)
            elif name == "activity-date":
                date_type = (child.get("type") or "").strip()
                iso_date = child.get("iso-date")
                cursor.skip(child)
                if date_type not in dates:
                    parsed = _parse_optional_date(iso_date, "activity-date/@iso-date")
                    if parsed is not None:
                        dates[date_type] = parsed
            else:
                cursor.skip(child)
    except MalformedXmlError as e:
        e.activity_id = e.activity_id or identifier
        raise

    if identifier is None:
        raise MissingIdentifierError("<iati-activity> has no iati-identifier text")
    if first_error is not None:
        first_error.activity_id = identifier
        raise first_error

    try:
        default_currency = _parse_currency(element.get("default-currency"), "iati-activity/@default-currency")
    except InvalidCurrencyValueError as e:
        e.activity_id = identifier
        raise

    activity = (
        Activity(identifier)
        .with_default_currency(default_currency)
        .with_transactions(transactions)
        .with_reporting_org(reporting_org)
        .with_dates(
            start_date=dates.get(_ACTUAL_START, dates.get(_PLANNED_START)),
            end_date=dates.get(_ACTUAL_END, dates.get(_PLANNED_END)),
        )
    )

    unresolved = sum(
        1 for tx in activity.transactions
        if resolve_transaction_currency(tx, activity.default_currency) is None
    )
    if unresolved:
        log.warning(
            "Activity %s has %d transaction(s) with no resolvable currency",
            identifier, unresolved,
        )
    log.debug("Parsed activity %s with %d transaction(s)", identifier, len(activity.transactions))
    return activity


def parse_activity(source: XmlSource) -> Activity:
    """
    Parse the first ``<iati-activity>`` element of ``source``.

    Parsing stops at the end of that element; anything after it is not read.

    Args:
        source: XML as bytes, str, or a binary file object

    Returns:
        The parsed Activity

    Raises:
        ParseError: MalformedXmlError, MissingIdentifierError,
            MissingTransactionDateError, InvalidAmountError or
            InvalidCurrencyValueError
    """
    cursor = _EventCursor(source)
    while True:
        event = cursor.next_event()
        if event is None:
            raise MalformedXmlError("No <iati-activity> element found")
        kind, element = event
        if kind == "start" and _local_name(element.tag) == ACTIVITY_TAG:
            return _read_activity(cursor, element)


def iter_activities(source: XmlSource) -> Iterator[Union[Activity, ActivityFailure]]:
    """
    Lazily parse every ``<iati-activity>`` in ``source``.

    Yields an Activity or an ActivityFailure per activity, in document
    order. A failure in one activity does not affect its siblings, except
    for XML syntax errors: the reader cannot resume after one, so the
    failure is yielded and iteration stops.
    """
    cursor = _EventCursor(source)
    position = 0
    while True:
        try:
            event = cursor.next_event()
        except MalformedXmlError as e:
            yield ActivityFailure(position, None, e)
            return
        if event is None:
            return
        kind, element = event
        if kind != "start" or _local_name(element.tag) != ACTIVITY_TAG:
            continue

        try:
            result: Union[Activity, ActivityFailure] = _read_activity(cursor, element)
        except ParseError as e:
            result = ActivityFailure(position, e.activity_id, e)
        _release(element)
        yield result

        if isinstance(result, ActivityFailure) and isinstance(result.error, MalformedXmlError):
            return
        position += 1


def parse_activities(source: XmlSource, policy: Union[ParsePolicy, str] = ParsePolicy.COLLECT) -> ParseReport:
    """
    Parse a document holding any number of activities.

    Args:
        source: XML as bytes, str, or a binary file object
        policy: COLLECT records failures in the report and keeps going;
            FAIL_FAST raises the first ParseError

    Returns:
        ParseReport with parsed activities and failures in document order
    """
    policy = ParsePolicy(policy)
    activities: List[Activity] = []
    failures: List[ActivityFailure] = []

    for result in iter_activities(source):
        if isinstance(result, ActivityFailure):
            if policy is ParsePolicy.FAIL_FAST:
                raise result.error
            log.debug("Activity #%d failed: %s", result.position, result.error)
            failures.append(result)
        else:
            activities.append(result)

    report = ParseReport(activities=tuple(activities), failures=tuple(failures))
    log.info("Parse finished: %s", report.summary())
    return report
