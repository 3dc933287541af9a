# tests/test_rollup_service.py
"""
Rollup Service Tests - Unit Tests for Transaction Aggregation

This module contains unit tests for aggregate_by_type and
aggregate_by_year_and_type: currency resolution during aggregation, the
unknown-currency bucket, exact decimal sums, order independence, and the
FX conversion mode.

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- iatirollup.application.rollup_service (aggregation functions and result types)
- iatirollup.application.fx (FxTable for conversion mode)
- iatirollup.domain.models (test data)
- unittest.mock (Mock FX provider)
- pytest (testing framework)
"""
import itertools  # Input permutations
import pytest  # Testing framework for writing and running tests

from datetime import date  # Transaction dates
from decimal import Decimal  # Exact amounts
from unittest.mock import Mock  # Mock FX provider

from iatirollup.application.fx import FxTable, YearMonth
from iatirollup.application.rollup_service import (
    NATIVE,
    UNKNOWN_CURRENCY,
    FxMode,
    TypeSums,
    aggregate_by_type,
    aggregate_by_year_and_type,
)
from iatirollup.domain.errors import MissingRateError
from iatirollup.domain.models import Activity, CurrencyCode, Money, Transaction, TxType, UnknownTxType

USD = CurrencyCode("USD")
EUR = CurrencyCode("EUR")


def _tx(tx_type, amount, currency=None, on=date(2024, 1, 15), hint=None, value_date=None):
    return Transaction(tx_type, on, Money(amount, currency, value_date), currency_hint=hint)


def _scenario():
    activity_a = Activity(
        "A",
        default_currency="USD",
        transactions=[_tx(TxType.DISBURSEMENT, "10.00"), _tx(TxType.DISBURSEMENT, "5.00", "EUR")],
    )
    activity_b = Activity("B", transactions=[_tx(TxType.DISBURSEMENT, "3.00")])
    return [activity_a, activity_b]


class TestAggregateByType:
    def test_currency_buckets(self):
        sums = aggregate_by_type(_scenario())

        assert sums.total_for(TxType.DISBURSEMENT, USD) == Decimal("10.00")
        assert sums.total_for(TxType.DISBURSEMENT, "EUR") == Decimal("5.00")
        assert sums.total_for(TxType.DISBURSEMENT, UNKNOWN_CURRENCY) == Decimal("3.00")
        assert sums.unknown_total(3) == Decimal("3.00")
        assert len(sums) == 3

    def test_absent_key_is_none(self):
        sums = aggregate_by_type(_scenario())
        assert sums.total_for(TxType.EXPENDITURE, USD) is None

    def test_nothing_is_dropped(self):
        activities = _scenario()
        sums = aggregate_by_type(activities)
        expected = sum(tx.value.amount for a in activities for tx in a.transactions)
        assert sums.grand_total() == expected

    def test_exact_decimal_sum(self):
        activity = Activity(
            "A",
            default_currency="USD",
            transactions=[_tx(TxType.EXPENDITURE, "10.10"), _tx(TxType.EXPENDITURE, "0.20")],
        )
        assert aggregate_by_type([activity]).total_for(TxType.EXPENDITURE, USD) == Decimal("10.30")

    def test_large_values_stay_exact(self):
        activity = Activity(
            "A",
            default_currency="USD",
            transactions=[
                _tx(TxType.DISBURSEMENT, "123456789012345678901234567890.01"),
                _tx(TxType.DISBURSEMENT, "0.000000000000000000000000000001"),
            ],
        )
        total = aggregate_by_type([activity]).total_for(TxType.DISBURSEMENT, USD)
        assert total == Decimal("123456789012345678901234567890.010000000000000000000000000001")

    def test_order_independent(self):
        transactions = [
            _tx(TxType.DISBURSEMENT, "0.1"),
            _tx(TxType.DISBURSEMENT, "1E+20"),
            _tx(TxType.DISBURSEMENT, "-1E+20"),
            _tx(TxType.INCOMING_FUNDS, "7.77", "EUR"),
        ]
        baseline = aggregate_by_type([Activity("A", default_currency="USD", transactions=transactions)])
        for perm in itertools.permutations(transactions):
            assert aggregate_by_type([Activity("A", default_currency="USD", transactions=perm)]) == baseline

        activities = _scenario()
        assert aggregate_by_type(activities) == aggregate_by_type(list(reversed(activities)))

    def test_hint_used_before_activity_default(self):
        activity = Activity("A", default_currency="USD", transactions=[_tx(TxType.DISBURSEMENT, "4", hint="EUR")])
        sums = aggregate_by_type([activity])
        assert sums.total_for(TxType.DISBURSEMENT, EUR) == Decimal("4")
        assert sums.total_for(TxType.DISBURSEMENT, USD) is None

    def test_unknown_tx_types_kept(self):
        activity = Activity(
            "A",
            default_currency="USD",
            transactions=[_tx(UnknownTxType(99), "1"), _tx(UnknownTxType(0), "2")],
        )
        sums = aggregate_by_type([activity])
        assert sums.total_for(99, USD) == Decimal("1")
        assert sums.total_for(UnknownTxType(0), USD) == Decimal("2")

    def test_empty_input(self):
        sums = aggregate_by_type([])
        assert len(sums) == 0
        assert sums.items() == []
        assert sums.grand_total() == Decimal(0)

    def test_accepts_generator(self):
        sums = aggregate_by_type(a for a in _scenario())
        assert len(sums) == 3

    def test_items_sorted_with_unknown_currency_last(self):
        sums = aggregate_by_type(_scenario())
        keys = [key for key, _ in sums.items()]
        assert keys == [
            (TxType.DISBURSEMENT, EUR),
            (TxType.DISBURSEMENT, USD),
            (TxType.DISBURSEMENT, None),
        ]
        assert sums.currencies_for(TxType.DISBURSEMENT) == [EUR, USD, None]
        assert sums.tx_types() == [TxType.DISBURSEMENT]


class TestAggregateByYearAndType:
    def test_year_from_transaction_date(self):
        activity = Activity(
            "A",
            default_currency="USD",
            transactions=[
                _tx(TxType.DISBURSEMENT, "1", on=date(2023, 12, 31)),
                _tx(TxType.DISBURSEMENT, "2", on=date(2024, 1, 1)),
                _tx(TxType.DISBURSEMENT, "3", on=date(2024, 6, 1)),
            ],
        )
        sums = aggregate_by_year_and_type([activity])

        assert sums.years() == [2023, 2024]
        assert sums.total_for(2023, TxType.DISBURSEMENT, USD) == Decimal("1")
        assert sums.total_for(2024, TxType.DISBURSEMENT, USD) == Decimal("5")
        assert sums.total_for(2022, TxType.DISBURSEMENT, USD) is None

    def test_for_year(self):
        sums = aggregate_by_year_and_type(_scenario())
        year = sums.for_year(2024)
        assert isinstance(year, TypeSums)
        assert year == aggregate_by_type(_scenario())
        assert len(sums.for_year(1999)) == 0


class TestFxMode:
    def test_native_default(self):
        assert NATIVE.is_native
        assert FxMode.native() == NATIVE

    def test_conversion_needs_target_and_provider(self):
        with pytest.raises(ValueError):
            FxMode(target="USD")
        with pytest.raises(ValueError):
            FxMode(provider=Mock())

    def test_convert_to(self):
        mode = FxMode.convert_to("usd", Mock())
        assert mode.target == USD
        assert not mode.is_native

    def test_conversion_aggregation(self):
        table = FxTable()
        table.add_rate("EUR", YearMonth(2024, 1), Decimal("0.5"))
        sums = aggregate_by_type(_scenario(), FxMode.convert_to("USD", table))

        # 10 USD stays, 5 EUR -> 10 USD, unknown stays unknown
        assert sums.total_for(TxType.DISBURSEMENT, USD) == Decimal("20.00")
        assert sums.total_for(TxType.DISBURSEMENT, EUR) is None
        assert sums.unknown_total(TxType.DISBURSEMENT) == Decimal("3.00")

    def test_missing_rate_keeps_native_bucket(self):
        provider = Mock()
        provider.get_rate.side_effect = MissingRateError("no rate")
        sums = aggregate_by_type(_scenario(), FxMode.convert_to("GBP", provider))

        assert sums.total_for(TxType.DISBURSEMENT, USD) == Decimal("10.00")
        assert sums.total_for(TxType.DISBURSEMENT, EUR) == Decimal("5.00")
        assert sums.unknown_total(TxType.DISBURSEMENT) == Decimal("3.00")

    def test_rate_date_prefers_value_date(self):
        provider = Mock()
        provider.get_rate.return_value = Decimal("2")
        activity = Activity(
            "A",
            transactions=[_tx(TxType.DISBURSEMENT, "1", "EUR", on=date(2024, 5, 1), value_date=date(2024, 4, 30))],
        )
        sums = aggregate_by_type([activity], FxMode.convert_to("USD", provider))

        provider.get_rate.assert_called_once_with(EUR, USD, date(2024, 4, 30))
        assert sums.total_for(TxType.DISBURSEMENT, USD) == Decimal("2")
