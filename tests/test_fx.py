# tests/test_fx.py
"""
FX Tests - Unit Tests for Exchange Rate Tables, Conversion and the JSON Store

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- iatirollup.application.fx (FxTable, YearMonth, convert_money, convert_activity)
- iatirollup.adapters.persistence.fx_store (load_fx_table)
- pytest (testing framework, tmp_path fixture)
"""
import json  # Writing rate files
import pytest  # Testing framework for writing and running tests

from datetime import date  # Rate dates
from decimal import Decimal  # Exact rates

from iatirollup.adapters.persistence.fx_store import load_fx_table
from iatirollup.application.fx import USD, FxTable, YearMonth, convert_activity, convert_money
from iatirollup.domain.errors import (
    FxError,
    InvalidMoneyError,
    MissingDateError,
    MissingRateError,
    SourceUnavailableError,
)
from iatirollup.domain.models import Activity, CurrencyCode, Money, Transaction, TxType

EUR = CurrencyCode("EUR")
GBP = CurrencyCode("GBP")
JAN_2024 = YearMonth(2024, 1)


@pytest.fixture
def table():
    t = FxTable()
    t.add_rate("EUR", JAN_2024, Decimal("0.8"))
    t.add_rate("GBP", JAN_2024, Decimal("0.5"))
    return t


class TestYearMonth:
    def test_from_date_and_str(self):
        ym = YearMonth.from_date(date(2024, 3, 9))
        assert ym == YearMonth(2024, 3)
        assert str(ym) == "2024-03"

    def test_rejects_bad_month(self):
        with pytest.raises(ValueError):
            YearMonth(2024, 13)

    def test_ordering(self):
        assert YearMonth(2023, 12) < YearMonth(2024, 1)


class TestFxTable:
    def test_same_currency_is_one(self, table):
        assert table.get_rate(EUR, EUR, date(1990, 1, 1)) == Decimal(1)

    def test_usd_defaults_to_one(self, table):
        assert table.get_rate(USD, EUR, date(2024, 1, 20)) == Decimal("0.8")
        assert table.get_rate(EUR, USD, date(2024, 1, 20)) == Decimal("1.25")

    def test_cross_rate(self, table):
        # 1 GBP = 2 USD = 1.6 EUR
        assert table.get_rate(GBP, EUR, date(2024, 1, 1)) == Decimal("1.6")

    def test_missing_month(self, table):
        with pytest.raises(MissingRateError):
            table.get_rate(EUR, USD, date(2024, 2, 1))

    def test_len(self, table):
        assert len(table) == 2

    @pytest.mark.parametrize("bad", [Decimal("0"), Decimal("-1"), Decimal("NaN"), 0.8, 1])
    def test_rejects_bad_rates(self, bad):
        with pytest.raises(InvalidMoneyError):
            FxTable().add_rate("EUR", JAN_2024, bad)

    def test_constructor_mapping(self):
        t = FxTable({(EUR, JAN_2024): Decimal("0.9")})
        assert t.get_rate(USD, EUR, date(2024, 1, 5)) == Decimal("0.9")


class TestConvertMoney:
    def test_uses_value_date(self, table):
        money = Money("10", "EUR", date(2024, 1, 10))
        converted = convert_money(money, "USD", table)
        assert converted.currency == USD
        assert converted.amount == Decimal("12.5")
        assert converted.value_date == date(2024, 1, 10)

    def test_currency_fallback_chain(self, table):
        money = Money("10")
        converted = convert_money(money, USD, table, activity_default=GBP, on=date(2024, 1, 1))
        assert converted.amount == Decimal("20")

    def test_no_currency(self, table):
        with pytest.raises(FxError):
            convert_money(Money("10"), USD, table, on=date(2024, 1, 1))

    def test_no_date(self, table):
        with pytest.raises(MissingDateError):
            convert_money(Money("10", "EUR"), USD, table)


class TestConvertActivity:
    def test_converts_every_transaction(self, table):
        activity = Activity(
            "A",
            default_currency="GBP",
            transactions=[
                Transaction(TxType.DISBURSEMENT, date(2024, 1, 3), Money("1")),
                Transaction(TxType.DISBURSEMENT, date(2024, 1, 4), Money("4"), currency_hint="EUR"),
            ],
        )
        converted = convert_activity(activity, "USD", table)

        assert converted.default_currency == USD
        assert [t.value.amount for t in converted.transactions] == [Decimal("2"), Decimal("5")]
        assert all(t.value.currency == USD and t.currency_hint is None for t in converted.transactions)
        assert activity.default_currency == GBP

    def test_fails_on_missing_rate(self, table):
        activity = Activity(
            "A",
            transactions=[Transaction(TxType.DISBURSEMENT, date(2025, 1, 3), Money("1", "EUR"))],
        )
        with pytest.raises(MissingRateError):
            convert_activity(activity, "USD", table)


class TestLoadFxTable:
    def _write(self, tmp_path, payload):
        path = tmp_path / "rates.json"
        path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
        return path

    def test_loads_rates(self, tmp_path):
        path = self._write(tmp_path, '{"rates": [{"currency": "eur", "year": 2024, "month": 1, "ncu_per_usd": 0.8},'
                                     ' {"currency": "GBP", "year": 2024, "month": 1, "ncu_per_usd": "0.5"}]}')
        table = load_fx_table(path)

        assert len(table) == 2
        assert table.get_rate(GBP, EUR, date(2024, 1, 15)) == Decimal("1.6")

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceUnavailableError):
            load_fx_table(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        with pytest.raises(SourceUnavailableError):
            load_fx_table(self._write(tmp_path, "{not json"))

    def test_missing_rates_list(self, tmp_path):
        with pytest.raises(SourceUnavailableError, match="no 'rates' list"):
            load_fx_table(self._write(tmp_path, {"data": []}))

    @pytest.mark.parametrize("entry", [
        {"currency": "EUR", "year": 2024, "month": 1},
        {"currency": "EURO", "year": 2024, "month": 1, "ncu_per_usd": "1"},
        {"currency": "EUR", "year": 2024, "month": 13, "ncu_per_usd": "1"},
        {"currency": "EUR", "year": 2024, "month": 1, "ncu_per_usd": "-1"},
        {"currency": "EUR", "year": 2024, "month": 1, "ncu_per_usd": "abc"},
        {"currency": "EUR", "year": 2024, "month": 1, "ncu_per_usd": True},
    ])
    def test_invalid_entries(self, tmp_path, entry):
        with pytest.raises(SourceUnavailableError, match="Invalid FX rate entry #0"):
            load_fx_table(self._write(tmp_path, {"rates": [entry]}))
