"""Tests for money display formatting and the money helpers."""

from decimal import Decimal, InvalidOperation

import pytest

from drawer_kernel.domain.formatting import CurrencyRegistry, format_money
from drawer_kernel.domain.money import round_money, to_money
from drawer_kernel.exceptions import InvalidAmountError


class TestFormatMoney:
    @pytest.mark.parametrize(
        "amount, currency, text",
        [
            (Decimal("170000"), "COP", "$ 170.000"),
            (Decimal("-5000"), "COP", "-$ 5.000"),
            (Decimal("0"), "COP", "$ 0"),
            (Decimal("999"), "COP", "$ 999"),
            (Decimal("1234567"), "COP", "$ 1.234.567"),
            (Decimal("1234.5"), "USD", "USD 1.234,50"),
            (Decimal("0.005"), "EUR", "EUR 0,01"),
            (Decimal("1500.4"), "CLP", "CLP 1.500"),
        ],
    )
    def test_rendering(self, amount, currency, text):
        assert format_money(amount, currency) == text

    def test_pesos_round_half_up(self):
        assert format_money(Decimal("2500.5"), "COP") == "$ 2.501"

    def test_default_currency_is_cop(self):
        assert format_money(50000) == "$ 50.000"

    def test_unknown_currency_uses_two_decimals(self):
        assert format_money(Decimal("12"), "xyz") == "XYZ 12,00"

    def test_float_rejected(self):
        with pytest.raises(TypeError):
            format_money(10.5)


class TestCurrencyRegistry:
    def test_known(self):
        assert CurrencyRegistry.is_known("cop")
        assert not CurrencyRegistry.is_known("ABC")

    def test_decimal_places(self):
        assert CurrencyRegistry.decimal_places("COP") == 0
        assert CurrencyRegistry.decimal_places("USD") == 2


class TestMoneyHelpers:
    def test_to_money_accepts_str_and_int(self):
        assert to_money("12.50") == Decimal("12.50")
        assert to_money(7) == Decimal("7")

    def test_to_money_rejects_bool(self):
        with pytest.raises(TypeError):
            to_money(True)

    @pytest.mark.parametrize("value", [Decimal("NaN"), "Infinity", "-Infinity"])
    def test_to_money_rejects_non_finite(self, value):
        with pytest.raises(InvalidAmountError):
            to_money(value)

    def test_to_money_rejects_garbage(self):
        with pytest.raises(InvalidOperation):
            to_money("twelve")

    def test_round_money(self):
        assert round_money(Decimal("1.005")) == Decimal("1.01")
        assert round_money(Decimal("1.5"), 0) == Decimal("2")
