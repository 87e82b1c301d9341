"""
Unit tests for the Money and Currency value objects.

Verifies:
- Decimal precision is preserved through arithmetic
- Rounding only on request, half-up to the currency's minor unit
- Same-currency enforcement
- Float constructor prohibition
"""

from decimal import ROUND_HALF_EVEN, Decimal

import pytest

from payroll_kernel.domain.currency import CurrencyRegistry
from payroll_kernel.domain.values import Currency, Money


class TestCurrency:

    def test_normalized(self):
        assert Currency(" vnd ").code == "VND"

    def test_unknown_code(self):
        with pytest.raises(ValueError):
            Currency("XYZ")

    def test_registry_lookup(self):
        """VND has no minor unit below one dong."""
        assert CurrencyRegistry.get_info("vnd").decimal_places == 0
        assert CurrencyRegistry.get_info("USD").quantize_string == "0.01"
        assert CurrencyRegistry.get_info("XYZ") is None

    def test_registry_is_valid(self):
        assert CurrencyRegistry.is_valid("usd")
        assert not CurrencyRegistry.is_valid("US")
        assert not CurrencyRegistry.is_valid(None)


class TestMoneyConstruction:

    def test_of_defaults_to_vnd(self):
        money = Money.of("1000")

        assert money.amount == Decimal("1000")
        assert money.currency == Currency("VND")

    def test_of_int(self):
        assert Money.of(5) == Money.of("5")

    def test_float_refused(self):
        """Binary floating point never becomes money."""
        with pytest.raises(TypeError):
            Money.of(0.1)

    def test_invalid_string(self):
        with pytest.raises(ValueError):
            Money.of("abc")

    def test_zero(self):
        assert Money.zero().is_zero
        assert Money.zero("USD").currency.code == "USD"

    def test_sign_predicates(self):
        assert Money.of("1").is_positive
        assert Money.of("-1").is_negative
        assert not Money.of("0").is_negative


class TestMoneyArithmetic:

    def test_add_subtract(self):
        total = Money.of("100") + Money.of("50") - Money.of("30")

        assert total == Money.of("120")

    def test_precision_preserved(self):
        """Sums keep every fractional digit; nothing is rounded."""
        total = Money.of("454545.4545") + Money.of("0.0001")

        assert total.amount == Decimal("454545.4546")

    def test_mixed_currency_refused(self):
        with pytest.raises(ValueError):
            Money.of("1", "VND") + Money.of("1", "USD")
        with pytest.raises(ValueError):
            Money.of("1", "VND") - Money.of("1", "USD")

    def test_non_money_operand(self):
        with pytest.raises(TypeError):
            Money.of("1") + Decimal("1")


class TestMoneyRounding:

    def test_round_vnd_half_up(self):
        """Half a dong rounds up by default."""
        assert Money.of("454545.5").round() == Money.of("454546")
        assert Money.of("454545.4545").round() == Money.of("454545")

    def test_round_usd(self):
        assert Money.of("10.555", "USD").round() == Money.of("10.56", "USD")

    def test_round_mode_override(self):
        assert Money.of("2.5").round(ROUND_HALF_EVEN) == Money.of("2")

    def test_round_returns_new_value(self):
        original = Money.of("1.5")
        original.round()

        assert original.amount == Decimal("1.5")
