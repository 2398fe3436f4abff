"""
Unit tests for the Money value object.

Verifies:
- Integer minor-unit storage
- Half-up rounding on construction, scaling and division
- Float prohibition
- Currency mismatch rejection
"""

from decimal import Decimal

import pytest

from coop_kernel.domain.values import Currency, Money, sum_money
from coop_kernel.exceptions import CurrencyMismatchError


class TestMoneyConstruction:
    """Tests for Money constructors."""

    def test_of_converts_major_to_minor_units(self):
        money = Money.of("1000000.50", "IDR")
        assert money.minor_units == 100000050
        assert money.amount == Decimal("1000000.50")

    def test_of_rounds_half_up_to_minor_unit(self):
        assert Money.of("0.005", "IDR").minor_units == 1
        assert Money.of("0.004", "IDR").minor_units == 0
        assert Money.of("-0.005", "IDR").minor_units == -1

    def test_zero_decimal_currency(self):
        money = Money.of("1500", "VND")
        assert money.minor_units == 1500
        assert money.amount == Decimal("1500")

    def test_float_amount_rejected(self):
        with pytest.raises(TypeError):
            Money.of(10.5, "IDR")

    def test_non_integer_minor_units_rejected(self):
        with pytest.raises(TypeError):
            Money(Decimal("1.5"), Currency("IDR"))
        with pytest.raises(TypeError):
            Money(True, Currency("IDR"))

    def test_unparsable_amount_rejected(self):
        with pytest.raises(ValueError):
            Money.of("sepuluh", "IDR")

    def test_string_currency_normalized(self):
        money = Money.from_minor(100, "idr")
        assert money.currency == Currency("IDR")

    def test_unknown_currency_rejected(self):
        with pytest.raises(ValueError):
            Money.zero("XYZ")

    def test_unit_is_one_minor_unit(self):
        assert Money.unit("IDR").amount == Decimal("0.01")
        assert Money.unit("KWD").amount == Decimal("0.001")


class TestMoneyArithmetic:
    """Tests for Money arithmetic and comparison."""

    def test_add_and_subtract(self):
        a = Money.of("100.25", "IDR")
        b = Money.of("0.75", "IDR")
        assert a + b == Money.of("101", "IDR")
        assert a - b == Money.of("99.50", "IDR")

    def test_mismatched_currency_raises(self):
        with pytest.raises(CurrencyMismatchError) as exc_info:
            Money.of("1", "IDR") + Money.of("1", "USD")
        assert exc_info.value.code == "CURRENCY_MISMATCH"
        assert exc_info.value.operation == "add"

    def test_comparison_across_currencies_raises(self):
        with pytest.raises(CurrencyMismatchError):
            Money.of("1", "IDR") < Money.of("2", "MYR")

    def test_multiply_by_rate_rounds_half_up(self):
        # 333 sen * 0.5 = 166.5 -> 167
        assert Money.from_minor(333, "IDR").multiply_by_rate(Decimal("0.5")).minor_units == 167

    def test_multiply_by_rate_per_divides_once(self):
        # 60 * 10 / 1200 = 0.5 -> 1
        assert Money.from_minor(60, "IDR").multiply_by_rate(10, per=1200).minor_units == 1

    def test_multiply_rejects_float(self):
        with pytest.raises(TypeError):
            Money.of("10", "IDR") * 1.5

    def test_divide_rounds_half_up(self):
        # 1000 / 3 = 333.33 -> 333 ; 1000 / 8 = 125 ; 5 / 2 = 2.5 -> 3
        assert Money.from_minor(1000, "IDR").divide(3).minor_units == 333
        assert Money.from_minor(1000, "IDR").divide(8).minor_units == 125
        assert Money.from_minor(5, "IDR").divide(2).minor_units == 3

    def test_divide_by_zero_raises(self):
        with pytest.raises(ZeroDivisionError):
            Money.of("10", "IDR") / 0

    def test_cap_at_zero(self):
        assert Money.of("-5", "IDR").cap_at_zero() == Money.zero("IDR")
        assert Money.of("5", "IDR").cap_at_zero() == Money.of("5", "IDR")

    def test_min_works_on_money(self):
        assert min(Money.of("3", "IDR"), Money.of("2", "IDR")) == Money.of("2", "IDR")

    def test_sum_money_empty_is_zero(self):
        assert sum_money([], "IDR") == Money.zero("IDR")

    def test_sum_money_is_exact(self):
        amounts = [Money.of("0.10", "IDR")] * 1000
        assert sum_money(amounts, "IDR") == Money.of("100", "IDR")

    def test_str_shows_major_units(self):
        assert str(Money.of("1000000", "IDR")) == "1000000.00 IDR"

    def test_str_of_zero_keeps_precision(self):
        assert str(Money.zero("IDR")) == "0.00 IDR"
        assert str(Money.zero("VND")) == "0 VND"
        assert str(Money.zero("KWD")) == "0.000 KWD"
