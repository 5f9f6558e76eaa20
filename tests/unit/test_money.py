"""
Unit tests for Money and decimal handling.

Verifies:
- Float inputs are converted through their shortest repr
- Rounding to currency precision, half-up
- Currency mismatch is refused
- Non-numeric and non-finite inputs are rejected with a field name
"""

from decimal import ROUND_HALF_EVEN, Decimal

import pytest

from invoicing_kernel.domain.values import Money, Percentage, to_decimal
from invoicing_kernel.exceptions import (
    CurrencyMismatchError,
    InvalidCurrencyError,
    InvalidInputError,
)


class TestToDecimal:
    """Tests for the form-value conversion."""

    def test_float_goes_through_str(self):
        """0.1 becomes Decimal('0.1'), not its binary expansion."""
        assert to_decimal(0.1) == Decimal("0.1")

    def test_string_is_stripped(self):
        """Whitespace around a typed number is ignored."""
        assert to_decimal(" 12.50 ") == Decimal("12.50")

    def test_int(self):
        assert to_decimal(3) == Decimal("3")

    def test_garbage_string_rejected(self):
        """Unparseable input raises InvalidInputError naming the field."""
        with pytest.raises(InvalidInputError) as exc_info:
            to_decimal("abc", "quantity")
        assert exc_info.value.field == "quantity"
        assert exc_info.value.value == "abc"

    def test_bool_rejected(self):
        """True is an int in Python but never a quantity."""
        with pytest.raises(InvalidInputError):
            to_decimal(True)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "Infinity", "NaN"])
    def test_non_finite_rejected(self, value):
        with pytest.raises(InvalidInputError):
            to_decimal(value)

    def test_none_rejected(self):
        with pytest.raises(InvalidInputError):
            to_decimal(None)


class TestMoneyConstruction:
    """Tests for Money factories."""

    def test_of_string(self):
        m = Money.of("100.50", "USD")
        assert m.amount == Decimal("100.50")
        assert m.currency.code == "USD"

    def test_of_float(self):
        """A float price from a form keeps its decimal meaning."""
        assert Money.of(19.99, "USD").amount == Decimal("19.99")

    def test_currency_normalized(self):
        assert Money.of("1", "usd").currency.code == "USD"

    def test_unknown_currency_rejected(self):
        with pytest.raises(InvalidCurrencyError):
            Money.of("1", "XXX")

    def test_zero(self):
        assert Money.zero("EUR").is_zero

    def test_equality_ignores_trailing_zeros(self):
        """10.0 USD equals 10.00 USD."""
        assert Money.of("10.0", "USD") == Money.of("10.00", "USD")


class TestMoneyRounding:
    """Tests for rounding to the currency's minor unit."""

    def test_half_up_two_places(self):
        """2.345 rounds to 2.35, not banker's 2.34."""
        assert Money.of("2.345", "USD").round().amount == Decimal("2.35")

    def test_rounding_mode_is_honoured(self):
        assert Money.of("2.345", "USD").round(ROUND_HALF_EVEN).amount == Decimal("2.34")

    def test_zero_decimal_currency(self):
        """JPY has no minor unit."""
        assert Money.of("100.5", "JPY").round().amount == Decimal("101")

    def test_three_decimal_currency(self):
        assert Money.of("1.2345", "KWD").round().amount == Decimal("1.235")

    def test_round_is_idempotent(self):
        once = Money.of("7.125", "USD").round()
        assert once.round() == once

    def test_percent(self):
        """percent() is round(amount x rate / 100)."""
        assert Money.of("90", "USD").percent(5).amount == Decimal("4.50")

    def test_percent_accepts_percentage(self):
        assert Money.of("104.5", "USD").percent(Percentage.of(20)).amount == Decimal("20.90")


class TestMoneyArithmetic:
    """Tests for arithmetic and comparisons."""

    def test_add_and_subtract(self):
        a = Money.of("10.25", "USD")
        b = Money.of("0.75", "USD")
        assert (a + b).amount == Decimal("11.00")
        assert (a - b).amount == Decimal("9.50")

    def test_mixed_currency_refused(self):
        with pytest.raises(CurrencyMismatchError) as exc_info:
            Money.of("1", "USD") + Money.of("1", "EUR")
        assert exc_info.value.currency1 == "USD"
        assert exc_info.value.currency2 == "EUR"

    def test_multiply_by_decimal(self):
        assert (Money.of("2.50", "USD") * Decimal("3")).amount == Decimal("7.50")

    def test_multiply_by_float_refused(self):
        """Floats must be converted explicitly before touching money."""
        with pytest.raises(TypeError):
            Money.of("2.50", "USD") * 1.5

    def test_min_max(self):
        small = Money.of("5", "USD")
        big = Money.of("7", "USD")
        assert small.min(big) is small
        assert small.max(big) is big

    def test_comparisons(self):
        assert Money.of("1", "USD") < Money.of("2", "USD")
        assert Money.of("2", "USD") >= Money.of("2.00", "USD")

    def test_sign_properties(self):
        assert Money.of("-1", "USD").is_negative
        assert Money.of("1", "USD").is_positive
        assert (-Money.of("1", "USD")).amount == Decimal("-1")
