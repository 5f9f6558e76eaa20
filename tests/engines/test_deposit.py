"""Tests for DepositCalculator."""

from decimal import Decimal

import pytest

from invoicing_engines.deposit import DepositCalculator
from invoicing_kernel.domain.documents import DepositConfig
from invoicing_kernel.domain.values import Money
from invoicing_kernel.exceptions import InvalidInputError


class TestDepositCalculator:

    def setup_method(self):
        self.calc = DepositCalculator()
        self.total = Money.of("104.50", "USD")

    def test_percentage(self):
        """20% of 104.50 is 20.90."""
        assert self.calc.calculate(DepositConfig.percentage(20), self.total).amount == Decimal("20.90")

    def test_percentage_rounds_half_up(self):
        deposit = self.calc.calculate(DepositConfig.percentage(15), Money.of("10.10", "USD"))
        assert deposit.amount == Decimal("1.52")

    def test_fixed(self):
        assert self.calc.calculate(DepositConfig.fixed(50), self.total).amount == Decimal("50.00")

    def test_fixed_capped_at_total(self):
        """A deposit never exceeds the total."""
        assert self.calc.calculate(DepositConfig.fixed(500), self.total) == self.total

    def test_no_config(self):
        assert self.calc.calculate(None, self.total).is_zero

    def test_no_type(self):
        assert self.calc.calculate(DepositConfig(type=None, value=30), self.total).is_zero

    def test_zero_value(self):
        assert self.calc.calculate(DepositConfig.percentage(0), self.total).is_zero

    def test_zero_total(self):
        assert self.calc.calculate(DepositConfig.fixed(10), Money.zero("USD")).is_zero

    def test_negative_rejected(self):
        with pytest.raises(InvalidInputError) as exc_info:
            self.calc.calculate(DepositConfig.fixed(-10), self.total)
        assert exc_info.value.field == "deposit.value"

    def test_percentage_above_100_rejected(self):
        with pytest.raises(InvalidInputError):
            self.calc.calculate(DepositConfig.percentage(150), self.total)

    def test_unknown_type_rejected(self):
        with pytest.raises(InvalidInputError) as exc_info:
            self.calc.calculate(DepositConfig(type="half", value=10), self.total)
        assert exc_info.value.field == "deposit.type"

    def test_currency_follows_total(self):
        deposit = self.calc.calculate(DepositConfig.percentage(50), Money.of("101", "JPY"))
        assert deposit.currency.code == "JPY"
        assert deposit.amount == Decimal("51")
