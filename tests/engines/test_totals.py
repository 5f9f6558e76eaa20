"""
Tests for TotalsAggregator.

Covers:
- End-to-end document totals
- Idempotence (equal results, identical repr)
- try_calculate returning a typed outcome instead of raising
- Deposit informational only
"""

from decimal import Decimal

import pytest

from invoicing_config.schema import CalculationSettings
from invoicing_engines.totals import TotalsAggregator, TotalsOutcome
from invoicing_kernel.domain.documents import (
    DepositConfig,
    DiscountConfig,
    LineItemInput,
    TaxInput,
)
from invoicing_kernel.domain.dtos import ValidationError
from invoicing_kernel.exceptions import InvalidCurrencyError, InvalidInputError


def _scenario(aggregator, **overrides):
    params = dict(
        items=[LineItemInput(quantity=2, unit_price=50, taxes=(TaxInput("VAT", 10),))],
        currency="USD",
        discount=DiscountConfig.fixed(10),
        document_taxes=[TaxInput("Sales Tax", 5)],
        deposit=DepositConfig.percentage(20),
    )
    params.update(overrides)
    return aggregator.calculate(**params)


class TestEndToEnd:
    """The reference invoice: one item, item VAT, fixed discount, sales tax, deposit."""

    def setup_method(self):
        self.aggregator = TotalsAggregator()
        self.totals = _scenario(self.aggregator)

    def test_subtotal(self):
        assert self.totals.subtotal.amount == Decimal("100.00")

    def test_item_tax_total(self):
        assert self.totals.item_tax_total.amount == Decimal("10.00")

    def test_discount(self):
        assert self.totals.discount_amount.amount == Decimal("10.00")
        assert self.totals.post_discount_subtotal.amount == Decimal("90.00")

    def test_document_tax(self):
        assert self.totals.document_tax_total.amount == Decimal("4.50")
        assert self.totals.document_tax_breakdown[0].name == "Sales Tax"

    def test_total(self):
        """100 - 10 + 4.50 + 10 = 104.50; item tax is not discounted."""
        assert self.totals.total.amount == Decimal("104.50")

    def test_deposit(self):
        assert self.totals.deposit_amount.amount == Decimal("20.90")

    def test_deposit_not_subtracted(self):
        assert self.totals.total.amount == Decimal("104.50")
        assert self.totals.balance_due.amount == Decimal("83.60")

    def test_tax_total(self):
        assert self.totals.tax_total.amount == Decimal("14.50")

    def test_item_tax_breakdown(self):
        assert [(t.name, t.amount.amount) for t in self.totals.item_tax_breakdown] == [
            ("VAT", Decimal("10.00"))
        ]


class TestTotalsAggregator:

    def setup_method(self):
        self.aggregator = TotalsAggregator()

    def test_idempotent(self):
        """Identical inputs give equal results with an identical repr."""
        first = _scenario(self.aggregator)
        second = _scenario(self.aggregator)
        assert first == second
        assert repr(first) == repr(second)

    def test_fresh_aggregator_gives_same_result(self):
        assert _scenario(self.aggregator) == _scenario(TotalsAggregator())

    def test_percentage_discount_then_tax(self):
        totals = self.aggregator.calculate(
            items=[LineItemInput(1, 1000)],
            currency="USD",
            discount=DiscountConfig.percentage(10),
            document_taxes=[TaxInput("Sales Tax", 20)],
        )
        assert totals.document_tax_total.amount == Decimal("180.00")
        assert totals.total.amount == Decimal("1080.00")

    def test_default_currency_from_settings(self):
        aggregator = TotalsAggregator(CalculationSettings(default_currency="EUR"))
        totals = aggregator.calculate(items=[LineItemInput(1, 5)])
        assert totals.currency.code == "EUR"
        assert totals.total.currency.code == "EUR"

    def test_legacy_tax_rate(self):
        totals = self.aggregator.calculate(
            items=[LineItemInput(1, 100)], currency="USD", legacy_tax_rate=8
        )
        assert totals.document_tax_total.amount == Decimal("8.00")
        assert totals.document_tax_breakdown[0].name == "Tax"

    def test_empty_document(self):
        totals = self.aggregator.calculate(items=[], currency="USD")
        assert totals.total.is_zero
        assert totals.deposit_amount.is_zero
        assert totals.line_items == ()

    def test_calculate_raises(self):
        with pytest.raises(InvalidInputError):
            self.aggregator.calculate(items=[LineItemInput(-1, 10)], currency="USD")

    def test_unknown_currency_raises(self):
        with pytest.raises(InvalidCurrencyError):
            self.aggregator.calculate(items=[], currency="ZZZ")


class TestTryCalculate:
    """The boundary method returns results instead of raising."""

    def setup_method(self):
        self.aggregator = TotalsAggregator()

    def test_ok(self):
        outcome = self.aggregator.try_calculate(
            items=[LineItemInput(2, 50)], currency="USD"
        )
        assert outcome.is_ok
        assert outcome
        assert outcome.error is None
        assert outcome.totals.total.amount == Decimal("100.00")

    def test_invalid_input_becomes_validation_error(self):
        outcome = self.aggregator.try_calculate(
            items=[LineItemInput(1, 10), LineItemInput(1, 10, taxes=(TaxInput("X", 300),))],
            currency="USD",
        )
        assert not outcome
        assert outcome.totals is None
        assert outcome.error.code == "INVALID_INPUT"
        assert outcome.error.field == "items[1].taxes[0].rate"
        assert outcome.error.details["reason"] == "must be between 0 and 100"

    def test_missing_discount_type(self):
        outcome = self.aggregator.try_calculate(
            items=[LineItemInput(1, 10)],
            currency="USD",
            discount=DiscountConfig(type=None, value=5),
        )
        assert outcome.error.field == "discount.type"

    def test_currency_error(self):
        outcome = self.aggregator.try_calculate(items=[], currency="ZZZ")
        assert outcome.error.code == "INVALID_CURRENCY"
        assert outcome.error.details["currency"] == "ZZZ"

    def test_outcome_requires_exactly_one(self):
        with pytest.raises(ValueError):
            TotalsOutcome()
        with pytest.raises(ValueError):
            TotalsOutcome(
                totals=_scenario(self.aggregator),
                error=ValidationError(code="X", message="x"),
            )
