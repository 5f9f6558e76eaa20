"""
Tests for LineItemCalculator.

Covers:
- amount = round(quantity x unit_price)
- item taxes recomputed from the current amount
- manual amount mode
- input validation with field paths
- item tax breakdown grouping
"""

from decimal import Decimal

import pytest

from invoicing_engines.line_items import LineItemCalculator
from invoicing_kernel.domain.documents import LineItemInput, TaxInput
from invoicing_kernel.domain.values import Money
from invoicing_kernel.exceptions import InvalidInputError


class TestLineItemAmount:
    """Tests for the derived item amount."""

    def setup_method(self):
        self.calc = LineItemCalculator()

    def test_quantity_times_price(self):
        assert self.calc.amount(2, "50", "USD") == Money.of("100.00", "USD")

    def test_rounds_half_up(self):
        """3 x 0.335 = 1.005 rounds to 1.01."""
        assert self.calc.amount(3, "0.335", "USD").amount == Decimal("1.01")

    def test_float_inputs(self):
        """0.1 x 3 is 0.30, not 0.30000000000000004."""
        assert self.calc.amount(3, 0.1, "USD").amount == Decimal("0.30")

    def test_fractional_quantity(self):
        assert self.calc.amount("1.5", "19.99", "USD").amount == Decimal("29.99")

    def test_zero_quantity(self):
        assert self.calc.amount(0, "50", "USD").is_zero

    def test_negative_quantity_rejected(self):
        with pytest.raises(InvalidInputError) as exc_info:
            self.calc.amount(-1, "50", "USD")
        assert exc_info.value.field == "quantity"

    def test_negative_price_rejected(self):
        with pytest.raises(InvalidInputError) as exc_info:
            self.calc.amount(1, "-0.01", "USD")
        assert exc_info.value.field == "unit_price"

    def test_yen_has_no_minor_unit(self):
        assert self.calc.amount(3, "33.5", "JPY").amount == Decimal("101")


class TestLineItemCalculate:
    """Tests for calculate() on a full line item input."""

    def setup_method(self):
        self.calc = LineItemCalculator()

    def test_item_tax(self):
        item = self.calc.calculate(
            LineItemInput(quantity=2, unit_price=50, taxes=(TaxInput("VAT", 10),)),
            "USD",
        )
        assert item.amount == Money.of("100", "USD")
        assert item.taxes[0].name == "VAT"
        assert item.taxes[0].amount == Money.of("10.00", "USD")
        assert item.tax_total == Money.of("10.00", "USD")
        assert item.gross_amount == Money.of("110.00", "USD")

    def test_multiple_taxes_each_on_amount(self):
        """Item taxes do not compound on each other."""
        item = self.calc.calculate(
            LineItemInput(1, "200", taxes=(TaxInput("A", 10), TaxInput("B", 5))),
            "USD",
        )
        assert [t.amount.amount for t in item.taxes] == [Decimal("20.00"), Decimal("10.00")]

    def test_taxes_follow_quantity_change(self):
        """A tax amount is recomputed when quantity changes, never reused."""
        taxes = (TaxInput("VAT", 20),)
        first = self.calc.calculate(LineItemInput(1, "10", taxes=taxes), "USD")
        second = self.calc.calculate(LineItemInput(3, "10", taxes=taxes), "USD")
        assert first.tax_total.amount == Decimal("2.00")
        assert second.tax_total.amount == Decimal("6.00")

    def test_manual_amount_overrides_product(self):
        item = self.calc.calculate(
            LineItemInput(2, "50", taxes=(TaxInput("VAT", 10),), manual_amount="75.555"),
            "USD",
        )
        assert item.is_manual_amount
        assert item.amount.amount == Decimal("75.56")
        assert item.taxes[0].amount.amount == Decimal("7.56")

    def test_negative_manual_amount_rejected(self):
        with pytest.raises(InvalidInputError) as exc_info:
            self.calc.calculate(LineItemInput(1, "1", manual_amount=-5), "USD")
        assert exc_info.value.field == "manual_amount"

    @pytest.mark.parametrize("rate", [-1, "100.5"])
    def test_tax_rate_out_of_range(self, rate):
        with pytest.raises(InvalidInputError) as exc_info:
            self.calc.calculate(LineItemInput(1, "1", taxes=(TaxInput("T", rate),)), "USD")
        assert exc_info.value.field == "taxes[0].rate"

    def test_tax_rate_of_100_allowed(self):
        item = self.calc.calculate(LineItemInput(1, "8", taxes=(TaxInput("T", 100),)), "USD")
        assert item.tax_total.amount == Decimal("8.00")

    def test_calculate_all_prefixes_fields(self):
        """Errors name the offending row."""
        with pytest.raises(InvalidInputError) as exc_info:
            self.calc.calculate_all(
                [LineItemInput(1, "1"), LineItemInput(-2, "1")], "USD"
            )
        assert exc_info.value.field == "items[1].quantity"

    def test_description_carried(self):
        item = self.calc.calculate(LineItemInput(1, "1", description="Design work"), "USD")
        assert item.description == "Design work"


class TestItemTaxBreakdown:
    """Tests for grouping item taxes across a document."""

    def setup_method(self):
        self.calc = LineItemCalculator()

    def test_groups_by_name_and_rate(self):
        items = self.calc.calculate_all(
            [
                LineItemInput(1, "100", taxes=(TaxInput("VAT", 10),)),
                LineItemInput(1, "50", taxes=(TaxInput("VAT", 10), TaxInput("City", 2))),
                LineItemInput(1, "20", taxes=(TaxInput("VAT", 5),)),
            ],
            "USD",
        )
        breakdown = self.calc.tax_breakdown(items, "USD")

        assert [(t.name, t.rate.value, t.amount.amount) for t in breakdown] == [
            ("VAT", Decimal("10"), Decimal("15.00")),
            ("City", Decimal("2"), Decimal("1.00")),
            ("VAT", Decimal("5"), Decimal("1.00")),
        ]

    def test_breakdown_sums_to_item_tax_total(self):
        items = self.calc.calculate_all(
            [
                LineItemInput(1, "0.05", taxes=(TaxInput("VAT", 10),)),
                LineItemInput(1, "0.05", taxes=(TaxInput("VAT", 10),)),
            ],
            "USD",
        )
        breakdown = self.calc.tax_breakdown(items, "USD")
        assert breakdown[0].amount == self.calc.item_tax_total(items, "USD")

    def test_no_items(self):
        assert self.calc.tax_breakdown([], "USD") == ()
        assert self.calc.item_tax_total([], "USD").is_zero
