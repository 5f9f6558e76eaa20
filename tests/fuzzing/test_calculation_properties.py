"""
Property-based tests for the calculation engines.

Properties checked:
- Line item amount is round(q x p) and recomputation is idempotent
- Percentage discount bounds: 0 <= discount <= subtotal
- Document tax is always computed on the post-discount subtotal
- Deposit stays within [0, total]
- Even and proportional splits always sum to exactly 100
- Display amounts reconcile to the source when shares sum to 100
- The validator threshold sits exactly at 100
"""

from decimal import ROUND_HALF_UP, Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from invoicing_engines.allocation import AllocationDistributor
from invoicing_engines.allocation_validator import AllocationValidator
from invoicing_engines.deposit import DepositCalculator
from invoicing_engines.line_items import LineItemCalculator
from invoicing_engines.totals import TotalsAggregator
from invoicing_kernel.domain.allocations import Allocation, AllocationSet, AllocationTargetInput
from invoicing_kernel.domain.documents import (
    DepositConfig,
    DiscountConfig,
    LineItemInput,
    TaxInput,
)
from invoicing_kernel.domain.values import Money

CENT = Decimal("0.01")

quantities = st.decimals(min_value=0, max_value=10_000, places=3, allow_nan=False, allow_infinity=False)
prices = st.decimals(min_value=0, max_value=100_000, places=2, allow_nan=False, allow_infinity=False)
rates = st.decimals(min_value=0, max_value=100, places=2, allow_nan=False, allow_infinity=False)
amounts = st.decimals(min_value=0, max_value=1_000_000, places=2, allow_nan=False, allow_infinity=False)
line_items = st.lists(
    st.builds(
        LineItemInput,
        quantity=quantities,
        unit_price=prices,
        taxes=st.lists(st.builds(TaxInput, name=st.sampled_from(["VAT", "GST"]), rate=rates), max_size=2).map(tuple),
    ),
    max_size=5,
)


class TestLineItemProperties:

    @given(q=quantities, p=prices)
    def test_amount_is_rounded_product(self, q, p):
        calc = LineItemCalculator()
        amount = calc.amount(q, p, "USD")
        assert amount.amount == (q * p).quantize(CENT, rounding=ROUND_HALF_UP)
        assert calc.amount(q, p, "USD") == amount


class TestDocumentProperties:

    @given(items=line_items, discount=rates, tax_rate=rates)
    @settings(max_examples=75, deadline=None)
    def test_discount_bounds_and_tax_base(self, items, discount, tax_rate):
        totals = TotalsAggregator().calculate(
            items=items,
            currency="USD",
            discount=DiscountConfig.percentage(discount),
            document_taxes=[TaxInput("Sales Tax", tax_rate)],
        )
        subtotal = totals.subtotal.amount
        assert totals.discount_amount.amount == (subtotal * discount / 100).quantize(CENT, rounding=ROUND_HALF_UP)
        assert 0 <= totals.discount_amount.amount <= subtotal
        assert totals.post_discount_subtotal.amount == subtotal - totals.discount_amount.amount
        assert totals.document_tax_total.amount == (
            totals.post_discount_subtotal.amount * tax_rate / 100
        ).quantize(CENT, rounding=ROUND_HALF_UP)
        assert totals.total == (
            totals.post_discount_subtotal + totals.document_tax_total + totals.item_tax_total
        )

    @given(items=line_items, fixed=amounts)
    @settings(max_examples=50, deadline=None)
    def test_fixed_discount_never_exceeds_subtotal(self, items, fixed):
        totals = TotalsAggregator().calculate(
            items=items, currency="USD", discount=DiscountConfig.fixed(fixed)
        )
        assert totals.post_discount_subtotal.amount >= 0

    @given(total=amounts, value=rates, fixed=amounts)
    def test_deposit_within_total(self, total, value, fixed):
        calc = DepositCalculator()
        money = Money.of(total, "USD")
        for config in (DepositConfig.percentage(value), DepositConfig.fixed(fixed)):
            deposit = calc.calculate(config, money)
            assert 0 <= deposit.amount <= money.amount


class TestAllocationProperties:

    @given(count=st.integers(min_value=1, max_value=250))
    def test_even_split_sums_to_100(self, count):
        result = AllocationDistributor().even_split([f"t{i}" for i in range(count)])
        assert sum(a.percentage for a in result) == 100
        assert result[0].percentage >= max(a.percentage for a in result)

    @given(weights=st.lists(st.decimals(min_value=0, max_value=1000, places=2), min_size=1, max_size=30))
    def test_proportional_split_sums_to_100(self, weights):
        targets = [AllocationTargetInput(f"t{i}", weight=w) for i, w in enumerate(weights)]
        result = AllocationDistributor().proportional_split(targets)
        assert len(result) == len(weights)
        assert sum(a.percentage for a in result) == 100

    @given(source=amounts, count=st.integers(min_value=1, max_value=12))
    def test_amounts_reconcile_when_fully_allocated(self, source, count):
        distributor = AllocationDistributor()
        allocations = distributor.even_split([f"t{i}" for i in range(count)])
        result = distributor.amounts(Money.of(source, "USD"), allocations)
        assert sum(a.amount.amount for a in result) == source

    @given(excess=st.decimals(min_value=Decimal("0.01"), max_value=1000, places=2))
    def test_validator_threshold(self, excess):
        source = Money.of("100", "USD")
        validator = AllocationValidator()
        at_limit = AllocationSet(source, (Allocation("a", 50), Allocation("b", 50)))
        over = AllocationSet(source, (Allocation("a", 50), Allocation("b", Decimal(50) + excess)))
        assert validator.validate(at_limit).is_valid
        assert "OVER_ALLOCATION" in validator.validate(over).error_codes
