"""
Module: invoicing_engines.line_items
Responsibility:
    Derive each line item's amount and item-level taxes from its canonical
    inputs (quantity, unit price, tax rates), and group item taxes across a
    document for display.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - ``amount = round(quantity x unit_price)`` to currency precision,
      unless the item is in manual amount mode.
    - ``tax.amount = round(amount x rate / 100)`` for every item tax, always
      recomputed from the current amount. A tax amount is never carried
      over from an earlier calculation.
    - Item tax is not discounted: it is computed on the item amount before
      any document-level discount.

Failure modes:
    - InvalidInputError on negative quantity, unit price or manual amount.
    - InvalidInputError on a tax rate outside [0, 100].

Usage:
    from invoicing_engines.line_items import LineItemCalculator
    from invoicing_kernel.domain import LineItemInput, TaxInput

    calculator = LineItemCalculator()
    item = calculator.calculate(
        LineItemInput(quantity=2, unit_price="50", taxes=(TaxInput("VAT", 10),)),
        currency="USD",
    )
    item.amount      # Money 100.00 USD
    item.tax_total   # Money 10.00 USD
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from invoicing_config.schema import CalculationSettings
from invoicing_engines.tracer import traced_engine
from invoicing_kernel.domain.documents import ItemTax, LineItem, LineItemInput, TaxInput, sum_money
from invoicing_kernel.domain.values import Currency, Money, Numeric, Percentage, to_decimal
from invoicing_kernel.exceptions import InvalidInputError
from invoicing_kernel.logging_config import get_logger

logger = get_logger("engines.line_items")


def _non_negative(value: Numeric, field: str) -> Decimal:
    amount = to_decimal(value, field)
    if amount < 0:
        raise InvalidInputError(field, value, "must not be negative")
    return amount


class LineItemCalculator:
    """
    Compute per-item amounts and item-level taxes.

    Contract:
        Pure functions over value inputs. No I/O, no cache.
    Non-goals:
        - Does not apply document-level discount or tax (DocumentTaxEngine).
    """

    def __init__(self, settings: CalculationSettings | None = None):
        self._settings = settings or CalculationSettings()

    @property
    def rounding(self) -> str:
        return self._settings.rounding_mode

    def amount(
        self,
        quantity: Numeric,
        unit_price: Numeric,
        currency: Currency | str,
        field_prefix: str = "",
    ) -> Money:
        """``round(quantity x unit_price)`` to the currency's precision."""
        qty = _non_negative(quantity, f"{field_prefix}quantity")
        price = _non_negative(unit_price, f"{field_prefix}unit_price")
        return Money(amount=qty * price, currency=currency).round(self.rounding)

    def item_taxes(
        self,
        amount: Money,
        taxes: Sequence[TaxInput],
        field_prefix: str = "",
    ) -> tuple[ItemTax, ...]:
        """One ``ItemTax`` per input rate, each computed on ``amount``."""
        result: list[ItemTax] = []
        for i, tax in enumerate(taxes):
            rate = Percentage.of(tax.rate, f"{field_prefix}taxes[{i}].rate")
            result.append(
                ItemTax(
                    name=tax.name,
                    rate=rate,
                    amount=amount.percent(rate, self.rounding),
                )
            )
        return tuple(result)

    @traced_engine("line_items", "1.0", fingerprint_fields=("item", "currency"))
    def calculate(
        self,
        item: LineItemInput,
        currency: Currency | str,
        field_prefix: str = "",
    ) -> LineItem:
        """
        Derive a ``LineItem`` from form input.

        Raises:
            InvalidInputError: negative quantity/price/manual amount, or a
                tax rate outside [0, 100]. ``field`` names the offending
                input, prefixed with ``field_prefix``.
        """
        if not isinstance(currency, Currency):
            currency = Currency(currency)

        quantity = _non_negative(item.quantity, f"{field_prefix}quantity")
        unit_price = Money(
            amount=_non_negative(item.unit_price, f"{field_prefix}unit_price"),
            currency=currency,
        )

        if item.is_manual_amount:
            amount = Money(
                amount=_non_negative(item.manual_amount, f"{field_prefix}manual_amount"),
                currency=currency,
            ).round(self.rounding)
        else:
            amount = self.amount(quantity, unit_price.amount, currency, field_prefix)

        taxes = self.item_taxes(amount, item.taxes, field_prefix)

        logger.debug("line_item_calculated", extra={
            "quantity": str(quantity),
            "unit_price": str(unit_price.amount),
            "amount": str(amount.amount),
            "is_manual_amount": item.is_manual_amount,
            "tax_count": len(taxes),
        })

        return LineItem(
            quantity=quantity,
            unit_price=unit_price,
            amount=amount,
            taxes=taxes,
            is_manual_amount=item.is_manual_amount,
            description=item.description,
        )

    def calculate_all(
        self,
        items: Sequence[LineItemInput],
        currency: Currency | str,
    ) -> tuple[LineItem, ...]:
        """Derive every line item; error fields are prefixed ``items[i].``."""
        return tuple(
            self.calculate(item, currency, field_prefix=f"items[{i}].")
            for i, item in enumerate(items)
        )

    @staticmethod
    def item_tax_total(line_items: Sequence[LineItem], currency: Currency | str) -> Money:
        """Sum of every item tax amount across the document."""
        if not isinstance(currency, Currency):
            currency = Currency(currency)
        return sum_money((item.tax_total for item in line_items), currency)

    @staticmethod
    def tax_breakdown(
        line_items: Sequence[LineItem],
        currency: Currency | str,
    ) -> tuple[ItemTax, ...]:
        """
        Item taxes grouped by ``(name, rate)`` in first-seen order.

        Each group's amount is the sum of the already-rounded item tax
        amounts, so the breakdown always adds up to ``item_tax_total``.
        """
        if not isinstance(currency, Currency):
            currency = Currency(currency)
        groups: dict[tuple[str, Decimal], Money] = {}
        for item in line_items:
            for tax in item.taxes:
                key = (tax.name, tax.rate.value)
                groups[key] = groups.get(key, Money.zero(currency)) + tax.amount
        return tuple(
            ItemTax(name=name, rate=Percentage(rate), amount=amount)
            for (name, rate), amount in groups.items()
        )
