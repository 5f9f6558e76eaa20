"""
Module: invoicing_engines.document_tax
Responsibility:
    Apply the document-level discount and then the document-level taxes to
    the sum of line item amounts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced (fixed ordering contract):
    1. ``subtotal = sum(item.amount)`` -- item tax is NOT part of it.
    2. The discount is taken from ``subtotal``:
         percentage -> ``round(subtotal x value / 100)``
         fixed      -> ``min(round(value), subtotal)``
       so ``post_discount_subtotal = subtotal - discount >= 0``.
    3. Each document tax is computed independently on
       ``post_discount_subtotal``: ``round(post_discount_subtotal x rate / 100)``.
       Taxes never compound on each other and never see the undiscounted
       subtotal.
    Item-level tax stays outside this engine entirely; the aggregator adds
    it to the total undiscounted.

Failure modes:
    - InvalidInputError on a negative discount value, a percentage discount
      above 100, a discount value > 0 without an explicit type, or a
      document tax rate outside [0, 100].

Usage:
    engine = DocumentTaxEngine()
    result = engine.calculate(
        line_items=items,
        currency="USD",
        discount=DiscountConfig.percentage(10),
        taxes=[TaxInput("Sales Tax", 20)],
    )
    # subtotal 1000 -> discount 100 -> tax on 900 = 180 (not 200)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from invoicing_config.schema import CalculationSettings
from invoicing_engines.tracer import traced_engine
from invoicing_kernel.domain.documents import (
    DiscountConfig,
    DiscountType,
    DocumentTax,
    LineItem,
    TaxInput,
    sum_money,
)
from invoicing_kernel.domain.values import Currency, Money, Numeric, Percentage, to_decimal
from invoicing_kernel.exceptions import InvalidInputError
from invoicing_kernel.logging_config import get_logger

logger = get_logger("engines.document_tax")


@dataclass(frozen=True)
class DocumentTaxResult:
    """
    Discount and document-level tax for one document.

    Guarantees:
        - ``post_discount_subtotal == subtotal - discount_amount >= 0``
        - every tax in ``taxes`` was computed on ``post_discount_subtotal``
    """

    subtotal: Money
    discount_amount: Money
    post_discount_subtotal: Money
    taxes: tuple[DocumentTax, ...]

    @property
    def tax_total(self) -> Money:
        return sum_money((t.amount for t in self.taxes), self.subtotal.currency)


def _discount_type(discount: DiscountConfig) -> DiscountType | None:
    if discount.type is None or isinstance(discount.type, DiscountType):
        return discount.type
    try:
        return DiscountType(discount.type)
    except ValueError as e:
        raise InvalidInputError(
            "discount.type", discount.type, "must be 'percentage' or 'fixed'"
        ) from e


class DocumentTaxEngine:
    """
    Discount-then-tax for a whole document.

    Contract:
        Pure functions. The ordering described in the module docstring is
        fixed and not configurable.
    """

    def __init__(self, settings: CalculationSettings | None = None):
        self._settings = settings or CalculationSettings()

    @property
    def rounding(self) -> str:
        return self._settings.rounding_mode

    @staticmethod
    def subtotal(line_items: Sequence[LineItem], currency: Currency | str) -> Money:
        if not isinstance(currency, Currency):
            currency = Currency(currency)
        return sum_money((item.amount for item in line_items), currency)

    def discount_amount(self, subtotal: Money, discount: DiscountConfig) -> Money:
        """
        Discount taken from ``subtotal``, never more than ``subtotal``.

        Raises:
            InvalidInputError: negative value, percentage above 100, or a
                value > 0 with no type.
        """
        value = to_decimal(discount.value, "discount.value")
        if value < 0:
            raise InvalidInputError("discount.value", discount.value, "must not be negative")
        if value == 0:
            return Money.zero(subtotal.currency)

        discount_type = _discount_type(discount)
        if discount_type is None:
            raise InvalidInputError(
                "discount.type", None, "must be set when the discount value is greater than zero"
            )

        if discount_type is DiscountType.PERCENTAGE:
            rate = Percentage.of(value, "discount.value")
            return subtotal.percent(rate, self.rounding)

        fixed = Money(amount=value, currency=subtotal.currency).round(self.rounding)
        return fixed.min(subtotal)

    def document_taxes(
        self,
        post_discount_subtotal: Money,
        taxes: Sequence[TaxInput],
    ) -> tuple[DocumentTax, ...]:
        """Each tax computed independently on ``post_discount_subtotal``."""
        result: list[DocumentTax] = []
        for i, tax in enumerate(taxes):
            rate = Percentage.of(tax.rate, f"document_taxes[{i}].rate")
            result.append(
                DocumentTax(
                    name=tax.name,
                    rate=rate,
                    amount=post_discount_subtotal.percent(rate, self.rounding),
                )
            )
        return tuple(result)

    def resolve_taxes(
        self,
        taxes: Sequence[TaxInput],
        legacy_tax_rate: Numeric | None = None,
        legacy_tax_label: str | None = None,
    ) -> tuple[TaxInput, ...]:
        """
        The document taxes to apply.

        Documents saved before multiple document taxes existed carry a single
        rate instead of a list. That rate is used only when no list is given.
        """
        if taxes:
            return tuple(taxes)
        if legacy_tax_rate is None:
            return ()
        rate = to_decimal(legacy_tax_rate, "tax_rate")
        if rate < 0:
            raise InvalidInputError("tax_rate", legacy_tax_rate, "must not be negative")
        if rate == 0:
            return ()
        label = legacy_tax_label or self._settings.default_document_tax_label
        return (TaxInput(name=label, rate=rate),)

    @traced_engine(
        "document_tax", "1.0",
        fingerprint_fields=("line_items", "currency", "discount", "taxes", "legacy_tax_rate"),
    )
    def calculate(
        self,
        line_items: Sequence[LineItem],
        currency: Currency | str,
        discount: DiscountConfig | None = None,
        taxes: Sequence[TaxInput] = (),
        legacy_tax_rate: Numeric | None = None,
        legacy_tax_label: str | None = None,
    ) -> DocumentTaxResult:
        """Apply discount, then document taxes, in that order."""
        if not isinstance(currency, Currency):
            currency = Currency(currency)
        discount = discount or DiscountConfig.none()

        subtotal = self.subtotal(line_items, currency)
        discount_amount = self.discount_amount(subtotal, discount)
        post_discount_subtotal = subtotal - discount_amount
        document_taxes = self.document_taxes(
            post_discount_subtotal,
            self.resolve_taxes(taxes, legacy_tax_rate, legacy_tax_label),
        )

        result = DocumentTaxResult(
            subtotal=subtotal,
            discount_amount=discount_amount,
            post_discount_subtotal=post_discount_subtotal,
            taxes=document_taxes,
        )

        logger.debug("document_tax_calculated", extra={
            "currency": currency.code,
            "subtotal": str(subtotal.amount),
            "discount_type": discount.type,
            "discount_amount": str(discount_amount.amount),
            "post_discount_subtotal": str(post_discount_subtotal.amount),
            "document_tax_total": str(result.tax_total.amount),
            "document_tax_count": len(document_taxes),
        })

        return result
