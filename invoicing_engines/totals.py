"""
Module: invoicing_engines.totals
Responsibility:
    Compose LineItemCalculator, DocumentTaxEngine and DepositCalculator into
    a single ``DocumentTotals``.

Architecture position:
    Engines -- pure calculation layer, zero I/O. This is the entry point a
    form calls on every input change.

Invariants enforced:
    - Pure and idempotent: identical inputs produce equal results with an
      identical ``repr``. No cache, no hidden state, nothing keyed on object
      identity.
    - ``total = post_discount_subtotal + document_tax_total + item_tax_total``.
    - The deposit is computed on ``total`` and not subtracted from it.

Failure modes:
    - ``calculate`` raises InvalidInputError / CurrencyError.
    - ``try_calculate`` never raises those: it returns a ``TotalsOutcome``
      holding either the totals or a ``ValidationError`` for inline display.

Usage:
    aggregator = TotalsAggregator()
    outcome = aggregator.try_calculate(
        items=[LineItemInput(2, 50, taxes=(TaxInput("VAT", 10),))],
        currency="USD",
        discount=DiscountConfig.fixed(10),
        document_taxes=[TaxInput("Sales Tax", 5)],
        deposit=DepositConfig.percentage(20),
    )
    if outcome.is_ok:
        outcome.totals.total           # 104.50 USD
        outcome.totals.deposit_amount  # 20.90 USD
    else:
        form.show(outcome.error.field, outcome.error.message)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from invoicing_config.schema import CalculationSettings
from invoicing_engines.deposit import DepositCalculator
from invoicing_engines.document_tax import DocumentTaxEngine
from invoicing_engines.line_items import LineItemCalculator
from invoicing_engines.tracer import traced_engine
from invoicing_kernel.domain.documents import (
    DepositConfig,
    DiscountConfig,
    DocumentTotals,
    LineItemInput,
    TaxInput,
)
from invoicing_kernel.domain.dtos import ValidationError
from invoicing_kernel.domain.values import Currency, Numeric
from invoicing_kernel.exceptions import CurrencyError, InvalidInputError
from invoicing_kernel.logging_config import get_logger

logger = get_logger("engines.totals")


@dataclass(frozen=True)
class TotalsOutcome:
    """Either computed totals or the first input error that prevented them."""

    totals: DocumentTotals | None = None
    error: ValidationError | None = None

    def __post_init__(self) -> None:
        if (self.totals is None) == (self.error is None):
            raise ValueError("TotalsOutcome needs exactly one of totals or error")

    @property
    def is_ok(self) -> bool:
        return self.totals is not None

    def __bool__(self) -> bool:
        return self.is_ok


class TotalsAggregator:
    """
    Compute every derived number of a document.

    Contract:
        Pure composition of the line item, document tax and deposit engines.
        The aggregator holds only its settings and sub-engines; nothing is
        remembered between calls.
    """

    def __init__(self, settings: CalculationSettings | None = None):
        self._settings = settings or CalculationSettings()
        self._line_items = LineItemCalculator(self._settings)
        self._document_tax = DocumentTaxEngine(self._settings)
        self._deposit = DepositCalculator(self._settings)

    @property
    def settings(self) -> CalculationSettings:
        return self._settings

    @traced_engine(
        "totals", "1.0",
        fingerprint_fields=("items", "currency", "discount", "document_taxes", "deposit"),
    )
    def calculate(
        self,
        items: Sequence[LineItemInput],
        currency: Currency | str | None = None,
        discount: DiscountConfig | None = None,
        document_taxes: Sequence[TaxInput] = (),
        deposit: DepositConfig | None = None,
        legacy_tax_rate: Numeric | None = None,
        legacy_tax_label: str | None = None,
    ) -> DocumentTotals:
        """
        Compute ``DocumentTotals``.

        Args:
            items: Line items as entered.
            currency: Document currency; defaults to the settings' currency.
            discount: Document-level discount (applied before document tax).
            document_taxes: Document-level taxes, each on the post-discount
                subtotal.
            deposit: Deposit policy, computed on the final total.
            legacy_tax_rate: Single document tax rate of older documents,
                used only when ``document_taxes`` is empty.
            legacy_tax_label: Name for the legacy tax.

        Raises:
            InvalidInputError: Any input outside its domain.
            InvalidCurrencyError: Unknown currency code.
        """
        if currency is None:
            currency = self._settings.default_currency
        if not isinstance(currency, Currency):
            currency = Currency(currency)

        line_items = self._line_items.calculate_all(items, currency)
        item_tax_total = self._line_items.item_tax_total(line_items, currency)

        document = self._document_tax.calculate(
            line_items=line_items,
            currency=currency,
            discount=discount,
            taxes=document_taxes,
            legacy_tax_rate=legacy_tax_rate,
            legacy_tax_label=legacy_tax_label,
        )

        # Item tax is added undiscounted.
        total = document.post_discount_subtotal + document.tax_total + item_tax_total
        deposit_amount = self._deposit.calculate(config=deposit, total=total)

        totals = DocumentTotals(
            currency=currency,
            line_items=line_items,
            subtotal=document.subtotal,
            discount_amount=document.discount_amount,
            post_discount_subtotal=document.post_discount_subtotal,
            item_tax_total=item_tax_total,
            item_tax_breakdown=self._line_items.tax_breakdown(line_items, currency),
            document_tax_breakdown=document.taxes,
            document_tax_total=document.tax_total,
            total=total,
            deposit_amount=deposit_amount,
        )

        logger.info("document_totals_calculated", extra={
            "currency": currency.code,
            "line_item_count": len(line_items),
            "subtotal": str(totals.subtotal.amount),
            "discount_amount": str(totals.discount_amount.amount),
            "item_tax_total": str(totals.item_tax_total.amount),
            "document_tax_total": str(totals.document_tax_total.amount),
            "total": str(totals.total.amount),
            "deposit_amount": str(totals.deposit_amount.amount),
        })

        return totals

    def try_calculate(
        self,
        items: Sequence[LineItemInput],
        currency: Currency | str | None = None,
        discount: DiscountConfig | None = None,
        document_taxes: Sequence[TaxInput] = (),
        deposit: DepositConfig | None = None,
        legacy_tax_rate: Numeric | None = None,
        legacy_tax_label: str | None = None,
    ) -> TotalsOutcome:
        """``calculate`` as a typed result, for callers rendering inline errors."""
        try:
            totals = self.calculate(
                items=items,
                currency=currency,
                discount=discount,
                document_taxes=document_taxes,
                deposit=deposit,
                legacy_tax_rate=legacy_tax_rate,
                legacy_tax_label=legacy_tax_label,
            )
        except (InvalidInputError, CurrencyError) as exc:
            logger.info("document_totals_rejected", extra={
                "error_code": exc.code,
                "error_message": str(exc),
            })
            return TotalsOutcome(error=ValidationError.from_exception(exc))
        return TotalsOutcome(totals=totals)
