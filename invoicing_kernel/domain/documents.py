"""
Document types -- inputs and derived results of a document calculation.

Responsibility:
    Defines the shapes a form hands to the engines (``LineItemInput``,
    ``TaxInput``, ``DiscountConfig``, ``DepositConfig``) and the shapes the
    engines hand back (``LineItem``, ``ItemTax``, ``DocumentTax``,
    ``DocumentTotals``).

Architecture position:
    Kernel > Domain -- pure data, zero I/O.

Invariants enforced:
    - Inputs are raw form values and are NOT validated here: a form may
      hold a negative quantity for a moment while the user types. The
      engines validate and report the problem as a typed result.
    - Outputs are fully derived. There is no setter for a tax amount or a
      total; a new input produces a new result.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from invoicing_kernel.domain.values import Currency, Money, Numeric, Percentage


class DiscountType(str, Enum):
    """How a document-level discount value is interpreted."""

    PERCENTAGE = "percentage"  # Percent of the subtotal
    FIXED = "fixed"  # Absolute amount in document currency


class DepositType(str, Enum):
    """How a deposit value is interpreted."""

    PERCENTAGE = "percentage"  # Percent of the fully-taxed total
    FIXED = "fixed"  # Absolute amount in document currency


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaxInput:
    """A named tax rate as entered on a form, in percent (``20`` for 20%)."""

    name: str
    rate: Numeric


@dataclass(frozen=True)
class LineItemInput:
    """
    One line of a document as entered on a form.

    ``manual_amount`` switches the item into manual amount mode: the amount
    is taken as given instead of ``quantity x unit_price``. Item taxes are
    still recomputed from whichever amount applies.
    """

    quantity: Numeric
    unit_price: Numeric
    taxes: tuple[TaxInput, ...] = ()
    manual_amount: Numeric | None = None
    description: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.taxes, tuple):
            object.__setattr__(self, "taxes", tuple(self.taxes))

    @property
    def is_manual_amount(self) -> bool:
        return self.manual_amount is not None


@dataclass(frozen=True)
class DiscountConfig:
    """
    Document-level discount.

    ``type`` must be explicit whenever ``value > 0``; the engines never infer
    it from which field happens to be populated.
    """

    type: DiscountType | None = None
    value: Numeric = Decimal("0")

    @classmethod
    def none(cls) -> DiscountConfig:
        return cls()

    @classmethod
    def percentage(cls, value: Numeric) -> DiscountConfig:
        return cls(type=DiscountType.PERCENTAGE, value=value)

    @classmethod
    def fixed(cls, value: Numeric) -> DiscountConfig:
        return cls(type=DiscountType.FIXED, value=value)


@dataclass(frozen=True)
class DepositConfig:
    """Deposit requested on a document. ``type=None`` means no deposit."""

    type: DepositType | None = None
    value: Numeric = Decimal("0")

    @classmethod
    def none(cls) -> DepositConfig:
        return cls()

    @classmethod
    def percentage(cls, value: Numeric) -> DepositConfig:
        return cls(type=DepositType.PERCENTAGE, value=value)

    @classmethod
    def fixed(cls, value: Numeric) -> DepositConfig:
        return cls(type=DepositType.FIXED, value=value)


# ---------------------------------------------------------------------------
# Derived results
# ---------------------------------------------------------------------------


def sum_money(amounts: Iterable[Money], currency: Currency) -> Money:
    """Sum Money values, returning zero in ``currency`` for an empty iterable."""
    total = Money.zero(currency)
    for amount in amounts:
        total = total + amount
    return total


@dataclass(frozen=True)
class ItemTax:
    """A tax applied to one line item (or, in a breakdown, to several)."""

    name: str
    rate: Percentage
    amount: Money


@dataclass(frozen=True)
class LineItem:
    """
    A line item with its derived amount and taxes.

    Guarantees:
        - ``amount == round(quantity x unit_price)`` unless ``is_manual_amount``.
        - every ``tax.amount == round(amount x tax.rate / 100)``.
    """

    quantity: Decimal
    unit_price: Money
    amount: Money
    taxes: tuple[ItemTax, ...] = ()
    is_manual_amount: bool = False
    description: str = ""

    @property
    def tax_total(self) -> Money:
        return sum_money((t.amount for t in self.taxes), self.amount.currency)

    @property
    def gross_amount(self) -> Money:
        """Amount plus item-level taxes."""
        return self.amount + self.tax_total


@dataclass(frozen=True)
class DocumentTax:
    """A document-level tax computed on the post-discount subtotal."""

    name: str
    rate: Percentage
    amount: Money


@dataclass(frozen=True)
class DocumentTotals:
    """
    Every derived number of a document.

    Contract:
        Produced only by ``TotalsAggregator``. Identical inputs produce an
        equal instance with an identical ``repr``.

    Guarantees:
        - ``post_discount_subtotal == subtotal - discount_amount >= 0``
        - ``total == post_discount_subtotal + document_tax_total + item_tax_total``
        - ``0 <= deposit_amount <= total``; the deposit is informational and
          is not subtracted from ``total``.
    """

    currency: Currency
    line_items: tuple[LineItem, ...]
    subtotal: Money
    discount_amount: Money
    post_discount_subtotal: Money
    item_tax_total: Money
    item_tax_breakdown: tuple[ItemTax, ...]
    document_tax_breakdown: tuple[DocumentTax, ...]
    document_tax_total: Money
    total: Money
    deposit_amount: Money

    @property
    def tax_total(self) -> Money:
        """Item-level plus document-level tax."""
        return self.item_tax_total + self.document_tax_total

    @property
    def balance_due(self) -> Money:
        """What remains after the deposit, never negative."""
        return (self.total - self.deposit_amount).max(Money.zero(self.currency))
