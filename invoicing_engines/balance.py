"""
Balance and status -- what is still owed on a document and what its status
should read.

Pure functions. The current date is always an argument (``as_of``); nothing
here reads the clock.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from invoicing_kernel.domain.values import Money
from invoicing_kernel.logging_config import get_logger

logger = get_logger("engines.balance")

_HUNDRED = Decimal("100")
_PCT_QUANTUM = Decimal("0.01")


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


# Statuses that turn overdue once the due date has passed.
_AWAITING_PAYMENT = frozenset({DocumentStatus.SENT, DocumentStatus.VIEWED})


def balance_due(total: Money, deposit_amount: Money) -> Money:
    """Amount left after the deposit, never negative."""
    return (total - deposit_amount).max(Money.zero(total.currency))


def outstanding_balance(total: Money, paid_amount: Money) -> Money:
    """Amount left after payments, never negative."""
    return (total - paid_amount).max(Money.zero(total.currency))


def payment_percentage(paid_amount: Money, total: Money) -> Decimal:
    """Share of ``total`` already paid, in [0, 100], two decimal places."""
    if total.amount <= 0:
        return Decimal("0.00")
    pct = (paid_amount.amount / total.amount * _HUNDRED).quantize(
        _PCT_QUANTUM, rounding=ROUND_HALF_UP
    )
    return min(max(pct, Decimal("0.00")), Decimal("100.00"))


def days_overdue(due_date: date | None, as_of: date) -> int:
    """Whole days past ``due_date``; 0 when not yet due or no due date."""
    if due_date is None or as_of <= due_date:
        return 0
    return (as_of - due_date).days


def determine_status(
    total: Money,
    paid_amount: Money,
    due_date: date | None,
    current_status: DocumentStatus | str,
    as_of: date,
) -> DocumentStatus:
    """
    Status implied by payments and the due date.

    Rules, first match wins:
        1. ``paid`` when ``paid >= total > 0``.
        2. ``partially_paid`` when ``0 < paid < total``.
        3. ``overdue`` when the document is sent or viewed and ``as_of`` is
           after ``due_date``.
        4. Otherwise the current status is kept.
    """
    current = DocumentStatus(current_status)
    paid = paid_amount.amount

    if total.amount > 0 and paid >= total.amount:
        status = DocumentStatus.PAID
    elif 0 < paid < total.amount:
        status = DocumentStatus.PARTIALLY_PAID
    elif current in _AWAITING_PAYMENT and due_date is not None and as_of > due_date:
        status = DocumentStatus.OVERDUE
    else:
        status = current

    if status is not current:
        logger.debug("document_status_changed", extra={
            "from_status": current.value,
            "to_status": status.value,
            "total": str(total.amount),
            "paid_amount": str(paid),
            "due_date": due_date,
            "as_of": as_of,
        })
    return status
