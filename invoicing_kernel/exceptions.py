"""
Typed exception hierarchy for the invoicing core.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Document totals and allocations are recomputed on every keystroke. Callers
render validation inline, so they need to know *which* rule failed and with
*what* values, without parsing message strings:

    try:
        totals = aggregator.calculate(items=items, ...)
    except InvalidInputError as e:
        form.mark_invalid(e.field, e.reason)

Every exception carries:
  1. A ``code`` class attribute (machine-readable, API-safe)
  2. Its context as public attributes (not only in the message)

At the core/UI boundary the engines convert these into result objects
(``TotalsOutcome``, ``ValidationResult``), so the UI never needs a
try/except per keystroke. The exceptions remain the internal currency.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InvoicingError (base)
    |
    +-- InvalidInputError
    |
    +-- CurrencyError
    |   +-- InvalidCurrencyError
    |   +-- CurrencyMismatchError
    |
    +-- AllocationError
    |   +-- OverAllocationError
    |   +-- EmptyTargetError
    |   +-- MissingTargetError
    |   +-- InvalidAllocationPercentageError
    |
    +-- SessionError
    |   +-- InvalidSessionTransitionError
    |   +-- SaveInProgressError
    |
    +-- StaleRevisionError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                          | When Raised
-------------|-------------------------------|------------------------------------
Input        | INVALID_INPUT                 | Negative quantity/price, rate out
             |                               | of range, untyped discount
-------------|-------------------------------|------------------------------------
Currency     | INVALID_CURRENCY              | Not a known ISO 4217 code
             | CURRENCY_MISMATCH             | Mixed currencies in one document
-------------|-------------------------------|------------------------------------
Allocation   | OVER_ALLOCATION               | Percentages sum above 100
             | EMPTY_TARGET                  | Save with no targets when required
             | MISSING_TARGET                | Allocation row without target id
             | INVALID_ALLOCATION_PERCENTAGE | Percentage <= 0 or > 100
-------------|-------------------------------|------------------------------------
Session      | INVALID_SESSION_TRANSITION    | Action not allowed in this state
             | SAVE_IN_PROGRESS              | Second save while one is in flight
-------------|-------------------------------|------------------------------------
Ordering     | STALE_REVISION                | Totals from an older input snapshot
-------------|-------------------------------|------------------------------------
Config       | CONFIGURATION_ERROR           | Invalid settings file or value
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


class InvoicingError(Exception):
    """
    Base exception for all invoicing core errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "INVOICING_ERROR"


# Input validation


class InvalidInputError(InvoicingError):
    """A calculation input is outside its allowed domain."""

    code: str = "INVALID_INPUT"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}={value!r}: {reason}")


# Currency


class CurrencyError(InvoicingError):
    """Base exception for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError):
    """Invalid ISO 4217 currency code provided."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: '{currency}'")


class CurrencyMismatchError(CurrencyError):
    """Attempted operation on mismatched currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, currency1: str, currency2: str):
        self.currency1 = currency1
        self.currency2 = currency2
        super().__init__(f"Currency mismatch: {currency1} vs {currency2}")


# Allocation


class AllocationError(InvoicingError):
    """Base exception for allocation errors."""

    code: str = "ALLOCATION_ERROR"


class OverAllocationError(AllocationError):
    """
    Allocation percentages sum above 100.

    Rejected, never clamped: the caller must correct the rows.
    """

    code: str = "OVER_ALLOCATION"

    def __init__(self, total_percentage: Decimal):
        self.total_percentage = total_percentage
        super().__init__(
            f"Total allocation cannot exceed 100%: current total is {total_percentage}%"
        )


class EmptyTargetError(AllocationError):
    """Save attempted with no targets while the caller requires at least one."""

    code: str = "EMPTY_TARGET"

    def __init__(self, entity_id: str | None = None):
        self.entity_id = entity_id
        super().__init__(
            f"At least one allocation target is required"
            + (f" for {entity_id}" if entity_id else "")
        )


class MissingTargetError(AllocationError):
    """An allocation row does not reference a target."""

    code: str = "MISSING_TARGET"

    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Allocation at position {index} has no target")


class InvalidAllocationPercentageError(AllocationError):
    """An allocation percentage is not in (0, 100]."""

    code: str = "INVALID_ALLOCATION_PERCENTAGE"

    def __init__(self, index: int, percentage: Decimal):
        self.index = index
        self.percentage = percentage
        super().__init__(
            f"Allocation at position {index} has percentage {percentage}; "
            f"must be greater than 0 and at most 100"
        )


# Allocation editing session


class SessionError(InvoicingError):
    """Base exception for allocation editing session errors."""

    code: str = "SESSION_ERROR"


class InvalidSessionTransitionError(SessionError):
    """The requested action is not allowed from the session's current state."""

    code: str = "INVALID_SESSION_TRANSITION"

    def __init__(self, current_state: str, action: str):
        self.current_state = current_state
        self.action = action
        super().__init__(f"Cannot {action} from state {current_state}")


class SaveInProgressError(SessionError):
    """A save is already in flight for this entity."""

    code: str = "SAVE_IN_PROGRESS"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"A save is already in progress for {entity_id}")


# Ordering


class StaleRevisionError(InvoicingError):
    """Derived totals computed from an older input snapshot than the one applied."""

    code: str = "STALE_REVISION"

    def __init__(self, revision: int, applied_revision: int):
        self.revision = revision
        self.applied_revision = applied_revision
        super().__init__(
            f"Totals for revision {revision} are older than applied revision "
            f"{applied_revision}"
        )


# Configuration


class ConfigurationError(InvoicingError):
    """Calculation settings are missing or invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, setting: str, reason: str):
        self.setting = setting
        self.reason = reason
        super().__init__(f"Invalid setting {setting}: {reason}")
