"""
Module: invoicing_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the calculation
    engines. This is the import surface for forms and API clients.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import invoicing_kernel and invoicing_config only.

Invariants enforced:
    - Purity: engines never read the clock or the environment. Dates and
      settings are explicit arguments.
    - Decimal-only arithmetic: floats are converted through ``str`` at the
      input boundary and never used in a calculation.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Public engine operations are wrapped by ``@traced_engine`` (see
    ``invoicing_engines.tracer``), emitting INVOICING_ENGINE_TRACE records
    with engine name, version, input fingerprint and duration.

Usage:
    from invoicing_engines import TotalsAggregator, AllocationDistributor
    from invoicing_engines.balance import determine_status
"""

from invoicing_engines.allocation import (
    AllocationDistributor,
    AllocationSummary,
    WeightEntry,
)
from invoicing_engines.allocation_session import (
    ALLOCATION_SESSION_WORKFLOW,
    AllocationEditSession,
    AllocationPersister,
    SessionState,
)
from invoicing_engines.allocation_validator import AllocationValidator
from invoicing_engines.balance import (
    DocumentStatus,
    balance_due,
    days_overdue,
    determine_status,
    outstanding_balance,
    payment_percentage,
)
from invoicing_engines.deposit import DepositCalculator
from invoicing_engines.document_tax import DocumentTaxEngine, DocumentTaxResult
from invoicing_engines.line_items import LineItemCalculator
from invoicing_engines.sequencing import RevisionGate
from invoicing_engines.totals import TotalsAggregator, TotalsOutcome
from invoicing_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "ALLOCATION_SESSION_WORKFLOW",
    "AllocationDistributor",
    "AllocationEditSession",
    "AllocationPersister",
    "AllocationSummary",
    "AllocationValidator",
    "DepositCalculator",
    "DocumentStatus",
    "DocumentTaxEngine",
    "DocumentTaxResult",
    "LineItemCalculator",
    "RevisionGate",
    "SessionState",
    "TotalsAggregator",
    "TotalsOutcome",
    "WeightEntry",
    "balance_due",
    "compute_input_fingerprint",
    "days_overdue",
    "determine_status",
    "outstanding_balance",
    "payment_percentage",
    "traced_engine",
]
