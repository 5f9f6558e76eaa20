"""
Pure domain layer.

Value objects and data types with NO dependencies on:
- Persistence or API clients
- Time/clock
- I/O

All domain objects are immutable and deterministic.
"""

from invoicing_kernel.domain.allocations import (
    Allocation,
    AllocationSet,
    AllocationTargetInput,
)
from invoicing_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from invoicing_kernel.domain.documents import (
    DepositConfig,
    DepositType,
    DiscountConfig,
    DiscountType,
    DocumentTax,
    DocumentTotals,
    ItemTax,
    LineItem,
    LineItemInput,
    TaxInput,
    sum_money,
)
from invoicing_kernel.domain.dtos import ValidationError, ValidationResult
from invoicing_kernel.domain.values import (
    Currency,
    Money,
    Numeric,
    Percentage,
    to_decimal,
)
from invoicing_kernel.domain.workflow import Transition, Workflow

__all__ = [
    "Allocation",
    "AllocationSet",
    "AllocationTargetInput",
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "DepositConfig",
    "DepositType",
    "DiscountConfig",
    "DiscountType",
    "DocumentTax",
    "DocumentTotals",
    "ItemTax",
    "LineItem",
    "LineItemInput",
    "Money",
    "Numeric",
    "Percentage",
    "TaxInput",
    "Transition",
    "ValidationError",
    "ValidationResult",
    "Workflow",
    "sum_money",
    "to_decimal",
]
