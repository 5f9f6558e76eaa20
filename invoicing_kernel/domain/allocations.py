"""
Allocation types -- percentage shares of one document amount across targets.

Responsibility:
    ``Allocation`` assigns a percentage of a source document's amount to a
    target entity (a project, a service). ``AllocationSet`` is the ordered
    working copy of all allocations for one document.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.

Invariants enforced:
    - ``percentage`` is canonical. ``amount`` is a derived display value and
      is never part of the persisted payload.
    - An ``AllocationSet`` is immutable: every edit returns a new set, and
      the whole set is what gets persisted (replace-all). There is no
      incremental diff type.
    - A working copy MAY be transiently invalid (missing target, sum above
      100). Only ``AllocationValidator`` decides whether it may be saved.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any

from invoicing_kernel.domain.values import Money, Numeric, to_decimal


@dataclass(frozen=True)
class AllocationTargetInput:
    """
    A target offered to a split.

    ``weight`` is the measured quantity behind a proportional split (hours
    logged on a project, say). An even split ignores it.
    """

    target_id: str | None
    weight: Numeric | None = None


@dataclass(frozen=True)
class Allocation:
    """One row of an allocation: a target and its share in percent."""

    target_id: str | None
    percentage: Decimal
    amount: Money | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.percentage, Decimal) or not self.percentage.is_finite():
            object.__setattr__(
                self, "percentage", to_decimal(self.percentage, "percentage")
            )

    @property
    def has_target(self) -> bool:
        return bool(self.target_id and str(self.target_id).strip())

    def to_payload(self) -> dict[str, Any]:
        """The canonical pair handed to the persistence collaborator."""
        return {"target_id": self.target_id, "percentage": self.percentage}


@dataclass(frozen=True)
class AllocationSet:
    """
    Ordered allocations bound to one source amount.

    An empty set means "unallocated" and is a valid state.
    """

    source_amount: Money
    allocations: tuple[Allocation, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.allocations, tuple):
            object.__setattr__(self, "allocations", tuple(self.allocations))

    @classmethod
    def of(
        cls,
        source_amount: Money,
        rows: Iterable[tuple[str | None, Numeric]],
    ) -> AllocationSet:
        """Build a set from ``(target_id, percentage)`` pairs."""
        return cls(
            source_amount=source_amount,
            allocations=tuple(Allocation(t, to_decimal(p, "percentage")) for t, p in rows),
        )

    def __len__(self) -> int:
        return len(self.allocations)

    def __iter__(self):
        return iter(self.allocations)

    @property
    def is_empty(self) -> bool:
        return not self.allocations

    @property
    def total_percentage(self) -> Decimal:
        return sum((a.percentage for a in self.allocations), Decimal("0"))

    @property
    def target_ids(self) -> tuple[str, ...]:
        return tuple(a.target_id for a in self.allocations if a.has_target)

    def with_allocations(self, allocations: Iterable[Allocation]) -> AllocationSet:
        return replace(self, allocations=tuple(allocations))

    def appended(self, allocation: Allocation) -> AllocationSet:
        return self.with_allocations((*self.allocations, allocation))

    def replaced_at(self, index: int, allocation: Allocation) -> AllocationSet:
        if not 0 <= index < len(self.allocations):
            raise IndexError(f"No allocation at position {index}")
        rows = list(self.allocations)
        rows[index] = allocation
        return self.with_allocations(rows)

    def removed_at(self, index: int) -> AllocationSet:
        if not 0 <= index < len(self.allocations):
            raise IndexError(f"No allocation at position {index}")
        return self.with_allocations(
            a for i, a in enumerate(self.allocations) if i != index
        )

    def to_payload(self) -> list[dict[str, Any]]:
        """The full target state, in order, for replace-all persistence."""
        return [a.to_payload() for a in self.allocations]
