"""
Module: invoicing_engines.allocation
Responsibility:
    Split 100 percent of a document's amount across N targets (projects,
    services) and derive the display amount of each share, with
    deterministic remainder correction so percentages reconcile to exactly
    100 despite integer rounding.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Even split: every target gets ``floor(100 / N)``; the whole remainder
      ``100 - N x floor(100 / N)`` goes to the FIRST target in input order.
    - Proportional split: each target gets ``round(q_i / total x 100)``
      (integer, half-up); the whole drift ``100 - sum`` goes to the entry
      with the LARGEST rounded percentage, the first such entry on ties.
    - Both splits sum to exactly 100 for N >= 1 and return an empty tuple
      for N == 0, with no division by zero.
    - Display amounts are ``round(source x pct / 100)``. When the shares sum
      to exactly 100 the rounding residual goes to the largest share
      (first on ties), so the amounts add up to the source amount.

Failure modes:
    - MissingTargetError when a split is asked to assign a share to an
      entry without a target id.
    - InvalidInputError on a negative weight.

Usage:
    distributor = AllocationDistributor()
    distributor.even_split(["p1", "p2", "p3"])        # 34, 33, 33
    distributor.proportional_split([
        AllocationTargetInput("p1", weight=1),
        AllocationTargetInput("p2", weight=1),
        AllocationTargetInput("p3", weight=1),
    ])                                                # 34, 33, 33
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal

from invoicing_config.schema import CalculationSettings
from invoicing_engines.tracer import traced_engine
from invoicing_kernel.domain.allocations import Allocation, AllocationSet, AllocationTargetInput
from invoicing_kernel.domain.values import Money, Numeric, to_decimal
from invoicing_kernel.exceptions import InvalidInputError, MissingTargetError
from invoicing_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")

_HUNDRED = Decimal("100")
_ONE = Decimal("1")


@dataclass(frozen=True)
class WeightEntry:
    """A measured quantity (hours, units) attributed to a target, or to none."""

    target_id: str | None
    quantity: Numeric


@dataclass(frozen=True)
class AllocationSummary:
    """What a progress bar over an allocation set displays."""

    total_percentage: Decimal
    unallocated_percentage: Decimal
    allocated_amount: Money
    unallocated_amount: Money

    @property
    def is_fully_allocated(self) -> bool:
        return self.total_percentage == _HUNDRED

    @property
    def is_over_allocated(self) -> bool:
        return self.total_percentage > _HUNDRED


def _target_id(target: AllocationTargetInput | str | None) -> str | None:
    if isinstance(target, AllocationTargetInput):
        return target.target_id
    return target


def _require_target(target_id: str | None, index: int) -> str:
    if target_id is None or not str(target_id).strip():
        raise MissingTargetError(index)
    return target_id


def largest_index(values: Sequence[Decimal]) -> int:
    """Index of the largest value; the first one wins a tie."""
    best = 0
    for i, value in enumerate(values):
        if value > values[best]:
            best = i
    return best


class AllocationDistributor:
    """
    Even and proportional percentage splits.

    Contract:
        Pure functions over ``(targets, weights) -> Allocation[]``.
    Non-goals:
        - Does not validate a user-edited set for saving
          (AllocationValidator does).
        - Does not persist anything.
    """

    def __init__(self, settings: CalculationSettings | None = None):
        self._settings = settings or CalculationSettings()

    @traced_engine("allocation.even_split", "1.0", fingerprint_fields=("targets",))
    def even_split(
        self,
        targets: Sequence[AllocationTargetInput | str],
    ) -> tuple[Allocation, ...]:
        """
        ``floor(100 / N)`` each; the remainder goes to the first target.

        Raises:
            MissingTargetError: an entry has no target id.
        """
        count = len(targets)
        if count == 0:
            logger.warning("allocation_even_split_no_targets", extra={})
            return ()

        ids = [_require_target(_target_id(t), i) for i, t in enumerate(targets)]
        share = Decimal(100 // count)
        remainder = _HUNDRED - share * count

        allocations = tuple(
            Allocation(target_id=target_id, percentage=share + (remainder if i == 0 else 0))
            for i, target_id in enumerate(ids)
        )

        logger.info("allocation_even_split_completed", extra={
            "target_count": count,
            "share": str(share),
            "remainder": str(remainder),
        })
        return allocations

    @traced_engine(
        "allocation.proportional_split", "1.0",
        fingerprint_fields=("targets", "total_quantity"),
    )
    def proportional_split(
        self,
        targets: Sequence[AllocationTargetInput],
        total_quantity: Numeric | None = None,
    ) -> tuple[Allocation, ...]:
        """
        Integer percentages proportional to each target's weight.

        Args:
            targets: Targets with their measured weights (None counts as 0).
            total_quantity: Denominator, when it includes quantities that
                belong to no target. Defaults to the sum of the weights.

        Raises:
            MissingTargetError: an entry has no target id.
            InvalidInputError: a weight or the total is negative, or the
                total is less than the sum of the weights.
        """
        if not targets:
            logger.warning("allocation_proportional_split_no_targets", extra={})
            return ()

        ids: list[str] = []
        weights: list[Decimal] = []
        for i, target in enumerate(targets):
            ids.append(_require_target(target.target_id, i))
            weight = to_decimal(target.weight if target.weight is not None else 0, f"targets[{i}].weight")
            if weight < 0:
                raise InvalidInputError(f"targets[{i}].weight", target.weight, "must not be negative")
            weights.append(weight)

        weight_sum = sum(weights, Decimal("0"))
        if total_quantity is None:
            total = weight_sum
        else:
            total = to_decimal(total_quantity, "total_quantity")
            if total < 0:
                raise InvalidInputError("total_quantity", total_quantity, "must not be negative")
            if total < weight_sum:
                raise InvalidInputError(
                    "total_quantity", total_quantity,
                    "must not be less than the sum of the weights",
                )

        if total > 0:
            raw = [
                (w / total * _HUNDRED).quantize(_ONE, rounding=ROUND_HALF_UP)
                for w in weights
            ]
        else:
            raw = [Decimal("0") for _ in weights]

        drift = _HUNDRED - sum(raw, Decimal("0"))
        adjusted_index = None
        if drift != 0:
            # Remainder correction: the whole drift goes to one entry.
            adjusted_index = largest_index(raw)
            raw[adjusted_index] += drift

        logger.info("allocation_proportional_split_completed", extra={
            "target_count": len(ids),
            "total_quantity": str(total),
            "drift": str(drift),
            "adjusted_target": ids[adjusted_index] if adjusted_index is not None else None,
        })

        return tuple(
            Allocation(target_id=target_id, percentage=pct)
            for target_id, pct in zip(ids, raw)
        )

    @staticmethod
    def aggregate_weights(
        entries: Sequence[WeightEntry],
    ) -> tuple[tuple[AllocationTargetInput, ...], Decimal]:
        """
        Sum quantities per target id in first-seen order.

        Returns the per-target weights and the grand total. The grand total
        also counts entries that belong to no target, so untargeted work
        still dilutes every target's share before remainder correction.

        Raises:
            InvalidInputError: a quantity is negative.
        """
        per_target: dict[str, Decimal] = {}
        total = Decimal("0")
        for i, entry in enumerate(entries):
            quantity = to_decimal(entry.quantity or 0, f"entries[{i}].quantity")
            if quantity < 0:
                raise InvalidInputError(f"entries[{i}].quantity", entry.quantity, "must not be negative")
            total += quantity
            if entry.target_id:
                per_target[entry.target_id] = per_target.get(entry.target_id, Decimal("0")) + quantity
        targets = tuple(
            AllocationTargetInput(target_id=target_id, weight=weight)
            for target_id, weight in per_target.items()
        )
        return targets, total

    def proportional_split_from_entries(
        self,
        entries: Sequence[WeightEntry],
    ) -> tuple[Allocation, ...]:
        """Aggregate measured quantities per target, then split proportionally."""
        targets, total = self.aggregate_weights(entries)
        return self.proportional_split(targets, total_quantity=total)

    def amounts(
        self,
        source_amount: Money,
        allocations: Sequence[Allocation],
    ) -> tuple[Allocation, ...]:
        """
        Fill in each allocation's display amount.

        ``amount = round(source x pct / 100)``. When the percentages sum to
        exactly 100, the residual between the rounded amounts and the source
        goes to the largest share (first on ties). Below 100 nothing is
        adjusted; the gap is the unallocated amount.
        """
        if not allocations:
            return ()

        rounding = self._settings.rounding_mode
        currency = source_amount.currency
        amounts = [
            Money(amount=source_amount.amount * a.percentage / _HUNDRED, currency=currency).round(rounding)
            for a in allocations
        ]

        percentages = [a.percentage for a in allocations]
        if sum(percentages, Decimal("0")) == _HUNDRED:
            allocated = sum((m.amount for m in amounts), Decimal("0"))
            residual = source_amount.amount.quantize(currency.quantum, rounding=rounding) - allocated
            if residual != 0:
                idx = largest_index(percentages)
                amounts[idx] = Money(amount=amounts[idx].amount + residual, currency=currency)
                logger.debug("allocation_amount_residual_assigned", extra={
                    "residual": str(residual),
                    "target_id": allocations[idx].target_id,
                })

        return tuple(replace(a, amount=m) for a, m in zip(allocations, amounts))

    def with_amounts(self, allocation_set: AllocationSet) -> AllocationSet:
        return allocation_set.with_allocations(
            self.amounts(allocation_set.source_amount, allocation_set.allocations)
        )

    def summarize(self, allocation_set: AllocationSet) -> AllocationSummary:
        """Totals for display. Over-allocation is reported, never clamped away."""
        rounding = self._settings.rounding_mode
        source = allocation_set.source_amount
        total_pct = allocation_set.total_percentage
        unallocated_pct = max(Decimal("0"), _HUNDRED - total_pct)
        return AllocationSummary(
            total_percentage=total_pct,
            unallocated_percentage=unallocated_pct,
            allocated_amount=Money(amount=source.amount * total_pct / _HUNDRED, currency=source.currency).round(rounding),
            unallocated_amount=Money(amount=source.amount * unallocated_pct / _HUNDRED, currency=source.currency).round(rounding),
        )

    @staticmethod
    def next_row_percentage(allocation_set: AllocationSet) -> Decimal:
        """Percentage pre-filled for a newly added row: what is left, within [0, 100]."""
        remaining = _HUNDRED - allocation_set.total_percentage
        return min(max(remaining, Decimal("0")), _HUNDRED)
