"""AllocationValidator -- decides whether an allocation working copy may be saved."""

from __future__ import annotations

from decimal import Decimal

from invoicing_config.schema import CalculationSettings
from invoicing_kernel.domain.allocations import AllocationSet
from invoicing_kernel.domain.dtos import ValidationError, ValidationResult
from invoicing_kernel.exceptions import (
    AllocationError,
    EmptyTargetError,
    InvalidAllocationPercentageError,
    MissingTargetError,
    OverAllocationError,
)
from invoicing_kernel.logging_config import get_logger

logger = get_logger("engines.allocation_validator")

_HUNDRED = Decimal("100")


def _error(exc: AllocationError, field: str | None = None) -> ValidationError:
    base = ValidationError.from_exception(exc)
    return ValidationError(
        code=base.code,
        message=base.message,
        field=field,
        details=base.details,
    )


def validate_rows(allocation_set: AllocationSet) -> list[ValidationError]:
    """Per-row rules: a target on every row, every percentage in (0, 100]."""
    errors: list[ValidationError] = []
    for i, allocation in enumerate(allocation_set.allocations):
        if not allocation.has_target:
            errors.append(_error(MissingTargetError(i), f"allocations[{i}].target_id"))
        pct = allocation.percentage
        if not (pct > 0 and pct <= _HUNDRED):
            errors.append(
                _error(
                    InvalidAllocationPercentageError(i, pct),
                    f"allocations[{i}].percentage",
                )
            )
    return errors


def validate_total(allocation_set: AllocationSet) -> list[ValidationError]:
    """The sum may not exceed 100. Exactly 100 is allowed."""
    total = allocation_set.total_percentage
    if total > _HUNDRED:
        return [_error(OverAllocationError(total), "allocations")]
    return []


class AllocationValidator:
    """
    Validate an ``AllocationSet`` before it is persisted.

    Contract:
        ``validate`` never raises for a rule violation. It returns a
        ``ValidationResult`` listing every broken rule; the over-allocation
        error carries the current sum in ``details["total_percentage"]``.
        Values are reported as entered, never clamped or dropped.
    """

    def __init__(self, settings: CalculationSettings | None = None):
        self._settings = settings or CalculationSettings()

    def validate(
        self,
        allocation_set: AllocationSet,
        require_targets: bool | None = None,
        entity_id: str | None = None,
    ) -> ValidationResult:
        if require_targets is None:
            require_targets = self._settings.require_allocation_targets

        if allocation_set.is_empty:
            if require_targets:
                logger.warning("allocation_validation_failed", extra={
                    "entity_id": entity_id,
                    "error_codes": [EmptyTargetError.code],
                })
                return ValidationResult.failure(_error(EmptyTargetError(entity_id), "allocations"))
            # Empty means unallocated.
            return ValidationResult.success()

        errors = validate_rows(allocation_set) + validate_total(allocation_set)

        if errors:
            logger.warning("allocation_validation_failed", extra={
                "entity_id": entity_id,
                "allocation_count": len(allocation_set),
                "total_percentage": str(allocation_set.total_percentage),
                "error_count": len(errors),
                "error_codes": [e.code for e in errors],
            })
            return ValidationResult.failure(*errors)

        logger.debug("allocation_validation_passed", extra={
            "entity_id": entity_id,
            "allocation_count": len(allocation_set),
            "total_percentage": str(allocation_set.total_percentage),
        })
        return ValidationResult.success()

    def ensure_valid(
        self,
        allocation_set: AllocationSet,
        require_targets: bool | None = None,
        entity_id: str | None = None,
    ) -> None:
        """
        Raise the first broken rule as its typed exception.

        For callers that treat an invalid save as a programming error rather
        than something to display.
        """
        result = self.validate(allocation_set, require_targets, entity_id)
        if result:
            return
        first = result.errors[0]
        details = first.details or {}
        if first.code == OverAllocationError.code:
            raise OverAllocationError(details["total_percentage"])
        if first.code == MissingTargetError.code:
            raise MissingTargetError(details["index"])
        if first.code == InvalidAllocationPercentageError.code:
            raise InvalidAllocationPercentageError(details["index"], details["percentage"])
        raise EmptyTargetError(entity_id)
