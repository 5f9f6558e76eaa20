"""
Deposit Calculator - the deposit requested against a document's total.

Pure functions with no I/O.

Rules:
    percentage -> round(total x value / 100)
    fixed      -> min(round(value), total)
    no type, or value 0 -> 0

The deposit is informational. It is reported next to the total and never
subtracted from it; ``0 <= deposit <= total`` always holds.
"""

from __future__ import annotations

from invoicing_config.schema import CalculationSettings
from invoicing_engines.tracer import traced_engine
from invoicing_kernel.domain.documents import DepositConfig, DepositType
from invoicing_kernel.domain.values import Money, Percentage, to_decimal
from invoicing_kernel.exceptions import InvalidInputError
from invoicing_kernel.logging_config import get_logger

logger = get_logger("engines.deposit")


class DepositCalculator:
    """Compute the deposit amount from a ``DepositConfig`` and the taxed total."""

    def __init__(self, settings: CalculationSettings | None = None):
        self._settings = settings or CalculationSettings()

    @traced_engine("deposit", "1.0", fingerprint_fields=("config", "total"))
    def calculate(self, config: DepositConfig | None, total: Money) -> Money:
        """
        Deposit for ``total``, the fully-taxed document total.

        Raises:
            InvalidInputError: negative value, unknown type, or a percentage
                above 100.
        """
        zero = Money.zero(total.currency)
        if config is None:
            return zero

        value = to_decimal(config.value, "deposit.value")
        if value < 0:
            raise InvalidInputError("deposit.value", config.value, "must not be negative")
        if config.type is None or value == 0:
            return zero

        try:
            deposit_type = DepositType(config.type)
        except ValueError as e:
            raise InvalidInputError(
                "deposit.type", config.type, "must be 'percentage' or 'fixed'"
            ) from e

        if deposit_type is DepositType.PERCENTAGE:
            deposit = total.percent(Percentage.of(value, "deposit.value"), self._settings.rounding_mode)
        else:
            deposit = Money(amount=value, currency=total.currency).round(
                self._settings.rounding_mode
            ).min(total)

        # never negative
        deposit = deposit.max(zero)

        logger.debug("deposit_calculated", extra={
            "deposit_type": deposit_type.value,
            "deposit_value": str(value),
            "total": str(total.amount),
            "deposit_amount": str(deposit.amount),
        })
        return deposit
