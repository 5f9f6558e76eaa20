"""
Calculation settings schema.

The human-authored settings file (YAML) is parsed by the loader into the
frozen ``CalculationSettings`` dataclass below. Engines receive an instance
explicitly; none of them reads a file or the environment.
"""

from __future__ import annotations

import decimal
from dataclasses import asdict, dataclass
from typing import Any

from invoicing_kernel.domain.currency import CurrencyRegistry
from invoicing_kernel.exceptions import ConfigurationError

ROUNDING_MODES: frozenset[str] = frozenset(
    {
        decimal.ROUND_HALF_UP,
        decimal.ROUND_HALF_EVEN,
        decimal.ROUND_HALF_DOWN,
        decimal.ROUND_UP,
        decimal.ROUND_DOWN,
        decimal.ROUND_CEILING,
        decimal.ROUND_FLOOR,
        decimal.ROUND_05UP,
    }
)


@dataclass(frozen=True)
class CalculationSettings:
    """Settings shared by every calculation engine."""

    default_currency: str = "USD"
    rounding_mode: str = decimal.ROUND_HALF_UP
    default_document_tax_label: str = "Tax"
    require_allocation_targets: bool = False

    def __post_init__(self) -> None:
        currency = str(self.default_currency).upper().strip()
        if not CurrencyRegistry.is_valid(currency):
            raise ConfigurationError(
                "default_currency", f"unknown ISO 4217 code {self.default_currency!r}"
            )
        object.__setattr__(self, "default_currency", currency)
        if self.rounding_mode not in ROUNDING_MODES:
            raise ConfigurationError(
                "rounding_mode",
                f"{self.rounding_mode!r} is not one of {sorted(ROUNDING_MODES)}",
            )
        if not str(self.default_document_tax_label).strip():
            raise ConfigurationError("default_document_tax_label", "must not be blank")
        if not isinstance(self.require_allocation_targets, bool):
            raise ConfigurationError("require_allocation_targets", "must be true or false")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
