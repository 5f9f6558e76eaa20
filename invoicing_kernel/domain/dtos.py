"""
Result DTOs returned across the core/UI boundary.

The engines raise typed exceptions internally. Callers that render inline
validation on every keystroke receive these result objects instead, so a
failed calculation is a value to display, not a control-flow event.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from invoicing_kernel.exceptions import InvoicingError


@dataclass(frozen=True)
class ValidationError:
    """
    A single validation error.

    Contract:
        Carries a machine-readable code, a human-readable message, an
        optional field path, and an optional details dict.

    Non-goals:
        - Does NOT raise -- it IS the error representation.
    """

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None

    @classmethod
    def from_exception(cls, exc: InvoicingError) -> ValidationError:
        """Capture a typed exception's code and structured attributes."""
        details = {k: v for k, v in vars(exc).items() if not k.startswith("_")}
        return cls(
            code=exc.code,
            message=str(exc),
            field=details.get("field"),
            details=details or None,
        )


@dataclass(frozen=True)
class ValidationResult:
    """
    Result of validation.

    Guarantees:
        - ``errors`` is always a tuple (never None).
        - ``bool(result) == result.is_valid``.
    """

    is_valid: bool
    errors: tuple[ValidationError, ...] = field(default_factory=tuple)

    @classmethod
    def success(cls) -> ValidationResult:
        return cls(is_valid=True, errors=())

    @classmethod
    def failure(cls, *errors: ValidationError) -> ValidationResult:
        return cls(is_valid=False, errors=tuple(errors))

    @property
    def error_codes(self) -> tuple[str, ...]:
        return tuple(e.code for e in self.errors)

    def first(self, code: str) -> ValidationError | None:
        """The first error with ``code``, if any."""
        return next((e for e in self.errors if e.code == code), None)

    def __bool__(self) -> bool:
        return self.is_valid
