"""
Values -- Immutable, self-validating domain value objects.

Responsibility:
    Provides the value types every calculation engine works in: Currency,
    Money and Percentage. They replace raw floats wherever a monetary
    amount or a rate appears, so binary floating-point drift never reaches
    a document total.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every engine. No outward dependencies except
    invoicing_kernel.domain.currency and invoicing_kernel.exceptions.

Invariants enforced:
    - Monetary amounts are Decimal, never float. Floats arriving from a
      form are converted through their shortest repr (``str(0.1)`` is
      ``"0.1"``), never through their binary expansion.
    - Money always pairs an amount with a registered ISO 4217 currency.
    - Rounding precision is derived from the currency's decimal places.
    - Percentage is always within [0, 100].

Failure modes:
    - InvalidInputError on non-numeric or non-finite amounts, or a
      percentage outside [0, 100].
    - InvalidCurrencyError on unknown currency codes.
    - CurrencyMismatchError when arithmetic mixes currencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from invoicing_kernel.domain.currency import CurrencyRegistry
from invoicing_kernel.exceptions import (
    CurrencyMismatchError,
    InvalidCurrencyError,
    InvalidInputError,
)

Numeric = Union[Decimal, int, str, float]

_HUNDRED = Decimal("100")


def to_decimal(value: Numeric, field: str = "amount") -> Decimal:
    """
    Convert a form value to Decimal.

    Preconditions:
        - value is a Decimal, int, float or numeric string.

    Postconditions:
        - Returns a finite Decimal. Floats go through ``str`` so that
          ``0.1`` becomes ``Decimal("0.1")``.

    Raises:
        InvalidInputError: If the value is not a finite number (bool, NaN,
        infinity and unparseable strings are all rejected).
    """
    if isinstance(value, bool):
        raise InvalidInputError(field, value, "must be a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise InvalidInputError(field, value, "must be a number") from e
    else:
        raise InvalidInputError(field, value, "must be a number")
    if not result.is_finite():
        raise InvalidInputError(field, value, "must be finite")
    return result


@dataclass(frozen=True, slots=True)
class Currency:
    """
    ISO 4217 currency code value object.

    Contract:
        Wraps a three-letter code, normalized (uppercased, stripped) on
        construction. Unknown codes are rejected immediately.

    Non-goals:
        - Does NOT perform currency conversion.
    """

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.upper().strip() if isinstance(self.code, str) else ""
        if not CurrencyRegistry.is_valid(normalized):
            raise InvalidCurrencyError(str(self.code))
        object.__setattr__(self, "code", normalized)

    @property
    def decimal_places(self) -> int:
        return CurrencyRegistry.get_decimal_places(self.code)

    @property
    def quantum(self) -> Decimal:
        """Smallest minor unit, e.g. Decimal("0.01") for USD."""
        return CurrencyRegistry.get_quantum(self.code)

    @property
    def name(self) -> str:
        info = CurrencyRegistry.get_info(self.code)
        return info.name if info else self.code

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs a Decimal amount with its Currency. Arithmetic never mixes
        currencies and never rounds implicitly: callers round explicitly
        with ``round()`` at the points where a business rule says so.

    Guarantees:
        - Immutable and hashable.
        - ``amount`` is always a finite Decimal.
        - Equality compares amount numerically (``10.0 USD == 10.00 USD``).

    Non-goals:
        - Does NOT perform currency conversion.
        - Does NOT reject negative amounts; engines enforce sign rules on
          their inputs.
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal) or not self.amount.is_finite():
            object.__setattr__(self, "amount", to_decimal(self.amount))
        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Numeric, currency: str | Currency) -> Money:
        """
        Factory method for creating Money.

        Raises:
            InvalidInputError: If amount is not a finite number.
            InvalidCurrencyError: If the currency code is unknown.
        """
        return cls(amount=to_decimal(amount), currency=currency)

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        return cls(amount=Decimal("0"), currency=currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Round to the currency's minor unit (2 places for USD, 0 for JPY)."""
        rounded = self.amount.quantize(self.currency.quantum, rounding=rounding)
        return Money(amount=rounded, currency=self.currency)

    def percent(self, rate: Percentage | Numeric, rounding: str = ROUND_HALF_UP) -> Money:
        """``round(self * rate / 100)`` -- the rounding step every derived amount uses."""
        if not isinstance(rate, Percentage):
            rate = Percentage.of(rate)
        return Money(amount=self.amount * rate.value / _HUNDRED, currency=self.currency).round(rounding)

    def min(self, other: Money) -> Money:
        self._check_currency(other)
        return self if self.amount <= other.amount else other

    def max(self, other: Money) -> Money:
        self._check_currency(other)
        return self if self.amount >= other.amount else other

    def _check_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency.code, other.currency.code)

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __neg__(self) -> Money:
        return Money(amount=-self.amount, currency=self.currency)

    def __mul__(self, factor: Decimal | int | str) -> Money:
        """Multiply by a scalar. Floats are refused; convert with to_decimal first."""
        if isinstance(factor, (int, str)) and not isinstance(factor, bool):
            factor = Decimal(str(factor))
        if not isinstance(factor, Decimal):
            return NotImplemented
        return Money(amount=self.amount * factor, currency=self.currency)

    def __rmul__(self, factor: Decimal | int | str) -> Money:
        return self.__mul__(factor)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return self.amount >= other.amount

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"


@dataclass(frozen=True, slots=True)
class Percentage:
    """
    A rate expressed in percent, bounded to [0, 100].

    Used for item tax rates, document tax rates, percentage discounts and
    deposits, and allocation shares. Not necessarily an integer
    (``12.5`` is valid).

    Guarantees:
        - ``value`` is a Decimal with 0 <= value <= 100.
    """

    value: Decimal

    def __post_init__(self) -> None:
        value = self.value
        if not isinstance(value, Decimal) or not value.is_finite():
            value = to_decimal(value, "percentage")
            object.__setattr__(self, "value", value)
        if value < 0 or value > _HUNDRED:
            raise InvalidInputError("percentage", value, "must be between 0 and 100")

    @classmethod
    def of(cls, value: Numeric, field: str = "percentage") -> Percentage:
        """Build a Percentage, reporting violations against ``field``."""
        decimal_value = to_decimal(value, field)
        if decimal_value < 0 or decimal_value > _HUNDRED:
            raise InvalidInputError(field, value, "must be between 0 and 100")
        return cls(decimal_value)

    @classmethod
    def zero(cls) -> Percentage:
        return cls(Decimal("0"))

    @property
    def is_zero(self) -> bool:
        return self.value == 0

    @property
    def fraction(self) -> Decimal:
        """The rate as a fraction, e.g. Decimal("0.2") for 20%."""
        return self.value / _HUNDRED

    def __str__(self) -> str:
        return f"{self.value}%"

    def __repr__(self) -> str:
        return f"Percentage({self.value!r})"
