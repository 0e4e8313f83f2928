"""
Fixed-point money for BRL amounts.

Values are stored as an integer number of cents. Inputs are truncated to the
cent (never rounded) and every operation stays in the integer domain, so no
floating point value is ever stored.
"""

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext
from numbers import Real
from typing import Any

from capital_gains.errors import ErrorKind, OperationError

CENTS_PER_UNIT = 100


def _to_decimal(value: Any) -> Decimal:
    """Convert a JSON-style number to Decimal without binary float artifacts."""
    if isinstance(value, bool) or value is None:
        raise OperationError(ErrorKind.INVALID_AMOUNT, f"not a number: {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise OperationError(ErrorKind.INVALID_AMOUNT, f"not finite: {value!r}")
        # repr() is the shortest string that round-trips, e.g. 0.29 -> '0.29'
        return Decimal(repr(value))
    if isinstance(value, Real):
        return _to_decimal(float(value))
    raise OperationError(ErrorKind.INVALID_AMOUNT, f"not a number: {value!r}")


@dataclass(frozen=True, order=True)
class Money:
    """
    Immutable monetary value in cents.

    Attributes:
        amount: Amount in cents. Validated values are non-negative; a signed
            amount only appears as the result of ``subtract``.
    """
    amount: int = 0

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    @classmethod
    def from_decimal(cls, value: Any) -> "Money":
        """
        Build Money from a non-negative decimal amount in currency units.

        Fractional cents are discarded: ``100.567`` becomes ``10056`` cents.

        Args:
            value: int, float or Decimal amount

        Returns:
            Money with the truncated cent amount

        Raises:
            OperationError: INVALID_AMOUNT if the value is missing,
                non-numeric, not finite or negative
        """
        if isinstance(value, int) and not isinstance(value, bool):
            if value < 0:
                raise OperationError(ErrorKind.INVALID_AMOUNT, f"negative amount: {value!r}")
            return cls(value * CENTS_PER_UNIT)

        decimal_value = _to_decimal(value)
        try:
            if not decimal_value.is_finite():
                raise OperationError(ErrorKind.INVALID_AMOUNT, f"not finite: {value!r}")
            if decimal_value < 0:
                raise OperationError(ErrorKind.INVALID_AMOUNT, f"negative amount: {value!r}")
            # Scaling by 100 adds at most three digits; keep the product exact
            with localcontext() as ctx:
                ctx.prec = max(ctx.prec, len(decimal_value.as_tuple().digits) + 3)
                cents = (decimal_value * CENTS_PER_UNIT).to_integral_value(rounding=ROUND_DOWN)
        except InvalidOperation:
            raise OperationError(ErrorKind.INVALID_AMOUNT, f"invalid amount: {value!r}")
        return cls(int(cents))

    def add(self, other: "Money") -> "Money":
        return Money(self.amount + other.amount)

    def subtract(self, other: "Money") -> "Money":
        """Signed difference; the result may be negative."""
        return Money(self.amount - other.amount)

    def multiply(self, quantity: int) -> "Money":
        return Money(self.amount * quantity)

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return self.subtract(other)

    def __mul__(self, quantity: int) -> "Money":
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            return NotImplemented
        return self.multiply(quantity)

    __rmul__ = __mul__

    def __abs__(self) -> "Money":
        return Money(abs(self.amount))

    def is_positive(self) -> bool:
        return self.amount > 0

    def to_decimal(self) -> Decimal:
        return Decimal(self.amount).scaleb(-2)

    def to_decimal_string(self) -> str:
        """Render with exactly two fractional digits, e.g. ``'10000.00'``."""
        return format(self.to_decimal(), "f")

    def __str__(self) -> str:
        return f"R$ {self.to_decimal_string()}"
