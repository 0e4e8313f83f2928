"""
Stock operations: validated buy/sell records.

An input record is a mapping with the keys ``"operation"``, ``"quantity"`` and
``"unit-cost"``. Validation runs in exactly that order and stops at the first
invalid field, so a record with several bad fields always reports the kind
of the first one.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from capital_gains.errors import ErrorKind, OperationError
from capital_gains.money import Money

OPERATION_FIELD = "operation"
QUANTITY_FIELD = "quantity"
UNIT_COST_FIELD = "unit-cost"


class OperationKind(Enum):
    """Buy/sell discriminator. Tokens are case sensitive."""
    BUY = "buy"
    SELL = "sell"

    @classmethod
    def from_token(cls, token: Any) -> "OperationKind":
        """
        Parse an operation token.

        Raises:
            OperationError: INVALID_OPERATION_TYPE for anything but ``"buy"``
                or ``"sell"``
        """
        if isinstance(token, str):
            for kind in cls:
                if kind.value == token:
                    return kind
        raise OperationError(ErrorKind.INVALID_OPERATION_TYPE, f"unknown operation {token!r}")


class Quantity(int):
    """Positive whole number of shares."""

    @classmethod
    def from_value(cls, value: Any) -> "Quantity":
        """
        Validate a share count.

        Floats are rejected even when integral (``100.0``); only whole
        numbers are accepted.

        Raises:
            OperationError: INVALID_QUANTITY if missing, non-integer, zero or
                negative
        """
        if isinstance(value, bool) or not isinstance(value, int):
            raise OperationError(ErrorKind.INVALID_QUANTITY, f"not an integer: {value!r}")
        if value <= 0:
            raise OperationError(ErrorKind.INVALID_QUANTITY, f"must be positive: {value!r}")
        return cls(value)


@dataclass(frozen=True)
class Operation:
    """A validated stock operation."""
    kind: OperationKind
    unit_price: Money
    quantity: Quantity

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Operation":
        """
        Validate a raw record into an Operation.

        Args:
            record: Mapping with ``operation``, ``quantity`` and ``unit-cost``

        Returns:
            The validated Operation

        Raises:
            OperationError: with the kind of the first invalid field
        """
        if not isinstance(record, Mapping):
            raise OperationError(ErrorKind.INVALID_OPERATION_TYPE, f"not a record: {record!r}")

        kind = OperationKind.from_token(record.get(OPERATION_FIELD))
        quantity = Quantity.from_value(record.get(QUANTITY_FIELD))
        unit_price = Money.from_decimal(record.get(UNIT_COST_FIELD))
        return cls(kind=kind, unit_price=unit_price, quantity=quantity)

    @property
    def is_buy(self) -> bool:
        return self.kind is OperationKind.BUY

    @property
    def is_sell(self) -> bool:
        return self.kind is OperationKind.SELL

    def total(self) -> Money:
        """Unit price times quantity."""
        return self.unit_price.multiply(self.quantity)
