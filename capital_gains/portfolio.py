"""
Portfolio position and weighted-average cost tracking.

A single-asset swing inventory: one aggregated record holding the share count
and the weighted-average acquisition price. Buys blend the average, sells only
reduce the position. Every transition returns a new Portfolio; instances are
never modified in place.
"""

from dataclasses import dataclass, field
import logging

from capital_gains.errors import ErrorKind, OperationError
from capital_gains.money import Money
from capital_gains.operation import Operation

# Configure logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Portfolio:
    """
    Position snapshot for one batch.

    Attributes:
        position: Number of shares held (>= 0)
        average_cost: Weighted-average unit cost; zero while position is zero
    """
    position: int = 0
    average_cost: Money = field(default_factory=Money.zero)

    @classmethod
    def new(cls) -> "Portfolio":
        return cls(position=0, average_cost=Money.zero())

    def apply_buy(self, operation: Operation) -> "Portfolio":
        """
        Add shares and recompute the weighted-average cost.

        From an empty position the average is replaced by the purchase price.
        Otherwise::

            floor((avg * position + price * quantity) / (position + quantity))

        computed in cents. Buying never fails.
        """
        new_position = self.position + operation.quantity

        if self.position == 0:
            new_average = operation.unit_price
        else:
            current_value = self.average_cost.multiply(self.position)
            additional_value = operation.total()
            new_average = Money((current_value.amount + additional_value.amount) // new_position)

        logger.debug(f"Buy {operation.quantity} @ {operation.unit_price}: "
                     f"position {self.position} -> {new_position}, "
                     f"average {self.average_cost} -> {new_average}")
        return Portfolio(position=new_position, average_cost=new_average)

    def apply_sell(self, operation: Operation) -> "Portfolio":
        """
        Remove shares; the average cost is kept as is.

        Raises:
            OperationError: INSUFFICIENT_POSITION when selling more shares
                than held
        """
        if operation.quantity > self.position:
            raise OperationError(
                ErrorKind.INSUFFICIENT_POSITION,
                f"cannot sell {operation.quantity} shares with position {self.position}"
            )

        new_position = self.position - operation.quantity
        logger.debug(f"Sell {operation.quantity} @ {operation.unit_price}: "
                     f"position {self.position} -> {new_position}")
        return Portfolio(position=new_position, average_cost=self.average_cost)

    def apply(self, operation: Operation) -> "Portfolio":
        if operation.is_buy:
            return self.apply_buy(operation)
        return self.apply_sell(operation)
