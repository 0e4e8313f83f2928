"""
Capital gains tax on stock sales for Brazilian individual taxpayers.

Rules, evaluated in order for every sale:

1. Loss (or break-even): no tax, the loss is added to the carryforward pool.
2. Profit on a sale whose total is at or below the exemption limit
   (R$ 20,000.00): no tax. Exempt profits do not consume accumulated losses
   ("lucros isentos não consomem prejuízo").
3. Profit above the limit: accumulated losses are deducted first, the flat
   rate (20%) applies to what is left.

All amounts are integer cents; the tax is truncated to the cent.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from capital_gains.config import TaxSettings
from capital_gains.money import Money
from capital_gains.operation import Operation
from capital_gains.portfolio import Portfolio

# Configure logging
logger = logging.getLogger(__name__)

RULE_LOSS = "loss"
RULE_EXEMPT = "exempt"
RULE_TAXED = "taxed"


@dataclass(frozen=True)
class TaxResult:
    """
    Outcome of a sale.

    Attributes:
        tax: Tax due on the sale
        remaining_loss: Loss carryforward after the sale
        profit_or_loss: Signed result of the sale against the average cost
        rule: Which rule applied (loss, exempt or taxed)
    """
    tax: Money
    remaining_loss: Money
    profit_or_loss: Money = Money(0)
    rule: str = RULE_LOSS


class TaxCalculator:
    """Applies threshold and loss-deduction rules to a single sale."""

    def __init__(self, settings: Optional[TaxSettings] = None):
        self.settings = settings if settings is not None else TaxSettings()

    @property
    def exemption_threshold(self) -> Money:
        return self.settings.exemption_threshold

    @property
    def tax_rate_percent(self) -> int:
        return self.settings.tax_rate_percent

    def profit_or_loss(self, operation: Operation, portfolio: Portfolio) -> Money:
        """(unit price - average cost) * quantity; negative for a loss."""
        sale_value = operation.unit_price.multiply(operation.quantity)
        cost_value = portfolio.average_cost.multiply(operation.quantity)
        return sale_value.subtract(cost_value)

    def calculate(self,
                  operation: Operation,
                  portfolio: Portfolio,
                  accumulated_loss: Money) -> TaxResult:
        """
        Compute the tax due on a sale.

        Args:
            operation: The sell operation
            portfolio: Portfolio as it stood before this sale
            accumulated_loss: Loss carryforward before this sale

        Returns:
            TaxResult with the tax and the updated loss carryforward
        """
        operation_total = operation.total()
        result = self.profit_or_loss(operation, portfolio)

        if not result.is_positive():
            remaining_loss = accumulated_loss.add(abs(result))
            logger.debug(f"Sale at a loss of {abs(result)}: "
                         f"carryforward {accumulated_loss} -> {remaining_loss}")
            return TaxResult(tax=Money.zero(), remaining_loss=remaining_loss,
                             profit_or_loss=result, rule=RULE_LOSS)

        if operation_total.amount <= self.exemption_threshold.amount:
            logger.debug(f"Swing trade exemption applied: sale total {operation_total} "
                         f"<= {self.exemption_threshold}")
            return TaxResult(tax=Money.zero(), remaining_loss=accumulated_loss,
                             profit_or_loss=result, rule=RULE_EXEMPT)

        profit = result.amount
        loss = accumulated_loss.amount
        net_profit = max(profit - loss, 0)
        remaining_loss = max(loss - profit, 0)
        tax = net_profit * self.tax_rate_percent // 100

        logger.debug(f"Taxable sale: profit {result}, losses applied "
                     f"{Money(min(profit, loss))}, tax {Money(tax)}")
        return TaxResult(tax=Money(tax), remaining_loss=Money(remaining_loss),
                         profit_or_loss=result, rule=RULE_TAXED)
