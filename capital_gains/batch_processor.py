"""
Batch processing of stock operations.

A batch is folded operation by operation over an immutable accumulator
(portfolio, accumulated loss, taxes so far). The fold has three states:

- ``Running``: still consuming records
- ``Done``: every record processed, one tax per operation in input order
- ``Failed``: the first invalid record or oversized sale aborted the batch

A failed batch produces no tax entries at all. Batches never share state.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union
import logging

from capital_gains.errors import ErrorKind, OperationError
from capital_gains.money import Money
from capital_gains.operation import Operation
from capital_gains.portfolio import Portfolio
from capital_gains.tax_calculator import TaxCalculator, TaxResult

# Configure logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationAudit:
    """Per-operation record for the audit trail."""
    operation: str
    quantity: int
    unit_cost: Money
    position: int
    average_cost: Money
    profit_or_loss: Optional[Money]
    rule: Optional[str]
    tax: Money
    remaining_loss: Money

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'operation': self.operation,
            'quantity': self.quantity,
            'unit_cost': self.unit_cost.to_decimal_string(),
            'position': self.position,
            'average_cost': self.average_cost.to_decimal_string(),
            'profit_or_loss': (self.profit_or_loss.to_decimal_string()
                               if self.profit_or_loss is not None else None),
            'rule': self.rule,
            'tax': self.tax.to_decimal_string(),
            'remaining_loss': self.remaining_loss.to_decimal_string()
        }


@dataclass(frozen=True)
class Running:
    """Accumulator threaded through the fold."""
    portfolio: Portfolio = field(default_factory=Portfolio.new)
    loss: Money = field(default_factory=Money.zero)
    taxes: Tuple[Money, ...] = ()
    audit: Tuple[OperationAudit, ...] = ()


@dataclass(frozen=True)
class Done:
    """Successful batch: one tax per input operation, in input order."""
    taxes: Tuple[Money, ...]
    audit: Tuple[OperationAudit, ...] = ()

    @property
    def ok(self) -> bool:
        return True

    def to_output(self) -> List[Dict[str, str]]:
        return [{"tax": tax.to_decimal_string()} for tax in self.taxes]


@dataclass(frozen=True)
class Failed:
    """Aborted batch."""
    reason: ErrorKind
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False

    def to_output(self) -> Dict[str, str]:
        return {"error": self.reason.value}


BatchResult = Union[Done, Failed]
BatchState = Union[Running, Done, Failed]


class BatchProcessor:
    """
    Folds raw operation records into tax results.

    The processor itself holds no per-batch state; every call to ``process``
    starts from a fresh ``Running`` accumulator.
    """

    def __init__(self, calculator: Optional[TaxCalculator] = None):
        self.calculator = calculator if calculator is not None else TaxCalculator()

    def initial_state(self) -> Running:
        return Running()

    def step(self, state: Running, record: Mapping[str, Any]) -> Union[Running, Failed]:
        """
        Apply one raw record to the accumulator.

        Args:
            state: Accumulator before the record
            record: Raw operation mapping

        Returns:
            The next Running state, or Failed if the record is invalid or
            sells more shares than held
        """
        try:
            operation = Operation.from_record(record)
            portfolio = state.portfolio.apply(operation)
        except OperationError as e:
            return Failed(reason=e.kind, detail=e.detail)

        if operation.is_buy:
            return self._after_buy(state, operation, portfolio)
        return self._after_sell(state, operation, portfolio)

    def _after_buy(self, state: Running, operation: Operation, portfolio: Portfolio) -> Running:
        tax = Money.zero()
        entry = self._audit_entry(operation, portfolio, None, tax, state.loss)
        return Running(portfolio=portfolio, loss=state.loss,
                       taxes=state.taxes + (tax,), audit=state.audit + (entry,))

    def _after_sell(self, state: Running, operation: Operation, portfolio: Portfolio) -> Running:
        # Profit is measured against the average established before this sale
        result = self.calculator.calculate(operation, state.portfolio, state.loss)
        entry = self._audit_entry(operation, portfolio, result, result.tax, result.remaining_loss)
        return Running(portfolio=portfolio, loss=result.remaining_loss,
                       taxes=state.taxes + (result.tax,), audit=state.audit + (entry,))

    @staticmethod
    def _audit_entry(operation: Operation,
                     portfolio: Portfolio,
                     result: Optional[TaxResult],
                     tax: Money,
                     remaining_loss: Money) -> OperationAudit:
        return OperationAudit(
            operation=operation.kind.value,
            quantity=int(operation.quantity),
            unit_cost=operation.unit_price,
            position=portfolio.position,
            average_cost=portfolio.average_cost,
            profit_or_loss=result.profit_or_loss if result is not None else None,
            rule=result.rule if result is not None else None,
            tax=tax,
            remaining_loss=remaining_loss
        )

    def process(self, records: Iterable[Mapping[str, Any]]) -> BatchResult:
        """
        Process one batch of raw records.

        Args:
            records: Ordered raw operation records

        Returns:
            Done with one tax per record, or Failed with the first error
        """
        state: BatchState = self.initial_state()
        for index, record in enumerate(records):
            state = self.step(state, record)
            if isinstance(state, Failed):
                logger.warning(f"Batch aborted at operation {index + 1}: "
                               f"{state.reason.value}"
                               + (f" ({state.detail})" if state.detail else ""))
                return state

        total_tax = sum((tax.amount for tax in state.taxes), 0)
        logger.info(f"Batch processed: {len(state.taxes)} operations, "
                    f"total tax {Money(total_tax)}, "
                    f"remaining loss {state.loss}")
        return Done(taxes=state.taxes, audit=state.audit)

    def process_batches(self, batches: Iterable[Iterable[Mapping[str, Any]]]) -> Iterator[BatchResult]:
        """Process independent batches, yielding one result per batch."""
        for records in batches:
            yield self.process(records)


def process_operations(records: Iterable[Mapping[str, Any]],
                       calculator: Optional[TaxCalculator] = None) -> BatchResult:
    """Convenience wrapper processing a single batch with default settings."""
    return BatchProcessor(calculator).process(records)
