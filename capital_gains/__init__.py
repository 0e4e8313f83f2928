"""
Capital gains tax calculator for the Brazilian stock market (B3).

Each batch of buy/sell operations is processed independently, tracking the
position, the weighted-average cost and the loss carryforward, and producing
one tax amount per operation.
"""

from capital_gains.batch_processor import (
    BatchProcessor,
    BatchResult,
    Done,
    Failed,
    OperationAudit,
    Running,
    process_operations,
)
from capital_gains.config import TaxSettings, load_settings
from capital_gains.errors import ErrorKind, OperationError
from capital_gains.money import Money
from capital_gains.operation import Operation, OperationKind, Quantity
from capital_gains.portfolio import Portfolio
from capital_gains.tax_calculator import TaxCalculator, TaxResult

__version__ = "1.0.0"

__all__ = [
    "BatchProcessor",
    "BatchResult",
    "Done",
    "ErrorKind",
    "Failed",
    "Money",
    "Operation",
    "OperationAudit",
    "OperationError",
    "OperationKind",
    "Portfolio",
    "Quantity",
    "Running",
    "TaxCalculator",
    "TaxResult",
    "TaxSettings",
    "load_settings",
    "process_operations",
]
