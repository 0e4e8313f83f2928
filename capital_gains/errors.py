"""
Error kinds for operation validation and portfolio application.

Every error in this domain is structural: it is caused by the content of an
input record and is never retried. Validating constructors raise
``OperationError``; the batch processor turns it into a ``Failed`` value.
"""

from enum import Enum


class ErrorKind(Enum):
    """Reasons a batch can be aborted. Values are the rendered error messages."""
    INVALID_OPERATION_TYPE = "invalid_operation_type"
    INVALID_QUANTITY = "invalid_quantity"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_POSITION = "insufficient_position"


class OperationError(ValueError):
    """Raised when a record or a portfolio transition is invalid."""

    def __init__(self, kind: ErrorKind, detail: str = ""):
        self.kind = kind
        self.detail = detail
        message = kind.value if not detail else f"{kind.value}: {detail}"
        super().__init__(message)
