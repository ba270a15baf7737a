"""
Custom exceptions for the shared finance MCP server.
"""

from typing import Any, List, Optional


class FinanceError(Exception):
    """Base exception for shared finance MCP errors."""
    pass


class ApiError(FinanceError):
    """Raised when the REST backend rejects a request or cannot be reached."""

    def __init__(
        self, message: str, status: Optional[int] = None, data: Any = None
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data


class NotFoundError(FinanceError):
    """Raised when a referenced account, budget, goal or bill does not exist."""
    pass


class InvalidInputError(FinanceError, ValueError):
    """Raised when user input fails validation before any request is sent."""
    pass


class InsufficientBalanceError(InvalidInputError):
    """Raised when a withdrawal or transfer exceeds the account balance."""

    def __init__(self, balance: float, amount: float):
        super().__init__(
            f"ยอดเงินในบัญชีไม่เพียงพอ (คงเหลือ ฿{balance:,.2f}, ต้องการ ฿{amount:,.2f})"
        )
        self.balance = balance
        self.amount = amount


class SagaFailedError(FinanceError):
    """
    Raised when a step of a multi-step action fails.

    Steps that completed before the failure have already been compensated
    (in reverse order) by the time this is raised.
    """

    def __init__(
        self,
        step: str,
        cause: BaseException,
        completed: List[str],
        compensated: List[str],
        compensation_errors: Optional[List[BaseException]] = None,
    ):
        super().__init__(f"Step '{step}' failed: {cause}")
        self.step = step
        self.cause = cause
        self.completed = completed
        self.compensated = compensated
        self.compensation_errors = compensation_errors or []
