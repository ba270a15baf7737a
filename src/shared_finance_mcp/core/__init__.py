"""
Core functionality for the shared finance MCP server.
"""

from shared_finance_mcp.core.api_client import FinanceApi, FinanceApiClient
from shared_finance_mcp.core.exceptions import (
    ApiError,
    FinanceError,
    InsufficientBalanceError,
    InvalidInputError,
    NotFoundError,
    SagaFailedError,
)
from shared_finance_mcp.core.saga import Saga, SagaStep

__all__ = [
    "FinanceApi",
    "FinanceApiClient",
    "ApiError",
    "FinanceError",
    "InsufficientBalanceError",
    "InvalidInputError",
    "NotFoundError",
    "SagaFailedError",
    "Saga",
    "SagaStep",
]
