"""
Workflows over the REST backend, one service per resource family.
"""

from shared_finance_mcp.services.accounts import AccountService
from shared_finance_mcp.services.analytics import AnalyticsService
from shared_finance_mcp.services.bills import BillBook
from shared_finance_mcp.services.budgets import BudgetService
from shared_finance_mcp.services.debts import DebtService
from shared_finance_mcp.services.goals import GoalService
from shared_finance_mcp.services.notifications import NotificationService
from shared_finance_mcp.services.shared_goals import SharedGoalService
from shared_finance_mcp.services.transactions import TransactionService

__all__ = [
    "AccountService",
    "AnalyticsService",
    "BillBook",
    "BudgetService",
    "DebtService",
    "GoalService",
    "NotificationService",
    "SharedGoalService",
    "TransactionService",
]
