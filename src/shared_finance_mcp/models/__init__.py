"""
Pydantic models for shared finance data structures.
"""

from shared_finance_mcp.models.account import (
    Account,
    AccountMember,
    AccountTransaction,
    AccountTransfer,
    BalanceChange,
)
from shared_finance_mcp.models.bill import Bill, BillMember, BillPayment
from shared_finance_mcp.models.budget import (
    Budget,
    BudgetDeletion,
    BudgetProgress,
    BudgetTotals,
    BudgetUsage,
)
from shared_finance_mcp.models.category import Category
from shared_finance_mcp.models.debt import Debt, DebtOverview, DebtPayment, DebtPaymentResult
from shared_finance_mcp.models.goal import Goal, GoalContributionResult
from shared_finance_mcp.models.notification import Notification
from shared_finance_mcp.models.shared_goal import (
    GoalContribution,
    GoalDeletion,
    GoalDeposit,
    SharedGoal,
    SharedGoalMember,
)
from shared_finance_mcp.models.transaction import Transaction, TransactionFilter

__all__ = [
    "Account",
    "AccountMember",
    "AccountTransaction",
    "AccountTransfer",
    "BalanceChange",
    "Bill",
    "BillMember",
    "BillPayment",
    "Budget",
    "BudgetDeletion",
    "BudgetProgress",
    "BudgetTotals",
    "BudgetUsage",
    "Category",
    "Debt",
    "DebtOverview",
    "DebtPayment",
    "DebtPaymentResult",
    "Goal",
    "GoalContribution",
    "GoalContributionResult",
    "GoalDeletion",
    "GoalDeposit",
    "Notification",
    "SharedGoal",
    "SharedGoalMember",
    "Transaction",
    "TransactionFilter",
]
