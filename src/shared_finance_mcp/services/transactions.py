"""
Transaction and category access.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from shared_finance_mcp.core.api_client import FinanceApi
from shared_finance_mcp.models.category import Category
from shared_finance_mcp.models.transaction import Transaction, TransactionFilter, TransactionType
from shared_finance_mcp.services.validation import require_positive_amount, require_text
from shared_finance_mcp.utils.api_response import parse_list, parse_one


class TransactionService:
    """Lists, records and deletes ledger transactions."""

    def __init__(self, api: FinanceApi):
        self.api = api

    async def list_transactions(
        self, filters: Optional[TransactionFilter] = None
    ) -> List[Transaction]:
        """
        List transactions matching the filters.

        Returns:
            Transactions sorted by date descending
        """
        params = filters.model_dump(exclude_none=True) if filters else {}
        payload = await self.api.transactions.list(**params)
        transactions = parse_list(payload, Transaction)
        transactions.sort(key=lambda txn: txn.transaction_date, reverse=True)
        return transactions

    async def create_transaction(
        self,
        user_id: str,
        account_id: str,
        type: TransactionType,
        amount: float,
        description: str,
        transaction_date: Optional[str] = None,
        category_id: Optional[str] = None,
        budget_id: Optional[str] = None,
        shared_goal_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Transaction:
        """Record a transaction; the backend adjusts the account balance."""
        amount = require_positive_amount(amount)
        description = require_text(description, "description")
        require_text(account_id, "account")

        body: Dict[str, Any] = {
            "userId": user_id,
            "accountId": account_id,
            "type": type,
            "amount": amount,
            "description": description,
            "transactionDate": transaction_date or date.today().isoformat(),
        }
        optional = {
            "categoryId": category_id,
            "budgetId": budget_id,
            "sharedGoalId": shared_goal_id,
            "notes": notes,
        }
        body.update({key: value for key, value in optional.items() if value is not None})

        payload = await self.api.transactions.create(body)
        return parse_one(payload, Transaction)

    async def delete_transaction(self, transaction_id: str) -> None:
        """Delete a transaction; the backend refunds its amount to the account."""
        await self.api.transactions.delete(transaction_id)

    async def list_categories(self, user_id: str) -> List[Category]:
        payload = await self.api.categories.get_by_user(user_id)
        return parse_list(payload, Category)

    async def category_names(self, user_id: str) -> Dict[str, str]:
        """Lookup of category id to category name."""
        return {cat.id: cat.name for cat in await self.list_categories(user_id)}
