"""
Budget workflows.

The spent amount of each budget is recomputed from the expense
transactions in its period and category. Those lookups run concurrently,
one per budget, and a failed lookup only affects its own budget.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from shared_finance_mcp.core.api_client import FinanceApi
from shared_finance_mcp.core.exceptions import FinanceError, InvalidInputError
from shared_finance_mcp.models.budget import (
    Budget,
    BudgetDeletion,
    BudgetProgress,
)
from shared_finance_mcp.models.category import Category
from shared_finance_mcp.models.transaction import Transaction, TransactionFilter
from shared_finance_mcp.services.transactions import TransactionService
from shared_finance_mcp.services.validation import require_positive_amount, require_text
from shared_finance_mcp.utils.aggregation import UNCATEGORIZED_LABEL, compute_budget_usage
from shared_finance_mcp.utils.api_response import parse_list, parse_one
from shared_finance_mcp.utils.date_utils import (
    current_month_key,
    get_month_range_for_key,
    parse_month_key,
)

logger = logging.getLogger(__name__)

DEFAULT_ALERT_PERCENTAGE = 80.0


def budget_period(budget: Budget) -> Tuple[str, str]:
    """(date_from, date_to) covered by a budget."""
    if budget.period_start and budget.period_end:
        return budget.period_start[:10], budget.period_end[:10]
    return get_month_range_for_key(budget.month or current_month_key())


class BudgetService:
    """Budget CRUD, spend resolution and cascading deletion."""

    def __init__(self, api: FinanceApi, transactions: Optional[TransactionService] = None):
        self.api = api
        self.transactions = transactions or TransactionService(api)

    async def list_budgets(self, user_id: str) -> List[Budget]:
        payload = await self.api.budgets.list(user_id=user_id)
        return parse_list(payload, Budget)

    async def get_budget(self, budget_id: str) -> Budget:
        payload = await self.api.budgets.get(budget_id)
        return parse_one(payload, Budget)

    async def resolve_spent_amount(self, budget: Budget) -> float:
        """Sum of expense transactions in the budget's category and period."""
        date_from, date_to = budget_period(budget)
        transactions = await self.transactions.list_transactions(
            TransactionFilter(
                category_id=budget.category_id,
                date_from=date_from,
                date_to=date_to,
                type="expense",
            )
        )
        return sum(txn.amount for txn in transactions)

    async def _spent_or_zero(self, budget: Budget) -> float:
        # Malformed periods degrade like failed lookups
        try:
            return await self.resolve_spent_amount(budget)
        except (FinanceError, ValueError) as e:
            logger.warning("Could not resolve spending for budget %s: %s", budget.id, e)
            return 0.0

    async def _category_name(self, budget: Budget) -> str:
        if not budget.category_id:
            return UNCATEGORIZED_LABEL
        try:
            payload = await self.api.categories.get(budget.category_id)
            return parse_one(payload, Category).name
        except (FinanceError, ValueError) as e:
            logger.warning("Could not load category %s: %s", budget.category_id, e)
            return UNCATEGORIZED_LABEL

    async def budget_progress(self, user_id: str) -> List[BudgetProgress]:
        """
        All budgets of a user with their spending resolved.

        Spend and category lookups are issued concurrently for every budget.
        """
        budgets = await self.list_budgets(user_id)
        spent, names = await asyncio.gather(
            asyncio.gather(*(self._spent_or_zero(b) for b in budgets)),
            asyncio.gather(*(self._category_name(b) for b in budgets)),
        )

        return [
            BudgetProgress(
                budget=budget,
                category=name,
                **compute_budget_usage(budget.budget_amount, amount).model_dump(),
            )
            for budget, amount, name in zip(budgets, spent, names)
        ]

    async def create_budget(
        self,
        user_id: str,
        category_id: str,
        amount: float,
        month: Optional[str] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
        alert_percentage: float = DEFAULT_ALERT_PERCENTAGE,
    ) -> Budget:
        """
        Create a monthly budget.

        Args:
            month: Budget month as YYYY-MM (default: current month)
        """
        category_id = require_text(category_id, "category")
        amount = require_positive_amount(amount)
        body = {
            "userId": user_id,
            "categoryId": category_id,
            "name": name or "",
            "budgetAmount": amount,
            "periodType": "monthly",
            "alertPercentage": alert_percentage,
            "description": description,
            "isActive": True,
            **_period_fields(month or current_month_key()),
        }
        payload = await self.api.budgets.create(body)
        return parse_one(payload, Budget)

    async def update_budget(
        self,
        budget_id: str,
        amount: Optional[float] = None,
        category_id: Optional[str] = None,
        month: Optional[str] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Budget:
        body: Dict[str, Any] = {}
        if amount is not None:
            body["budgetAmount"] = require_positive_amount(amount)
        if category_id is not None:
            body["categoryId"] = require_text(category_id, "category")
        if month is not None:
            body.update(_period_fields(month))
        if name is not None:
            body["name"] = name
        if description is not None:
            body["description"] = description
        if not body:
            raise InvalidInputError("ไม่มีข้อมูลที่ต้องแก้ไข")

        payload = await self.api.budgets.update(budget_id, body)
        return parse_one(payload, Budget)

    async def delete_budget(self, budget: Budget) -> BudgetDeletion:
        """
        Delete a budget and every transaction tagged with it.

        Transactions are deleted one at a time before the budget itself; the
        backend refunds each one to its account. A failure stops the cascade
        and propagates, leaving already-deleted transactions deleted.
        """
        tagged = await self.transactions.list_transactions(
            TransactionFilter(budget_id=budget.id)
        )
        tagged = [txn for txn in tagged if txn.budget_id == budget.id]

        for txn in tagged:
            await self.transactions.delete_transaction(txn.id)

        await self.api.budgets.delete(budget.id)

        refunded = sum(txn.amount for txn in tagged)
        if tagged:
            message = (
                f"ลบงบประมาณเรียบร้อยแล้ว และคืนเงิน {len(tagged)} รายการ "
                f"รวม ฿{refunded:,.2f}"
            )
        else:
            message = "ลบงบประมาณเรียบร้อยแล้ว"

        logger.info("Deleted budget %s with %d transactions", budget.id, len(tagged))
        return BudgetDeletion(
            budget_id=budget.id,
            refunded_count=len(tagged),
            refunded_amount=refunded,
            message=message,
        )

    async def record_expense(
        self,
        budget: Budget,
        user_id: str,
        account_id: str,
        amount: float,
        description: str,
        transaction_date: Optional[str] = None,
    ) -> Transaction:
        """Record an expense against a budget's category."""
        return await self.transactions.create_transaction(
            user_id=user_id,
            account_id=account_id,
            type="expense",
            amount=amount,
            description=description,
            transaction_date=transaction_date,
            category_id=budget.category_id,
            budget_id=budget.id,
        )


def _period_fields(month: str) -> Dict[str, Any]:
    try:
        year, month_number = parse_month_key(month)
    except ValueError as e:
        raise InvalidInputError(str(e)) from e
    period_start, period_end = get_month_range_for_key(month)
    return {
        "periodStart": period_start,
        "periodEnd": period_end,
        "budgetMonth": month_number,
        "budgetYear": year,
    }
