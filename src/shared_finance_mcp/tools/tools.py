"""
MCP tool definitions for the shared finance backend.

Exposes accounts, transactions, budgets, goals, debts, notifications and
bills through the Model Context Protocol.
"""

from typing import Any, Dict, List, Optional

from shared_finance_mcp.core.api_client import FinanceApi
from shared_finance_mcp.core.exceptions import InvalidInputError
from shared_finance_mcp.models.transaction import TransactionFilter
from shared_finance_mcp.services.accounts import AccountService
from shared_finance_mcp.services.analytics import AnalyticsService
from shared_finance_mcp.services.bills import BillBook
from shared_finance_mcp.services.budgets import BudgetService
from shared_finance_mcp.services.debts import DebtService
from shared_finance_mcp.services.goals import GoalService
from shared_finance_mcp.services.notifications import NotificationService
from shared_finance_mcp.services.shared_goals import SharedGoalService
from shared_finance_mcp.services.transactions import TransactionService
from shared_finance_mcp.utils.aggregation import summarize_budgets
from shared_finance_mcp.utils.date_utils import parse_period
from shared_finance_mcp.utils.pagination import DEFAULT_PAGE_SIZE, Paginator

_PERIOD_DESCRIPTION = (
    "Period shorthand: this_month, last_month, last_7_days, last_30_days, "
    "last_90_days, ytd, this_year, last_year"
)


class FinanceTools:
    """Collection of MCP tools acting for one signed-in user."""

    def __init__(self, api: FinanceApi, bills: BillBook, user_id: Optional[str] = None):
        """
        Initialize tools over the backend API.

        Args:
            api: FinanceApi bound to an authenticated client
            bills: In-memory bill book
            user_id: User the tools act for
        """
        self.user_id = user_id
        self.bills = bills
        self.transactions = TransactionService(api)
        self.accounts = AccountService(api)
        self.budgets = BudgetService(api, self.transactions)
        self.goals = GoalService(api)
        self.shared_goals = SharedGoalService(api)
        self.debts = DebtService(api)
        self.notifications = NotificationService(api)
        self.analytics = AnalyticsService(self.transactions)

    def _user(self) -> str:
        if not self.user_id:
            raise InvalidInputError("No user configured; set FINANCE_USER_ID or --user-id")
        return self.user_id

    async def list_accounts(self) -> Dict[str, Any]:
        """
        Get all accounts of the user with balances.

        Returns:
            Dict with account count, total balance and the accounts
        """
        accounts = await self.accounts.list_accounts(self._user())
        return {
            "count": len(accounts),
            "total_balance": sum(acc.current_balance for acc in accounts),
            "accounts": [acc.model_dump(mode="json") for acc in accounts],
        }

    async def deposit(
        self, account_id: str, amount: float, note: Optional[str] = None
    ) -> Dict[str, Any]:
        account = await self.accounts.get_account(account_id)
        change = await self.accounts.deposit(account, self._user(), amount, note)
        return {
            "message": f"ฝากเงิน ฿{amount:,.2f} เรียบร้อยแล้ว",
            **change.model_dump(mode="json"),
        }

    async def withdraw(
        self, account_id: str, amount: float, note: Optional[str] = None
    ) -> Dict[str, Any]:
        account = await self.accounts.get_account(account_id)
        change = await self.accounts.withdraw(account, self._user(), amount, note)
        return {
            "message": f"ถอนเงิน ฿{amount:,.2f} เรียบร้อยแล้ว",
            **change.model_dump(mode="json"),
        }

    async def transfer(
        self,
        from_account_id: str,
        to_account_id: str,
        amount: float,
        note: Optional[str] = None,
    ) -> Dict[str, Any]:
        from_account = await self.accounts.get_account(from_account_id)
        transfer = await self.accounts.transfer(from_account, to_account_id, amount, note)
        refreshed = await self.accounts.get_account(from_account_id)
        return {
            "transfer": transfer.model_dump(mode="json"),
            "from_account": refreshed.model_dump(mode="json"),
        }

    async def list_transactions(
        self,
        period: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
        type: Optional[str] = None,
        budget_id: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 100,
    ) -> Dict[str, Any]:
        """
        Get transactions with optional filters.

        Args:
            period: Period shorthand (this_month, last_30_days, ytd, etc.);
                    overrides start_date/end_date
            limit: Maximum number of transactions to return (default: 100)

        Returns:
            Dict with transaction count and list of transactions, newest first
        """
        if period:
            start_date, end_date = parse_period(period)

        filters = TransactionFilter(
            user_id=self._user(),
            account_id=account_id,
            category_id=category_id,
            type=type,
            budget_id=budget_id,
            date_from=start_date,
            date_to=end_date,
            search=search,
        )
        transactions = (await self.transactions.list_transactions(filters))[:limit]

        return {
            "count": len(transactions),
            "transactions": [txn.model_dump(mode="json") for txn in transactions],
        }

    async def get_analytics(self, period: Optional[str] = None) -> Dict[str, Any]:
        summary = await self.analytics.get_analytics(self._user(), period)
        return summary.model_dump(mode="json")

    async def list_budgets(self) -> Dict[str, Any]:
        """
        Get budgets with spending recomputed from transactions.

        Returns:
            Dict with per-budget progress and overall totals
        """
        progress = await self.budgets.budget_progress(self._user())
        return {
            "totals": summarize_budgets(progress).model_dump(mode="json"),
            "budgets": [p.model_dump(mode="json") for p in progress],
        }

    async def create_budget(
        self,
        category_id: str,
        amount: float,
        month: Optional[str] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Dict[str, Any]:
        budget = await self.budgets.create_budget(
            self._user(), category_id, amount, month, name, description
        )
        return budget.model_dump(mode="json")

    async def delete_budget(self, budget_id: str) -> Dict[str, Any]:
        budget = await self.budgets.get_budget(budget_id)
        deletion = await self.budgets.delete_budget(budget)
        return deletion.model_dump(mode="json")

    async def list_goals(self, status: Optional[str] = None) -> Dict[str, Any]:
        if status not in (None, "active", "completed", "cancelled"):
            raise InvalidInputError(f"Unknown goal status: {status}")
        goals = await self.goals.list_goals(self._user(), status)  # type: ignore[arg-type]
        return {
            "count": len(goals),
            "total_saved": sum(goal.current_amount for goal in goals),
            "goals": [goal.model_dump(mode="json") for goal in goals],
        }

    async def add_goal_contribution(
        self, goal_id: str, amount: float, note: Optional[str] = None
    ) -> Dict[str, Any]:
        goal = await self.goals.get_goal(goal_id)
        result = await self.goals.add_contribution(goal, self._user(), amount, notes=note)
        return result.model_dump(mode="json")

    async def list_debts(self) -> Dict[str, Any]:
        """
        Get debts the user is a party to.

        Returns:
            Dict with debts lent and owed and the outstanding totals
        """
        overview = await self.debts.overview(self._user())
        return overview.model_dump(mode="json")

    async def record_debt_payment(
        self,
        debt_id: str,
        amount: float,
        payment_date: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Dict[str, Any]:
        debt = await self.debts.get_debt(debt_id)
        result = await self.debts.record_payment(debt, amount, payment_date, note)
        return result.model_dump(mode="json")

    async def list_notifications(self, unread_only: bool = False) -> Dict[str, Any]:
        notifications = await self.notifications.list_notifications(self._user(), unread_only)
        return {
            "count": len(notifications),
            "unread": sum(1 for n in notifications if not n.is_read),
            "notifications": [n.model_dump(mode="json") for n in notifications],
        }

    async def mark_notifications_read(
        self, notification_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Mark one notification as read, or all of them when no ID is given.

        Returns:
            Dict with how many notifications were marked
        """
        if notification_id:
            notification = await self.notifications.mark_as_read(notification_id)
            return {"marked": 1, "notification": notification.model_dump(mode="json")}
        marked = await self.notifications.mark_all_as_read(self._user())
        return {"marked": marked}

    async def list_shared_goals(self) -> Dict[str, Any]:
        goals = await self.shared_goals.list_goals(self._user())
        return {
            "count": len(goals),
            "goals": [goal.model_dump(mode="json") for goal in goals],
        }

    async def deposit_to_shared_goal(
        self, goal_id: str, amount: float, note: Optional[str] = None
    ) -> Dict[str, Any]:
        goal = await self.shared_goals.get_goal(goal_id)
        deposit = await self.shared_goals.deposit(goal, self._user(), amount, note=note)
        return deposit.model_dump(mode="json")

    async def delete_shared_goal(self, goal_id: str) -> Dict[str, Any]:
        goal = await self.shared_goals.get_goal(goal_id)
        deletion = await self.shared_goals.delete_goal(goal)
        return deletion.model_dump(mode="json")

    async def list_bills(self, status: Optional[str] = None) -> Dict[str, Any]:
        if status not in (None, "active", "settled"):
            raise InvalidInputError(f"Unknown bill status: {status}")
        bills = self.bills.list_bills(status)  # type: ignore[arg-type]
        return {
            "count": len(bills),
            "bills": [bill.model_dump(mode="json") for bill in bills],
        }

    async def mark_bill_paid(self, bill_id: str, member_name: str) -> Dict[str, Any]:
        payment = await self.bills.mark_paid(bill_id, member_name)
        bill = self.bills.get_bill(bill_id)
        return {
            "payment": payment.model_dump(mode="json"),
            "bill": bill.model_dump(mode="json"),
            "settled": bill.status == "settled",
        }

    async def paginate_transactions(
        self,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        type: Optional[str] = None,
        category_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Get one page of the user's transactions.

        Filters are applied before paging; a page beyond the last one is
        clamped to the last page.

        Returns:
            Dict with the page, its items and the pager buttons to show
        """
        transactions = await self.transactions.list_transactions(
            TransactionFilter(user_id=self._user())
        )
        paginator = Paginator(transactions, page_size, text_keys=("description",))
        paginator.set_filter("type", type)
        paginator.set_filter("category_id", category_id)
        paginator.set_filter("description", search)

        result = paginator.go_to(page)
        return {
            **result.model_dump(mode="json"),
            "has_previous": result.has_previous,
            "has_next": result.has_next,
            "buttons": paginator.buttons(),
        }


def _string(description: str, **extra: Any) -> Dict[str, Any]:
    return {"type": "string", "description": description, **extra}


def _number(description: str, **extra: Any) -> Dict[str, Any]:
    return {"type": "number", "description": description, **extra}


def _object(required: Optional[List[str]] = None, **properties: Any) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def create_tool_schemas() -> List[Dict[str, Any]]:
    """
    Create MCP tool schemas for all tools.

    Returns:
        List of tool schema definitions
    """
    amount = _number("Amount in baht (must be greater than 0)", exclusiveMinimum=0)
    note = _string("Optional note")

    return [
        {
            "name": "list_accounts",
            "description": "Get all accounts of the user with their balances.",
            "inputSchema": _object(),
        },
        {
            "name": "deposit",
            "description": (
                "Deposit money into an account. Records an account transaction, "
                "updates the balance and sends a notification."
            ),
            "inputSchema": _object(
                ["account_id", "amount"],
                account_id=_string("Account ID"),
                amount=amount,
                note=note,
            ),
        },
        {
            "name": "withdraw",
            "description": (
                "Withdraw money from an account. Rejected when the amount exceeds "
                "the current balance."
            ),
            "inputSchema": _object(
                ["account_id", "amount"],
                account_id=_string("Account ID"),
                amount=amount,
                note=note,
            ),
        },
        {
            "name": "transfer",
            "description": "Transfer money between two different accounts.",
            "inputSchema": _object(
                ["from_account_id", "to_account_id", "amount"],
                from_account_id=_string("Source account ID"),
                to_account_id=_string("Destination account ID"),
                amount=amount,
                note=note,
            ),
        },
        {
            "name": "list_transactions",
            "description": (
                "Get transactions with optional filters. Use 'period' for common "
                "date ranges (this_month, last_30_days, ytd, etc.)."
            ),
            "inputSchema": _object(
                period=_string(_PERIOD_DESCRIPTION),
                start_date=_string("Start date (YYYY-MM-DD)", pattern=r"^\d{4}-\d{2}-\d{2}$"),
                end_date=_string("End date (YYYY-MM-DD)", pattern=r"^\d{4}-\d{2}-\d{2}$"),
                account_id=_string("Filter by account ID"),
                category_id=_string("Filter by category ID"),
                type=_string("Transaction type", enum=["income", "expense", "transfer"]),
                budget_id=_string("Filter by budget ID"),
                search=_string("Search in descriptions"),
                limit={
                    "type": "integer",
                    "description": "Maximum number of results (default: 100)",
                    "default": 100,
                },
            ),
        },
        {
            "name": "get_analytics",
            "description": (
                "Monthly income/expense/savings for the last six months and "
                "spending by category (top five plus others). Returns demo data "
                "flagged is_demo when the user has no transactions."
            ),
            "inputSchema": _object(period=_string(_PERIOD_DESCRIPTION)),
        },
        {
            "name": "list_budgets",
            "description": (
                "Get budgets with spending recomputed from transactions, usage "
                "percentage, over-budget and near-limit flags, and totals."
            ),
            "inputSchema": _object(),
        },
        {
            "name": "create_budget",
            "description": "Create a monthly budget for a category.",
            "inputSchema": _object(
                ["category_id", "amount"],
                category_id=_string("Category ID"),
                amount=amount,
                month=_string("Budget month (YYYY-MM, default: current month)",
                              pattern=r"^\d{4}-\d{2}$"),
                name=_string("Budget name"),
                description=_string("Budget description"),
            ),
        },
        {
            "name": "delete_budget",
            "description": (
                "Delete a budget together with every transaction recorded against "
                "it. The backend refunds those transactions to their accounts."
            ),
            "inputSchema": _object(["budget_id"], budget_id=_string("Budget ID")),
        },
        {
            "name": "list_goals",
            "description": "Get the user's personal savings goals with progress.",
            "inputSchema": _object(
                status=_string("Goal status",
                               enum=["active", "completed", "cancelled"]),
            ),
        },
        {
            "name": "add_goal_contribution",
            "description": (
                "Save money towards a personal goal. Only active goals accept "
                "contributions."
            ),
            "inputSchema": _object(
                ["goal_id", "amount"],
                goal_id=_string("Goal ID"),
                amount=amount,
                note=note,
            ),
        },
        {
            "name": "list_debts",
            "description": (
                "Get the debts the user has lent and owes, with outstanding totals."
            ),
            "inputSchema": _object(),
        },
        {
            "name": "record_debt_payment",
            "description": (
                "Record a repayment against a pending debt. The debt settles once "
                "it is fully paid; payments above the remaining amount are rejected."
            ),
            "inputSchema": _object(
                ["debt_id", "amount"],
                debt_id=_string("Debt ID"),
                amount=amount,
                payment_date=_string("Payment date (YYYY-MM-DD, default: today)",
                                     pattern=r"^\d{4}-\d{2}-\d{2}$"),
                note=note,
            ),
        },
        {
            "name": "list_notifications",
            "description": "Get the user's notifications, newest first.",
            "inputSchema": _object(
                unread_only={"type": "boolean",
                             "description": "Only unread notifications",
                             "default": False},
            ),
        },
        {
            "name": "mark_notifications_read",
            "description": (
                "Mark a notification as read. Marks every notification as read "
                "when no ID is given."
            ),
            "inputSchema": _object(notification_id=_string("Notification ID")),
        },
        {
            "name": "list_shared_goals",
            "description": "Get the shared savings goals created by the user.",
            "inputSchema": _object(),
        },
        {
            "name": "deposit_to_shared_goal",
            "description": (
                "Deposit into a shared goal. Withdraws from the goal's linked "
                "account when it has one and completes the goal when the target "
                "is reached."
            ),
            "inputSchema": _object(
                ["goal_id", "amount"],
                goal_id=_string("Shared goal ID"),
                amount=amount,
                note=note,
            ),
        },
        {
            "name": "delete_shared_goal",
            "description": (
                "Delete a shared goal, refunding its saved amount to the linked "
                "account if any."
            ),
            "inputSchema": _object(["goal_id"], goal_id=_string("Shared goal ID")),
        },
        {
            "name": "list_bills",
            "description": "Get split bills, optionally filtered by status.",
            "inputSchema": _object(
                status=_string("Bill status", enum=["active", "settled"]),
            ),
        },
        {
            "name": "mark_bill_paid",
            "description": (
                "Mark a member's share of a bill as paid. The bill settles once "
                "every member has paid."
            ),
            "inputSchema": _object(
                ["bill_id", "member_name"],
                bill_id=_string("Bill ID"),
                member_name=_string("Name of the member who paid"),
            ),
        },
        {
            "name": "paginate_transactions",
            "description": (
                "Get one page of transactions with pager buttons. Filters apply "
                "before paging; pages past the end are clamped to the last page."
            ),
            "inputSchema": _object(
                page={"type": "integer", "description": "Page number (1-based)",
                      "default": 1, "minimum": 1},
                page_size={"type": "integer", "description": "Items per page",
                           "default": DEFAULT_PAGE_SIZE, "minimum": 1},
                type=_string("Transaction type", enum=["income", "expense", "transfer"]),
                category_id=_string("Filter by category ID"),
                search=_string("Search in descriptions"),
            ),
        },
    ]
