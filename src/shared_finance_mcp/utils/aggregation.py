"""
Derived financial aggregates.

Pure functions over transactions and budgets that are already in memory:
monthly income/expense series, expense breakdown by category, and budget
usage. Nothing here talks to the backend.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from shared_finance_mcp.models.budget import BudgetProgress, BudgetTotals, BudgetUsage
from shared_finance_mcp.models.transaction import Transaction
from shared_finance_mcp.utils.date_utils import format_month_label

UNCATEGORIZED_LABEL = "ไม่ระบุหมวดหมู่"
OTHER_LABEL = "อื่นๆ"

MONTH_WINDOW = 6
TOP_CATEGORIES = 5
NEAR_LIMIT_PERCENTAGE = 80.0


class MonthlySummary(BaseModel):
    month_key: str
    month: str
    income: float
    expense: float
    savings: float


class CategorySpending(BaseModel):
    category: str
    amount: float
    percentage: float
    transaction_count: int = 0


class AnalyticsSummary(BaseModel):
    """Everything the analytics view shows."""

    monthly: List[MonthlySummary]
    categories: List[CategorySpending]
    total_income: float
    total_expense: float
    total_savings: float
    average_monthly_income: float
    average_monthly_expense: float
    savings_rate: float
    last_three_months: List[MonthlySummary]
    # True when the figures are placeholder data, not computed
    is_demo: bool = False


def summarize_by_month(
    transactions: Iterable[Transaction], limit: int = MONTH_WINDOW
) -> List[MonthlySummary]:
    """
    Income, expense and savings per calendar month.

    Transfers are ignored. Months are sorted chronologically and only the
    most recent `limit` months are kept.
    """
    income: Dict[str, float] = defaultdict(float)
    expense: Dict[str, float] = defaultdict(float)

    for txn in transactions:
        if txn.type == "income":
            income[txn.month_key] += txn.amount
        elif txn.type == "expense":
            expense[txn.month_key] += txn.amount

    month_keys = sorted(set(income) | set(expense))[-limit:] if limit > 0 else []

    return [
        MonthlySummary(
            month_key=key,
            month=format_month_label(key),
            income=income[key],
            expense=expense[key],
            savings=income[key] - expense[key],
        )
        for key in month_keys
    ]


def summarize_by_category(
    transactions: Iterable[Transaction],
    category_names: Mapping[str, str],
    limit: int = TOP_CATEGORIES,
) -> List[CategorySpending]:
    """
    Expense totals per category, largest first.

    The top `limit` categories are listed individually and the remainder is
    merged into one "others" bucket, so every expense lands in exactly one
    bucket. Percentages are shares of the total expense across all
    categories (0 when there is no expense at all).
    """
    amounts: Dict[str, float] = defaultdict(float)
    counts: Dict[str, int] = defaultdict(int)

    for txn in transactions:
        if txn.type != "expense":
            continue
        label = category_names.get(txn.category_id or "") or UNCATEGORIZED_LABEL
        amounts[label] += txn.amount
        counts[label] += 1

    total = sum(amounts.values())

    def percentage(amount: float) -> float:
        return amount / total * 100 if total > 0 else 0.0

    ranked = sorted(amounts.items(), key=lambda item: item[1], reverse=True)
    top, rest = ranked[:limit], ranked[limit:]

    result = [
        CategorySpending(
            category=label,
            amount=amount,
            percentage=percentage(amount),
            transaction_count=counts[label],
        )
        for label, amount in top
    ]

    if rest:
        other_amount = sum(amount for _, amount in rest)
        result.append(
            CategorySpending(
                category=OTHER_LABEL,
                amount=other_amount,
                percentage=percentage(other_amount),
                transaction_count=sum(counts[label] for label, _ in rest),
            )
        )

    return result


def _summarize(
    monthly: List[MonthlySummary],
    categories: List[CategorySpending],
    is_demo: bool = False,
) -> AnalyticsSummary:
    total_income = sum(m.income for m in monthly)
    total_expense = sum(m.expense for m in monthly)
    total_savings = sum(m.savings for m in monthly)
    month_count = len(monthly) or 1

    return AnalyticsSummary(
        monthly=monthly,
        categories=categories,
        total_income=total_income,
        total_expense=total_expense,
        total_savings=total_savings,
        average_monthly_income=total_income / month_count,
        average_monthly_expense=total_expense / month_count,
        savings_rate=total_savings / total_income * 100 if total_income > 0 else 0.0,
        last_three_months=monthly[-3:],
        is_demo=is_demo,
    )


def build_analytics(
    transactions: Sequence[Transaction], category_names: Mapping[str, str]
) -> Optional[AnalyticsSummary]:
    """
    Compute the analytics view from raw transactions.

    Returns:
        The summary, or None when there are no transactions (callers fall
        back to DEMO_ANALYTICS)
    """
    if not transactions:
        return None

    return _summarize(
        summarize_by_month(transactions),
        summarize_by_category(transactions, category_names),
    )


def _demo_month(month_key: str, income: float, expense: float) -> MonthlySummary:
    return MonthlySummary(
        month_key=month_key,
        month=format_month_label(month_key),
        income=income,
        expense=expense,
        savings=income - expense,
    )


DEMO_ANALYTICS = _summarize(
    [
        _demo_month("2025-10", 25000, 18500),
        _demo_month("2025-11", 28000, 22000),
        _demo_month("2025-12", 30000, 25000),
        _demo_month("2026-01", 27000, 20000),
        _demo_month("2026-02", 29000, 23000),
        _demo_month("2026-03", 31000, 24500),
    ],
    [
        CategorySpending(category="อาหาร", amount=8500, percentage=35),
        CategorySpending(category="ค่าเดินทาง", amount=4200, percentage=17),
        CategorySpending(category="เสื้อผ้า", amount=3800, percentage=16),
        CategorySpending(category="ความบันเทิง", amount=2500, percentage=10),
        CategorySpending(category="สุขภาพ", amount=2200, percentage=9),
        CategorySpending(category=OTHER_LABEL, amount=3300, percentage=13),
    ],
    is_demo=True,
)


def compute_budget_usage(budget_amount: float, spent_amount: float) -> BudgetUsage:
    """
    Usage flags for one budget.

    Over-budget means strictly more spent than budgeted. Near-limit means
    more than 80% used without being over, so the two flags never overlap.
    A zero budget has no defined percentage; any spending on it is over.
    """
    if budget_amount > 0:
        percentage_used: Optional[float] = spent_amount / budget_amount * 100
    else:
        percentage_used = None

    is_over_budget = spent_amount > budget_amount
    is_near_limit = (
        percentage_used is not None
        and percentage_used > NEAR_LIMIT_PERCENTAGE
        and not is_over_budget
    )

    return BudgetUsage(
        budget_amount=budget_amount,
        spent_amount=spent_amount,
        remaining=budget_amount - spent_amount,
        percentage_used=percentage_used,
        is_over_budget=is_over_budget,
        is_near_limit=is_near_limit,
    )


def summarize_budgets(progress: Sequence[BudgetProgress]) -> BudgetTotals:
    """Totals for the budget overview cards."""
    total_budget = sum(p.budget_amount for p in progress)
    total_spent = sum(p.spent_amount for p in progress)

    return BudgetTotals(
        total_budget=total_budget,
        total_spent=total_spent,
        remaining=total_budget - total_spent,
        percentage_used=total_spent / total_budget * 100 if total_budget > 0 else None,
        budget_count=len(progress),
        over_budget_count=sum(1 for p in progress if p.is_over_budget),
    )
