"""
Budget models for the shared finance backend.
"""

from typing import Optional

from pydantic import BaseModel, computed_field
from pydantic.alias_generators import to_camel


class Budget(BaseModel):
    """
    A spending ceiling for one category over one period (usually a month).

    `spent_amount` as sent by the backend is not trusted for display; the
    budget service recomputes it from the transactions in the period.
    """

    model_config = {
        "strict": True,
        "populate_by_name": True,
        "alias_generator": to_camel,
    }

    id: str
    budget_amount: float
    spent_amount: float = 0.0

    name: str = ""
    user_id: Optional[str] = None
    category_id: Optional[str] = None
    description: Optional[str] = None

    # Period
    period_type: Optional[str] = None
    period_start: Optional[str] = None
    period_end: Optional[str] = None
    budget_month: Optional[int] = None
    budget_year: Optional[int] = None

    alert_percentage: Optional[float] = None
    status: Optional[str] = None
    is_active: Optional[bool] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def month(self) -> Optional[str]:
        """Budget month as YYYY-MM, taken from the period start."""
        if self.period_start:
            return self.period_start[:7]
        if self.budget_year and self.budget_month:
            return f"{self.budget_year:04d}-{self.budget_month:02d}"
        return None


class BudgetUsage(BaseModel):
    """How much of a budget has been used."""

    budget_amount: float
    spent_amount: float
    remaining: float
    # None when the budget amount is zero (undefined percentage)
    percentage_used: Optional[float]
    is_over_budget: bool
    is_near_limit: bool


class BudgetProgress(BudgetUsage):
    """A budget together with its resolved category name and usage."""

    budget: Budget
    category: str


class BudgetTotals(BaseModel):
    """Totals across a list of budgets."""

    total_budget: float
    total_spent: float
    remaining: float
    percentage_used: Optional[float]
    budget_count: int
    over_budget_count: int


class BudgetDeletion(BaseModel):
    """Outcome of deleting a budget and its tagged transactions."""

    budget_id: str
    refunded_count: int
    refunded_amount: float
    message: str
