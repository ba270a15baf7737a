"""
Personal savings goal models.
"""

from typing import Optional

from pydantic import BaseModel, computed_field

from shared_finance_mcp.models.shared_goal import GoalContribution, GoalStatus


class Goal(BaseModel):
    """
    A savings target owned by a single user.

    Unlike shared goals, the backend keeps `current_amount` in step with
    the goal's contributions.
    """

    model_config = {"strict": True, "populate_by_name": True}

    id: str
    name: str
    target_amount: float
    current_amount: float = 0.0

    user_id: Optional[str] = None
    target_date: Optional[str] = None
    status: GoalStatus = "active"
    description: Optional[str] = None
    category: Optional[str] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def progress_percentage(self) -> float:
        if self.target_amount <= 0:
            return 0.0
        return min(self.current_amount / self.target_amount * 100, 100.0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def remaining_amount(self) -> float:
        return max(self.target_amount - self.current_amount, 0.0)


class GoalContributionResult(BaseModel):
    """A contribution together with the goal as the backend now reports it."""

    goal: Goal
    contribution: GoalContribution
