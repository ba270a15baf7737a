"""
Shared savings goal models.
"""

from typing import Literal, Optional

from pydantic import BaseModel, computed_field

GoalStatus = Literal["active", "completed", "cancelled"]


class SharedGoal(BaseModel):
    """
    A savings target several users contribute to.

    When `account_id` is set, deposits are withdrawn from that account and
    deleting the goal refunds `current_amount` back to it.
    """

    model_config = {"strict": True, "populate_by_name": True}

    id: str
    name: str
    target_amount: float
    current_amount: float = 0.0

    created_by: Optional[str] = None
    target_date: Optional[str] = None
    account_id: Optional[str] = None
    share_code: Optional[str] = None
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
        return self.current_amount / self.target_amount * 100

    @computed_field  # type: ignore[prop-decorator]
    @property
    def remaining_amount(self) -> float:
        return max(self.target_amount - self.current_amount, 0.0)


class SharedGoalMember(BaseModel):
    """A user's membership in a shared goal and their running contribution."""

    model_config = {"strict": True, "populate_by_name": True}

    id: str
    shared_goal_id: str
    user_id: str
    contribution_amount: float = 0.0
    role: Literal["owner", "member"] = "member"
    joined_at: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None


class GoalContribution(BaseModel):
    """A deposit into a personal or shared goal."""

    model_config = {"strict": True, "populate_by_name": True, "frozen": True}

    id: str
    goal_id: str
    user_id: str
    amount: float
    contribution_date: Optional[str] = None
    notes: Optional[str] = None


class GoalDeposit(BaseModel):
    """Outcome of depositing into a shared goal."""

    goal: SharedGoal
    contribution: GoalContribution
    account_balance: Optional[float] = None
    completed: bool = False


class GoalDeletion(BaseModel):
    """Outcome of deleting a shared goal."""

    goal_id: str
    refunded_amount: float
    account_id: Optional[str] = None
    message: str
