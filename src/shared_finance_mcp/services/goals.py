"""
Personal savings goals and their contributions.
"""

import logging
from datetime import date
from typing import Any, List, Optional

from shared_finance_mcp.core.api_client import FinanceApi
from shared_finance_mcp.core.exceptions import InvalidInputError, NotFoundError
from shared_finance_mcp.models.goal import Goal, GoalContributionResult
from shared_finance_mcp.models.shared_goal import GoalContribution, GoalStatus
from shared_finance_mcp.services.validation import require_positive_amount, require_text
from shared_finance_mcp.utils.api_response import parse_list, parse_one

logger = logging.getLogger(__name__)


class GoalService:
    """Personal goal CRUD and contributions."""

    def __init__(self, api: FinanceApi):
        self.api = api

    async def list_goals(self, user_id: str, status: Optional[GoalStatus] = None) -> List[Goal]:
        payload = await self.api.goals.list(user_id=user_id, status=status)
        return parse_list(payload, Goal)

    async def get_goal(self, goal_id: str) -> Goal:
        payload = await self.api.goals.get(goal_id)
        if not payload:
            raise NotFoundError(f"Goal not found: {goal_id}")
        return parse_one(payload, Goal)

    async def create_goal(
        self,
        user_id: str,
        name: str,
        target_amount: float,
        target_date: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Goal:
        name = require_text(name, "name")
        target_amount = require_positive_amount(target_amount)
        payload = await self.api.goals.create(
            {
                "user_id": user_id,
                "name": name,
                "target_amount": target_amount,
                "target_date": target_date,
                "description": description,
                "category": category,
            }
        )
        return parse_one(payload, Goal)

    async def update_goal(self, goal_id: str, **changes: Any) -> Goal:
        if "name" in changes:
            changes["name"] = require_text(changes["name"], "name")
        if "target_amount" in changes:
            changes["target_amount"] = require_positive_amount(changes["target_amount"])
        payload = await self.api.goals.update(goal_id, changes)
        return parse_one(payload, Goal)

    async def delete_goal(self, goal_id: str) -> None:
        await self.api.goals.delete(goal_id)

    async def list_contributions(
        self, goal_id: Optional[str] = None, user_id: Optional[str] = None
    ) -> List[GoalContribution]:
        """
        Contributions to one goal, or every contribution a user made.

        Returns:
            Contributions sorted by date descending
        """
        if goal_id:
            payload = await self.api.goal_contributions.get_by_goal(goal_id)
        elif user_id:
            payload = await self.api.goal_contributions.get_by_user(user_id)
        else:
            raise InvalidInputError("goal_id or user_id is required")
        contributions = parse_list(payload, GoalContribution)
        contributions.sort(key=lambda c: c.contribution_date or "", reverse=True)
        return contributions

    async def add_contribution(
        self,
        goal: Goal,
        user_id: str,
        amount: float,
        contribution_date: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> GoalContributionResult:
        """
        Save money towards a goal.

        The backend raises the goal's current amount; the goal is fetched
        again afterwards so the result carries its authoritative total.

        Raises:
            InvalidInputError: Non-positive amount or a goal that is not active
        """
        amount = require_positive_amount(amount)
        if goal.status != "active":
            raise InvalidInputError(f"เป้าหมาย {goal.name} ไม่ได้เปิดรับเงินแล้ว")

        payload = await self.api.goal_contributions.create(
            {
                "goal_id": goal.id,
                "user_id": user_id,
                "amount": amount,
                "contribution_date": contribution_date or date.today().isoformat(),
                "notes": notes,
            }
        )
        contribution = parse_one(payload, GoalContribution)
        refreshed = await self.get_goal(goal.id)

        if refreshed.current_amount >= refreshed.target_amount:
            logger.info("Goal %s reached its target", goal.id)
        return GoalContributionResult(goal=refreshed, contribution=contribution)

    async def delete_contribution(self, contribution: GoalContribution) -> Goal:
        """Delete a contribution and return its goal with the reduced total."""
        await self.api.goal_contributions.delete(contribution.id)
        return await self.get_goal(contribution.goal_id)
