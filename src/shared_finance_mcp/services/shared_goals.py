"""
Shared savings goals: CRUD, deposits, members and contributions.
"""

import logging
import secrets
import string
from datetime import date
from typing import Any, Dict, List, Optional

from shared_finance_mcp.core.api_client import FinanceApi
from shared_finance_mcp.core.exceptions import ApiError, InvalidInputError, NotFoundError
from shared_finance_mcp.core.saga import Saga
from shared_finance_mcp.models.account import Account
from shared_finance_mcp.models.shared_goal import (
    GoalContribution,
    GoalDeletion,
    GoalDeposit,
    SharedGoal,
    SharedGoalMember,
)
from shared_finance_mcp.services.validation import (
    require_balance,
    require_email,
    require_positive_amount,
    require_text,
)
from shared_finance_mcp.utils.api_response import parse_list, parse_one

logger = logging.getLogger(__name__)

SHARE_CODE_LENGTH = 6
_SHARE_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_share_code(length: int = SHARE_CODE_LENGTH) -> str:
    return "".join(secrets.choice(_SHARE_CODE_ALPHABET) for _ in range(length))


class SharedGoalService:
    """Shared goal operations on behalf of one signed-in user."""

    def __init__(self, api: FinanceApi):
        self.api = api

    async def list_goals(self, user_id: str) -> List[SharedGoal]:
        """Goals created by the user."""
        payload = await self.api.shared_goals.list(created_by=user_id)
        return parse_list(payload, SharedGoal)

    async def get_goal(self, goal_id: str) -> SharedGoal:
        payload = await self.api.shared_goals.get(goal_id)
        if not payload:
            raise NotFoundError(f"Shared goal not found: {goal_id}")
        return parse_one(payload, SharedGoal)

    async def create_goal(
        self,
        user_id: str,
        name: str,
        target_amount: float,
        target_date: Optional[str] = None,
        account_id: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
    ) -> SharedGoal:
        """
        Create a goal and make the creator its owner.

        Both records are created in one saga: if the owner membership cannot
        be created the goal is deleted again.
        """
        name = require_text(name, "name")
        target_amount = require_positive_amount(target_amount)

        async def create(results: Dict[str, Any]) -> SharedGoal:
            payload = await self.api.shared_goals.create(
                {
                    "name": name,
                    "target_amount": target_amount,
                    "current_amount": 0.0,
                    "target_date": target_date,
                    "account_id": account_id,
                    "description": description,
                    "category": category,
                    "created_by": user_id,
                    "share_code": generate_share_code(),
                    "status": "active",
                }
            )
            return parse_one(payload, SharedGoal)

        async def uncreate(results: Dict[str, Any], goal: SharedGoal) -> None:
            await self.api.shared_goals.delete(goal.id)

        async def add_owner(results: Dict[str, Any]) -> SharedGoalMember:
            return await self.add_member(results["goal"].id, user_id, role="owner")

        results = await (
            Saga(f"create-goal:{name}")
            .step("goal", create, uncreate)
            .step("owner", add_owner)
            .run()
        )
        return results["goal"]

    async def update_goal(self, goal_id: str, **changes: Any) -> SharedGoal:
        if "name" in changes:
            changes["name"] = require_text(changes["name"], "name")
        if "target_amount" in changes:
            changes["target_amount"] = require_positive_amount(changes["target_amount"])
        payload = await self.api.shared_goals.update(goal_id, changes)
        return parse_one(payload, SharedGoal)

    async def deposit(
        self,
        goal: SharedGoal,
        user_id: str,
        amount: float,
        account: Optional[Account] = None,
        note: Optional[str] = None,
    ) -> GoalDeposit:
        """
        Deposit into a shared goal.

        Steps: record the contribution, raise the goal's current amount
        (completing it when the target is reached), add to the member's
        running contribution, and finally withdraw from the goal's linked
        account. Goals without a linked account never touch an account.

        Args:
            account: The linked account if the caller already holds it;
                     fetched when omitted and the goal has one

        Raises:
            InvalidInputError: Non-positive amount or a goal that is not active
            InsufficientBalanceError: Linked account cannot cover the amount
            SagaFailedError: A step failed; earlier steps were undone
        """
        amount = require_positive_amount(amount)
        if goal.status != "active":
            raise InvalidInputError(f"เป้าหมาย {goal.name} ไม่ได้เปิดรับเงินแล้ว")

        if goal.account_id:
            if account is None or account.id != goal.account_id:
                account = parse_one(await self.api.accounts.get(goal.account_id), Account)
            require_balance(account, amount)

        new_amount = goal.current_amount + amount
        completed = new_amount >= goal.target_amount

        async def contribute(results: Dict[str, Any]) -> GoalContribution:
            payload = await self.api.goal_contributions.create(
                {
                    "goal_id": goal.id,
                    "user_id": user_id,
                    "amount": amount,
                    "contribution_date": date.today().isoformat(),
                    "notes": note,
                }
            )
            return parse_one(payload, GoalContribution)

        async def uncontribute(results: Dict[str, Any], contribution: GoalContribution) -> None:
            await self.api.goal_contributions.delete(contribution.id)

        async def raise_goal(results: Dict[str, Any]) -> SharedGoal:
            changes: Dict[str, Any] = {"current_amount": new_amount}
            if completed:
                changes["status"] = "completed"
            payload = await self.api.shared_goals.update(goal.id, changes)
            return parse_one(payload, SharedGoal)

        async def lower_goal(results: Dict[str, Any], _: Any) -> None:
            await self.api.shared_goals.update(
                goal.id, {"current_amount": goal.current_amount, "status": goal.status}
            )

        async def credit_member(results: Dict[str, Any]) -> Optional[SharedGoalMember]:
            member = await self._find_member(goal.id, user_id)
            if member is None:
                return None
            await self.api.shared_goal_members.update(
                member.id, {"contribution_amount": member.contribution_amount + amount}
            )
            return member

        async def debit_member(
            results: Dict[str, Any], member: Optional[SharedGoalMember]
        ) -> None:
            if member is not None:
                await self.api.shared_goal_members.update(
                    member.id, {"contribution_amount": member.contribution_amount}
                )

        async def withdraw(results: Dict[str, Any]) -> Optional[float]:
            if not goal.account_id:
                return None
            await self.api.accounts.update_balance(
                goal.account_id, "subtract", amount, f"ออมเงินเป้าหมาย {goal.name}"
            )
            refreshed = parse_one(await self.api.accounts.get(goal.account_id), Account)
            return refreshed.current_balance

        results = await (
            Saga(f"goal-deposit:{goal.id}")
            .step("contribution", contribute, uncontribute)
            .step("goal", raise_goal, lower_goal)
            .step("member", credit_member, debit_member)
            .step("account", withdraw)
            .run()
        )

        if completed:
            logger.info("Shared goal %s reached its target", goal.id)
        return GoalDeposit(
            goal=results["goal"],
            contribution=results["contribution"],
            account_balance=results["account"],
            completed=completed,
        )

    async def delete_goal(self, goal: SharedGoal) -> GoalDeletion:
        """
        Delete a goal, refunding its saved amount to the linked account.

        Goals without a linked account (or with nothing saved) are deleted
        without a refund.
        """
        refund = goal.current_amount if goal.account_id and goal.current_amount > 0 else 0.0

        async def do_refund(results: Dict[str, Any]) -> float:
            if refund:
                await self.api.accounts.update_balance(
                    goal.account_id, "add", refund, f"คืนเงินจากเป้าหมาย {goal.name}"
                )
            return refund

        async def undo_refund(results: Dict[str, Any], refunded: float) -> None:
            if refunded:
                await self.api.accounts.update_balance(goal.account_id, "subtract", refunded)

        async def delete(results: Dict[str, Any]) -> None:
            await self.api.shared_goals.delete(goal.id)

        await (
            Saga(f"delete-goal:{goal.id}")
            .step("refund", do_refund, undo_refund)
            .step("delete", delete)
            .run()
        )

        if refund:
            message = f"ลบเป้าหมายเรียบร้อยแล้ว และคืนเงิน ฿{refund:,.2f} เข้าบัญชี"
        else:
            message = "ลบเป้าหมายเรียบร้อยแล้ว"
        return GoalDeletion(
            goal_id=goal.id,
            refunded_amount=refund,
            account_id=goal.account_id if refund else None,
            message=message,
        )

    async def list_members(self, goal_id: str) -> List[SharedGoalMember]:
        payload = await self.api.shared_goal_members.get_by_goal(goal_id)
        return parse_list(payload, SharedGoalMember)

    async def _find_member(self, goal_id: str, user_id: str) -> Optional[SharedGoalMember]:
        """The user's membership in a goal, or None when they are not a member."""
        try:
            payload = await self.api.shared_goal_members.get_membership(goal_id, user_id)
        except ApiError as e:
            if e.status == 404:
                return None
            raise
        return parse_one(payload, SharedGoalMember) if payload else None

    async def add_member(
        self, goal_id: str, user_id: str, role: str = "member"
    ) -> SharedGoalMember:
        payload = await self.api.shared_goal_members.create(
            {
                "shared_goal_id": goal_id,
                "user_id": user_id,
                "role": role,
                "contribution_amount": 0.0,
            }
        )
        return parse_one(payload, SharedGoalMember)

    async def invite_by_email(self, goal_id: str, email: str) -> SharedGoalMember:
        email = require_email(email)
        payload = await self.api.shared_goal_members.invite(goal_id, email)
        return parse_one(payload, SharedGoalMember)

    async def update_member(self, member: SharedGoalMember, **changes: Any) -> SharedGoalMember:
        if member.role == "owner" and changes.get("role", "owner") != "owner":
            raise InvalidInputError("ไม่สามารถเปลี่ยนบทบาทของเจ้าของเป้าหมายได้")
        payload = await self.api.shared_goal_members.update(member.id, changes)
        return parse_one(payload, SharedGoalMember)

    async def remove_member(self, member: SharedGoalMember) -> None:
        if member.role == "owner":
            raise InvalidInputError("ไม่สามารถลบเจ้าของเป้าหมายได้")
        await self.api.shared_goal_members.delete(member.id)

    async def list_contributions(self, goal_id: str) -> List[GoalContribution]:
        """Contributions to a goal, newest first."""
        payload = await self.api.goal_contributions.get_by_goal(goal_id)
        contributions = parse_list(payload, GoalContribution)
        contributions.sort(key=lambda c: c.contribution_date or "", reverse=True)
        return contributions
