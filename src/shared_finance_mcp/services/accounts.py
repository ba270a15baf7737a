"""
Account workflows: CRUD, deposits, withdrawals, transfers and members.

Balances are server-authoritative. Deposits and withdrawals are several
dependent calls, run as a saga so a failure part-way undoes the steps that
already went through.
"""

import asyncio
import logging
from typing import Any, Dict, List, Literal, Optional, Sequence

from shared_finance_mcp.core.api_client import FinanceApi
from shared_finance_mcp.core.exceptions import InvalidInputError, NotFoundError
from shared_finance_mcp.core.saga import Saga
from shared_finance_mcp.models.account import (
    Account,
    AccountMember,
    AccountTransaction,
    AccountTransfer,
    AccountType,
    BalanceChange,
)
from shared_finance_mcp.services.validation import (
    require_balance,
    require_positive_amount,
    require_text,
)
from shared_finance_mcp.utils.api_response import parse_list, parse_one

logger = logging.getLogger(__name__)

BalanceKind = Literal["deposit", "withdraw"]

VALID_PERMISSIONS = ("view", "deposit", "withdraw", "invite")


class AccountService:
    """Account operations on behalf of one signed-in user."""

    def __init__(self, api: FinanceApi):
        self.api = api

    async def list_accounts(self, user_id: str) -> List[Account]:
        payload = await self.api.accounts.get_by_user(user_id)
        return parse_list(payload, Account)

    async def get_account(self, account_id: str) -> Account:
        payload = await self.api.accounts.get(account_id)
        if not payload:
            raise NotFoundError(f"Account not found: {account_id}")
        return parse_one(payload, Account)

    async def get_by_share_code(self, share_code: str) -> Account:
        share_code = require_text(share_code, "share code").upper()
        payload = await self.api.accounts.get_by_share_code(share_code)
        if not payload:
            raise NotFoundError(f"ไม่พบบัญชีจากรหัส {share_code}")
        return parse_one(payload, Account)

    async def create_account(
        self,
        user_id: str,
        name: str,
        account_type: AccountType = "personal",
        bank_name: Optional[str] = None,
        bank_number: Optional[str] = None,
        color: Optional[str] = None,
        start_amount: float = 0.0,
        is_private: bool = False,
    ) -> Account:
        name = require_text(name, "name")
        if start_amount < 0:
            raise InvalidInputError("ยอดเงินเริ่มต้นต้องไม่ติดลบ")

        payload = await self.api.accounts.create(
            {
                "user_id": user_id,
                "name": name,
                "account_type": account_type,
                "bank_name": bank_name,
                "bank_number": bank_number,
                "color": color,
                "start_amount": start_amount,
                "is_private": is_private,
                "is_active": True,
            }
        )
        return parse_one(payload, Account)

    async def update_account(self, account_id: str, **changes: Any) -> Account:
        if "name" in changes:
            changes["name"] = require_text(changes["name"], "name")
        payload = await self.api.accounts.update(account_id, changes)
        return parse_one(payload, Account)

    async def delete_account(self, account_id: str) -> None:
        await self.api.accounts.delete(account_id)

    async def history(self, account_id: str) -> List[AccountTransaction]:
        """Deposits and withdrawals of one account, newest first."""
        payload = await self.api.account_transactions.list(account_id=account_id)
        history = parse_list(payload, AccountTransaction)
        history.sort(key=lambda txn: txn.created_at or "", reverse=True)
        return history

    async def deposit(
        self, account: Account, user_id: str, amount: float, note: Optional[str] = None
    ) -> BalanceChange:
        amount = require_positive_amount(amount)
        return await self._change_balance(account, user_id, "deposit", amount, note)

    async def withdraw(
        self, account: Account, user_id: str, amount: float, note: Optional[str] = None
    ) -> BalanceChange:
        """
        Withdraw from an account.

        Raises:
            InsufficientBalanceError: If amount exceeds the balance held in
                                      `account` (checked before any request)
        """
        amount = require_positive_amount(amount)
        require_balance(account, amount)
        return await self._change_balance(account, user_id, "withdraw", amount, note)

    async def _change_balance(
        self,
        account: Account,
        user_id: str,
        kind: BalanceKind,
        amount: float,
        note: Optional[str],
    ) -> BalanceChange:
        operation, reverse = ("add", "subtract") if kind == "deposit" else ("subtract", "add")

        async def record(results: Dict[str, Any]) -> AccountTransaction:
            payload = await self.api.account_transactions.create(
                {
                    "account_id": account.id,
                    "user_id": user_id,
                    "transaction_type": kind,
                    "amount": amount,
                    "note": note,
                }
            )
            return parse_one(payload, AccountTransaction)

        async def unrecord(results: Dict[str, Any], txn: AccountTransaction) -> None:
            await self.api.account_transactions.delete(txn.id)

        async def adjust(results: Dict[str, Any]) -> Any:
            return await self.api.accounts.update_balance(account.id, operation, amount, note)

        async def unadjust(results: Dict[str, Any], _: Any) -> None:
            await self.api.accounts.update_balance(account.id, reverse, amount)

        async def refresh(results: Dict[str, Any]) -> Any:
            return await asyncio.gather(self.get_account(account.id), self.history(account.id))

        async def notify(results: Dict[str, Any]) -> Any:
            verb = "ฝากเงิน" if kind == "deposit" else "ถอนเงิน"
            return await self.api.notifications.create(
                {
                    "user_id": user_id,
                    "title": f"{verb}สำเร็จ",
                    "message": f"{verb} ฿{amount:,.2f} บัญชี {account.name}",
                    "type": "success",
                }
            )

        saga = (
            Saga(f"{kind}:{account.id}")
            .step("record", record, unrecord)
            .step("balance", adjust, unadjust)
            .step("refresh", refresh)
            .step("notify", notify)
        )
        results = await saga.run()

        refreshed, history = results["refresh"]
        logger.info("%s of %.2f on account %s", kind, amount, account.id)
        return BalanceChange(account=refreshed, transaction=results["record"], history=history)

    async def transfer(
        self,
        from_account: Account,
        to_account_id: str,
        amount: float,
        note: Optional[str] = None,
    ) -> AccountTransfer:
        """
        Move money between two accounts.

        The backend performs both balance changes atomically.
        """
        amount = require_positive_amount(amount)
        require_text(to_account_id, "destination account")
        if from_account.id == to_account_id:
            raise InvalidInputError("ไม่สามารถโอนเงินไปยังบัญชีเดียวกันได้")
        require_balance(from_account, amount)

        body: Dict[str, Any] = {
            "from_account_id": from_account.id,
            "to_account_id": to_account_id,
            "amount": amount,
        }
        if note:
            body["note"] = note

        payload = await self.api.account_transfers.create(body)
        return parse_one(payload, AccountTransfer)

    async def list_transfers(self, account_id: Optional[str] = None) -> List[AccountTransfer]:
        payload = await self.api.account_transfers.list(account_id=account_id)
        return parse_list(payload, AccountTransfer)

    async def list_members(self, account_id: str) -> List[AccountMember]:
        payload = await self.api.account_members.get_by_account(account_id)
        return parse_list(payload, AccountMember)

    async def add_member(
        self,
        account_id: str,
        user_id: str,
        role: Literal["admin", "member"] = "member",
        permissions: Sequence[str] = ("view",),
        invited_by: Optional[str] = None,
    ) -> AccountMember:
        body = {
            "account_id": account_id,
            "user_id": user_id,
            "role": role,
            "invited_by": invited_by,
            **_permission_fields(permissions),
        }
        payload = await self.api.account_members.create(body)
        return parse_one(payload, AccountMember)

    async def update_member(
        self, member: AccountMember, permissions: Sequence[str]
    ) -> AccountMember:
        if not member.is_editable:
            raise InvalidInputError("ไม่สามารถแก้ไขสิทธิ์ของเจ้าของบัญชีได้")
        payload = await self.api.account_members.update(
            member.id, _permission_fields(permissions)
        )
        return parse_one(payload, AccountMember)

    async def remove_member(self, member: AccountMember) -> None:
        if not member.is_editable:
            raise InvalidInputError("ไม่สามารถลบเจ้าของบัญชีได้")
        await self.api.account_members.delete(member.id)

    async def join_by_share_code(self, share_code: str, user_id: str) -> AccountMember:
        """Join a shared account as a view-only member."""
        account = await self.get_by_share_code(share_code)
        if account.account_type != "shared":
            raise InvalidInputError(f"บัญชี {account.name} ไม่ใช่บัญชีร่วม")
        return await self.add_member(account.id, user_id, "member", ["view"])


def _permission_fields(permissions: Sequence[str]) -> Dict[str, Any]:
    unknown = [p for p in permissions if p not in VALID_PERMISSIONS]
    if unknown:
        raise InvalidInputError(f"Unknown permissions: {', '.join(unknown)}")
    return {
        "permissions": list(permissions),
        "can_deposit": "deposit" in permissions,
        "can_withdraw": "withdraw" in permissions,
    }
