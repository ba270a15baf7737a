"""
Debts between users and their repayments.
"""

import asyncio
import logging
from datetime import date
from typing import Any, Awaitable, Dict, List, Optional

from shared_finance_mcp.core.api_client import FinanceApi
from shared_finance_mcp.core.exceptions import FinanceError, InvalidInputError, NotFoundError
from shared_finance_mcp.models.debt import Debt, DebtOverview, DebtPayment, DebtPaymentResult
from shared_finance_mcp.services.validation import require_positive_amount, require_text
from shared_finance_mcp.utils.api_response import parse_list, parse_one

logger = logging.getLogger(__name__)


class DebtService:
    """Debt CRUD, repayments and the per-user overview."""

    def __init__(self, api: FinanceApi):
        self.api = api

    async def _debts_or_empty(self, side: str, request: Awaitable[Any]) -> List[Debt]:
        try:
            return parse_list(await request, Debt)
        except FinanceError as e:
            logger.warning("Could not load debts as %s: %s", side, e)
            return []

    async def list_debts(self, user_id: str) -> List[Debt]:
        """
        Every debt the user is a party to, as creditor or debtor.

        Both sides are fetched concurrently; a side that fails to load is
        treated as empty. A debt appearing on both sides is listed once.
        """
        as_creditor, as_debtor = await asyncio.gather(
            self._debts_or_empty("creditor", self.api.debts.get_by_creditor(user_id)),
            self._debts_or_empty("debtor", self.api.debts.get_by_debtor(user_id)),
        )
        unique: Dict[str, Debt] = {}
        for debt in as_creditor + as_debtor:
            unique.setdefault(debt.id, debt)
        return list(unique.values())

    async def overview(self, user_id: str) -> DebtOverview:
        """Debts split into money lent and money owed, with outstanding totals."""
        debts = await self.list_debts(user_id)
        lent = [d for d in debts if d.creditor_id == user_id]
        owed = [d for d in debts if d.debtor_id == user_id]
        return DebtOverview(
            lent=lent,
            owed=owed,
            total_lent_outstanding=sum(d.remaining_amount for d in lent if d.status == "pending"),
            total_owed_outstanding=sum(d.remaining_amount for d in owed if d.status == "pending"),
        )

    async def get_debt(self, debt_id: str) -> Debt:
        payload = await self.api.debts.get(debt_id)
        if not payload:
            raise NotFoundError(f"Debt not found: {debt_id}")
        return parse_one(payload, Debt)

    async def create_debt(
        self,
        creditor_id: str,
        debtor_id: str,
        amount: float,
        description: Optional[str] = None,
        due_date: Optional[str] = None,
        interest_rate: Optional[float] = None,
    ) -> Debt:
        """
        Record a new debt.

        Raises:
            InvalidInputError: Missing party, non-positive amount, a negative
                               interest rate, or a debt to oneself
        """
        creditor_id = require_text(creditor_id, "creditor")
        debtor_id = require_text(debtor_id, "debtor")
        amount = require_positive_amount(amount)
        if creditor_id == debtor_id:
            raise InvalidInputError("ไม่สามารถบันทึกหนี้กับตัวเองได้")
        if interest_rate is not None and interest_rate < 0:
            raise InvalidInputError("อัตราดอกเบี้ยต้องไม่ติดลบ")

        body: Dict[str, Any] = {
            "creditor_id": creditor_id,
            "debtor_id": debtor_id,
            "amount": amount,
        }
        optional = {
            "description": description,
            "due_date": due_date,
            "interest_rate": interest_rate,
        }
        body.update({key: value for key, value in optional.items() if value is not None})

        payload = await self.api.debts.create(body)
        return parse_one(payload, Debt)

    async def update_debt(self, debt_id: str, **changes: Any) -> Debt:
        if "amount" in changes:
            changes["amount"] = require_positive_amount(changes["amount"])
        payload = await self.api.debts.update(debt_id, changes)
        return parse_one(payload, Debt)

    async def delete_debt(self, debt_id: str) -> None:
        await self.api.debts.delete(debt_id)

    async def list_payments(self, debt_id: Optional[str] = None) -> List[DebtPayment]:
        """Payments of one debt (or all visible payments), newest first."""
        if debt_id:
            payload = await self.api.debt_payments.get_by_debt(debt_id)
        else:
            payload = await self.api.debt_payments.list()
        payments = parse_list(payload, DebtPayment)
        payments.sort(key=lambda p: p.payment_date or "", reverse=True)
        return payments

    async def record_payment(
        self,
        debt: Debt,
        amount: float,
        payment_date: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> DebtPaymentResult:
        """
        Record a repayment and return the debt as the backend now reports it.

        Raises:
            InvalidInputError: Non-positive amount, a debt that is no longer
                               pending, or more than the remaining amount
        """
        amount = require_positive_amount(amount)
        if debt.status != "pending":
            raise InvalidInputError("หนี้รายการนี้ปิดไปแล้ว")
        if amount > debt.remaining_amount:
            raise InvalidInputError(
                f"จำนวนเงินเกินยอดหนี้คงเหลือ (คงเหลือ ฿{debt.remaining_amount:,.2f})"
            )

        payload = await self.api.debt_payments.create(
            {
                "debt_id": debt.id,
                "amount": amount,
                "payment_date": payment_date or date.today().isoformat(),
                "notes": notes,
            }
        )
        payment = parse_one(payload, DebtPayment)
        refreshed = await self.get_debt(debt.id)

        settled = refreshed.status == "settled"
        if settled:
            logger.info("Debt %s settled", debt.id)
        return DebtPaymentResult(debt=refreshed, payment=payment, settled=settled)

    async def delete_payment(self, payment: DebtPayment) -> Debt:
        """Delete a repayment and return its debt with the reduced paid amount."""
        await self.api.debt_payments.delete(payment.id)
        return await self.get_debt(payment.debt_id)
