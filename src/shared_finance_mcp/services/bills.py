"""
In-memory bill book.

Bills are demo data: they live in this process only and are seeded with a
handful of example bills on startup.
"""

import asyncio
import inspect
import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Set

from shared_finance_mcp.core.exceptions import InvalidInputError, NotFoundError
from shared_finance_mcp.models.bill import (
    SELF_NAME,
    Bill,
    BillMember,
    BillPayment,
    BillStatus,
    split_equally,
)
from shared_finance_mcp.services.validation import require_text

logger = logging.getLogger(__name__)

SettledCallback = Callable[[Bill], Any]


def _members(*rows: Any) -> List[BillMember]:
    return [BillMember(name=name, amount=amount, paid=paid) for name, amount, paid in rows]


def demo_bills() -> List[Bill]:
    """The example bills every new book starts with."""
    return [
        Bill(
            id="1",
            title="ค่าอาหารเที่ยงที่ MK",
            total_amount=1250,
            description="สุกี้ + เครื่องดื่ม",
            date="2025-11-14",
            members=_members(
                (SELF_NAME, 312.5, False),
                ("มิกิ", 312.5, True),
                ("โยชิ", 312.5, False),
                ("แอน", 312.5, False),
            ),
        ),
        Bill(
            id="2",
            title="ค่าแท็กซี่กลับบ้าน",
            total_amount=280,
            description="จากสยามไปบางนา",
            date="2025-11-13",
            created_by="มิกิ",
            members=_members(
                (SELF_NAME, 93.33, False),
                ("มิกิ", 93.33, True),
                ("โยชิ", 93.34, False),
            ),
        ),
        Bill(
            id="3",
            title="ซื้อของใช้ในหอ",
            total_amount=450,
            description="ผงซักฟอก + น้ำยาล้างจาน",
            date="2025-11-12",
            members=_members(
                (SELF_NAME, 150, True),
                ("มิกิ", 150, False),
                ("โยชิ", 150, False),
            ),
        ),
        Bill(
            id="4",
            title="ค่าหนังที่ SF",
            total_amount=680,
            description="Fast & Furious 11",
            date="2025-11-10",
            created_by="แอน",
            status="settled",
            settled_at="2025-11-11",
            members=_members(
                (SELF_NAME, 170, True),
                ("มิกิ", 170, True),
                ("โยชิ", 170, True),
                ("แอน", 170, True),
            ),
        ),
    ]


class BillBook:
    """
    Holds bills and drives their settlement.

    When a payment settles a bill, `on_settled` is called with the bill
    after `settle_notice_delay` seconds. The callback may be a plain
    function or a coroutine function.
    """

    def __init__(
        self,
        bills: Optional[List[Bill]] = None,
        settle_notice_delay: float = 1.0,
        on_settled: Optional[SettledCallback] = None,
    ):
        seed = demo_bills() if bills is None else bills
        self._bills: Dict[str, Bill] = {bill.id: bill for bill in seed}
        self.settle_notice_delay = settle_notice_delay
        self.on_settled = on_settled
        self._pending: Set["asyncio.Task[None]"] = set()

    def list_bills(self, status: Optional[BillStatus] = None) -> List[Bill]:
        """Bills, newest first, optionally filtered by status."""
        bills = [b for b in self._bills.values() if status is None or b.status == status]
        return sorted(bills, key=lambda b: b.date or "", reverse=True)

    def get_bill(self, bill_id: str) -> Bill:
        try:
            return self._bills[str(bill_id)]
        except KeyError:
            raise NotFoundError(f"Bill not found: {bill_id}")

    def _next_id(self) -> str:
        numeric = [int(key) for key in self._bills if key.isdigit()]
        return str(max(numeric, default=0) + 1)

    def create_bill(
        self,
        title: str,
        total_amount: float,
        member_names: List[str],
        description: str = "",
        bill_date: Optional[str] = None,
    ) -> Bill:
        """
        Create a bill split equally between you and the named members.

        Raises:
            InvalidInputError: Missing title, non-positive total or no members
        """
        title = require_text(title, "title")
        names = [n for n in member_names if n.strip() and n.strip() != SELF_NAME]
        if not names:
            raise InvalidInputError("กรุณาเพิ่มสมาชิกอย่างน้อย 1 คน")

        bill = Bill(
            id=self._next_id(),
            title=title,
            total_amount=total_amount,
            description=description,
            date=bill_date or date.today().isoformat(),
            members=split_equally(total_amount, names),
        )
        self._bills[bill.id] = bill
        logger.info("Created bill %s split between %d people", bill.id, len(bill.members))
        return bill

    def edit_bill(
        self,
        bill_id: str,
        title: str,
        total_amount: float,
        member_names: List[str],
        description: str = "",
    ) -> Bill:
        bill = self.get_bill(bill_id)
        title = require_text(title, "title")
        if not [n for n in member_names if n.strip() and n.strip() != SELF_NAME]:
            raise InvalidInputError("กรุณาเพิ่มสมาชิกอย่างน้อย 1 คน")
        bill.resplit(title, total_amount, member_names, description)
        return bill

    def delete_bill(self, bill_id: str) -> None:
        self.get_bill(bill_id)
        del self._bills[str(bill_id)]

    async def mark_paid(self, bill_id: str, member_name: str) -> BillPayment:
        """
        Mark a member's share as paid.

        If that settles the bill, the settle notice is scheduled and this
        returns without waiting for it.
        """
        bill = self.get_bill(bill_id)
        payment = bill.mark_paid(
            member_name,
            paid_at=datetime.now().isoformat(timespec="seconds"),
            today=date.today().isoformat(),
        )

        if bill.status == "settled":
            logger.info("Bill %s settled", bill.id)
            task = asyncio.create_task(self._announce_settled(bill))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        return payment

    async def _announce_settled(self, bill: Bill) -> None:
        await asyncio.sleep(self.settle_notice_delay)
        if self.on_settled is None:
            return
        try:
            result = self.on_settled(bill)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Settle notice for bill %s failed", bill.id)

    async def wait_for_notices(self) -> None:
        """Wait until every scheduled settle notice has run."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    def unpaid_reminders(self, bill_id: str) -> List[BillMember]:
        """Members (other than you) who still owe their share."""
        bill = self.get_bill(bill_id)
        if bill.status == "settled":
            return []
        return [m for m in bill.unpaid_members if m.name != SELF_NAME]
