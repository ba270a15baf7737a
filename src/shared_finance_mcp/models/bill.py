"""
Bill splitting models.

Bills are demo data held in memory; they are never sent to the backend.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, computed_field

from shared_finance_mcp.core.exceptions import InvalidInputError, NotFoundError

# Display name of the user who created the bill
SELF_NAME = "คุณ"

BillStatus = Literal["active", "settled"]


class BillMember(BaseModel):
    name: str
    amount: float
    paid: bool = False


class BillPayment(BaseModel):
    """A member's share being marked as paid."""

    member_name: str
    amount: float
    paid_at: str


class Bill(BaseModel):
    """
    A shared expense split among named members.

    The bill moves from `active` to `settled` the moment every member has
    paid. Settled is terminal.
    """

    id: str
    title: str
    total_amount: float
    description: str = ""
    date: Optional[str] = None
    created_by: str = SELF_NAME
    members: List[BillMember] = []
    payments: List[BillPayment] = []
    status: BillStatus = "active"
    settled_at: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def completion_percentage(self) -> float:
        if not self.members:
            return 0.0
        return len(self.paid_members) / len(self.members) * 100

    @property
    def paid_members(self) -> List[BillMember]:
        return [m for m in self.members if m.paid]

    @property
    def unpaid_members(self) -> List[BillMember]:
        return [m for m in self.members if not m.paid]

    @property
    def all_paid(self) -> bool:
        return bool(self.members) and all(m.paid for m in self.members)

    def member(self, name: str) -> BillMember:
        for m in self.members:
            if m.name == name:
                return m
        raise NotFoundError(f"Member '{name}' not found in bill {self.id}")

    def mark_paid(self, member_name: str, paid_at: str, today: str) -> BillPayment:
        """
        Mark one member's share as paid.

        Settles the bill when this was the last unpaid member.

        Args:
            member_name: Member to mark
            paid_at: Timestamp recorded in the payment history
            today: Date (YYYY-MM-DD) recorded as settled_at on settlement

        Raises:
            NotFoundError: If the member is not part of the bill
            InvalidInputError: If the bill is settled or the member already paid
        """
        if self.status == "settled":
            raise InvalidInputError(f"Bill {self.id} is already settled")

        member = self.member(member_name)
        if member.paid:
            raise InvalidInputError(f"{member_name} has already paid")

        member.paid = True
        payment = BillPayment(member_name=member_name, amount=member.amount, paid_at=paid_at)
        self.payments.insert(0, payment)

        if self.all_paid:
            self.status = "settled"
            self.settled_at = today

        return payment

    def resplit(
        self,
        title: str,
        total_amount: float,
        member_names: List[str],
        description: str = "",
    ) -> None:
        """Re-split the bill equally, keeping the paid flags of remaining members."""
        if self.status == "settled":
            raise InvalidInputError(f"Bill {self.id} is already settled")

        previous = {m.name: m.paid for m in self.members}
        self.title = title
        self.total_amount = total_amount
        self.description = description
        self.members = split_equally(total_amount, member_names)
        for m in self.members[1:]:
            m.paid = previous.get(m.name, False)


def split_equally(total_amount: float, member_names: List[str]) -> List[BillMember]:
    """
    Split a total between the creator and the named members.

    The creator comes first and is marked paid (they paid the bill up
    front). Shares are rounded to satang; the last share absorbs the
    rounding remainder so shares always add up to the total.
    """
    if total_amount <= 0:
        raise InvalidInputError("จำนวนเงินต้องมากกว่า 0")

    names = [SELF_NAME] + [n.strip() for n in member_names if n.strip() and n.strip() != SELF_NAME]
    share = round(total_amount / len(names), 2)

    members = [BillMember(name=name, amount=share) for name in names]
    members[-1].amount = round(total_amount - share * (len(names) - 1), 2)
    members[0].paid = True
    return members
