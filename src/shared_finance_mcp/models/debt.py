"""
Debt models: money one user owes another, and repayments against it.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, computed_field

DebtStatus = Literal["pending", "settled", "cancelled"]


class Debt(BaseModel):
    """
    A debt from `debtor_id` to `creditor_id`.

    `paid_amount` and `status` are maintained by the backend as payments
    are recorded and deleted.
    """

    model_config = {"strict": True, "populate_by_name": True}

    # Required fields
    id: str
    creditor_id: str
    debtor_id: str
    amount: float

    # Repayment
    paid_amount: float = 0.0
    status: DebtStatus = "pending"
    due_date: Optional[str] = None
    interest_rate: Optional[float] = None

    description: Optional[str] = None

    # Metadata
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def remaining_amount(self) -> float:
        return max(self.amount - self.paid_amount, 0.0)


class DebtPayment(BaseModel):
    """One repayment against a debt."""

    model_config = {"strict": True, "populate_by_name": True, "frozen": True}

    id: str
    debt_id: str
    amount: float
    payment_date: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None


class DebtPaymentResult(BaseModel):
    """Outcome of recording a repayment."""

    debt: Debt
    payment: DebtPayment
    settled: bool = False


class DebtOverview(BaseModel):
    """Debts of one user, split by direction."""

    # Money others owe the user
    lent: List[Debt]
    # Money the user owes others
    owed: List[Debt]
    total_lent_outstanding: float
    total_owed_outstanding: float
