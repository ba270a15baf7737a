"""
Account models for the shared finance backend.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, computed_field

AccountType = Literal["personal", "shared", "business"]
MemberRole = Literal["owner", "admin", "member"]
MemberPermission = Literal["view", "deposit", "withdraw", "invite"]

NO_BANK_LABEL = "ไม่ระบุธนาคาร"


class Account(BaseModel):
    """
    A personal, shared or business account.

    The balance is owned by the backend; it only changes through balance
    operations, transfers and transaction refunds.
    """

    model_config = {"strict": True, "populate_by_name": True}

    # Required fields
    id: str
    name: str
    current_balance: float

    # Ownership
    user_id: Optional[str] = None
    account_type: AccountType = "personal"

    # Bank details
    bank_name: Optional[str] = None
    bank_number: Optional[str] = None
    color: Optional[str] = None

    # Balances
    start_amount: float = 0.0

    # Sharing
    share_code: Optional[str] = None
    is_private: bool = False
    is_active: bool = True

    # Metadata
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_name(self) -> str:
        """Account name with its bank, as shown in account pickers."""
        return f"{self.name} ({self.bank_name or NO_BANK_LABEL})"


class AccountMember(BaseModel):
    """Membership of a user in a shared account."""

    model_config = {"strict": True, "populate_by_name": True}

    id: str
    account_id: str
    user_id: str
    role: MemberRole = "member"
    permissions: List[MemberPermission] = []
    can_deposit: bool = False
    can_withdraw: bool = False
    joined_at: Optional[str] = None
    invited_by: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_editable(self) -> bool:
        """The owner's role and permissions cannot be changed."""
        return self.role != "owner"


class AccountTransfer(BaseModel):
    """A completed movement of money between two accounts."""

    model_config = {"strict": True, "populate_by_name": True, "frozen": True}

    id: str
    from_account_id: str
    to_account_id: str
    amount: float
    note: Optional[str] = None
    transferred_by: Optional[str] = None
    created_at: Optional[str] = None


class AccountTransaction(BaseModel):
    """A deposit into or withdrawal from a single account."""

    model_config = {"strict": True, "populate_by_name": True, "frozen": True}

    id: str
    account_id: str
    transaction_type: Literal["deposit", "withdraw"]
    amount: float
    user_id: Optional[str] = None
    note: Optional[str] = None
    category_id: Optional[str] = None
    created_at: Optional[str] = None


class BalanceChange(BaseModel):
    """Outcome of a deposit or withdrawal."""

    account: Account
    transaction: AccountTransaction
    history: List[AccountTransaction] = []
