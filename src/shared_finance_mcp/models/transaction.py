"""
Transaction model for the shared finance backend.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

TransactionType = Literal["income", "expense", "transfer"]


class Transaction(BaseModel):
    """
    A general ledger entry (income, expense or transfer).

    The backend sends these in camelCase (`transactionDate`, `categoryId`).
    """

    model_config = {
        "strict": True,
        "populate_by_name": True,
        "alias_generator": to_camel,
    }

    # Required fields
    id: str
    type: TransactionType
    amount: float
    transaction_date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}")

    # Ownership & categorization
    user_id: Optional[str] = None
    account_id: Optional[str] = None
    category_id: Optional[str] = None

    # Description
    description: str = ""
    notes: Optional[str] = None
    tags: List[str] = []

    # Links to other resources
    budget_id: Optional[str] = None
    shared_goal_id: Optional[str] = None
    bill_id: Optional[str] = None
    transfer_to_account_id: Optional[str] = None
    is_recurring: bool = False

    # Metadata
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def month_key(self) -> str:
        """Calendar month of the transaction as YYYY-MM."""
        return self.transaction_date[:7]

    @field_validator("amount")
    @classmethod
    def validate_amount_range(cls, v: float) -> float:
        """Validate that amount is within reasonable range."""
        if abs(v) > 10_000_000:
            raise ValueError(f"Amount {v} exceeds maximum allowed value")
        return v


class TransactionFilter(BaseModel):
    """Query filters accepted by the transaction list endpoint."""

    user_id: Optional[str] = None
    account_id: Optional[str] = None
    category_id: Optional[str] = None
    type: Optional[TransactionType] = None
    is_recurring: Optional[bool] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    bill_id: Optional[str] = None
    shared_goal_id: Optional[str] = None
    budget_id: Optional[str] = None
    search: Optional[str] = None
    page: Optional[int] = None
    limit: Optional[int] = None
