"""
Category model for the shared finance backend.
"""

from typing import Literal, Optional

from pydantic import BaseModel


class Category(BaseModel):
    """
    Represents an income or expense category.

    Categories belong to a user and label transactions and budgets.
    """

    model_config = {"strict": True, "populate_by_name": True}

    # Required fields
    id: str
    name: str

    # Optional fields
    type: Literal["income", "expense"] = "expense"
    user_id: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    is_active: bool = True
