"""
Notification model for the shared finance backend.
"""

from typing import Literal, Optional

from pydantic import BaseModel


class Notification(BaseModel):
    """An in-app notification for one user."""

    model_config = {"strict": True, "populate_by_name": True}

    id: str
    user_id: str
    title: str
    message: str
    type: Literal["info", "warning", "error", "success"] = "info"
    priority: Literal["low", "normal", "high", "urgent"] = "normal"
    is_read: bool = False
    icon: Optional[str] = None
    action_url: Optional[str] = None
    created_at: Optional[str] = None
