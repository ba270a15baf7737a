"""
Input checks that run before any request is sent.
"""

import math
import re
from typing import Optional

from shared_finance_mcp.core.exceptions import InsufficientBalanceError, InvalidInputError
from shared_finance_mcp.models.account import Account

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_positive_amount(amount: float) -> float:
    if not isinstance(amount, (int, float)) or not math.isfinite(amount) or amount <= 0:
        raise InvalidInputError("กรุณากรอกจำนวนเงินที่มากกว่า 0")
    return float(amount)


def require_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise InvalidInputError(f"กรุณากรอกข้อมูลให้ครบถ้วน ({field})")
    return value.strip()


def require_email(email: Optional[str]) -> str:
    email = require_text(email, "email")
    if not _EMAIL_PATTERN.match(email):
        raise InvalidInputError(f"รูปแบบอีเมลไม่ถูกต้อง: {email}")
    return email


def require_balance(account: Account, amount: float) -> None:
    """Reject moving more money out of an account than it holds."""
    if amount > account.current_balance:
        raise InsufficientBalanceError(account.current_balance, amount)
