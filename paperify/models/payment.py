"""
paperify/models/payment.py

Payment ledger records.

A record is created once per submission. The only mutation allowed
afterwards is attaching `books` to a monthly_specific record (lock-in).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class PaymentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class PaymentRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    plan: str
    frontend_plan: Optional[str] = None
    amount: Optional[str] = None
    transaction_id: str
    screenshot: Optional[str] = None
    books: List[str] = Field(default_factory=list)
    books_locked_at: Optional[datetime] = None
    payment_number: Optional[str] = None
    user_email: str
    submitted_at: datetime
    expires_at: datetime
    status: PaymentStatus = PaymentStatus.PENDING
    claimed: bool = True

    def is_active(self, now: datetime) -> bool:
        return self.status == PaymentStatus.APPROVED and as_utc(self.expires_at) > now

    def is_expired(self, now: datetime) -> bool:
        return as_utc(self.expires_at) <= now


class PaymentSubmission(BaseModel):
    """Raw fields of a submission before validation."""
    model_config = ConfigDict(frozen=True)

    plan: str
    amount: Optional[str] = None
    transaction_id: Optional[str] = None
    payment_number: Optional[str] = None
    books: List[str] = Field(default_factory=list)
    screenshot_ref: Optional[str] = None
    screenshot_content_type: Optional[str] = None

    @property
    def has_screenshot(self) -> bool:
        return bool(self.screenshot_ref)

    @property
    def screenshot_is_image(self) -> bool:
        return bool(self.screenshot_content_type) and self.screenshot_content_type.startswith("image/")
