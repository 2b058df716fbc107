"""
paperify/models/entitlement.py

Outcome of evaluating whether a caller may run one more generation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class EntitlementStatus(str, Enum):
    TEMPORARY_UNLIMITED = "TEMPORARY_UNLIMITED"
    UNLIMITED = "UNLIMITED"
    SUBJECT_LIMITED = "SUBJECT_LIMITED"
    NEEDS_BOOK_SELECTION = "NEEDS_BOOK_SELECTION"
    SUBJECT_DENIED = "SUBJECT_DENIED"
    DEMO_LIMITED = "DEMO_LIMITED"
    LOGIN_REQUIRED = "LOGIN_REQUIRED"


_METERED = frozenset({EntitlementStatus.SUBJECT_LIMITED, EntitlementStatus.DEMO_LIMITED})
_UNLIMITED = frozenset({EntitlementStatus.UNLIMITED, EntitlementStatus.TEMPORARY_UNLIMITED})


@dataclass(frozen=True)
class EntitlementDecision:
    status: EntitlementStatus
    used: Optional[int] = None
    limit: Optional[int] = None
    plan: Optional[str] = None
    plan_display: Optional[str] = None
    allowed_subjects: Tuple[str, ...] = field(default_factory=tuple)
    requested_subject: Optional[str] = None
    expires_at: Optional[datetime] = None
    message: Optional[str] = None

    @property
    def unlimited(self) -> bool:
        return self.status in _UNLIMITED

    @property
    def allowed(self) -> bool:
        if self.unlimited:
            return True
        if self.status in _METERED:
            return self.used is not None and self.limit is not None and self.used < self.limit
        return False

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "status": self.status.value,
            "allowed": self.allowed,
            "unlimited": self.unlimited,
            "count": self.used if self.used is not None else 0,
            "limit": self.limit,
        }
        if self.plan:
            payload["plan"] = self.plan
            payload["plan_display"] = self.plan_display
        if self.allowed_subjects:
            payload["allowed_books"] = list(self.allowed_subjects)
        if self.requested_subject is not None and self.status == EntitlementStatus.SUBJECT_DENIED:
            payload["current_subject"] = self.requested_subject
        if self.status == EntitlementStatus.NEEDS_BOOK_SELECTION:
            payload["needs_book_selection"] = True
        if self.expires_at is not None:
            payload["expires_at"] = self.expires_at.isoformat()
        if self.message:
            payload["error"] = self.message
        return payload


@dataclass(frozen=True)
class UsageReceipt:
    """Post-increment count of the bucket a usage event landed in."""
    count: int
    limit: Optional[int]
    plan: Optional[str] = None
    unlimited: bool = False

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"count": self.count, "limit": self.limit, "unlimited": self.unlimited}
        if self.plan:
            payload["plan"] = self.plan
        return payload
