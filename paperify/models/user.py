from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

GUEST_ID = "guest"
GUEST_PREFIX = "guest_"


def is_guest_id(user_id: Optional[str]) -> bool:
    return not user_id or user_id == GUEST_ID or user_id.startswith(GUEST_PREFIX)


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: Optional[str] = None
    password_hash: str
    subject: Optional[str] = None
    age: Optional[int] = None
    institution: Optional[str] = None
    country: Optional[str] = None
    preferred_books: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    def public(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "subject": self.subject,
            "preferred_books": list(self.preferred_books),
        }


class Identity(BaseModel):
    """Who is calling, as established by the session token.

    `user_id` is the client-supplied identifier (a real user id or a
    `guest_*` id); `user_email` is only set for authenticated sessions.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str = GUEST_ID
    user_email: Optional[str] = None
    temp_unlimited_until: Optional[datetime] = None

    @property
    def is_guest(self) -> bool:
        return is_guest_id(self.user_id)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_email)

    def has_temp_unlimited(self, now: Optional[datetime] = None) -> bool:
        if self.temp_unlimited_until is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now < self.temp_unlimited_until
