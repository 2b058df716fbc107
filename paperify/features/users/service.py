"""
User accounts.
- register(...)
- authenticate(email, password)
- get_by_email / get_by_id
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy import select, insert
from sqlalchemy.exc import IntegrityError

from paperify.core.auth import hash_password, verify_password
from paperify.core.database import Database, users
from paperify.core.errors import ValidationError
from paperify.models.payment import as_utc
from paperify.models.user import User

logger = logging.getLogger(__name__)

# bcrypt only hashes the first 72 bytes
MAX_PASSWORD_BYTES = 72


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        name=row.name,
        password_hash=row.password_hash,
        subject=row.subject,
        age=row.age,
        institution=row.institution,
        country=row.country,
        preferred_books=list(row.preferred_books or []),
        created_at=as_utc(row.created_at) if row.created_at else None,
    )


class UserStore:
    def __init__(self, db: Database):
        self.db = db

    def get_by_email(self, email: str) -> Optional[User]:
        with self.db.session() as session:
            row = session.execute(select(users).where(users.c.email == normalize_email(email))).first()
        return _row_to_user(row) if row else None

    def get_by_id(self, user_id: str) -> Optional[User]:
        with self.db.session() as session:
            row = session.execute(select(users).where(users.c.id == user_id)).first()
        return _row_to_user(row) if row else None

    def register(
        self,
        *,
        email: str,
        password: str,
        name: Optional[str] = None,
        subject: Optional[str] = None,
        age: Optional[int] = None,
        institution: Optional[str] = None,
        country: Optional[str] = None,
        preferred_books: Optional[List[str]] = None,
    ) -> User:
        """
        Create a user account.

        Raises:
            ValidationError: missing email/password, password over 72 bytes,
                or the email is taken
        """
        email = normalize_email(email)
        if not email or not password:
            raise ValidationError("Email and password are required")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError("Password must be at most 72 bytes", code="invalid_password")
        if self.get_by_email(email):
            raise ValidationError("User already exists", code="user_exists")

        user = User(
            id=str(uuid.uuid4()),
            email=email,
            name=name,
            password_hash=hash_password(password),
            subject=subject,
            age=age,
            institution=institution,
            country=country,
            preferred_books=list(preferred_books or []),
            created_at=datetime.now(timezone.utc),
        )
        try:
            with self.db.session() as session:
                session.execute(insert(users).values(**user.model_dump()))
        except IntegrityError as exc:
            raise ValidationError("User already exists", code="user_exists") from exc

        logger.info("user.registered", extra={"user_email": email})
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.get_by_email(email)
        if user is None or not password or not verify_password(password, user.password_hash):
            return None
        return user
