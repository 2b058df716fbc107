"""
Session tokens and password hashing.

A session is an HS256 JWT carrying the user id (`sub`), the email, and an
optional temporary-unlimited grant (`temp_unlimited_until`, epoch ms).
Logging out is dropping the token client-side.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Request

from paperify.core.config import Settings
from paperify.core.errors import AuthenticationError, PermissionError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    email: str
    temp_unlimited_until: Optional[datetime] = None


def _to_epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def _from_epoch_ms(value) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value) / 1000, timezone.utc)


def create_session_token(
    settings: Settings,
    user_id: str,
    email: str,
    temp_unlimited_until: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> str:
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "iat": issued,
        "exp": issued + timedelta(hours=settings.SESSION_TTL_HOURS),
    }
    if temp_unlimited_until is not None:
        payload["temp_unlimited_until"] = _to_epoch_ms(temp_unlimited_until)
    return jwt.encode(payload, settings.SESSION_SECRET, algorithm=JWT_ALGORITHM)


def decode_session_token(settings: Settings, token: str) -> SessionClaims:
    """
    Verify a session token.

    Raises:
        AuthenticationError: expired, tampered or incomplete token
    """
    try:
        payload = jwt.decode(token, settings.SESSION_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Session expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Invalid token: {e}")
        raise AuthenticationError("Invalid session token")

    user_id = payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        raise AuthenticationError("Invalid session token")
    return SessionClaims(
        user_id=user_id,
        email=email,
        temp_unlimited_until=_from_epoch_ms(payload.get("temp_unlimited_until")),
    )


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        return token or None
    return None


async def get_optional_session(request: Request) -> Optional[SessionClaims]:
    """Session claims when a bearer token is present, else None.

    A present but invalid token is an error rather than a silent guest.
    """
    token = _bearer_token(request)
    if not token:
        return None
    return decode_session_token(request.app.state.settings, token)


async def require_session(request: Request) -> SessionClaims:
    claims = await get_optional_session(request)
    if claims is None:
        raise AuthenticationError("Not authenticated")
    return claims


async def require_superuser(request: Request) -> SessionClaims:
    claims = await get_optional_session(request)
    settings: Settings = request.app.state.settings
    if claims is None or claims.email != settings.SUPERUSER_EMAIL:
        raise PermissionError("forbidden")
    return claims
