"""
Admin API routes.

The only admin capability is granting the superuser's own session a
temporary unlimited window, returned as a re-issued session token.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, Field

from paperify.api.deps import get_settings
from paperify.core.auth import SessionClaims, create_session_token, require_superuser
from paperify.core.config import Settings

logger = logging.getLogger("paperify")

router = APIRouter(prefix="/api/admin", tags=["admin"])

MAX_GRANT_MS = 30 * 24 * 3600 * 1000


class TempUnlimitedRequest(BaseModel):
    # Non-positive values fall back to the configured default.
    duration_ms: Optional[int] = Field(None, le=MAX_GRANT_MS)


@router.post("/temp-unlimited")
async def grant_temp_unlimited(
    body: Optional[TempUnlimitedRequest] = Body(None),
    claims: SessionClaims = Depends(require_superuser),
    settings: Settings = Depends(get_settings),
):
    duration_ms = body.duration_ms if body and body.duration_ms and body.duration_ms > 0 else settings.TEMP_UNLIMITED_DEFAULT_MS
    expires_at = datetime.now(timezone.utc) + timedelta(milliseconds=duration_ms)
    token = create_session_token(settings, claims.user_id, claims.email, temp_unlimited_until=expires_at)
    logger.info("admin.temp_unlimited_granted", extra={"user_email": claims.email})
    return {
        "success": True,
        "expires_at": expires_at.isoformat(),
        "expires_at_ms": int(expires_at.timestamp() * 1000),
        "token": token,
    }
