from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from paperify.api.deps import get_settings, get_users
from paperify.core.auth import SessionClaims, create_session_token, require_session
from paperify.core.config import Settings
from paperify.core.errors import AuthenticationError
from paperify.features.users.service import UserStore

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterIn(BaseModel):
    email: str
    password: str
    name: Optional[str] = None
    subject: Optional[str] = None
    age: Optional[int] = None
    institution: Optional[str] = None
    country: Optional[str] = None
    preferred_books: List[str] = Field(default_factory=list)


class LoginIn(BaseModel):
    email: str
    password: str


@router.post("/register")
async def register(
    data: RegisterIn,
    users: UserStore = Depends(get_users),
    settings: Settings = Depends(get_settings),
):
    user = users.register(**data.model_dump())
    return {
        "success": True,
        "user_id": user.id,
        "token": create_session_token(settings, user.id, user.email),
    }


@router.post("/login")
async def login(
    data: LoginIn,
    users: UserStore = Depends(get_users),
    settings: Settings = Depends(get_settings),
):
    user = users.authenticate(data.email, data.password)
    if user is None:
        raise AuthenticationError("Invalid credentials")
    return {
        "success": True,
        "user": user.public(),
        "token": create_session_token(settings, user.id, user.email),
    }


@router.post("/logout")
async def logout():
    """Sessions are bearer tokens; the client discards its copy."""
    return {"success": True}


@router.get("/me")
async def me(
    claims: SessionClaims = Depends(require_session),
    users: UserStore = Depends(get_users),
):
    user = users.get_by_id(claims.user_id)
    if user is None:
        raise AuthenticationError("Not authenticated")
    return {"user": user.public()}
