"""FastAPI dependencies resolving the per-app store handles on `app.state`."""

from typing import Optional

from fastapi import Request

from paperify.core.auth import SessionClaims
from paperify.core.config import Settings
from paperify.features.catalog.service import CatalogStore
from paperify.features.entitlements.service import EntitlementEvaluator
from paperify.features.payments.service import PaymentService
from paperify.features.payments.uploads import ScreenshotStore
from paperify.features.users.service import UserStore
from paperify.models.user import GUEST_ID, Identity


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_users(request: Request) -> UserStore:
    return request.app.state.users


def get_evaluator(request: Request) -> EntitlementEvaluator:
    return request.app.state.evaluator


def get_payments(request: Request) -> PaymentService:
    return request.app.state.payments


def get_screenshots(request: Request) -> ScreenshotStore:
    return request.app.state.screenshots


def get_catalog(request: Request) -> CatalogStore:
    return request.app.state.catalog


def build_identity(user_id: Optional[str], claims: Optional[SessionClaims]) -> Identity:
    """Combine the client-supplied identifier with the session, if any."""
    if claims is None:
        return Identity(user_id=user_id or GUEST_ID)
    return Identity(
        user_id=user_id or claims.user_id,
        user_email=claims.email,
        temp_unlimited_until=claims.temp_unlimited_until,
    )
