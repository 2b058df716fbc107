"""
Subscription API routes.

- GET  /api/user/subscription: active plan summary
- GET  /api/user/has-paid: any approved payment on record
- POST /api/user/subscription/lock-book: one-time book lock for the Monthly plan
"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from paperify.api.deps import get_evaluator
from paperify.core.auth import SessionClaims, get_optional_session, require_session
from paperify.features.entitlements.service import EntitlementEvaluator

router = APIRouter(prefix="/api/user", tags=["subscription"])


class LockBookRequest(BaseModel):
    book: Optional[str] = None
    books: List[str] = Field(default_factory=list)

    def requested_books(self) -> List[str]:
        return ([self.book] if self.book else []) + list(self.books)


@router.get("/subscription")
async def get_subscription(
    claims: Optional[SessionClaims] = Depends(get_optional_session),
    evaluator: EntitlementEvaluator = Depends(get_evaluator),
):
    if claims is None:
        return {"subscription": None}
    return evaluator.subscription_summary(claims.email)


@router.get("/has-paid")
async def has_paid(
    claims: Optional[SessionClaims] = Depends(get_optional_session),
    evaluator: EntitlementEvaluator = Depends(get_evaluator),
):
    if claims is None:
        return {"has_paid": False}
    return {"has_paid": evaluator.has_paid(claims.email)}


@router.post("/subscription/lock-book")
async def lock_book(
    body: LockBookRequest,
    claims: SessionClaims = Depends(require_session),
    evaluator: EntitlementEvaluator = Depends(get_evaluator),
):
    record = evaluator.lock_books(claims.email, body.requested_books())
    return {
        "success": True,
        "books": list(record.books),
        "message": f"Book \"{', '.join(record.books)}\" locked to your Monthly subscription.",
    }
