"""
Usage metering routes.

- GET  /api/demo/check: evaluate whether one more generation is allowed
- POST /api/demo/track: record one generation
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from paperify.api.deps import build_identity, get_evaluator
from paperify.core.auth import SessionClaims, get_optional_session
from paperify.features.entitlements.service import EntitlementEvaluator

router = APIRouter(prefix="/api/demo", tags=["usage"])


class TrackRequest(BaseModel):
    user_id: Optional[str] = None
    subject: Optional[str] = None


@router.get("/check")
async def check_usage(
    user_id: Optional[str] = Query(None),
    subject: Optional[str] = Query(None),
    claims: Optional[SessionClaims] = Depends(get_optional_session),
    evaluator: EntitlementEvaluator = Depends(get_evaluator),
):
    decision = evaluator.evaluate(build_identity(user_id, claims), subject)
    return decision.as_dict()


@router.post("/track")
async def track_usage(
    body: TrackRequest,
    claims: Optional[SessionClaims] = Depends(get_optional_session),
    evaluator: EntitlementEvaluator = Depends(get_evaluator),
):
    receipt = evaluator.record_usage(build_identity(body.user_id, claims), body.subject)
    return receipt.as_dict()
