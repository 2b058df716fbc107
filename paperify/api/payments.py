"""
Payment API routes.

- POST /api/payment/submit: multipart submission with a screenshot
- GET  /api/payment/status/{transaction_id}: status lookup
"""
import json
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from paperify.api.deps import get_payments, get_screenshots
from paperify.core.auth import SessionClaims, get_optional_session
from paperify.core.errors import AppError, AuthenticationError, MissingScreenshotError, ValidationError
from paperify.features.payments.service import PaymentService
from paperify.features.payments.uploads import ScreenshotStore
from paperify.models.payment import PaymentStatus, PaymentSubmission

logger = logging.getLogger("paperify")

router = APIRouter(prefix="/api/payment", tags=["payments"])


def _parse_books(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    try:
        books = json.loads(raw)
    except ValueError:
        raise ValidationError("books must be a JSON list of strings")
    if not isinstance(books, list) or not all(isinstance(b, str) for b in books):
        raise ValidationError("books must be a JSON list of strings")
    return [b.strip() for b in books if b.strip()]


@router.post("/submit")
async def submit_payment(
    plan: str = Form(...),
    amount: Optional[str] = Form(None),
    transaction_id: Optional[str] = Form(None),
    payment_number: Optional[str] = Form(None),
    books: Optional[str] = Form(None),
    screenshot: Optional[UploadFile] = File(None),
    claims: Optional[SessionClaims] = Depends(get_optional_session),
    payments: PaymentService = Depends(get_payments),
    screenshots: ScreenshotStore = Depends(get_screenshots),
):
    if claims is None:
        raise AuthenticationError("Please login first to submit payment")

    submission = PaymentSubmission(
        plan=plan,
        amount=amount,
        transaction_id=(transaction_id or "").strip() or None,
        payment_number=(payment_number or "").strip() or None,
        books=_parse_books(books),
    )
    # Field checks run before the upload is written to disk.
    payments.precheck(submission)
    if screenshot is None or not screenshot.filename:
        raise MissingScreenshotError("Screenshot is required")

    stored = await screenshots.save(screenshot)
    submission = submission.model_copy(
        update={"screenshot_ref": stored.ref, "screenshot_content_type": stored.content_type}
    )
    try:
        record = payments.submit(submission, claims.email)
    except AppError:
        screenshots.discard(stored.ref)
        raise

    if record.status == PaymentStatus.APPROVED:
        message = f"Payment approved! You can now use Paperify until {record.expires_at.date().isoformat()}."
    else:
        message = "Payment submitted! Approval pending review."
    return {
        "success": True,
        "status": record.status.value,
        "plan": record.plan,
        "expires_at": record.expires_at.isoformat(),
        "message": message,
    }


@router.get("/status/{transaction_id}")
async def payment_status(
    transaction_id: str,
    payments: PaymentService = Depends(get_payments),
):
    return payments.status(transaction_id)
