"""
paperify/features/payments/service.py

Payment submission and status.

Handles:
- Submission validation (receiving number, transaction id, duplicates, screenshot)
- Plan aliasing and expiry computation
- Auto-approval through a pluggable PaymentVerifier
- Status lookups by transaction id

Auto-approval trusts what the client declares: there is no check against a
payment gateway. `PaymentVerifier` is the seam where one can be added.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Protocol

from paperify.core.errors import (
    DuplicateTransactionError,
    InvalidPhoneNumberError,
    InvalidTransactionIdError,
    MissingScreenshotError,
)
from paperify.core.logging import log_event
from paperify.features.entitlements.service import days_remaining
from paperify.features.payments.ledger import PaymentLedger
from paperify.models.payment import PaymentRecord, PaymentStatus, PaymentSubmission
from paperify.models.plan import canonical_plan, validity_days

logger = logging.getLogger(__name__)

TRANSACTION_ID_RE = re.compile(r"[0-9]{11}")


class PaymentVerifier(Protocol):
    def verify(self, submission: PaymentSubmission) -> bool:
        ...


class DeclaredContentTypeVerifier:
    """Approves any submission whose screenshot is declared as an image."""

    def verify(self, submission: PaymentSubmission) -> bool:
        return submission.screenshot_is_image


def is_valid_transaction_id(transaction_id: Optional[str]) -> bool:
    return bool(transaction_id) and TRANSACTION_ID_RE.fullmatch(transaction_id) is not None


def compute_expiry(plan: str, submitted_at: datetime) -> datetime:
    return submitted_at + timedelta(days=validity_days(plan))


def validate_submission(
    submission: PaymentSubmission,
    *,
    receiving_number: str,
    ledger: PaymentLedger,
    require_screenshot: bool = True,
) -> None:
    """Run the submission checks in order; the first failure is raised.

    `require_screenshot=False` lets the HTTP layer run the field checks
    before it spends time storing the upload.
    """
    if submission.payment_number != receiving_number:
        raise InvalidPhoneNumberError("Invalid payment number")
    if not is_valid_transaction_id(submission.transaction_id):
        raise InvalidTransactionIdError("Transaction ID must be 11 digits")
    if ledger.has_transaction(submission.transaction_id):
        raise DuplicateTransactionError("Transaction ID already used.")
    if require_screenshot and not submission.has_screenshot:
        raise MissingScreenshotError("Screenshot is required")


class PaymentService:
    def __init__(
        self,
        ledger: PaymentLedger,
        *,
        receiving_number: str,
        verifier: Optional[PaymentVerifier] = None,
        auto_approve: bool = True,
    ):
        self.ledger = ledger
        self.receiving_number = receiving_number
        self.verifier = verifier or DeclaredContentTypeVerifier()
        self.auto_approve = auto_approve

    def precheck(self, submission: PaymentSubmission) -> None:
        validate_submission(
            submission,
            receiving_number=self.receiving_number,
            ledger=self.ledger,
            require_screenshot=False,
        )

    def submit(
        self,
        submission: PaymentSubmission,
        user_email: str,
        now: Optional[datetime] = None,
    ) -> PaymentRecord:
        """Validate and append a submission to the ledger.

        Returns the stored record; its status is `approved` when the verifier
        accepts the submission and auto-approval is enabled, else `pending`.
        """
        submitted_at = now or datetime.now(timezone.utc)
        validate_submission(submission, receiving_number=self.receiving_number, ledger=self.ledger)

        approved = self.auto_approve and self.verifier.verify(submission)
        record = PaymentRecord(
            plan=canonical_plan(submission.plan),
            frontend_plan=submission.plan,
            amount=submission.amount,
            transaction_id=submission.transaction_id,
            screenshot=submission.screenshot_ref,
            books=list(submission.books),
            payment_number=submission.payment_number,
            user_email=user_email,
            submitted_at=submitted_at,
            expires_at=compute_expiry(submission.plan, submitted_at),
            status=PaymentStatus.APPROVED if approved else PaymentStatus.PENDING,
            claimed=True,
        )
        stored = self.ledger.append(record)
        logger.info(
            "payment.submitted",
            extra={"user_email": user_email, "transaction_id": stored.transaction_id, "plan": stored.plan},
        )

        if approved:
            log_event(
                "warning",
                "payment.auto_approved",
                user_email=user_email,
                transaction_id=stored.transaction_id,
                event_type="payment",
                extra={"plan": stored.plan, "trust": "client_declared"},
            )
        else:
            log_event(
                "info",
                "payment.pending_review",
                user_email=user_email,
                transaction_id=stored.transaction_id,
                event_type="payment",
                extra={"plan": stored.plan},
            )
        return stored

    def status(self, transaction_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        record = self.ledger.find_by_transaction_id(transaction_id)
        if record is None:
            return {"status": "not-found"}
        normalized_now = now or datetime.now(timezone.utc)
        return {
            "status": record.status.value,
            "plan": record.plan,
            "expires_at": record.expires_at.isoformat(),
            "is_expired": record.is_expired(normalized_now),
            "days_remaining": days_remaining(record.expires_at, normalized_now),
        }
