"""
paperify/features/entitlements/service.py

Entitlement evaluation over the payment ledger and usage counters.

Handles:
- Active-record selection (approved, unexpired, latest submission wins)
- Evaluation of a generation request into an EntitlementDecision
- Recording a usage event into the bucket of the branch taken
- The one-time books lock on monthly_specific subscriptions
- Subscription summaries for the account page
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from paperify.core.errors import AuthenticationError, NotEligibleError, ValidationError
from paperify.features.payments.ledger import PaymentLedger
from paperify.features.usage.service import UsageCounters, normalize_subject
from paperify.models.entitlement import EntitlementDecision, EntitlementStatus, UsageReceipt
from paperify.models.payment import PaymentRecord, PaymentStatus
from paperify.models.plan import (
    DEMO_LIMIT,
    SUBJECT_LIMIT,
    UNLIMITED_PLANS,
    PlanName,
    display_plan,
    parse_plan,
)
from paperify.models.user import Identity


logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "General"


def _normalize_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def select_active_record(
    records: Iterable[PaymentRecord], user_email: str, now: datetime
) -> Optional[PaymentRecord]:
    """Pick the single record that governs a user's entitlements.

    Among approved records for `user_email` whose expiry is after `now`, the
    latest `submitted_at` wins; ledger id breaks exact ties.
    """
    now = _normalize_now(now)
    candidates = [r for r in records if r.user_email == user_email and r.is_active(now)]
    if not candidates:
        return None
    return max(candidates, key=lambda r: (r.submitted_at, r.id or 0))


def days_remaining(expires_at: datetime, now: datetime) -> int:
    return math.ceil((expires_at - now).total_seconds() / 86400)


def _clean_books(books: Iterable[str]) -> List[str]:
    seen = set()
    cleaned = []
    for book in books:
        name = (book or "").strip()
        if name and name.lower() not in seen:
            seen.add(name.lower())
            cleaned.append(name)
    return cleaned


class EntitlementEvaluator:
    """Decides what a caller may do, given the ledger and the usage counters."""

    def __init__(
        self,
        ledger: PaymentLedger,
        counters: UsageCounters,
        *,
        demo_limit: int = DEMO_LIMIT,
        subject_limit: int = SUBJECT_LIMIT,
    ):
        self.ledger = ledger
        self.counters = counters
        self.demo_limit = demo_limit
        self.subject_limit = subject_limit

    def active_record(self, user_email: str, now: Optional[datetime] = None) -> Optional[PaymentRecord]:
        return select_active_record(self.ledger.list_by_email(user_email), user_email, _normalize_now(now))

    # ===== EVALUATION =====

    def _demo_decision(self, usage_key: str) -> EntitlementDecision:
        used = self.counters.get_demo_count(usage_key)
        return EntitlementDecision(
            status=EntitlementStatus.DEMO_LIMITED,
            used=used,
            limit=self.demo_limit,
            message="Demo limit reached. Please purchase a plan." if used >= self.demo_limit else None,
        )

    def evaluate(
        self,
        identity: Identity,
        subject: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EntitlementDecision:
        """Evaluate one generation request without recording it."""
        normalized_now = _normalize_now(now)
        subject = subject or DEFAULT_SUBJECT

        if identity.has_temp_unlimited(normalized_now):
            return EntitlementDecision(
                status=EntitlementStatus.TEMPORARY_UNLIMITED,
                used=0,
                expires_at=identity.temp_unlimited_until,
            )

        if identity.is_guest:
            return self._demo_decision(identity.user_id)

        if not identity.is_authenticated:
            return EntitlementDecision(
                status=EntitlementStatus.LOGIN_REQUIRED,
                used=0,
                limit=self.demo_limit,
                message="Please login to continue",
            )

        active = self.active_record(identity.user_email, normalized_now)
        if active is None:
            return self._demo_decision(identity.user_id)

        plan = parse_plan(active.plan)
        if plan in UNLIMITED_PLANS:
            return EntitlementDecision(
                status=EntitlementStatus.UNLIMITED,
                used=0,
                plan=plan.value,
                plan_display=display_plan(plan.value),
                expires_at=active.expires_at,
            )

        if plan != PlanName.MONTHLY_SPECIFIC:
            logger.warning(
                "[entitlement] unrecognized plan on active record, using demo limit",
                extra={"user_email": identity.user_email, "plan": active.plan, "transaction_id": active.transaction_id},
            )
            return self._demo_decision(identity.user_id)

        common = dict(
            plan=plan.value,
            plan_display=display_plan(plan.value),
            allowed_subjects=tuple(active.books),
            requested_subject=subject,
            expires_at=active.expires_at,
        )

        if not active.books:
            return EntitlementDecision(
                status=EntitlementStatus.NEEDS_BOOK_SELECTION,
                message="Please select your books first for your Monthly plan.",
                **common,
            )

        allowed = {normalize_subject(book) for book in active.books}
        if normalize_subject(subject) not in allowed:
            logger.info(
                "[entitlement] SUBJECT_DENIED",
                extra={"user_email": identity.user_email, "transaction_id": active.transaction_id},
            )
            return EntitlementDecision(
                status=EntitlementStatus.SUBJECT_DENIED,
                message=f"Your Monthly plan is only for: {', '.join(active.books)}. Current subject: {subject}",
                **common,
            )

        used = self.counters.get_subject_count(identity.user_email, active.transaction_id, subject)
        return EntitlementDecision(
            status=EntitlementStatus.SUBJECT_LIMITED,
            used=used,
            limit=self.subject_limit,
            message="Monthly limit reached for this subject." if used >= self.subject_limit else None,
            **common,
        )

    # ===== RECORDING =====

    def record_usage(
        self,
        identity: Identity,
        subject: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> UsageReceipt:
        """Count one generation in the bucket of the branch the caller falls into.

        Eligibility is not re-checked here; callers evaluate first and honor
        a denial before recording.
        """
        normalized_now = _normalize_now(now)
        subject = subject or DEFAULT_SUBJECT

        if identity.has_temp_unlimited(normalized_now):
            return UsageReceipt(count=0, limit=None, unlimited=True)

        if identity.is_guest:
            return self._record_demo(identity.user_id)

        if not identity.is_authenticated:
            raise AuthenticationError("Session expired")

        active = self.active_record(identity.user_email, normalized_now)
        if active is None:
            return self._record_demo(identity.user_id)

        plan = parse_plan(active.plan)
        if plan in UNLIMITED_PLANS:
            return UsageReceipt(count=0, limit=None, plan=plan.value, unlimited=True)

        if plan != PlanName.MONTHLY_SPECIFIC:
            return self._record_demo(identity.user_id)

        count = self.counters.increment_subject(identity.user_email, active.transaction_id, subject)
        logger.info(
            "usage.recorded",
            extra={
                "user_email": identity.user_email,
                "transaction_id": active.transaction_id,
                "plan": plan.value,
                "event_type": "subject",
            },
        )
        return UsageReceipt(count=count, limit=self.subject_limit, plan=plan.value)

    def _record_demo(self, usage_key: str) -> UsageReceipt:
        count = self.counters.increment_demo(usage_key)
        logger.info("usage.recorded", extra={"event_type": "demo"})
        return UsageReceipt(count=count, limit=self.demo_limit)

    # ===== BOOK LOCK =====

    def lock_books(
        self,
        user_email: str,
        books: Iterable[str],
        now: Optional[datetime] = None,
    ) -> PaymentRecord:
        """Attach books to the caller's active monthly_specific record, once.

        Raises:
            ValidationError: no book given
            NotEligibleError: no active monthly_specific record, or books
                were already locked on it
        """
        normalized_now = _normalize_now(now)
        cleaned = _clean_books(books)
        if not cleaned:
            raise ValidationError("Book is required")

        active = self.active_record(user_email, normalized_now)
        if active is None or parse_plan(active.plan) != PlanName.MONTHLY_SPECIFIC:
            raise NotEligibleError(
                "No eligible Monthly plan subscription found.",
                reason=NotEligibleError.NO_MATCHING_RECORD,
            )
        if active.books or active.books_locked_at is not None:
            raise NotEligibleError(
                "Books are already locked for this Monthly plan subscription.",
                reason=NotEligibleError.ALREADY_LOCKED,
            )
        if not self.ledger.lock_books(active.id, cleaned, normalized_now):
            # Another request locked it between our read and the update.
            raise NotEligibleError(
                "Books are already locked for this Monthly plan subscription.",
                reason=NotEligibleError.ALREADY_LOCKED,
            )

        logger.info(
            "subscription.book_locked",
            extra={"user_email": user_email, "transaction_id": active.transaction_id, "plan": active.plan},
        )
        return active.model_copy(update={"books": cleaned, "books_locked_at": normalized_now})

    # ===== SUMMARIES =====

    def subscription_summary(self, user_email: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        normalized_now = _normalize_now(now)
        records = self.ledger.list_by_email(user_email)
        active = select_active_record(records, user_email, normalized_now)

        if active is None:
            has_expired = any(
                r.status == PaymentStatus.APPROVED and r.is_expired(normalized_now) for r in records
            )
            return {"subscription": None, "has_expired_subscription": has_expired}

        return {
            "subscription": {
                "plan": display_plan(active.plan),
                "original_plan": active.plan,
                "books": list(active.books),
                "expires_at": active.expires_at.isoformat(),
                "is_expired": False,
                "days_remaining": days_remaining(active.expires_at, normalized_now),
                "is_active": True,
            }
        }

    def has_paid(self, user_email: str) -> bool:
        return any(r.status == PaymentStatus.APPROVED for r in self.ledger.list_by_email(user_email))
