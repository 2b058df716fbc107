"""
Tests for picking the payment record that governs a user's entitlements.
"""
from datetime import datetime, timedelta, timezone

from paperify.features.entitlements.service import days_remaining, select_active_record
from paperify.models.payment import PaymentRecord, PaymentStatus

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _record(record_id, *, email="a@example.com", submitted_days_ago=1, valid_days=30,
            status=PaymentStatus.APPROVED, plan="monthly_unlimited"):
    submitted = NOW - timedelta(days=submitted_days_ago)
    return PaymentRecord(
        id=record_id,
        plan=plan,
        transaction_id=f"{record_id:011d}",
        user_email=email,
        submitted_at=submitted,
        expires_at=submitted + timedelta(days=valid_days),
        status=status,
    )


def test_no_records_means_no_active_record():
    assert select_active_record([], "a@example.com", NOW) is None


def test_pending_and_expired_records_are_ignored():
    records = [
        _record(1, status=PaymentStatus.PENDING),
        _record(2, submitted_days_ago=40),
    ]
    assert select_active_record(records, "a@example.com", NOW) is None


def test_expiry_boundary_is_exclusive():
    record = _record(1, submitted_days_ago=30, valid_days=30)
    assert record.expires_at == NOW
    assert select_active_record([record], "a@example.com", NOW) is None


def test_latest_submission_wins():
    older = _record(1, submitted_days_ago=10, plan="monthly_unlimited")
    newer = _record(2, submitted_days_ago=2, plan="monthly_specific")
    assert select_active_record([newer, older], "a@example.com", NOW).id == 2


def test_ties_broken_by_ledger_id():
    first = _record(1, submitted_days_ago=3)
    second = _record(2, submitted_days_ago=3)
    assert select_active_record([second, first], "a@example.com", NOW).id == 2


def test_other_users_records_are_ignored():
    assert select_active_record([_record(1, email="b@example.com")], "a@example.com", NOW) is None


def test_naive_now_treated_as_utc():
    record = _record(1)
    assert select_active_record([record], "a@example.com", NOW.replace(tzinfo=None)).id == 1


def test_days_remaining_rounds_up():
    assert days_remaining(NOW + timedelta(days=2, hours=1), NOW) == 3
    assert days_remaining(NOW + timedelta(days=14), NOW) == 14
