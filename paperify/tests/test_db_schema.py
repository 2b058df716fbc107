"""
Test that the required tables, indexes and constraints exist.
"""

from datetime import datetime, timezone

from sqlalchemy import inspect

from paperify.features.payments.ledger import PaymentLedger


def test_required_tables_created(db):
    tables = set(inspect(db.engine).get_table_names())
    assert {"users", "payments", "demo_usage", "subscription_usage"} <= tables


def test_payments_indexes_and_constraints(db):
    inspector = inspect(db.engine)

    indexes = {idx["name"] for idx in inspector.get_indexes("payments")}
    assert "idx_payments_email_status_expires" in indexes, \
        "Missing composite index on (user_email, status, expires_at)"

    unique = [set(c["column_names"]) for c in inspector.get_unique_constraints("payments")]
    assert {"transaction_id"} in unique, "Missing UNIQUE constraint on transaction_id"


def test_subscription_usage_bucket_is_unique(db):
    unique = [set(c["column_names"]) for c in inspect(db.engine).get_unique_constraints("subscription_usage")]
    assert {"user_email", "transaction_id", "subject"} in unique


def test_timestamps_come_back_timezone_aware(db, add_payment):
    submitted = datetime(2026, 1, 5, 9, 30, tzinfo=timezone.utc)
    record = add_payment(submitted_at=submitted)
    stored = PaymentLedger(db).find_by_transaction_id(record.transaction_id)
    assert stored.submitted_at == submitted
    assert stored.expires_at.tzinfo is not None


def test_create_all_tables_is_idempotent(db):
    db.create_all_tables()
    assert db.check_connection() is True
