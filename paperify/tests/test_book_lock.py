"""
Tests for the one-time book lock on Monthly subscriptions.
"""
import pytest

from paperify.core.errors import NotEligibleError, ValidationError

EMAIL = "student@example.com"


def test_lock_attaches_books_once(evaluator, add_payment, ledger):
    record = add_payment(plan="monthly")

    locked = evaluator.lock_books(EMAIL, ["Physics", " physics ", "Chemistry"])
    assert locked.books == ["Physics", "Chemistry"]
    assert locked.books_locked_at is not None

    stored = ledger.find_by_transaction_id(record.transaction_id)
    assert stored.books == ["Physics", "Chemistry"]

    with pytest.raises(NotEligibleError) as exc_info:
        evaluator.lock_books(EMAIL, ["Biology"])
    assert exc_info.value.reason == NotEligibleError.ALREADY_LOCKED
    assert ledger.find_by_transaction_id(record.transaction_id).books == ["Physics", "Chemistry"]


def test_records_submitted_with_books_are_already_locked(evaluator, add_payment):
    add_payment(plan="monthly", books=["Physics"])
    with pytest.raises(NotEligibleError) as exc_info:
        evaluator.lock_books(EMAIL, ["Chemistry"])
    assert exc_info.value.reason == NotEligibleError.ALREADY_LOCKED


def test_lock_requires_a_book(evaluator, add_payment):
    add_payment(plan="monthly")
    with pytest.raises(ValidationError):
        evaluator.lock_books(EMAIL, ["", "  "])


@pytest.mark.parametrize("plan", ["ultimate", "short_term"])
def test_lock_rejected_for_unlimited_plans(evaluator, add_payment, plan):
    add_payment(plan=plan)
    with pytest.raises(NotEligibleError) as exc_info:
        evaluator.lock_books(EMAIL, ["Physics"])
    assert exc_info.value.reason == NotEligibleError.NO_MATCHING_RECORD


def test_lock_rejected_without_payment(evaluator):
    with pytest.raises(NotEligibleError) as exc_info:
        evaluator.lock_books(EMAIL, ["Physics"])
    assert exc_info.value.reason == NotEligibleError.NO_MATCHING_RECORD


def test_conditional_update_only_succeeds_once(add_payment, ledger):
    record = add_payment(plan="monthly")
    now = record.submitted_at
    assert ledger.lock_books(record.id, ["Physics"], now) is True
    assert ledger.lock_books(record.id, ["Chemistry"], now) is False
    assert ledger.find_by_transaction_id(record.transaction_id).books == ["Physics"]
