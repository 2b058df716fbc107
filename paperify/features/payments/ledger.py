"""
paperify/features/payments/ledger.py

Payment ledger store.

Handles:
- Appending submissions (transaction ids unique at the database level)
- Lookups by transaction id and by user email
- The one-time books lock on a monthly_specific record
"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy import select, insert, update
from sqlalchemy.exc import IntegrityError

from paperify.core.database import Database, payments
from paperify.core.errors import DuplicateTransactionError
from paperify.models.payment import PaymentRecord, PaymentStatus, as_utc


def _row_to_record(row) -> PaymentRecord:
    return PaymentRecord(
        id=row.id,
        plan=row.plan,
        frontend_plan=row.frontend_plan,
        amount=row.amount,
        transaction_id=row.transaction_id,
        screenshot=row.screenshot,
        books=list(row.books or []),
        books_locked_at=as_utc(row.books_locked_at) if row.books_locked_at else None,
        payment_number=row.payment_number,
        user_email=row.user_email,
        submitted_at=as_utc(row.submitted_at),
        expires_at=as_utc(row.expires_at),
        status=PaymentStatus(row.status),
        claimed=bool(row.claimed),
    )


class PaymentLedger:
    """Append/update/list access to payment records."""

    def __init__(self, db: Database):
        self.db = db

    def append(self, record: PaymentRecord) -> PaymentRecord:
        """
        Persist a new record.

        Raises:
            DuplicateTransactionError: transaction_id already in the ledger,
                including when a concurrent submission won the race.
        """
        values = record.model_dump(exclude={"id"})
        values["status"] = record.status.value
        # A record that arrives with books is locked from the start.
        if values["books"] and values["books_locked_at"] is None:
            values["books_locked_at"] = record.submitted_at
        try:
            with self.db.session() as session:
                result = session.execute(insert(payments).values(**values))
                record_id = result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise DuplicateTransactionError("Transaction ID already used.") from exc
        return record.model_copy(update={"id": record_id, "books_locked_at": values["books_locked_at"]})

    def find_by_transaction_id(self, transaction_id: str) -> Optional[PaymentRecord]:
        with self.db.session() as session:
            row = session.execute(
                select(payments).where(payments.c.transaction_id == transaction_id)
            ).first()
        return _row_to_record(row) if row else None

    def has_transaction(self, transaction_id: str) -> bool:
        with self.db.session() as session:
            row = session.execute(
                select(payments.c.id).where(payments.c.transaction_id == transaction_id)
            ).first()
        return row is not None

    def list_by_email(self, user_email: str) -> List[PaymentRecord]:
        with self.db.session() as session:
            rows = session.execute(
                select(payments)
                .where(payments.c.user_email == user_email)
                .order_by(payments.c.submitted_at, payments.c.id)
            ).all()
        return [_row_to_record(row) for row in rows]

    def list_all(self) -> List[PaymentRecord]:
        with self.db.session() as session:
            rows = session.execute(select(payments).order_by(payments.c.id)).all()
        return [_row_to_record(row) for row in rows]

    def lock_books(self, record_id: int, books: List[str], now: datetime) -> bool:
        """Attach books to a record that has none yet.

        The update is conditional on `books_locked_at IS NULL`, so two
        concurrent lock attempts cannot both succeed. Returns True when this
        call performed the lock.
        """
        with self.db.session() as session:
            result = session.execute(
                update(payments)
                .where(payments.c.id == record_id)
                .where(payments.c.books_locked_at.is_(None))
                .values(books=list(books), books_locked_at=now)
            )
            return result.rowcount == 1
