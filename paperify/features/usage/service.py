"""
paperify/features/usage/service.py

Usage counter store.

Handles:
- Demo counter keyed by the raw caller identifier (guest ids included)
- Subscription counter keyed by (user_email, transaction_id, subject)
- Increments that return the post-increment count
"""

from typing import Dict
from sqlalchemy import select, insert, update
from sqlalchemy.exc import IntegrityError

from paperify.core.database import Database, demo_usage, subscription_usage


def normalize_subject(subject: str) -> str:
    """Counter and allow-list key for a subject: lowercase, no whitespace."""
    return "".join((subject or "").split()).lower()


class UsageCounters:
    """Get/increment access to both usage counters."""

    def __init__(self, db: Database):
        self.db = db

    # ===== DEMO COUNTER =====

    def _demo_bucket(self, stmt, usage_key: str):
        return stmt.where(demo_usage.c.usage_key == usage_key)

    def get_demo_count(self, usage_key: str) -> int:
        with self.db.session() as session:
            row = session.execute(self._demo_bucket(select(demo_usage.c.count), usage_key)).first()
        return row.count if row else 0

    def increment_demo(self, usage_key: str) -> int:
        """Add one to the demo bucket and return the new count."""
        return self._increment(
            update_stmt=self._demo_bucket(update(demo_usage), usage_key).values(count=demo_usage.c.count + 1),
            insert_stmt=insert(demo_usage).values(usage_key=usage_key, count=1),
            read_stmt=self._demo_bucket(select(demo_usage.c.count), usage_key),
        )

    # ===== SUBSCRIPTION COUNTER =====

    def _subject_bucket(self, stmt, user_email: str, transaction_id: str, subject_key: str):
        return (
            stmt.where(subscription_usage.c.user_email == user_email)
            .where(subscription_usage.c.transaction_id == transaction_id)
            .where(subscription_usage.c.subject == subject_key)
        )

    def get_subject_count(self, user_email: str, transaction_id: str, subject: str) -> int:
        key = normalize_subject(subject)
        with self.db.session() as session:
            row = session.execute(
                self._subject_bucket(select(subscription_usage.c.count), user_email, transaction_id, key)
            ).first()
        return row.count if row else 0

    def get_subject_counts(self, user_email: str, transaction_id: str) -> Dict[str, int]:
        with self.db.session() as session:
            rows = session.execute(
                select(subscription_usage.c.subject, subscription_usage.c.count)
                .where(subscription_usage.c.user_email == user_email)
                .where(subscription_usage.c.transaction_id == transaction_id)
            ).all()
        return {row.subject: row.count for row in rows}

    def increment_subject(self, user_email: str, transaction_id: str, subject: str) -> int:
        """Add one to a subject bucket under one payment record and return the new count."""
        key = normalize_subject(subject)
        return self._increment(
            update_stmt=self._subject_bucket(update(subscription_usage), user_email, transaction_id, key)
            .values(count=subscription_usage.c.count + 1),
            insert_stmt=insert(subscription_usage).values(
                user_email=user_email,
                transaction_id=transaction_id,
                subject=key,
                count=1,
            ),
            read_stmt=self._subject_bucket(select(subscription_usage.c.count), user_email, transaction_id, key),
        )

    def _increment(self, *, update_stmt, insert_stmt, read_stmt) -> int:
        """Update-then-insert in one transaction, reading the count back before commit.

        If a concurrent request created the bucket between our update and
        insert, the unique key rejects the insert and the whole increment is
        retried as a plain update.
        """
        try:
            with self.db.session() as session:
                if session.execute(update_stmt).rowcount == 0:
                    session.execute(insert_stmt)
                return session.execute(read_stmt).scalar_one()
        except IntegrityError:
            with self.db.session() as session:
                session.execute(update_stmt)
                return session.execute(read_stmt).scalar_one()
