"""
Database configuration and connection management.

This module provides:
- SQLAlchemy table definitions for users, the payment ledger and usage counters
- A `Database` handle owning the engine and session factory
- Transactional sessions that map driver failures to StorageError
"""
import logging
import os
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, MetaData, Table, Column, Integer, String, DateTime, Boolean, JSON, Text, Index, UniqueConstraint, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import func

from paperify.core.errors import StorageError

logger = logging.getLogger("paperify")

# SQLAlchemy metadata for table definitions
metadata = MetaData()

# Connection pooling configuration (server databases only)
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600  # Recycle connections after 1 hour


users = Table(
    'users',
    metadata,
    Column('id', String(36), primary_key=True),
    Column('email', String(255), nullable=False, unique=True),
    Column('name', Text, nullable=True),
    Column('password_hash', String(255), nullable=False),
    Column('subject', Text, nullable=True),
    Column('age', Integer, nullable=True),
    Column('institution', Text, nullable=True),
    Column('country', Text, nullable=True),
    Column('preferred_books', JSON, nullable=False, default=list),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
)

# Payment ledger: one row per submission, never deleted
payments = Table(
    'payments',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('plan', String(50), nullable=False),
    Column('frontend_plan', String(50), nullable=True),
    Column('amount', String(50), nullable=True),
    Column('transaction_id', String(32), nullable=False),
    Column('screenshot', Text, nullable=True),
    Column('books', JSON, nullable=False, default=list),
    Column('books_locked_at', DateTime(timezone=True), nullable=True),
    Column('payment_number', String(32), nullable=True),
    Column('user_email', String(255), nullable=False),
    Column('submitted_at', DateTime(timezone=True), nullable=False),
    Column('expires_at', DateTime(timezone=True), nullable=False),
    Column('status', String(20), nullable=False, server_default='pending'),
    Column('claimed', Boolean, nullable=False, default=True),
    UniqueConstraint('transaction_id', name='uq_payments_transaction_id'),
    # Active-record lookups filter by (user_email, status, expires_at)
    Index('idx_payments_email_status_expires', 'user_email', 'status', 'expires_at'),
)

# Demo counter keyed by the raw caller identifier
demo_usage = Table(
    'demo_usage',
    metadata,
    Column('usage_key', String(255), primary_key=True),
    Column('count', Integer, nullable=False, server_default='0'),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
)

# Per-subject counter scoped to one payment record
subscription_usage = Table(
    'subscription_usage',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('user_email', String(255), nullable=False),
    Column('transaction_id', String(32), nullable=False),
    Column('subject', String(255), nullable=False),
    Column('count', Integer, nullable=False, server_default='0'),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
    UniqueConstraint('user_email', 'transaction_id', 'subject', name='uq_subscription_usage_bucket'),
    Index('idx_subscription_usage_email_txn', 'user_email', 'transaction_id'),
)


def _build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # Single shared connection so every session sees the same memory db
            kwargs["poolclass"] = StaticPool
        else:
            path = url.split("///", 1)[-1]
            directory = os.path.dirname(path)
            if directory:
                os.makedirs(directory, exist_ok=True)
        return create_engine(url, echo=False, **kwargs)

    return create_engine(
        url,
        pool_size=POOL_SIZE,
        max_overflow=MAX_OVERFLOW,
        pool_timeout=POOL_TIMEOUT,
        pool_recycle=POOL_RECYCLE,
        pool_pre_ping=True,
        echo=False,  # Set to True for SQL query logging
    )


class Database:
    """Owns the engine and hands out transactional sessions.

    Built once per application in `create_app()` and passed to the stores
    that need it.
    """

    def __init__(self, url: str):
        self.url = url
        self.engine = _build_engine(url)
        self._session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
        )

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Context manager for database sessions.

        Commits on success and rolls back on any error. IntegrityError is
        re-raised untouched so callers can map constraint violations; other
        driver errors become StorageError.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError:
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("storage.failure", exc_info=True, extra={"error_code": "storage_error"})
            raise StorageError(f"Database operation failed: {exc.__class__.__name__}") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_all_tables(self) -> None:
        """
        Create all tables defined in metadata.

        This is idempotent - tables that already exist will not be recreated.
        """
        metadata.create_all(bind=self.engine)

    def drop_all_tables(self) -> None:
        """
        Drop all tables defined in metadata.

        WARNING: This is destructive! Only use in tests or development.
        """
        metadata.drop_all(bind=self.engine)

    def reset(self) -> None:
        self.drop_all_tables()
        self.create_all_tables()

    def check_connection(self) -> bool:
        """
        Check if database connection is available.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database connection check failed: {e}")
            return False

    def dispose(self) -> None:
        self.engine.dispose()
