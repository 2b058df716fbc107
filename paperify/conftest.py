# paperify/conftest.py
import json
import os
from datetime import datetime, timedelta, timezone

import pytest

# The module-level app in paperify.main must not touch a real data directory.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from fastapi.testclient import TestClient

from paperify.core.config import Settings
from paperify.core.database import Database
from paperify.features.entitlements.service import EntitlementEvaluator
from paperify.features.payments.ledger import PaymentLedger
from paperify.features.usage.service import UsageCounters
from paperify.main import create_app
from paperify.models.payment import PaymentRecord, PaymentStatus
from paperify.models.plan import canonical_plan, validity_days

RECEIVING_NUMBER = "03448007154"
SUPERUSER_EMAIL = "bilal@paperify.com"

PUNJAB_SYLLABUS = [
    {
        "class": "11",
        "subjects": [
            {
                "name": "Physics",
                "chapters": [
                    {
                        "chapter": "Measurements",
                        "topics": [
                            {"topic": "Errors and Uncertainties", "status": "active"},
                            {"topic": "Significant Figures"},
                        ],
                    },
                    {"chapter": {"en": "Vectors and Equilibrium", "ur": "سمتیے اور توازن"}},
                ],
            },
            {
                "name": {"en": "Chemistry", "ur": "کیمیا"},
                "chapters": [
                    {"chapter": "Stoichiometry", "topics": [{"topic": "Mole", "status": "inactive"}]},
                ],
            },
            {"name": "Civics", "chapters": []},
            {"name": "English", "chapters": [{"chapter": "Grammar"}]},
            {"name": {"ur": "اسلامیات"}},
        ],
    },
    {
        "class": "9",
        "subjects": [
            {
                "name": "Biology",
                "chapters": [{"chapter": "Cell", "topics": [{"topic": "Cell Wall"}]}],
            },
        ],
    },
]

SINDH_SYLLABUS = [
    {"class": "12", "subjects": [{"name": "Economics", "chapters": []}, {"name": "Physics"}]},
]


@pytest.fixture
def syllabus_dir(tmp_path):
    directory = tmp_path / "syllabus"
    directory.mkdir()
    (directory / "punjab_board_syllabus.json").write_text(json.dumps(PUNJAB_SYLLABUS), encoding="utf-8")
    (directory / "sindh_board_syllabus.json").write_text(json.dumps(SINDH_SYLLABUS), encoding="utf-8")
    return directory


@pytest.fixture
def settings(tmp_path, syllabus_dir):
    return Settings(
        ENV="test",
        DATA_DIR=str(tmp_path / "data"),
        DATABASE_URL=f"sqlite:///{tmp_path / 'paperify.db'}",
        SYLLABUS_DIR=str(syllabus_dir),
        SESSION_SECRET="test-secret",
        SUPERUSER_EMAIL=SUPERUSER_EMAIL,
        RECEIVING_NUMBER=RECEIVING_NUMBER,
        MAX_SCREENSHOT_BYTES=1024,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db():
    database = Database("sqlite://")
    database.create_all_tables()
    yield database
    database.dispose()


@pytest.fixture
def ledger(db):
    return PaymentLedger(db)


@pytest.fixture
def counters(db):
    return UsageCounters(db)


@pytest.fixture
def evaluator(ledger, counters):
    return EntitlementEvaluator(ledger, counters)


@pytest.fixture
def add_payment(ledger):
    """Append a payment record with sensible defaults; returns the stored record."""
    counter = iter(range(10_000_000_000, 99_999_999_999))

    def _add(
        user_email="student@example.com",
        plan="monthly_unlimited",
        submitted_at=None,
        days=None,
        status=PaymentStatus.APPROVED,
        books=(),
        transaction_id=None,
    ):
        submitted = submitted_at or datetime.now(timezone.utc) - timedelta(days=1)
        canonical = canonical_plan(plan)
        return ledger.append(PaymentRecord(
            plan=canonical,
            frontend_plan=plan,
            transaction_id=transaction_id or str(next(counter)),
            books=list(books),
            payment_number=RECEIVING_NUMBER,
            user_email=user_email,
            submitted_at=submitted,
            expires_at=submitted + timedelta(days=days if days is not None else validity_days(canonical)),
            status=status,
        ))

    return _add


@pytest.fixture
def register_user(client):
    """Register an account and return its bearer headers and user id."""

    def _register(email="student@example.com", password="secret123", **fields):
        resp = client.post("/api/auth/register", json={"email": email, "password": password, **fields})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["user_id"]

    return _register
