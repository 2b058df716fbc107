import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load env from paperify/.env
package_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(package_dir, ".env"))

from paperify.api import admin, auth, catalog, health, payments, subscription, usage
from paperify.core.config import Settings, validate_config
from paperify.core.database import Database
from paperify.core.errors import register_error_handlers
from paperify.core.logging import configure_logging
from paperify.core.middleware.request_id import RequestIdMiddleware
from paperify.core.validation import validate_env
from paperify.features.catalog.service import CatalogStore
from paperify.features.entitlements.service import EntitlementEvaluator
from paperify.features.payments.ledger import PaymentLedger
from paperify.features.payments.service import PaymentService
from paperify.features.payments.uploads import ScreenshotStore
from paperify.features.usage.service import UsageCounters
from paperify.features.users.service import UserStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("paperify")
    logger.info("Starting Paperify backend...")
    app.state.startup_time = time.time()
    try:
        yield
    finally:
        logger.info("Stopping Paperify backend...")
        app.state.db.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application and every store handle it uses."""
    settings = settings or Settings()

    configure_logging(settings.ENV)
    validate_env(settings_obj=settings)
    validate_config(strict=settings.CONFIG_STRICT, settings_obj=settings)

    db = Database(settings.database_url)
    db.create_all_tables()

    ledger = PaymentLedger(db)
    counters = UsageCounters(db)

    app = FastAPI(title="Paperify - Backend", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db
    app.state.users = UserStore(db)
    app.state.ledger = ledger
    app.state.counters = counters
    app.state.evaluator = EntitlementEvaluator(ledger, counters)
    app.state.payments = PaymentService(
        ledger,
        receiving_number=settings.RECEIVING_NUMBER,
        auto_approve=settings.AUTO_APPROVE_PAYMENTS,
    )
    app.state.screenshots = ScreenshotStore(settings.uploads_dir, settings.MAX_SCREENSHOT_BYTES)
    app.state.catalog = CatalogStore(settings.SYLLABUS_DIR)

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(auth.router)
    app.include_router(subscription.router)
    app.include_router(payments.router)
    app.include_router(usage.router)
    app.include_router(admin.router)
    app.include_router(catalog.router)
    app.include_router(health.root_router)

    return app


app = create_app()
