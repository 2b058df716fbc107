"""
Health endpoints for Paperify backend.

Lightweight liveness and readiness probes; nothing here exposes secrets.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import inspect

from paperify.core.logging import get_request_id

logger = logging.getLogger("paperify")

root_router = APIRouter(tags=["health"])

REQUIRED_TABLES = ["users", "payments", "demo_usage", "subscription_usage"]


@root_router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    logger.info("health.liveness", extra={"request_id": get_request_id()})
    return {"status": "ok"}


@root_router.get("/readyz")
def readyz(request: Request):
    """Readiness check: DB connectivity + required tables."""
    db = request.app.state.db
    try:
        if not db.check_connection():
            return JSONResponse(status_code=503, content={"status": "error", "detail": "database unreachable"})

        inspector = inspect(db.engine)
        missing = [t for t in REQUIRED_TABLES if not inspector.has_table(t)]
        if missing:
            detail = f"missing tables: {', '.join(missing)}"
            logger.warning(f"[readyz] {detail}")
            return JSONResponse(status_code=503, content={"status": "error", "detail": detail})

        return {"status": "ok"}
    except Exception as e:
        logger.error(f"[readyz] readiness check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "error", "detail": "database unreachable"})
