"""
Environment validation utilities.

Fails fast on misconfiguration while remaining bypassable for tests
via SKIP_ENV_VALIDATION.
"""

import os
from typing import Optional, Iterable
from urllib.parse import urlparse

from paperify.core.config import settings, DEFAULT_SESSION_SECRET


class EnvValidationError(RuntimeError):
    """Raised when environment validation fails."""


def _is_valid_db_url(url: str) -> bool:
    """Basic DATABASE_URL validation using urlparse.

    SQLite URLs carry a path (or nothing, for an in-memory db) instead of a netloc.
    """
    parsed = urlparse(url)
    if parsed.scheme.startswith("sqlite"):
        return url.startswith(parsed.scheme + "://")
    return bool(parsed.scheme and parsed.netloc)


def _require(vars_required: Iterable[str], source: object) -> None:
    for var in vars_required:
        if not getattr(source, var, None):
            raise EnvValidationError(f"{var} is required in production")


def validate_env(env: Optional[str] = None, settings_obj=None) -> bool:
    """Validate environment configuration.

    Args:
        env: Override environment name (defaults to settings.ENV)
        settings_obj: Override settings object (defaults to paperify.core.config.settings)

    Returns:
        True if validation passes.

    Raises:
        EnvValidationError when a rule is violated.
    """
    if os.getenv("SKIP_ENV_VALIDATION") == "1":
        return True

    cfg = settings_obj or settings
    mode = (env or getattr(cfg, "ENV", "development") or "development").lower()
    db_url = getattr(cfg, "DATABASE_URL", None)

    if db_url and not _is_valid_db_url(db_url):
        raise EnvValidationError("DATABASE_URL must be a valid URL (e.g. sqlite:///data/paperify.db)")

    if mode == "production":
        _require(["SESSION_SECRET", "RECEIVING_NUMBER", "SUPERUSER_EMAIL"], cfg)
        if cfg.SESSION_SECRET == DEFAULT_SESSION_SECRET:
            raise EnvValidationError("SESSION_SECRET must be changed from the default in production")

    if getattr(cfg, "MAX_SCREENSHOT_BYTES", 0) <= 0:
        raise EnvValidationError("MAX_SCREENSHOT_BYTES must be positive")

    return True
