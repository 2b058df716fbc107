import logging
import os

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

DEFAULT_SESSION_SECRET = "paperify-default-secret-key"


class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Storage
    DATA_DIR: str = os.path.join(os.getcwd(), "data")
    DATABASE_URL: Optional[str] = None  # defaults to sqlite under DATA_DIR
    SYLLABUS_DIR: str = os.path.join(os.getcwd(), "syllabus")
    CATALOG_BOARDS: str = "punjab,sindh,fedral"  # comma-separated

    # Sessions
    SESSION_SECRET: str = DEFAULT_SESSION_SECRET
    SESSION_TTL_HOURS: int = 24
    SUPERUSER_EMAIL: str = "bilal@paperify.com"
    TEMP_UNLIMITED_DEFAULT_MS: int = 60 * 60 * 1000

    # Payments
    RECEIVING_NUMBER: str = "03448007154"
    AUTO_APPROVE_PAYMENTS: bool = True
    MAX_SCREENSHOT_BYTES: int = 5 * 1024 * 1024

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"  # comma-separated

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"sqlite:///{os.path.join(self.DATA_DIR, 'paperify.db')}"

    @property
    def uploads_dir(self) -> str:
        return os.path.join(self.DATA_DIR, "uploads", "payments")

    @property
    def catalog_boards(self) -> list[str]:
        return [b.strip() for b in self.CATALOG_BOARDS.split(",") if b.strip()]

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate security-relevant configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    Secrets are not logged, only the names of offending keys.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("paperify")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    problems = []
    if cfg.SESSION_SECRET == DEFAULT_SESSION_SECRET and cfg.ENV.lower() == "production":
        problems.append("SESSION_SECRET")
    if not cfg.RECEIVING_NUMBER:
        problems.append("RECEIVING_NUMBER")
    if not cfg.SUPERUSER_EMAIL:
        problems.append("SUPERUSER_EMAIL")

    if problems:
        message = f"Missing or insecure configuration: {', '.join(problems)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
