"""Startup validation and bootstrap helpers."""

from __future__ import annotations

import logging

from sqlalchemy import Engine

from app.core.config import Config, get_config
from app.core.logging_config import configure_logging
from app.database.db import build_engine, verify_database_connection

logger = logging.getLogger(__name__)


def validate_startup_config(engine: Engine, config: Config | None = None) -> None:
    """Fail-fast config and connectivity checks."""
    config = config or get_config()
    database_ok = verify_database_connection(engine)
    if not database_ok and config.DB_CONNECTIVITY_REQUIRED:
        raise RuntimeError("Database connectivity check failed.")
    if not database_ok:
        logger.warning(
            "startup.database.connectivity_optional_failed",
            extra={"event": "startup.database.connectivity_optional_failed"},
        )

    if config.is_production and config.DATABASE_URL.startswith("sqlite"):
        logger.warning(
            "startup.production.sqlite_detected",
            extra={"event": "startup.production.sqlite_detected"},
        )
    if config.is_production and config.EMAIL_SANDBOX_MODE:
        logger.warning(
            "startup.production.email_sandbox",
            extra={"event": "startup.production.email_sandbox"},
        )

    logger.info(
        "startup.config.validated",
        extra={
            "event": "startup.config.validated",
            "env": config.ENV,
            "database_url_scheme": config.DATABASE_URL.split("://", 1)[0],
            "db_connectivity_required": config.DB_CONNECTIVITY_REQUIRED,
        },
    )


def bootstrap(config: Config | None = None) -> Engine:
    """Initialize logging, build the engine and validate runtime configuration."""
    config = config or get_config()
    configure_logging(config)
    engine = build_engine(config.DATABASE_URL, echo=config.DEBUG and config.LOG_LEVEL == "DEBUG")
    validate_startup_config(engine, config)
    return engine
