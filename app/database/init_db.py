"""Bring the database schema to head and seed the first admin profile."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig

from app.core.config import Config, get_config
from app.core.exceptions import ValidationError
from app.core.startup import bootstrap
from app.database.db import build_session_factory, session_scope
from app.services.auth_service import AuthService

logger = logging.getLogger(__name__)
PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _build_alembic_config(database_url: str) -> AlembicConfig:
    cfg = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    # Logging is already configured by bootstrap().
    cfg.attributes["configure_logger"] = False
    return cfg


def seed_admin(session_factory, config: Config, email: str | None, password: str | None) -> bool:
    """Create the admin profile once; returns False when skipped."""
    if not email or not password:
        return False
    with session_scope(session_factory) as db:
        try:
            AuthService(db, config).create_profile(email, password, full_name="Administrator", role="admin")
        except ValidationError as exc:
            logger.info("database.seed_admin.skipped", extra={"event": "database.seed_admin.skipped", "reason": str(exc)})
            return False
    logger.info("database.seed_admin.created", extra={"event": "database.seed_admin.created", "email": email})
    return True


def init_db(config: Config | None = None) -> None:
    config = config or get_config()
    engine = bootstrap(config)
    command.upgrade(_build_alembic_config(config.DATABASE_URL), "head")
    logger.info(
        "database.tables.migrated",
        extra={
            "event": "database.tables.migrated",
            "database_url_scheme": config.DATABASE_URL.split("://", 1)[0],
        },
    )
    seed_admin(
        build_session_factory(engine),
        config,
        email=os.getenv("ADMIN_EMAIL"),
        password=os.getenv("ADMIN_PASSWORD"),
    )


if __name__ == "__main__":
    init_db()
