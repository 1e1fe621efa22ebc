"""Configuration module for the pipeline service."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from app.core.exceptions import ConfigurationError

load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_mapping(value: str | None) -> dict[str, str]:
    if not value or not value.strip():
        return {}
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as exc:
        raise ConfigurationError("ASSIGNEE_EMAILS must be a JSON object.") from exc
    if not isinstance(parsed, dict):
        raise ConfigurationError("ASSIGNEE_EMAILS must be a JSON object.")
    return {str(key): str(val) for key, val in parsed.items()}


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    JWT_SECRET: str
    JWT_ACCESS_TTL_MINUTES: int
    JWT_REFRESH_TTL_DAYS: int
    PASSWORD_RESET_TTL_MINUTES: int
    PASSWORD_PEPPER: str
    RESEND_API_KEY: str | None
    RESEND_API_URL: str
    TASK_EMAIL_FROM: str | None
    EMAIL_SANDBOX_MODE: bool
    EMAIL_TIMEOUT_SECONDS: float
    CALENDAR_PRODID: str
    CALENDAR_UID_DOMAIN: str
    CHANGE_FEED_BUFFER: int
    API_HOST: str
    API_PORT: int
    API_PREFIX: str
    LOG_LEVEL: str
    LOG_FILE: str
    DB_CONNECTIVITY_REQUIRED: bool
    ASSIGNEE_EMAILS: dict[str, str] = field(default_factory=dict)

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=(resolved_env != "production"))

    config = Config(
        APP_NAME=os.getenv("APP_NAME", "Mortgage Pipeline"),
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./pipeline.db"),
        JWT_SECRET=os.getenv("JWT_SECRET", "change_me_jwt_secret"),
        JWT_ACCESS_TTL_MINUTES=int(os.getenv("JWT_ACCESS_TTL_MINUTES", "60")),
        JWT_REFRESH_TTL_DAYS=int(os.getenv("JWT_REFRESH_TTL_DAYS", "14")),
        PASSWORD_RESET_TTL_MINUTES=int(os.getenv("PASSWORD_RESET_TTL_MINUTES", "30")),
        PASSWORD_PEPPER=os.getenv("PASSWORD_PEPPER", ""),
        RESEND_API_KEY=os.getenv("RESEND_API_KEY"),
        RESEND_API_URL=os.getenv("RESEND_API_URL", "https://api.resend.com/emails"),
        TASK_EMAIL_FROM=os.getenv("TASK_EMAIL_FROM"),
        EMAIL_SANDBOX_MODE=_as_bool(os.getenv("EMAIL_SANDBOX_MODE"), default=(resolved_env != "production")),
        EMAIL_TIMEOUT_SECONDS=float(os.getenv("EMAIL_TIMEOUT_SECONDS", "10")),
        CALENDAR_PRODID=os.getenv("CALENDAR_PRODID", "-//Mortgage Pipeline//Tasks//EN"),
        CALENDAR_UID_DOMAIN=os.getenv("CALENDAR_UID_DOMAIN", "pipeline"),
        CHANGE_FEED_BUFFER=int(os.getenv("CHANGE_FEED_BUFFER", "500")),
        API_HOST=os.getenv("API_HOST", "0.0.0.0"),
        API_PORT=int(os.getenv("API_PORT", "8000")),
        API_PREFIX=os.getenv("API_PREFIX", "/api/v1"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", ""),
        DB_CONNECTIVITY_REQUIRED=_as_bool(
            os.getenv("DB_CONNECTIVITY_REQUIRED"), default=(resolved_env == "production")
        ),
        ASSIGNEE_EMAILS=_as_mapping(os.getenv("ASSIGNEE_EMAILS")),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite:// or postgresql:// style URL."
        )
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if config.JWT_ACCESS_TTL_MINUTES < 1:
        raise ConfigurationError("JWT_ACCESS_TTL_MINUTES must be >= 1.")
    if config.JWT_REFRESH_TTL_DAYS < 1:
        raise ConfigurationError("JWT_REFRESH_TTL_DAYS must be >= 1.")
    if config.PASSWORD_RESET_TTL_MINUTES < 1:
        raise ConfigurationError("PASSWORD_RESET_TTL_MINUTES must be >= 1.")
    if config.EMAIL_TIMEOUT_SECONDS <= 0:
        raise ConfigurationError("EMAIL_TIMEOUT_SECONDS must be > 0.")
    if config.CHANGE_FEED_BUFFER < 1:
        raise ConfigurationError("CHANGE_FEED_BUFFER must be >= 1.")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if config.is_production and "change_me" in config.JWT_SECRET:
        raise ConfigurationError("Production JWT_SECRET uses the placeholder value.")
    if config.is_production and "change_me" in config.DATABASE_URL.lower():
        raise ConfigurationError("Production DATABASE_URL uses placeholder credentials.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
