"""Dependency providers for API handlers.

Everything request-scoped is resolved from ``request.app.state`` so tests and
scripts can hand the app their own session factory, change feed and notifier.
"""

from __future__ import annotations

from collections.abc import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from app.auth.actor import Actor, from_claims
from app.auth.jwt import TOKEN_USE_ACCESS, decode_jwt
from app.core.config import Config
from app.core.exceptions import AuthenticationError
from app.database.db import session_scope
from app.events.change_feed import ChangeFeed
from app.services.notification_service import TaskNotifier


def get_settings(request: Request) -> Config:
    """Return the configuration the app was created with."""
    return request.app.state.config


def get_db_session(request: Request) -> Generator[Session, None, None]:
    """Yield one SQLAlchemy session per request."""
    with session_scope(request.app.state.session_factory) as db:
        yield db


def get_change_feed(request: Request) -> ChangeFeed:
    return request.app.state.change_feed


def get_notifier(request: Request) -> TaskNotifier:
    return request.app.state.notifier


def extract_bearer_token(authorization: str | None) -> str:
    if authorization is None or not authorization.strip():
        raise AuthenticationError("Authorization header is required.")
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise AuthenticationError("Authorization header must use Bearer token.")
    return parts[1].strip()


def get_current_actor(authorization: str | None, settings: Config) -> Actor:
    """Resolve the signed-in actor from a bearer access token."""
    token = extract_bearer_token(authorization)
    claims = decode_jwt(token=token, secret=settings.JWT_SECRET, expected_use=TOKEN_USE_ACCESS)
    return from_claims(claims)
