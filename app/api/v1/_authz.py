"""Shared authorization and error helpers for API v1 route modules."""

from __future__ import annotations

from app.auth.actor import Actor
from app.auth.rbac import require_scopes
from app.core.config import Config
from app.core.dependencies import get_current_actor
from app.core.exceptions import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PipelineError,
    UpstreamUnavailableError,
    ValidationError,
)


def authorize(authorization: str | None, settings: Config, scopes: list[str]) -> Actor:
    actor = get_current_actor(authorization, settings)
    require_scopes(actor.role, scopes)
    return actor


def map_domain_error(exc: PipelineError) -> tuple[int, str]:
    if isinstance(exc, AuthenticationError):
        return 401, str(exc) or "Unauthorized."
    if isinstance(exc, ForbiddenError):
        return 403, str(exc) or "Forbidden."
    if isinstance(exc, NotFoundError):
        return 404, str(exc)
    if isinstance(exc, ConflictError):
        return 409, str(exc)
    if isinstance(exc, ValidationError):
        return 422, str(exc)
    if isinstance(exc, UpstreamUnavailableError):
        return 503, str(exc)
    return 500, "Internal error."
