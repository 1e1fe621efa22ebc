"""Current-actor resolution.

The role is derived once per session from the profile and then passed by
value into every authorization check.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.core.exceptions import AuthenticationError
from app.models.enums import UserRole


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: UserRole
    email: str | None = None
    full_name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


def resolve_role(profile_role: str | None) -> UserRole:
    """Only an explicit ``admin`` profile is privileged."""
    if profile_role is not None and str(profile_role).strip().lower() == UserRole.ADMIN.value:
        return UserRole.ADMIN
    return UserRole.ASSISTANT


def from_claims(claims: dict[str, Any]) -> Actor:
    """Build the actor from verified access-token claims."""
    try:
        user_id = str(claims["sub"])
        role = resolve_role(claims.get("role"))
    except (KeyError, TypeError) as exc:
        raise AuthenticationError("Token claims are missing user context.") from exc
    if not user_id:
        raise AuthenticationError("Token claims are missing user context.")
    return Actor(user_id=user_id, role=role, email=claims.get("email"), full_name=claims.get("name"))
