"""Role-based authorization helpers."""

from __future__ import annotations

from app.core.exceptions import AuthorizationError
from app.models.enums import UserRole

# Scope strings are kept explicit for endpoint-level declarations.
ROLE_SCOPES: dict[str, set[str]] = {
    UserRole.ADMIN.value: {
        "*",
    },
    UserRole.ASSISTANT.value: {
        "clients.read",
        "clients.write",
        "clients.stage",
        "clients.import",
        "tasks.read",
        "tasks.write",
        "analytics.read",
        "calendar.read",
        "changes.read",
    },
}


def _role_key(role: UserRole | str) -> str:
    return role.value if isinstance(role, UserRole) else str(role).lower()


def get_scopes_for_role(role: UserRole | str) -> set[str]:
    """Return scopes granted to a role."""
    return ROLE_SCOPES.get(_role_key(role), set())


def has_scopes(role: UserRole | str, required_scopes: list[str] | set[str] | tuple[str, ...]) -> bool:
    """Check if role includes every required scope."""
    granted = get_scopes_for_role(role)
    if "*" in granted:
        return True
    return set(required_scopes).issubset(granted)


def require_scopes(role: UserRole | str, required_scopes: list[str] | set[str] | tuple[str, ...]) -> None:
    """Raise when a role lacks required scopes."""
    if has_scopes(role=role, required_scopes=required_scopes):
        return
    missing = sorted(set(required_scopes) - get_scopes_for_role(role))
    raise AuthorizationError(f"Missing required scopes: {', '.join(missing)}")
