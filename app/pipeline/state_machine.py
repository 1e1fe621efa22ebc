"""Role-aware stage transition rules."""

from __future__ import annotations

from app.core.exceptions import ForbiddenError
from app.models.enums import UserRole
from app.pipeline.stages import Stage, normalize_stage

RESTRICTED_PAIRS: frozenset[frozenset[str]] = frozenset(
    {frozenset({Stage.STRUCTURING_PHASE.value, Stage.READY_TO_SEND_TO_BANKER.value})}
)
PRIVILEGED_ROLES: frozenset[str] = frozenset({UserRole.ADMIN.value})


def _role_value(role: UserRole | str | None) -> str:
    if isinstance(role, UserRole):
        return role.value
    return str(role or "").strip().lower()


class StageTransitionPolicy:
    """Allow-by-default transition policy with role-gated stage pairs.

    A restricted pair blocks movement in both directions for every role that
    is not privileged. Same-stage moves never reach the policy; the executor
    treats them as no-ops.
    """

    def __init__(
        self,
        restricted_pairs: frozenset[frozenset[str]] = RESTRICTED_PAIRS,
        privileged_roles: frozenset[str] = PRIVILEGED_ROLES,
    ) -> None:
        self._restricted_pairs = restricted_pairs
        self._privileged_roles = privileged_roles

    def can_transition(self, role: UserRole | str | None, current: str | None, target: str | None) -> bool:
        if _role_value(role) in self._privileged_roles:
            return True
        pair = frozenset({normalize_stage(current), normalize_stage(target)})
        return pair not in self._restricted_pairs

    def assert_transition(self, role: UserRole | str | None, current: str | None, target: str | None) -> None:
        if not self.can_transition(role=role, current=current, target=target):
            raise ForbiddenError(
                f"Role '{_role_value(role) or 'unknown'}' cannot move clients between "
                f"{normalize_stage(current)} and {normalize_stage(target)}."
            )


DEFAULT_POLICY = StageTransitionPolicy()


def is_transition_allowed(role: UserRole | str | None, from_stage: str | None, to_stage: str | None) -> bool:
    """Pure decision function over (role, from, to) using the default policy."""
    return DEFAULT_POLICY.can_transition(role, from_stage, to_stage)
