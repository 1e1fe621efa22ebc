"""Stage transition executor.

A transition is one unit of work: the conditional stage update and the
history append commit together or not at all. The update is guarded by the
stage value read at the start of the attempt; when another writer got there
first the whole read-authorize-write sequence runs once more before giving
up with ``ConflictError``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.auth.actor import Actor
from app.core.exceptions import ConflictError, NotFoundError, UpstreamUnavailableError, ValidationError
from app.events.change_feed import ChangeFeed
from app.models import Client, StageHistoryEntry
from app.models.base import utcnow
from app.pipeline.duration import as_utc
from app.pipeline.stages import PIPELINE_STAGES, is_known_stage, normalize_stage
from app.pipeline.state_machine import DEFAULT_POLICY, StageTransitionPolicy
from app.services.base_service import BaseService

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2


@dataclass(frozen=True)
class ClientSnapshot:
    """Stage value as stored at read time; the write is conditioned on it.

    ``latest_changed_at`` is the newest history timestamp for the client, so a
    lagging clock cannot write an entry that sorts before it.
    """

    client_id: str
    stored_stage: str | None
    latest_changed_at: datetime | None = None


@dataclass(frozen=True)
class TransitionResult:
    client_id: str
    from_stage: str
    to_stage: str
    changed: bool
    changed_at: datetime | None = None
    attempts: int = 1


class TransitionService(BaseService):
    """Moves clients between pipeline stages."""

    def __init__(
        self,
        db: Session,
        change_feed: ChangeFeed | None = None,
        policy: StageTransitionPolicy | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(db, change_feed)
        self.policy = policy or DEFAULT_POLICY
        self.clock = clock or utcnow

    def transition(self, client_id: str, target_stage: str, actor: Actor) -> TransitionResult:
        snapshot = self._read_snapshot(client_id)
        if not is_known_stage(target_stage):
            raise ValidationError(
                f"Unknown stage '{target_stage}'. Expected one of: {', '.join(PIPELINE_STAGES)}."
            )
        target = normalize_stage(target_stage)

        for attempt in range(1, MAX_ATTEMPTS + 1):
            if attempt > 1:
                snapshot = self._read_snapshot(client_id)
            current = normalize_stage(snapshot.stored_stage)
            if current == target:
                return TransitionResult(
                    client_id=client_id, from_stage=current, to_stage=target, changed=False, attempts=attempt
                )

            self.policy.assert_transition(actor.role, current, target)

            changed_at = self._next_changed_at(snapshot)
            if self._apply(snapshot, current, target, changed_at, actor):
                logger.info(
                    "client.stage.transitioned",
                    extra={
                        "event": "client.stage.transitioned",
                        "client_id": client_id,
                        "from_stage": current,
                        "to_stage": target,
                        "actor_id": actor.user_id,
                        "attempt": attempt,
                    },
                )
                self.publish(
                    "clients",
                    "stage_changed",
                    client_id,
                    from_stage=current,
                    to_stage=target,
                    changed_at=changed_at.isoformat(),
                )
                return TransitionResult(
                    client_id=client_id,
                    from_stage=current,
                    to_stage=target,
                    changed=True,
                    changed_at=changed_at,
                    attempts=attempt,
                )

            logger.warning(
                "client.stage.stale_read",
                extra={
                    "event": "client.stage.stale_read",
                    "client_id": client_id,
                    "expected_stage": snapshot.stored_stage,
                    "attempt": attempt,
                },
            )

        raise ConflictError(f"Client {client_id} was changed by someone else; reload and try again.")

    def _read_snapshot(self, client_id: str) -> ClientSnapshot:
        try:
            row = self.db.execute(select(Client.id, Client.stage).where(Client.id == client_id)).one_or_none()
        except SQLAlchemyError as exc:
            self.rollback()
            raise UpstreamUnavailableError("Could not read the client from the data store.") from exc
        if row is None:
            raise NotFoundError(f"Client not found: {client_id}")
        try:
            latest = self.db.scalar(
                select(func.max(StageHistoryEntry.changed_at)).where(StageHistoryEntry.client_id == client_id)
            )
        except SQLAlchemyError as exc:
            self.rollback()
            raise UpstreamUnavailableError("Could not read the client history from the data store.") from exc
        return ClientSnapshot(
            client_id=row.id,
            stored_stage=row.stage,
            latest_changed_at=as_utc(latest) if latest is not None else None,
        )

    def _next_changed_at(self, snapshot: ClientSnapshot) -> datetime:
        """Clock reading, never earlier than the client's latest history entry."""
        now = as_utc(self.clock())
        if snapshot.latest_changed_at is not None and now < snapshot.latest_changed_at:
            logger.warning(
                "client.stage.clock_behind_history",
                extra={
                    "event": "client.stage.clock_behind_history",
                    "client_id": snapshot.client_id,
                    "latest_changed_at": snapshot.latest_changed_at.isoformat(),
                },
            )
            return snapshot.latest_changed_at
        return now

    def _apply(
        self,
        snapshot: ClientSnapshot,
        current: str,
        target: str,
        changed_at: datetime,
        actor: Actor,
    ) -> bool:
        """Run the guarded update and history append in one transaction.

        Returns False, with nothing written, when the guard matched no row.
        """
        try:
            result = self.db.execute(
                update(Client)
                .where(Client.id == snapshot.client_id, Client.stage == snapshot.stored_stage)
                .values(stage=target, updated_at=changed_at)
            )
            if result.rowcount != 1:
                self.rollback()
                return False
            self._append_history(snapshot.client_id, current, target, changed_at, actor)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.rollback()
            logger.exception(
                "client.stage.transition_failed",
                extra={"event": "client.stage.transition_failed", "client_id": snapshot.client_id},
            )
            raise UpstreamUnavailableError("The stage change could not be saved; nothing was changed.") from exc
        except Exception:
            self.rollback()
            raise
        return True

    def _append_history(
        self,
        client_id: str,
        from_stage: str,
        to_stage: str,
        changed_at: datetime,
        actor: Actor,
    ) -> StageHistoryEntry:
        entry = StageHistoryEntry(
            client_id=client_id,
            from_stage=from_stage,
            to_stage=to_stage,
            changed_at=changed_at,
            changed_by=actor.user_id,
        )
        self.db.add(entry)
        self.db.flush()
        return entry
