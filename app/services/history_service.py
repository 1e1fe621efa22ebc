"""Read side of the stage history log."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import UpstreamUnavailableError
from app.models import Client, StageHistoryEntry
from app.pipeline.analytics import StageDwell, stage_dwell_times
from app.pipeline.duration import StageDuration, stage_duration
from app.services.base_service import BaseService


class HistoryService(BaseService):
    """Queries over ``client_stage_history`` and the derived current-stage entries."""

    def list_history(self, client_id: str | None = None) -> list[StageHistoryEntry]:
        """History ordered by client, then ``changed_at`` ascending."""
        stmt = select(StageHistoryEntry)
        if client_id is not None:
            stmt = stmt.where(StageHistoryEntry.client_id == client_id)
        stmt = stmt.order_by(StageHistoryEntry.client_id, StageHistoryEntry.changed_at, StageHistoryEntry.id)
        try:
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as exc:
            raise UpstreamUnavailableError("Could not load stage history.") from exc

    def current_stage_entries(self, client_ids: Iterable[str] | None = None) -> dict[str, datetime]:
        """Client id -> timestamp it entered its current stage (latest history row)."""
        stmt = select(StageHistoryEntry.client_id, func.max(StageHistoryEntry.changed_at)).group_by(
            StageHistoryEntry.client_id
        )
        if client_ids is not None:
            ids = list(client_ids)
            if not ids:
                return {}
            stmt = stmt.where(StageHistoryEntry.client_id.in_(ids))
        try:
            return {client_id: entered_at for client_id, entered_at in self.db.execute(stmt).all()}
        except SQLAlchemyError as exc:
            raise UpstreamUnavailableError("Could not load current stage entries.") from exc

    def stage_durations(self, clients: Iterable[Client], now: datetime) -> dict[str, StageDuration]:
        clients = list(clients)
        entries = self.current_stage_entries(client.id for client in clients)
        durations: dict[str, StageDuration] = {}
        for client in clients:
            history = []
            if client.id in entries:
                history.append({"client_id": client.id, "changed_at": entries[client.id]})
            durations[client.id] = stage_duration(history, client, now)
        return durations

    def stage_timing(self) -> list[StageDwell]:
        return stage_dwell_times(self.list_history())
