"""Client CRUD, archiving and admin hard delete.

Stage is set once at creation (with its initial history row) and afterwards
moves only through ``TransitionService``; field edits are last-write-wins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.auth.actor import Actor
from app.auth.rbac import require_scopes
from app.core.exceptions import ForbiddenError, NotFoundError, UpstreamUnavailableError, ValidationError
from app.events.change_feed import ChangeFeed
from app.models import Client, StageHistoryEntry, Task
from app.models.base import utcnow
from app.pipeline.stages import normalize_stage
from app.services.base_service import BaseService
from app.utils.validators import empty_to_none, optional_email, parse_optional_date, require_text

logger = logging.getLogger(__name__)

TEXT_FIELDS = {
    "phone": 64,
    "assigned_to": 255,
    "banker_name": 255,
    "bank": 255,
    "lender": 255,
    "notes": 20000,
    "notes_file_link": 1000,
}
EMAIL_FIELDS = {"email", "banker_email"}
DATE_FIELDS = {"next_follow_up", "last_contact", "subject_removal_date", "closing_date"}
EDITABLE_FIELDS = (
    {"name", "file_type", "retainer_received", "retainer_amount"} | set(TEXT_FIELDS) | EMAIL_FIELDS | DATE_FIELDS
)


def _parse_amount(value: Any) -> Decimal | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValidationError("retainer_amount must be a number.") from exc
    if amount < 0:
        raise ValidationError("retainer_amount must be >= 0.")
    return amount


def clean_client_fields(data: dict[str, Any], partial: bool = False) -> dict[str, Any]:
    """Validate and coerce client attributes at the service boundary."""
    unknown = set(data) - EDITABLE_FIELDS - {"stage"}
    if unknown:
        raise ValidationError(f"Unknown client fields: {', '.join(sorted(unknown))}")
    if partial and "stage" in data:
        raise ValidationError("Stage changes go through the stage transition endpoint.")

    cleaned: dict[str, Any] = {}
    if "name" in data or not partial:
        cleaned["name"] = require_text(data.get("name"), "Client name", max_len=255)
    if "file_type" in data or not partial:
        cleaned["file_type"] = empty_to_none(data.get("file_type"), max_len=60) or "Residential"
    for field_name, max_len in TEXT_FIELDS.items():
        if field_name in data:
            cleaned[field_name] = empty_to_none(data[field_name], max_len=max_len)
    for field_name in EMAIL_FIELDS:
        if field_name in data:
            cleaned[field_name] = optional_email(data[field_name], field_name)
    for field_name in DATE_FIELDS:
        if field_name in data:
            cleaned[field_name] = parse_optional_date(data[field_name], field_name)
    if "retainer_received" in data:
        cleaned["retainer_received"] = bool(data["retainer_received"])
    if "retainer_amount" in data:
        cleaned["retainer_amount"] = _parse_amount(data["retainer_amount"])
    return cleaned


class ClientService(BaseService):
    """Service for client records."""

    def __init__(
        self,
        db: Session,
        change_feed: ChangeFeed | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(db, change_feed)
        self.clock = clock or utcnow

    def create_client(self, data: dict[str, Any], actor: Actor | None = None) -> Client:
        client = self._build_client(data, actor)
        self.commit()
        logger.info("client.created", extra={"event": "client.created", "client_id": client.id, "stage": client.stage})
        self.publish("clients", "created", client.id, stage=client.stage)
        return client

    def create_many(self, rows: list[dict[str, Any]], actor: Actor | None = None) -> list[Client]:
        """Create several clients in one transaction (CSV import)."""
        try:
            clients = [self._build_client(row, actor) for row in rows]
        except ValidationError:
            self.rollback()
            raise
        self.commit()
        for client in clients:
            self.publish("clients", "created", client.id, stage=client.stage)
        logger.info("client.bulk_created", extra={"event": "client.bulk_created", "count": len(clients)})
        return clients

    def _build_client(self, data: dict[str, Any], actor: Actor | None) -> Client:
        fields = clean_client_fields(data)
        stage = normalize_stage(data.get("stage"))
        now = self.clock()
        client = Client(**fields, stage=stage, is_archived=False, created_at=now, updated_at=now)
        client.history.append(
            StageHistoryEntry(
                from_stage=None,
                to_stage=stage,
                changed_at=now,
                changed_by=actor.user_id if actor else None,
            )
        )
        self.db.add(client)
        try:
            self.db.flush()
        except SQLAlchemyError as exc:
            self.rollback()
            raise UpstreamUnavailableError("Could not save the client.") from exc
        return client

    def get_client(self, client_id: str) -> Client:
        try:
            client = self.db.get(Client, client_id)
        except SQLAlchemyError as exc:
            raise UpstreamUnavailableError("Could not read the client.") from exc
        if client is None:
            raise NotFoundError(f"Client not found: {client_id}")
        return client

    def list_clients(self, archived: bool = False) -> list[Client]:
        stmt = select(Client)
        if archived:
            stmt = stmt.where(Client.is_archived.is_(True))
        else:
            stmt = stmt.where(or_(Client.is_archived.is_(False), Client.is_archived.is_(None)))
        stmt = stmt.order_by(Client.created_at.desc())
        try:
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as exc:
            raise UpstreamUnavailableError("Could not load clients.") from exc

    def update_client(self, client_id: str, data: dict[str, Any]) -> Client:
        changes = clean_client_fields(data, partial=True)
        client = self.get_client(client_id)
        for field_name, value in changes.items():
            setattr(client, field_name, value)
        client.updated_at = self.clock()
        self.commit()
        self.publish("clients", "updated", client.id, fields=sorted(changes))
        return client

    def archive_client(self, client_id: str, actor: Actor) -> Client:
        client = self.get_client(client_id)
        client.is_archived = True
        client.archived_at = self.clock()
        client.archived_by = actor.user_id
        client.updated_at = self.clock()
        self.commit()
        logger.info("client.archived", extra={"event": "client.archived", "client_id": client_id})
        self.publish("clients", "archived", client.id)
        return client

    def unarchive_client(self, client_id: str) -> Client:
        client = self.get_client(client_id)
        client.is_archived = False
        client.archived_at = None
        client.archived_by = None
        client.updated_at = self.clock()
        self.commit()
        self.publish("clients", "unarchived", client.id)
        return client

    def hard_delete_client(self, client_id: str, actor: Actor) -> None:
        """Irreversibly remove a client and its history. Admin only."""
        if not actor.is_admin:
            raise ForbiddenError("Only admins can permanently delete clients.")
        require_scopes(actor.role, ["clients.delete"])
        client = self.get_client(client_id)
        try:
            self.db.execute(update(Task).where(Task.client_id == client_id).values(client_id=None))
            self.db.delete(client)
        except SQLAlchemyError as exc:
            self.rollback()
            raise UpstreamUnavailableError("Could not delete the client.") from exc
        self.commit()
        logger.warning(
            "client.hard_deleted",
            extra={"event": "client.hard_deleted", "client_id": client_id, "actor_id": actor.user_id},
        )
        self.publish("clients", "deleted", client_id)
