from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.models import StageHistoryEntry, Task
from app.services.client_service import ClientService, clean_client_fields
from app.services.task_service import TaskService


def test_create_client_writes_initial_history(db, clock, assistant, change_feed):
    service = ClientService(db, change_feed, clock=clock)
    client = service.create_client({"name": "  Priya Shah ", "stage": "checklist sent", "email": "p@example.com"}, assistant)

    assert client.name == "Priya Shah"
    assert client.stage == "Checklist Sent"
    assert client.file_type == "Residential"
    assert client.is_archived is False
    history = db.scalars(select(StageHistoryEntry).where(StageHistoryEntry.client_id == client.id)).all()
    assert len(history) == 1
    assert history[0].from_stage is None
    assert history[0].to_stage == "Checklist Sent"
    assert history[0].changed_by == assistant.user_id
    assert change_feed.events_since(0)[-1].action == "created"


def test_create_client_defaults_unknown_stage_to_lead(db, clock):
    client = ClientService(db, clock=clock).create_client({"name": "Ari", "stage": "Pre-qual"})
    assert client.stage == "Lead"


@pytest.mark.parametrize(
    "payload",
    [
        {"name": "   "},
        {"name": "Ari", "email": "not-an-email"},
        {"name": "Ari", "next_follow_up": "31/12/2026"},
        {"name": "Ari", "retainer_amount": "-5"},
        {"name": "Ari", "favourite_colour": "blue"},
    ],
)
def test_create_client_rejects_invalid_input(db, clock, payload):
    with pytest.raises(ValidationError):
        ClientService(db, clock=clock).create_client(payload)


def test_clean_fields_coerces_values():
    cleaned = clean_client_fields(
        {"name": "Ari", "phone": "  ", "next_follow_up": "2026-04-01", "retainer_amount": "1500.50"}
    )
    assert cleaned["phone"] is None
    assert cleaned["next_follow_up"] == date(2026, 4, 1)
    assert cleaned["retainer_amount"] == Decimal("1500.50")


def test_update_client_refuses_stage_changes(db, clock):
    service = ClientService(db, clock=clock)
    client = service.create_client({"name": "Ari"})
    with pytest.raises(ValidationError):
        service.update_client(client.id, {"stage": "Completed"})

    updated = service.update_client(client.id, {"bank": "North Shore CU", "notes": ""})
    assert updated.bank == "North Shore CU"
    assert updated.notes is None
    assert updated.stage == "Lead"


def test_get_client_missing_raises(db):
    with pytest.raises(NotFoundError):
        ClientService(db).get_client("nope")


def test_archive_and_unarchive(db, clock, assistant):
    service = ClientService(db, clock=clock)
    active = service.create_client({"name": "Active"})
    archived = service.create_client({"name": "Archived"})
    legacy = service.create_client({"name": "Legacy"})
    legacy.is_archived = None
    db.commit()

    service.archive_client(archived.id, assistant)
    assert archived.archived_at == clock.now
    assert archived.archived_by == assistant.user_id

    active_names = {client.name for client in service.list_clients(archived=False)}
    assert active_names == {"Active", "Legacy"}
    assert [client.name for client in service.list_clients(archived=True)] == ["Archived"]

    service.unarchive_client(archived.id)
    assert archived.is_archived is False
    assert archived.archived_at is None


def test_hard_delete_is_admin_only_and_detaches_tasks(db, clock, assistant, admin):
    service = ClientService(db, clock=clock)
    client = service.create_client({"name": "Gone"})
    task = TaskService(db).create_task({"title": "Call back", "client_id": client.id}).task

    with pytest.raises(ForbiddenError):
        service.hard_delete_client(client.id, assistant)

    service.hard_delete_client(client.id, admin)

    with pytest.raises(NotFoundError):
        service.get_client(client.id)
    remaining = db.scalar(
        select(func.count()).select_from(StageHistoryEntry).where(StageHistoryEntry.client_id == client.id)
    )
    assert remaining == 0
    db.expire_all()
    assert db.get(Task, task.id).client_id is None
