from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import select

import app.services.task_service as task_module
from app.core.exceptions import NotFoundError, ValidationError
from app.models import EmailLog, TaskFilter, TaskStatus
from app.services.client_service import ClientService
from app.services.notification_service import TaskNotifier
from app.services.task_service import TaskService

TODAY = date(2026, 3, 2)


def _seed_tasks(service):
    return {
        "overdue": service.create_task({"title": "Overdue", "due_date": TODAY - timedelta(days=1)}).task,
        "today": service.create_task({"title": "Today", "due_date": TODAY}).task,
        "upcoming": service.create_task({"title": "Upcoming", "due_date": TODAY + timedelta(days=3)}).task,
        "undated": service.create_task({"title": "Undated"}).task,
        "done": service.create_task({"title": "Done", "due_date": TODAY, "status": "completed"}).task,
    }


@pytest.mark.parametrize(
    ("task_filter", "expected"),
    [
        (TaskFilter.OPEN, {"Overdue", "Today", "Upcoming", "Undated"}),
        (TaskFilter.OVERDUE, {"Overdue"}),
        (TaskFilter.TODAY, {"Today"}),
        (TaskFilter.UPCOMING, {"Upcoming"}),
        (TaskFilter.COMPLETED, {"Done"}),
        (TaskFilter.ALL, {"Overdue", "Today", "Upcoming", "Undated", "Done"}),
    ],
)
def test_list_filters(db, task_filter, expected):
    service = TaskService(db)
    _seed_tasks(service)
    assert {task.title for task in service.list_tasks(task_filter, today=TODAY)} == expected


def test_empty_title_is_rejected_before_write(db):
    service = TaskService(db)
    with pytest.raises(ValidationError):
        service.create_task({"title": "   "})
    assert service.list_tasks() == []


def test_unknown_client_reference_is_not_found(db):
    with pytest.raises(NotFoundError):
        TaskService(db).create_task({"title": "Chase docs", "client_id": "missing"})


def test_invalid_status_is_rejected(db):
    service = TaskService(db)
    task = service.create_task({"title": "Chase docs"}).task
    with pytest.raises(ValidationError):
        service.update_task(task.id, {"status": "archived"})


def test_complete_and_reopen(db, change_feed):
    service = TaskService(db, change_feed)
    task = service.create_task({"title": "Order appraisal"}).task
    assert task.status is TaskStatus.OPEN

    assert service.complete_task(task.id).status is TaskStatus.COMPLETED
    assert service.reopen_task(task.id).status is TaskStatus.OPEN
    actions = [event.action for event in change_feed.events_since(0, "tasks")]
    assert actions == ["created", "updated", "updated"]


def test_notes_are_listed_newest_first(db, assistant):
    service = TaskService(db)
    task = service.create_task({"title": "Order appraisal"}).task
    first = service.add_note(task.id, "Called lender", assistant)
    second = service.add_note(task.id, "Appraiser booked")

    notes = service.list_notes(task.id)
    assert [note.id for note in notes] == [second.id, first.id]
    assert first.created_by == assistant.user_id
    with pytest.raises(ValidationError):
        service.add_note(task.id, "  ")
    with pytest.raises(NotFoundError):
        service.list_notes("missing")


def test_create_task_sends_sandboxed_notification_and_logs_it(db, clock, test_config):
    client = ClientService(db, clock=clock).create_client({"name": "Morgan"})
    service = TaskService(db, notifier=TaskNotifier(test_config))

    created = service.create_task({"title": "Send checklist", "assigned_to": "Assistant", "client_id": client.id})

    assert created.notification.status.value == "sandbox_sent"
    assert created.warning is None
    log = db.scalars(select(EmailLog)).one()
    assert log.entity_id == created.task.id
    assert log.recipient == "assistant@example.com"
    assert log.subject == "New task: Send checklist"
    assert "Morgan" in log.body_preview


def test_default_today_follows_utc_date(db, monkeypatch):
    late_evening_utc = datetime(2026, 3, 2, 23, 30, tzinfo=timezone.utc)
    monkeypatch.setattr(task_module, "utcnow", lambda: late_evening_utc)
    service = TaskService(db)
    _seed_tasks(service)

    assert {task.title for task in service.list_tasks(TaskFilter.TODAY)} == {"Today"}
    assert {task.title for task in service.list_tasks(TaskFilter.OVERDUE)} == {"Overdue"}
