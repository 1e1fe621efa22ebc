"""Task CRUD, list filters and task notes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.auth.actor import Actor
from app.core.exceptions import NotFoundError, UpstreamUnavailableError, ValidationError
from app.events.change_feed import ChangeFeed
from app.models import Client, Task, TaskFilter, TaskNote, TaskStatus
from app.models.base import utcnow
from app.services.base_service import BaseService
from app.services.notification_service import NotificationResult, TaskNotifier
from app.utils.validators import empty_to_none, parse_optional_date, require_text

logger = logging.getLogger(__name__)

TASK_FIELDS = {"title", "assigned_to", "due_date", "status", "notes", "client_id"}


@dataclass(frozen=True)
class TaskCreated:
    task: Task
    notification: NotificationResult | None

    @property
    def warning(self) -> str | None:
        return self.notification.warning if self.notification else None


def _parse_status(value: Any) -> TaskStatus:
    try:
        return TaskStatus(str(value).strip().lower())
    except ValueError as exc:
        raise ValidationError("status must be 'open' or 'completed'.") from exc


def filter_tasks(tasks: list[Task], task_filter: TaskFilter, today: date) -> list[Task]:
    """Apply the dashboard task filters relative to ``today``."""
    if task_filter is TaskFilter.ALL:
        return list(tasks)
    if task_filter is TaskFilter.COMPLETED:
        return [task for task in tasks if task.status is TaskStatus.COMPLETED]

    open_tasks = [task for task in tasks if task.status is TaskStatus.OPEN]
    if task_filter is TaskFilter.OPEN:
        return open_tasks
    if task_filter is TaskFilter.OVERDUE:
        return [task for task in open_tasks if task.due_date is not None and task.due_date < today]
    if task_filter is TaskFilter.TODAY:
        return [task for task in open_tasks if task.due_date == today]
    return [task for task in open_tasks if task.due_date is not None and task.due_date > today]


class TaskService(BaseService):
    """Service for tasks; an independent collaborator of the client pipeline."""

    def __init__(self, db: Session, change_feed: ChangeFeed | None = None, notifier: TaskNotifier | None = None) -> None:
        super().__init__(db, change_feed)
        self.notifier = notifier

    def _clean(self, data: dict[str, Any], partial: bool) -> dict[str, Any]:
        unknown = set(data) - TASK_FIELDS
        if unknown:
            raise ValidationError(f"Unknown task fields: {', '.join(sorted(unknown))}")
        cleaned: dict[str, Any] = {}
        if "title" in data or not partial:
            cleaned["title"] = require_text(data.get("title"), "Task title", max_len=500)
        if "assigned_to" in data:
            cleaned["assigned_to"] = empty_to_none(data["assigned_to"], max_len=255)
        if "notes" in data:
            cleaned["notes"] = empty_to_none(data["notes"])
        if "due_date" in data:
            cleaned["due_date"] = parse_optional_date(data["due_date"], "due_date")
        if "status" in data:
            cleaned["status"] = _parse_status(data["status"])
        if "client_id" in data:
            client_id = empty_to_none(data["client_id"], max_len=36)
            if client_id is not None and self._client(client_id) is None:
                raise NotFoundError(f"Client not found: {client_id}")
            cleaned["client_id"] = client_id
        return cleaned

    def _client(self, client_id: str) -> Client | None:
        try:
            return self.db.get(Client, client_id)
        except SQLAlchemyError as exc:
            raise UpstreamUnavailableError("Could not read the client.") from exc

    def create_task(self, data: dict[str, Any]) -> TaskCreated:
        fields = self._clean(data, partial=False)
        fields.setdefault("status", TaskStatus.OPEN)
        task = Task(**fields)
        self.db.add(task)
        self.commit()
        logger.info("task.created", extra={"event": "task.created", "task_id": task.id})
        self.publish("tasks", "created", task.id)

        notification = None
        if self.notifier is not None:
            client = self._client(task.client_id) if task.client_id else None
            notification = self.notifier.notify_task_created(self.db, task, client.name if client else None)
            if notification.warning and not notification.delivered:
                logger.warning(
                    "task.created.notification_warning",
                    extra={"event": "task.created.notification_warning", "task_id": task.id},
                )
        return TaskCreated(task=task, notification=notification)

    def get_task(self, task_id: str) -> Task:
        try:
            task = self.db.get(Task, task_id)
        except SQLAlchemyError as exc:
            raise UpstreamUnavailableError("Could not read the task.") from exc
        if task is None:
            raise NotFoundError(f"Task not found: {task_id}")
        return task

    def list_tasks(self, task_filter: TaskFilter = TaskFilter.ALL, today: date | None = None) -> list[Task]:
        stmt = select(Task).order_by(Task.due_date.is_(None), Task.due_date, Task.created_at)
        try:
            tasks = list(self.db.scalars(stmt).all())
        except SQLAlchemyError as exc:
            raise UpstreamUnavailableError("Could not load tasks.") from exc
        return filter_tasks(tasks, task_filter, today or utcnow().date())

    def update_task(self, task_id: str, data: dict[str, Any]) -> Task:
        changes = self._clean(data, partial=True)
        task = self.get_task(task_id)
        for field_name, value in changes.items():
            setattr(task, field_name, value)
        self.commit()
        self.publish("tasks", "updated", task.id, fields=sorted(changes))
        return task

    def set_status(self, task_id: str, status: TaskStatus) -> Task:
        return self.update_task(task_id, {"status": status.value})

    def complete_task(self, task_id: str) -> Task:
        return self.set_status(task_id, TaskStatus.COMPLETED)

    def reopen_task(self, task_id: str) -> Task:
        return self.set_status(task_id, TaskStatus.OPEN)

    def add_note(self, task_id: str, body: str | None, actor: Actor | None = None) -> TaskNote:
        text = require_text(body, "Note", max_len=20000)
        task = self.get_task(task_id)
        note = TaskNote(task_id=task.id, body=text, created_by=actor.user_id if actor else None)
        self.db.add(note)
        self.commit()
        self.publish("tasks", "note_added", task.id, note_id=note.id)
        return note

    def list_notes(self, task_id: str) -> list[TaskNote]:
        self.get_task(task_id)
        stmt = select(TaskNote).where(TaskNote.task_id == task_id).order_by(TaskNote.created_at.desc())
        try:
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as exc:
            raise UpstreamUnavailableError("Could not load task notes.") from exc
