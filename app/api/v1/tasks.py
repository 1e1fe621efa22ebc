"""Task endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.orm import Session

from app.api.v1._authz import authorize
from app.core.config import Config
from app.core.dependencies import get_change_feed, get_db_session, get_notifier, get_settings
from app.events.change_feed import ChangeFeed
from app.models import TaskFilter
from app.models.base import utcnow
from app.schemas.tasks import (
    TaskCreatedResponse,
    TaskCreateRequest,
    TaskNoteCreateRequest,
    TaskNoteResponse,
    TaskResponse,
    TaskUpdateRequest,
)
from app.services.notification_service import TaskNotifier
from app.services.task_service import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=list[TaskResponse])
def list_tasks(
    filter: TaskFilter = Query(default=TaskFilter.OPEN),
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
) -> list[TaskResponse]:
    authorize(authorization, settings, scopes=["tasks.read"])
    tasks = TaskService(db).list_tasks(filter, today=utcnow().date())
    return [TaskResponse.model_validate(task) for task in tasks]


@router.post("", response_model=TaskCreatedResponse, status_code=201)
def create_task(
    payload: TaskCreateRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
    feed: ChangeFeed = Depends(get_change_feed),
    notifier: TaskNotifier = Depends(get_notifier),
) -> TaskCreatedResponse:
    authorize(authorization, settings, scopes=["tasks.write"])
    created = TaskService(db, feed, notifier).create_task(payload.model_dump())
    return TaskCreatedResponse(
        task=TaskResponse.model_validate(created.task),
        notification_status=created.notification.status.value if created.notification else None,
        warning=created.warning,
    )


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
) -> TaskResponse:
    authorize(authorization, settings, scopes=["tasks.read"])
    return TaskResponse.model_validate(TaskService(db).get_task(task_id))


@router.patch("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    payload: TaskUpdateRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
    feed: ChangeFeed = Depends(get_change_feed),
) -> TaskResponse:
    authorize(authorization, settings, scopes=["tasks.write"])
    task = TaskService(db, feed).update_task(task_id, payload.model_dump(exclude_unset=True))
    return TaskResponse.model_validate(task)


@router.post("/{task_id}/complete", response_model=TaskResponse)
def complete_task(
    task_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
    feed: ChangeFeed = Depends(get_change_feed),
) -> TaskResponse:
    authorize(authorization, settings, scopes=["tasks.write"])
    return TaskResponse.model_validate(TaskService(db, feed).complete_task(task_id))


@router.post("/{task_id}/reopen", response_model=TaskResponse)
def reopen_task(
    task_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
    feed: ChangeFeed = Depends(get_change_feed),
) -> TaskResponse:
    authorize(authorization, settings, scopes=["tasks.write"])
    return TaskResponse.model_validate(TaskService(db, feed).reopen_task(task_id))


@router.get("/{task_id}/notes", response_model=list[TaskNoteResponse])
def list_notes(
    task_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
) -> list[TaskNoteResponse]:
    authorize(authorization, settings, scopes=["tasks.read"])
    return [TaskNoteResponse.model_validate(note) for note in TaskService(db).list_notes(task_id)]


@router.post("/{task_id}/notes", response_model=TaskNoteResponse, status_code=201)
def add_note(
    task_id: str,
    payload: TaskNoteCreateRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
    feed: ChangeFeed = Depends(get_change_feed),
) -> TaskNoteResponse:
    actor = authorize(authorization, settings, scopes=["tasks.write"])
    return TaskNoteResponse.model_validate(TaskService(db, feed).add_note(task_id, payload.body, actor))
