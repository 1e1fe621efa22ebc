"""Task request/response schemas for API contracts."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import TaskStatus


class TaskCreateRequest(BaseModel):
    title: str = Field(max_length=500)
    assigned_to: str | None = Field(default=None, max_length=255)
    due_date: date | None = None
    notes: str | None = Field(default=None, max_length=20000)
    client_id: str | None = Field(default=None, max_length=36)


class TaskUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, max_length=500)
    assigned_to: str | None = Field(default=None, max_length=255)
    due_date: date | None = None
    status: str | None = Field(default=None, max_length=20)
    notes: str | None = Field(default=None, max_length=20000)
    client_id: str | None = Field(default=None, max_length=36)


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    assigned_to: str | None = None
    due_date: date | None = None
    status: TaskStatus
    notes: str | None = None
    client_id: str | None = None
    created_at: datetime | None = None


class TaskCreatedResponse(BaseModel):
    task: TaskResponse
    notification_status: str | None = None
    warning: str | None = None


class TaskNoteCreateRequest(BaseModel):
    body: str = Field(max_length=20000)


class TaskNoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    task_id: str
    body: str
    created_by: str | None = None
    created_at: datetime
