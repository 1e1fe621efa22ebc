"""Analytics and dashboard schemas."""

from __future__ import annotations

from pydantic import BaseModel

from app.schemas.clients import StageHistoryItem


class StageDwellItem(BaseModel):
    stage: str
    samples: int
    average_days: float


class StageTimingResponse(BaseModel):
    stages: list[StageDwellItem]
    recent_history: list[StageHistoryItem]


class TaskCountsItem(BaseModel):
    open: int
    total: int


class DashboardSummaryResponse(BaseModel):
    active_clients: int
    sent_to_banker: int
    tasks_overdue: int
    completed_this_month: int
    stage_counts: dict[str, int]
    tasks_by_client: dict[str, TaskCountsItem]


class ChangeEventItem(BaseModel):
    sequence: int
    entity_type: str
    action: str
    entity_id: str
    data: dict
    occurred_at: str | None = None


class ChangesResponse(BaseModel):
    items: list[ChangeEventItem]
    last_sequence: int
