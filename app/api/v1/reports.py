"""Analytics, dashboard, calendar feed and change feed endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Query, Response
from sqlalchemy.orm import Session

from app.api.v1._authz import authorize
from app.core.config import Config
from app.core.dependencies import get_change_feed, get_db_session, get_settings
from app.events.change_feed import ChangeFeed
from app.models.base import utcnow
from app.pipeline.analytics import recent_history, stage_dwell_times
from app.schemas.analytics import (
    ChangeEventItem,
    ChangesResponse,
    DashboardSummaryResponse,
    StageDwellItem,
    StageTimingResponse,
    TaskCountsItem,
)
from app.schemas.clients import StageHistoryItem
from app.services.calendar_service import CALENDAR_CONTENT_TYPE, CALENDAR_FILENAME, CalendarService
from app.services.dashboard_service import DashboardService
from app.services.history_service import HistoryService

router = APIRouter(tags=["reports"])


@router.get("/analytics/stage-timing", response_model=StageTimingResponse)
def stage_timing(
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
) -> StageTimingResponse:
    authorize(authorization, settings, scopes=["analytics.read"])
    history = HistoryService(db).list_history()
    dwell = stage_dwell_times(history)
    return StageTimingResponse(
        stages=[
            StageDwellItem(stage=item.stage, samples=item.samples, average_days=item.average_days)
            for item in dwell
        ],
        recent_history=[StageHistoryItem.model_validate(entry) for entry in recent_history(history)],
    )


@router.get("/dashboard/summary", response_model=DashboardSummaryResponse)
def dashboard_summary(
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
) -> DashboardSummaryResponse:
    authorize(authorization, settings, scopes=["clients.read", "tasks.read"])
    summary = DashboardService(db).summary(today=utcnow().date())
    return DashboardSummaryResponse(
        active_clients=summary.active_clients,
        sent_to_banker=summary.sent_to_banker,
        tasks_overdue=summary.tasks_overdue,
        completed_this_month=summary.completed_this_month,
        stage_counts=summary.stage_counts,
        tasks_by_client={
            client_id: TaskCountsItem(open=counts.open, total=counts.total)
            for client_id, counts in summary.tasks_by_client.items()
        },
    )


@router.get("/calendar/tasks.ics")
def calendar_feed(
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
) -> Response:
    authorize(authorization, settings, scopes=["calendar.read"])
    body = CalendarService(db).export_ics(
        now=utcnow(),
        prodid=settings.CALENDAR_PRODID,
        uid_domain=settings.CALENDAR_UID_DOMAIN,
    )
    return Response(
        content=body,
        media_type=CALENDAR_CONTENT_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{CALENDAR_FILENAME}"',
            "Cache-Control": "no-store",
        },
    )


@router.get("/changes", response_model=ChangesResponse)
def changes(
    after: int = Query(default=0, ge=0),
    entity_type: str | None = Query(default=None, max_length=40),
    authorization: str | None = Header(default=None, alias="Authorization"),
    settings: Config = Depends(get_settings),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ChangesResponse:
    authorize(authorization, settings, scopes=["changes.read"])
    events = feed.events_since(after, entity_type)
    return ChangesResponse(
        items=[ChangeEventItem(**event.to_dict()) for event in events],
        last_sequence=events[-1].sequence if events else after,
    )
