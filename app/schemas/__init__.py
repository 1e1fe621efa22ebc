"""Pydantic schema package for API contracts."""

from app.schemas.analytics import (
    ChangeEventItem,
    ChangesResponse,
    DashboardSummaryResponse,
    StageDwellItem,
    StageTimingResponse,
    TaskCountsItem,
)
from app.schemas.auth import (
    LoginRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordResetRequested,
    RefreshRequest,
    SessionResponse,
    TokenResponse,
)
from app.schemas.clients import (
    ClientCreateRequest,
    ClientResponse,
    ClientUpdateRequest,
    ImportResponse,
    StageAgeResponse,
    StageHistoryItem,
    StageTransitionRequest,
    StageTransitionResponse,
)
from app.schemas.common import ErrorEnvelope
from app.schemas.tasks import (
    TaskCreatedResponse,
    TaskCreateRequest,
    TaskNoteCreateRequest,
    TaskNoteResponse,
    TaskResponse,
    TaskUpdateRequest,
)

__all__ = [
    "ChangeEventItem",
    "ChangesResponse",
    "ClientCreateRequest",
    "ClientResponse",
    "ClientUpdateRequest",
    "DashboardSummaryResponse",
    "ErrorEnvelope",
    "ImportResponse",
    "LoginRequest",
    "PasswordResetConfirm",
    "PasswordResetRequest",
    "PasswordResetRequested",
    "RefreshRequest",
    "SessionResponse",
    "StageAgeResponse",
    "StageDwellItem",
    "StageHistoryItem",
    "StageTimingResponse",
    "StageTransitionRequest",
    "StageTransitionResponse",
    "TaskCountsItem",
    "TaskCreateRequest",
    "TaskCreatedResponse",
    "TaskNoteCreateRequest",
    "TaskNoteResponse",
    "TaskResponse",
    "TaskUpdateRequest",
    "TokenResponse",
]
