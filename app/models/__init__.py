"""SQLAlchemy model package for the pipeline schema."""

from app.models.base import Base
from app.models.client import Client
from app.models.email_log import EmailLog
from app.models.enums import NotificationStatus, StageAgeTier, TaskFilter, TaskStatus, UserRole
from app.models.profile import Profile
from app.models.stage_history import StageHistoryEntry
from app.models.task import Task, TaskNote

__all__ = [
    "Base",
    "Client",
    "EmailLog",
    "NotificationStatus",
    "Profile",
    "StageAgeTier",
    "StageHistoryEntry",
    "Task",
    "TaskFilter",
    "TaskNote",
    "TaskStatus",
    "UserRole",
]
