"""Canonical enum values for the pipeline schema."""

from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    ASSISTANT = "assistant"


class TaskStatus(str, enum.Enum):
    OPEN = "open"
    COMPLETED = "completed"


class TaskFilter(str, enum.Enum):
    OPEN = "Open"
    OVERDUE = "Overdue"
    TODAY = "Today"
    UPCOMING = "Upcoming"
    COMPLETED = "Completed"
    ALL = "All"


class StageAgeTier(str, enum.Enum):
    NEUTRAL = "neutral"
    WARNING = "warning"
    URGENT = "urgent"


class NotificationStatus(str, enum.Enum):
    SENT = "sent"
    SANDBOX = "sandbox_sent"
    SKIPPED = "skipped"
    FAILED = "failed"
