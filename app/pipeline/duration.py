"""Days-in-stage derivation for clients.

Everything here is a pure function of ``(history, client, now)``; callers
inject ``now`` so nothing reads the wall clock.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from app.models.enums import StageAgeTier
from app.pipeline.stages import normalize_stage

WARNING_AFTER_DAYS = 3
URGENT_AFTER_DAYS = 7


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (SQLite round-trips) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


@dataclass(frozen=True)
class StageDuration:
    client_id: str
    stage: str
    entered_at: datetime | None
    days: int | None
    tier: StageAgeTier | None
    label: str | None


def entered_current_stage_at(history: Iterable[Any], client: Any) -> datetime | None:
    """Latest ``changed_at`` for the client, else its updated/created timestamp."""
    client_id = _field(client, "id")
    latest: datetime | None = None
    for entry in history:
        if _field(entry, "client_id") != client_id:
            continue
        changed_at = _field(entry, "changed_at")
        if changed_at is None:
            continue
        changed_at = as_utc(changed_at)
        if latest is None or changed_at > latest:
            latest = changed_at
    if latest is not None:
        return latest

    fallback = _field(client, "updated_at") or _field(client, "created_at")
    return as_utc(fallback) if fallback is not None else None


def days_in_stage(entered_at: datetime | None, now: datetime) -> int | None:
    if entered_at is None:
        return None
    elapsed = as_utc(now) - as_utc(entered_at)
    return max(0, elapsed // timedelta(days=1))


def stage_age_tier(days: int | None) -> StageAgeTier | None:
    if days is None:
        return None
    if days >= URGENT_AFTER_DAYS:
        return StageAgeTier.URGENT
    if days >= WARNING_AFTER_DAYS:
        return StageAgeTier.WARNING
    return StageAgeTier.NEUTRAL


def describe_stage_age(days: int | None, stage: str | None = None) -> str | None:
    """Badge tooltip text."""
    if days is None:
        return None
    unit = "day" if days == 1 else "days"
    if stage:
        return f'In "{stage}" for {days} {unit}'
    return f"{days} {unit} in stage"


def stage_duration(history: Iterable[Any], client: Any, now: datetime) -> StageDuration:
    stage = normalize_stage(_field(client, "stage"))
    entered_at = entered_current_stage_at(history, client)
    days = days_in_stage(entered_at, now)
    return StageDuration(
        client_id=_field(client, "id"),
        stage=stage,
        entered_at=entered_at,
        days=days,
        tier=stage_age_tier(days),
        label=describe_stage_age(days, stage),
    )
