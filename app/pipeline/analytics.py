"""Average dwell time per stage computed from the stage history log."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from app.pipeline.duration import as_utc
from app.pipeline.stages import DEFAULT_STAGE, PIPELINE_STAGES, normalize_stage

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class StageDwell:
    stage: str
    samples: int
    average_days: float
    total_days: float


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def dwell_samples(history: Iterable[Any]) -> dict[str, list[float]]:
    """Per-stage dwell samples in days.

    Each consecutive pair of a client's entries yields one sample for the
    stage the earlier entry moved into. The latest entry per client is still
    open and contributes nothing.
    """
    by_client: dict[Any, list[Any]] = defaultdict(list)
    for entry in history:
        if _field(entry, "changed_at") is None:
            continue
        by_client[_field(entry, "client_id")].append(entry)

    samples: dict[str, list[float]] = defaultdict(list)
    for entries in by_client.values():
        ordered = sorted(entries, key=lambda item: as_utc(_field(item, "changed_at")))
        for current, following in zip(ordered, ordered[1:]):
            to_stage = _field(current, "to_stage")
            stage = normalize_stage(to_stage) if to_stage is not None else DEFAULT_STAGE
            elapsed = as_utc(_field(following, "changed_at")) - as_utc(_field(current, "changed_at"))
            samples[stage].append(max(0.0, elapsed / _ONE_DAY))
    return samples


def stage_dwell_times(history: Iterable[Any]) -> list[StageDwell]:
    """Average days spent in each catalog stage, in board order."""
    samples = dwell_samples(history)
    rows: list[StageDwell] = []
    for stage in PIPELINE_STAGES:
        values = samples.get(stage, [])
        total = sum(values)
        rows.append(
            StageDwell(
                stage=stage,
                samples=len(values),
                average_days=(total / len(values)) if values else 0.0,
                total_days=total,
            )
        )
    return rows


def recent_history(history: Iterable[Any], limit: int = 200) -> list[Any]:
    """Last ``limit`` entries of an already ordered history list."""
    entries = list(history)
    if limit <= 0:
        return []
    return entries[-limit:]
