"""Pipeline stage catalog and stored-value normalization."""

from __future__ import annotations

import enum


class Stage(str, enum.Enum):
    LEAD = "Lead"
    CHECKLIST_SENT = "Checklist Sent"
    DOCS_RECEIVED = "Docs Received"
    STRUCTURING_PHASE = "Structuring Phase"
    READY_TO_SEND_TO_BANKER = "Ready to Send to Banker"
    SENT_TO_BANKER = "Sent to Banker"
    MORE_INFO = "More Info"
    APPROVED = "Approved"
    DECLINED = "Declined"
    COMPLETED = "Completed"


# Board column order. Transitions are not restricted to neighbours.
PIPELINE_STAGES: tuple[str, ...] = tuple(stage.value for stage in Stage)
DEFAULT_STAGE: str = PIPELINE_STAGES[0]
CLOSED_STAGES: frozenset[str] = frozenset({Stage.COMPLETED.value, Stage.DECLINED.value})

# Retired labels still present in older rows.
LEGACY_STAGE_ALIASES: dict[str, str] = {
    "decision (approved/declined/more info)": Stage.MORE_INFO.value,
    "decision": Stage.MORE_INFO.value,
    "numbers done": Stage.STRUCTURING_PHASE.value,
}

_CANONICAL_BY_KEY: dict[str, str] = {stage.lower(): stage for stage in PIPELINE_STAGES}


def _key(value: str) -> str:
    return " ".join(value.split()).lower()


def is_known_stage(value: str | None) -> bool:
    """Return True when the value names a current catalog stage (case-insensitive)."""
    if value is None:
        return False
    return _key(str(value)) in _CANONICAL_BY_KEY


def normalize_stage(value: str | None) -> str:
    """Map any stored stage value onto a current catalog label.

    Catalog labels match case- and whitespace-insensitively, retired labels
    (including any ``"Decision (...)"`` variant) map to their replacement, and
    everything else falls back to the first stage.
    """
    if value is None:
        return DEFAULT_STAGE
    key = _key(str(value))
    if not key:
        return DEFAULT_STAGE
    if key in _CANONICAL_BY_KEY:
        return _CANONICAL_BY_KEY[key]
    if key in LEGACY_STAGE_ALIASES:
        return LEGACY_STAGE_ALIASES[key]
    if key.startswith("decision ("):
        return Stage.MORE_INFO.value
    return DEFAULT_STAGE


def stage_index(value: str | None) -> int:
    """Column position of the (normalized) stage."""
    return PIPELINE_STAGES.index(normalize_stage(value))
