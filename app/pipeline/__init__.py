"""Pure pipeline rules: stage catalog, transition policy, durations and analytics."""

from app.pipeline.analytics import StageDwell, recent_history, stage_dwell_times
from app.pipeline.duration import (
    StageDuration,
    days_in_stage,
    describe_stage_age,
    entered_current_stage_at,
    stage_age_tier,
    stage_duration,
)
from app.pipeline.stages import (
    CLOSED_STAGES,
    DEFAULT_STAGE,
    PIPELINE_STAGES,
    Stage,
    is_known_stage,
    normalize_stage,
    stage_index,
)
from app.pipeline.state_machine import DEFAULT_POLICY, StageTransitionPolicy, is_transition_allowed

__all__ = [
    "CLOSED_STAGES",
    "DEFAULT_POLICY",
    "DEFAULT_STAGE",
    "PIPELINE_STAGES",
    "Stage",
    "StageDuration",
    "StageDwell",
    "StageTransitionPolicy",
    "days_in_stage",
    "describe_stage_age",
    "entered_current_stage_at",
    "is_known_stage",
    "is_transition_allowed",
    "normalize_stage",
    "recent_history",
    "stage_age_tier",
    "stage_dwell_times",
    "stage_duration",
    "stage_index",
]
