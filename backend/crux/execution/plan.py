# crux/execution/plan.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

PLANNED_KEYS = ("sets", "reps", "restSeconds", "restBetweenSetsSeconds", "durationSeconds")

PREP_PHASE_SECONDS = 5
DEFAULT_SETS = 3
DEFAULT_REPS = 6
DEFAULT_REP_SECONDS = 30
DEFAULT_REST_SECONDS = 60


def merge_variables(snapshot_variables: Optional[Mapping[str, Any]], overrides: Optional[Mapping[str, Any]]) -> dict:
    """Resolved timer parameters; an override wins whenever it is set."""
    snapshot_variables = snapshot_variables or {}
    overrides = overrides or {}
    planned = {}
    for key in PLANNED_KEYS:
        value = overrides.get(key)
        planned[key] = value if value is not None else snapshot_variables.get(key)
    return planned


def clamp_positive_int(value: Any, fallback: int) -> int:
    if value is None:
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number) or number == 0:
        return fallback
    return max(1, int(number))


@dataclass(frozen=True, slots=True)
class WorkoutPlan:
    sets: int
    reps: int
    rep_seconds: int
    rest_seconds: int
    set_rest_seconds: int

    @classmethod
    def from_planned(cls, planned: Optional[Mapping[str, Any]]) -> "WorkoutPlan":
        planned = planned or {}
        rest = clamp_positive_int(planned.get("restSeconds"), DEFAULT_REST_SECONDS)
        return cls(
            sets=clamp_positive_int(planned.get("sets"), DEFAULT_SETS),
            reps=clamp_positive_int(planned.get("reps"), DEFAULT_REPS),
            rep_seconds=clamp_positive_int(planned.get("durationSeconds"), DEFAULT_REP_SECONDS),
            rest_seconds=rest,
            set_rest_seconds=clamp_positive_int(planned.get("restBetweenSetsSeconds"), rest),
        )
