# crux/execution/replay.py
"""
Rebuild the timer position from a log's steps.

Only completed phases are on the log, so an interrupted phase restarts from
its full duration; the replay just says which phase that is.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from crux.execution.plan import WorkoutPlan
from crux.execution.steps import RestKind
from crux.models.execution_step import StepKind


class Phase(str, Enum):
    awaiting_start = "awaiting_start"
    prep = "prep"
    rep = "rep"
    rest = "rest"
    completed = "completed"


@dataclass(frozen=True, slots=True)
class Position:
    set_number: int
    rep_number: int
    phase: Phase
    rest_kind: Optional[RestKind] = None


def _clamp(value: int, upper: int) -> int:
    return min(max(1, value), upper)


def rest_kind_of(step, plan: WorkoutPlan) -> RestKind:
    if step.note in (RestKind.between_reps.value, RestKind.between_sets.value):
        return RestKind(step.note)
    # older rows without a note
    if step.rep_number is None or step.rep_number >= plan.reps:
        return RestKind.between_sets
    return RestKind.between_reps


def replay(plan: WorkoutPlan, steps: Iterable) -> Position:
    set_no, rep_no = 1, 1
    phase = Phase.awaiting_start
    rest_kind: Optional[RestKind] = None

    for step in steps:
        kind = StepKind(step.kind)
        rest_kind = None

        if kind is StepKind.rep:
            set_no = _clamp(step.set_number, plan.sets)
            if step.rep_number is not None:
                rep_no = _clamp(step.rep_number, plan.reps)
            else:
                rep_no = plan.reps if (step.completed_reps or 0) >= plan.reps else 1
            last_rep = rep_no >= plan.reps
            if last_rep and set_no >= plan.sets:
                phase = Phase.completed
                continue
            phase = Phase.rest
            rest_kind = RestKind.between_sets if last_rep else RestKind.between_reps

        elif kind is StepKind.rest:
            step_set = _clamp(step.set_number, plan.sets)
            step_rep = _clamp(step.rep_number or 1, plan.reps)
            if rest_kind_of(step, plan) is RestKind.between_reps:
                set_no, rep_no = step_set, min(step_rep + 1, plan.reps)
            else:
                set_no, rep_no = min(step_set + 1, plan.sets), 1
            phase = Phase.rep

        else:
            if step.set_number >= plan.sets:
                set_no, rep_no = plan.sets, 1
                phase = Phase.completed
                continue
            set_no, rep_no = _clamp(step.set_number + 1, plan.sets), 1
            phase = Phase.rep

    return Position(set_number=set_no, rep_number=rep_no, phase=phase, rest_kind=rest_kind)
