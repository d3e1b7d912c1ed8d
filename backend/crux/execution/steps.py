# crux/execution/steps.py
"""Step records and the summary arithmetic shared by the log service and the timer."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from crux.models.execution_step import StepKind


class RestKind(str, Enum):
    between_reps = "between_reps"
    between_sets = "between_sets"


SKIPPED_NOTE = "Skipped by user"


@dataclass(frozen=True, slots=True)
class StepRecord:
    kind: StepKind
    set_number: int
    actual_duration_ms: int
    rep_number: Optional[int] = None
    completed_reps: Optional[int] = None
    planned_duration_seconds: Optional[int] = None
    note: Optional[str] = None


@dataclass(slots=True)
class Summary:
    completed_sets: int = 0
    completed_reps: int = 0
    skipped_sets: int = 0
    total_rep_duration_ms: int = 0
    total_rest_duration_ms: int = 0

    def apply(self, step, planned_reps: Optional[int]) -> None:
        """Fold one step (record or stored row) into the running totals."""
        kind = StepKind(step.kind)
        if kind is StepKind.rep:
            reps_per_set = max(1, planned_reps or 1)
            if step.completed_reps is not None:
                done = step.completed_reps
            elif step.rep_number is not None:
                done = 1
            else:
                done = reps_per_set
            reached = step.rep_number if step.rep_number is not None else done
            self.total_rep_duration_ms += step.actual_duration_ms
            self.completed_reps += done
            if reached >= reps_per_set or done >= reps_per_set:
                self.completed_sets = max(self.completed_sets, step.set_number)
        elif kind is StepKind.rest:
            self.total_rest_duration_ms += step.actual_duration_ms
        else:
            self.skipped_sets += 1

    @classmethod
    def of(cls, steps, planned_reps: Optional[int]) -> "Summary":
        summary = cls()
        for step in steps:
            summary.apply(step, planned_reps)
        return summary
