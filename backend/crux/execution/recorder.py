# crux/execution/recorder.py
from __future__ import annotations

from typing import Optional

from crux.execution.plan import WorkoutPlan
from crux.execution.replay import Phase
from crux.execution.service import ExecutionService
from crux.execution.state_machine import WorkoutStateMachine
from crux.execution.steps import StepRecord
from crux.models import LogStatus


class ServiceRecorder:
    """Writes timer steps straight through ``ExecutionService``, in order."""

    def __init__(self, service: ExecutionService, owner_id: int, log_id: int):
        self.service = service
        self.owner_id = owner_id
        self.log_id = log_id

    def append(self, step: StepRecord) -> None:
        self.service.append_execution_step(self.owner_id, self.log_id, step)

    def finish(self, outcome: LogStatus, notes: Optional[str] = None) -> None:
        self.service.finish_session_execution(self.owner_id, self.log_id, outcome, notes)


def open_workout(service: ExecutionService, owner_id: int, session_id: int) -> WorkoutStateMachine:
    """Start (or resume) a session's execution and rebuild the timer from its log."""
    entry = service.start_session_execution(owner_id, session_id)
    recorder = ServiceRecorder(service, owner_id, entry.id)
    machine = WorkoutStateMachine(
        WorkoutPlan.from_planned(entry.planned),
        recorder,
        service.clock.monotonic_ms,
        steps=list(entry.steps),
    )
    if machine.phase is Phase.completed:
        # every rep was already on the log, only the seal is missing
        recorder.finish(LogStatus.completed)
        machine.outcome = LogStatus.completed
    return machine
