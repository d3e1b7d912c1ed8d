# crux/execution/state_machine.py
"""
Workout timer.

Phases run prep -> rep -> rest -> rep ... -> completed. The machine never
counts ticks: every phase has an absolute end time on a monotonic clock and
``tick`` compares against it, so a host that was suspended just catches up
on the next sample.

Each finished rep/rest phase, and each skipped set, is handed to a
``StepRecorder`` before the machine moves on. Manual navigation between reps
and sets is a correction and is not recorded.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Optional, Protocol

from crux.execution.plan import PREP_PHASE_SECONDS, WorkoutPlan
from crux.execution.replay import Phase, replay
from crux.execution.steps import SKIPPED_NOTE, RestKind, StepRecord, Summary
from crux.models.execution_log import LogStatus
from crux.models.execution_step import StepKind

log = logging.getLogger(__name__)

FINAL_SKIP_NOTE = "Stopped after skipping final set."


class StepRecorder(Protocol):
    def append(self, step: StepRecord) -> None: ...

    def finish(self, outcome: LogStatus, notes: Optional[str] = None) -> None: ...


class WorkoutStateMachine:
    def __init__(
        self,
        plan: WorkoutPlan,
        recorder: StepRecorder,
        clock: Callable[[], float],
        steps: Iterable = (),
    ):
        steps = list(steps)
        self.plan = plan
        self.recorder = recorder
        self.clock = clock
        self.summary = Summary.of(steps, plan.reps)
        self.outcome: Optional[LogStatus] = None

        position = replay(plan, steps)
        self.set_number = position.set_number
        self.rep_number = position.rep_number
        self.phase = position.phase
        self.rest_kind = position.rest_kind
        self.phase_ends_at: Optional[float] = None
        self.paused_remaining_ms: Optional[float] = None
        self._in_flight = False

        if self.phase in (Phase.rep, Phase.rest):
            # resume straight into the rebuilt phase with a fresh countdown
            self.phase_ends_at = self.clock() + self.phase_duration_seconds * 1000
        log.debug("timer resumed at %s set=%s rep=%s", self.phase.value, self.set_number, self.rep_number)

    # derived state
    @property
    def is_paused(self) -> bool:
        return self.paused_remaining_ms is not None

    @property
    def is_finished(self) -> bool:
        return self.phase is Phase.completed

    @property
    def phase_duration_seconds(self) -> int:
        if self.phase in (Phase.prep, Phase.awaiting_start):
            return PREP_PHASE_SECONDS
        if self.phase is Phase.rep:
            return self.plan.rep_seconds
        if self.phase is Phase.rest:
            if self.rest_kind is RestKind.between_sets:
                return self.plan.set_rest_seconds
            return self.plan.rest_seconds
        return 0

    def remaining_ms(self, now: Optional[float] = None) -> float:
        if self.phase is Phase.completed:
            return 0
        if self.phase is Phase.awaiting_start:
            return PREP_PHASE_SECONDS * 1000
        if self.paused_remaining_ms is not None:
            return self.paused_remaining_ms
        if self.phase_ends_at is None:
            return 0
        now = self.clock() if now is None else now
        return max(0.0, self.phase_ends_at - now)

    # transitions
    def _enter(self, phase: Phase, rest_kind: Optional[RestKind] = None, now: Optional[float] = None) -> None:
        now = self.clock() if now is None else now
        self.phase = phase
        self.rest_kind = rest_kind if phase is Phase.rest else None
        self.paused_remaining_ms = None
        self.phase_ends_at = now + self.phase_duration_seconds * 1000

    def _finish(self, outcome: LogStatus, notes: Optional[str] = None) -> None:
        self.phase = Phase.completed
        self.rest_kind = None
        self.phase_ends_at = None
        self.paused_remaining_ms = None
        self.outcome = outcome
        self.recorder.finish(outcome, notes)
        log.info("workout finished: %s (%d reps, %d sets)", outcome.value,
                 self.summary.completed_reps, self.summary.completed_sets)

    def _record(self, step: StepRecord) -> None:
        self.recorder.append(step)
        self.summary.apply(step, self.plan.reps)

    def begin(self) -> None:
        """User confirmed readiness: start the prep countdown."""
        if self.phase is not Phase.awaiting_start:
            return
        self._enter(Phase.prep)

    def tick(self, now: Optional[float] = None) -> Phase:
        """Sample the clock and complete the running phase if it has expired."""
        if self._in_flight or self.is_paused or self.phase in (Phase.completed, Phase.awaiting_start):
            return self.phase
        now = self.clock() if now is None else now
        if self.phase_ends_at is None or now < self.phase_ends_at:
            return self.phase
        if self.phase is Phase.prep:
            self._enter(Phase.rep, now=now)
        else:
            self.complete_phase(now)
        return self.phase

    def complete_phase(self, now: Optional[float] = None) -> bool:
        """Finish the current rep/rest (natural expiry or user skip) and move on.

        Returns False when nothing happened: wrong phase, or another
        completion is still being recorded.
        """
        if self._in_flight:
            return False
        if self.phase is Phase.prep:
            self._enter(Phase.rep, now=now)
            return True
        if self.phase not in (Phase.rep, Phase.rest):
            return False

        now = self.clock() if now is None else now
        duration = self.phase_duration_seconds
        actual_ms = int(max(0.0, duration * 1000 - self.remaining_ms(now)))

        self._in_flight = True
        try:
            if self.phase is Phase.rep:
                self._record(StepRecord(
                    kind=StepKind.rep,
                    set_number=self.set_number,
                    rep_number=self.rep_number,
                    completed_reps=1,
                    planned_duration_seconds=duration,
                    actual_duration_ms=actual_ms,
                ))
                if self.rep_number < self.plan.reps:
                    self._enter(Phase.rest, RestKind.between_reps, now)
                elif self.set_number >= self.plan.sets:
                    self._finish(LogStatus.completed)
                else:
                    self._enter(Phase.rest, RestKind.between_sets, now)
                return True

            kind = self.rest_kind or RestKind.between_sets
            self._record(StepRecord(
                kind=StepKind.rest,
                set_number=self.set_number,
                rep_number=self.rep_number,
                planned_duration_seconds=duration,
                actual_duration_ms=actual_ms,
                note=kind.value,
            ))
            if kind is RestKind.between_reps and self.rep_number < self.plan.reps:
                self.rep_number += 1
            elif self.set_number >= self.plan.sets:
                self._finish(LogStatus.completed)
                return True
            else:
                self.set_number += 1
                self.rep_number = 1
            self._enter(Phase.rep, now=now)
            return True
        finally:
            self._in_flight = False

    def skip_set(self) -> bool:
        if self._in_flight or self.phase not in (Phase.rep, Phase.rest):
            return False
        self._in_flight = True
        try:
            self._record(StepRecord(
                kind=StepKind.set_skipped,
                set_number=self.set_number,
                rep_number=self.rep_number,
                planned_duration_seconds=self.phase_duration_seconds,
                actual_duration_ms=0,
                note=SKIPPED_NOTE,
            ))
            if self.set_number >= self.plan.sets:
                self._finish(LogStatus.stopped_early, FINAL_SKIP_NOTE)
                return True
            self.set_number += 1
            self.rep_number = 1
            self._enter(Phase.rep)
            return True
        finally:
            self._in_flight = False

    def stop(self, notes: Optional[str] = None) -> None:
        if self.phase is Phase.completed:
            return
        self._finish(LogStatus.stopped_early, notes)

    # pause / resume
    def pause(self, now: Optional[float] = None) -> None:
        if self.phase_ends_at is None or self.phase in (Phase.completed, Phase.awaiting_start):
            return
        if self.paused_remaining_ms is None:
            self.paused_remaining_ms = self.remaining_ms(now)

    def resume(self, now: Optional[float] = None) -> None:
        if self.paused_remaining_ms is None:
            return
        now = self.clock() if now is None else now
        self.phase_ends_at = now + self.paused_remaining_ms
        self.paused_remaining_ms = None

    def toggle_pause(self) -> None:
        if self.is_paused:
            self.resume()
        else:
            self.pause()

    # manual navigation, never recorded
    def jump_to(self, set_number: int, rep_number: int) -> bool:
        if self.phase not in (Phase.rep, Phase.rest):
            return False
        self.set_number = min(max(1, set_number), self.plan.sets)
        self.rep_number = min(max(1, rep_number), self.plan.reps)
        self._enter(Phase.rep)
        return True

    def previous_rep(self) -> bool:
        if self.phase not in (Phase.rep, Phase.rest):
            return False
        if self.rep_number > 1:
            return self.jump_to(self.set_number, self.rep_number - 1)
        if self.set_number > 1:
            return self.jump_to(self.set_number - 1, self.plan.reps)
        return False

    def next_rep(self) -> bool:
        if self.phase not in (Phase.rep, Phase.rest):
            return False
        if self.rep_number < self.plan.reps:
            return self.jump_to(self.set_number, self.rep_number + 1)
        if self.set_number < self.plan.sets:
            return self.jump_to(self.set_number + 1, 1)
        return False

    def previous_set(self) -> bool:
        if self.phase not in (Phase.rep, Phase.rest) or self.set_number <= 1:
            return False
        return self.jump_to(self.set_number - 1, self.rep_number)

    def next_set(self) -> bool:
        if self.phase not in (Phase.rep, Phase.rest) or self.set_number >= self.plan.sets:
            return False
        return self.jump_to(self.set_number + 1, self.rep_number)

    # driver
    def run(self, sleep: Callable[[float], None] = time.sleep, interval: float = 0.1) -> Phase:
        """Cooperative loop sampling the clock until the workout ends.

        Calling ``run`` counts as confirming readiness. Returns early if the
        timer gets paused, since nothing in this loop can resume it.
        """
        self.begin()
        while self.phase is not Phase.completed and not self.is_paused:
            self.tick()
            if self.phase is Phase.completed:
                break
            sleep(interval)
        return self.phase
