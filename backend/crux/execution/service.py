# crux/execution/service.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from crux.clock import Clock
from crux.errors import ImmutableState, NotFound, assert_owner
from crux.execution.plan import WorkoutPlan, merge_variables
from crux.execution.steps import StepRecord, Summary
from crux.models import ExecutionLog, LogStatus, ScheduledSession
from crux.repositories.log_repo import LogRepository, StepRepository
from crux.repositories.session_repo import SessionRepository

log = logging.getLogger(__name__)

MAX_RECENT_LOGS = 50


def _summary_of(entry: ExecutionLog) -> Summary:
    return Summary(
        completed_sets=entry.completed_sets,
        completed_reps=entry.completed_reps,
        skipped_sets=entry.skipped_sets,
        total_rep_duration_ms=entry.total_rep_duration_ms,
        total_rest_duration_ms=entry.total_rest_duration_ms,
    )


def _store_summary(entry: ExecutionLog, summary: Summary) -> None:
    entry.completed_sets = summary.completed_sets
    entry.completed_reps = summary.completed_reps
    entry.skipped_sets = summary.skipped_sets
    entry.total_rep_duration_ms = summary.total_rep_duration_ms
    entry.total_rest_duration_ms = summary.total_rest_duration_ms


class ExecutionService:
    """Execution logs: open (or reuse) one per session, append steps, seal."""

    def __init__(self, db: Session, clock: Clock):
        self.db = db
        self.clock = clock
        self.logs = LogRepository(db)
        self.steps = StepRepository(db)
        self.sessions = SessionRepository(db)

    def _owned_session(self, owner_id: int, session_id: int) -> ScheduledSession:
        session = self.sessions.get(session_id)
        if not session:
            raise NotFound("Session not found.")
        assert_owner(session.owner_id, owner_id)
        return session

    def _owned_log(self, owner_id: int, log_id: int) -> ExecutionLog:
        entry = self.logs.get(log_id)
        if not entry:
            raise NotFound("Execution log not found.")
        assert_owner(entry.owner_id, owner_id)
        return entry

    def get_log(self, owner_id: int, log_id: int) -> ExecutionLog:
        return self._owned_log(owner_id, log_id)

    def start_session_execution(self, owner_id: int, session_id: int) -> ExecutionLog:
        session = self._owned_session(owner_id, session_id)
        if session.completed_at:
            raise ImmutableState("Completed sessions are immutable.")
        if session.canceled_at:
            raise ImmutableState("Removed sessions cannot be started.")

        existing = self.logs.latest_for_session(session.id)
        if existing and existing.status == LogStatus.active:
            return existing

        now = self.clock.now()
        entry = self.logs.create(
            owner_id=owner_id,
            session_id=session.id,
            item_id=session.item_id,
            status=LogStatus.active,
            started_at=now,
            planned=merge_variables((session.snapshot or {}).get("variables"), session.overrides),
        )
        self.db.commit()
        log.info("execution log=%s opened for session=%s", entry.id, session.id)
        return entry

    def append_execution_step(self, owner_id: int, log_id: int, step: StepRecord) -> ExecutionLog:
        entry = self._owned_log(owner_id, log_id)
        if entry.status != LogStatus.active:
            raise ImmutableState("Only active logs can receive new steps.")

        self.steps.append(
            entry.id,
            kind=step.kind,
            set_number=step.set_number,
            rep_number=step.rep_number,
            completed_reps=step.completed_reps,
            planned_duration_seconds=step.planned_duration_seconds,
            actual_duration_ms=step.actual_duration_ms,
            note=(step.note or "").strip() or None,
        )
        summary = _summary_of(entry)
        summary.apply(step, WorkoutPlan.from_planned(entry.planned).reps)
        _store_summary(entry, summary)
        self.db.commit()
        self.db.expire(entry, ["steps"])
        return entry

    def finish_session_execution(
        self, owner_id: int, log_id: int, outcome: LogStatus, notes: Optional[str] = None
    ) -> ExecutionLog:
        entry = self._owned_log(owner_id, log_id)
        if entry.status != LogStatus.active:
            return entry
        if LogStatus(outcome) is LogStatus.active:
            raise ImmutableState("A log can only be finished as completed or stopped_early.")

        now = self.clock.now()
        entry.status = LogStatus(outcome)
        entry.ended_at = now
        entry.notes = (notes or "").strip() or None

        session = self.sessions.get(entry.session_id)
        if session and session.is_open:
            session.completed_at = now
        self.db.commit()
        log.info("execution log=%s sealed as %s", entry.id, entry.status.value)
        return entry

    def active_execution_for_session(self, owner_id: int, session_id: int) -> Optional[ExecutionLog]:
        entry = self.logs.latest_for_session(session_id)
        if not entry or entry.owner_id != owner_id or entry.status != LogStatus.active:
            return None
        return entry

    def list_recent_execution_logs(self, owner_id: int, limit: int = 20) -> list[ExecutionLog]:
        limit = max(1, min(MAX_RECENT_LOGS, int(limit)))
        return self.logs.list_recent(owner_id, limit=limit)
