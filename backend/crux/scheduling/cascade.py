# crux/scheduling/cascade.py
"""
"This occurrence only" vs "this and all future occurrences" edits.

Every row is checked on its own (completed/canceled/past rows are skipped
or rejected), so repeating a call after a partial failure is safe.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from crux.clock import Clock
from crux.errors import ImmutableState, ScheduleConflict
from crux.models import RecurrenceRule, ScheduledSession
from crux.repositories.session_repo import SessionRepository
from crux.scheduling.materializer import SessionMaterializer
from crux.scheduling.recurrence import occurs_on

log = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionPatch:
    scheduled_for: Optional[date] = None
    overrides: Optional[dict] = None
    notes: Optional[str] = None


@dataclass(slots=True)
class RemovalResult:
    removed_count: int
    active: bool


class OverrideCascade:
    def __init__(self, db: Session, clock: Clock, materializer: SessionMaterializer | None = None):
        self.db = db
        self.clock = clock
        self.sessions = SessionRepository(db)
        self.materializer = materializer or SessionMaterializer(db, clock)

    def update_occurrence(self, session: ScheduledSession, patch: SessionPatch, today: date) -> ScheduledSession:
        if session.canceled_at:
            raise ImmutableState("Removed sessions are immutable.")
        if session.completed_at:
            raise ImmutableState("Completed sessions are immutable.")
        if session.scheduled_for < today:
            raise ImmutableState("Past sessions are immutable.")

        previous = session.scheduled_for
        target = patch.scheduled_for or previous
        if target < today:
            raise ImmutableState("You can only move to today or future dates.")

        moved = target != previous
        if moved and session.recurrence_rule_id is not None:
            if self.sessions.get_for_rule_date(session.recurrence_rule_id, target):
                raise ScheduleConflict("This recurring series already has a session on that date.")

        session.scheduled_for = target
        if patch.overrides is not None:
            session.overrides = dict(patch.overrides)
        if patch.notes is not None:
            session.notes = patch.notes or None
        self.db.flush()

        # keep the rule from regenerating the date we just left
        rule = session.rule
        if moved and rule is not None and rule.active and occurs_on(rule, previous):
            self.materializer.ensure_canceled(rule, previous)
            log.info("session=%s moved %s -> %s, exception recorded for rule=%s",
                     session.id, previous, target, rule.id)
        return session

    def remove_occurrence(self, session: ScheduledSession, today: date) -> None:
        if session.canceled_at:
            return
        if session.completed_at or session.scheduled_for < today:
            raise ImmutableState("Only upcoming sessions can be removed.")

        self.materializer.assert_not_running(session)
        rule = session.rule
        if rule is not None and rule.active and occurs_on(rule, session.scheduled_for):
            # the row itself becomes the exception
            self.materializer.ensure_canceled(rule, session.scheduled_for)
            return
        self.sessions.delete(session)

    def update_rule_from_date(
        self,
        rule: RecurrenceRule,
        effective_from: date,
        today: date,
        *,
        overrides: Optional[dict] = None,
        notes: Optional[str] = None,
    ) -> int:
        if overrides is not None:
            rule.default_overrides = dict(overrides)
        if notes is not None:
            rule.notes = notes or None

        patched = 0
        for row in self.sessions.list_for_rule_from(rule.id, effective_from):
            if not row.is_open or row.scheduled_for < today:
                continue
            if overrides is not None:
                row.overrides = dict(overrides)
            if notes is not None:
                row.notes = notes or None
            patched += 1
        self.db.flush()
        log.info("rule=%s updated from %s, %d materialized session(s) patched", rule.id, effective_from, patched)
        return patched

    def remove_rule_from_date(self, rule: RecurrenceRule, effective_from: date, today: date) -> RemovalResult:
        if effective_from < today:
            raise ImmutableState("You can only delete recurring sessions from today or a future date.")

        removable = [
            row for row in self.sessions.list_for_rule_from(rule.id, effective_from)
            if row.completed_at is None and row.scheduled_for >= today
        ]
        for row in removable:
            self.db.delete(row)

        if effective_from <= rule.start_date:
            rule.active = False
        else:
            cutoff = effective_from - timedelta(days=1)
            rule.until = cutoff if rule.until is None else min(rule.until, cutoff)
            rule.active = rule.active and rule.until >= today
        self.db.flush()

        log.info("rule=%s removed from %s: %d session(s) deleted, active=%s",
                 rule.id, effective_from, len(removable), rule.active)
        return RemovalResult(removed_count=len(removable), active=rule.active)
