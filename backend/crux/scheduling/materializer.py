# crux/scheduling/materializer.py
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crux.clock import Clock
from crux.errors import ImmutableState, InvalidRecurrence, ScheduleConflict
from crux.models import LogStatus, RecurrenceRule, ScheduledSession
from crux.repositories.log_repo import LogRepository
from crux.repositories.session_repo import SessionRepository
from crux.scheduling.recurrence import occurs_on

log = logging.getLogger(__name__)


class SessionMaterializer:
    """Turns rule occurrences into session rows, or into cancellation exceptions."""

    def __init__(self, db: Session, clock: Clock):
        self.db = db
        self.clock = clock
        self.sessions = SessionRepository(db)
        self.logs = LogRepository(db)

    def assert_not_running(self, session: ScheduledSession) -> None:
        """A session with an active execution log cannot be canceled or removed."""
        latest = self.logs.latest_for_session(session.id)
        if latest is not None and latest.status == LogStatus.active:
            raise ImmutableState("Finish the running workout before removing this session.")

    def _insert(self, rule: RecurrenceRule, day: date, *, canceled: bool = False) -> ScheduledSession:
        try:
            return self.sessions.create(
                owner_id=rule.owner_id,
                item_id=rule.item_id,
                is_impromptu=False,
                recurrence_rule_id=rule.id,
                scheduled_for=day,
                snapshot=rule.snapshot,
                overrides=dict(rule.default_overrides or {}),
                notes=rule.notes,
                canceled_at=self.clock.now() if canceled else None,
            )
        except IntegrityError:
            # another call inserted the same (rule, day) row first
            self.db.rollback()
            raise ScheduleConflict("This occurrence changed concurrently, try again.")

    def materialize(self, rule: RecurrenceRule, day: date) -> ScheduledSession:
        if not rule.active:
            raise ImmutableState("Recurring rule is inactive.")
        if not occurs_on(rule, day):
            raise InvalidRecurrence("This occurrence is not part of the recurring rule.")

        existing = self.sessions.get_for_rule_date(rule.id, day)
        if existing:
            if existing.canceled_at:
                raise ImmutableState("This occurrence was removed.")
            return existing

        try:
            row = self._insert(rule, day)
        except ScheduleConflict:
            row = self.sessions.get_for_rule_date(rule.id, day)
            if row is None or row.canceled_at:
                raise
            return row
        log.info("materialized rule=%s date=%s -> session=%s", rule.id, day, row.id)
        return row

    def cancel_occurrence(self, rule: RecurrenceRule, day: date, today: date) -> ScheduledSession:
        if not rule.active:
            raise ImmutableState("Recurring rule is inactive.")
        if day < today:
            raise ImmutableState("Only upcoming sessions can be removed.")
        if not occurs_on(rule, day):
            raise InvalidRecurrence("This occurrence is not part of the recurring rule.")

        existing = self.sessions.get_for_rule_date(rule.id, day)
        if existing:
            if existing.completed_at or existing.scheduled_for < today:
                raise ImmutableState("Only upcoming sessions can be removed.")
            if not existing.canceled_at:
                self.assert_not_running(existing)
                existing.canceled_at = self.clock.now()
                self.db.flush()
            return existing
        return self._insert(rule, day, canceled=True)

    def ensure_canceled(self, rule: RecurrenceRule, day: date) -> Optional[ScheduledSession]:
        """Record an exception for ``day``; completed rows are left alone."""
        existing = self.sessions.get_for_rule_date(rule.id, day)
        if existing:
            if existing.is_open:
                self.assert_not_running(existing)
                existing.canceled_at = self.clock.now()
                self.db.flush()
            return existing
        return self._insert(rule, day, canceled=True)
