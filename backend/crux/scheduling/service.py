# crux/scheduling/service.py
"""
Scheduling operations exposed to the API.

Each public method is one transaction: preconditions are checked before the
first write and the method commits at the end. "Today" comes from the
injected clock on every call.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from crux.catalog import assert_schedulable, snapshot_of
from crux.clock import Clock
from crux.errors import InvalidRecurrence, NotFound, ImmutableState, assert_owner
from crux.models import Frequency, RecurrenceRule, ScheduledSession
from crux.repositories.rule_repo import RuleRepository
from crux.repositories.session_repo import SessionRepository
from crux.scheduling.cascade import OverrideCascade, RemovalResult, SessionPatch
from crux.scheduling.materializer import SessionMaterializer
from crux.scheduling.query import CalendarWindow, ScheduleQueryService

log = logging.getLogger(__name__)


@dataclass(slots=True)
class RecurrenceSpec:
    frequency: Frequency
    interval: int = 1
    by_weekdays: list[int] = field(default_factory=list)
    until: Optional[date] = None


def _clean_notes(notes: Optional[str]) -> Optional[str]:
    if notes is None:
        return None
    return notes.strip() or None


class ScheduleService:
    def __init__(self, db: Session, clock: Clock):
        self.db = db
        self.clock = clock
        self.sessions = SessionRepository(db)
        self.rules = RuleRepository(db)
        self.materializer = SessionMaterializer(db, clock)
        self.cascade = OverrideCascade(db, clock, self.materializer)
        self.query = ScheduleQueryService(db)

    # lookups
    def _owned_rule(self, owner_id: int, rule_id: int) -> RecurrenceRule:
        rule = self.rules.get(rule_id)
        if not rule:
            raise NotFound("Recurring rule not found.")
        assert_owner(rule.owner_id, owner_id)
        return rule

    def _owned_session(self, owner_id: int, session_id: int) -> ScheduledSession:
        session = self.sessions.get(session_id)
        if not session:
            raise NotFound("Session not found.")
        assert_owner(session.owner_id, owner_id)
        return session

    def get_session(self, owner_id: int, session_id: int) -> ScheduledSession:
        # reads never reveal that a foreign or removed row exists
        session = self.sessions.get(session_id)
        if not session or session.owner_id != owner_id or session.canceled_at:
            raise NotFound("Session not found.")
        return session

    # one-off sessions
    def add_session(
        self,
        owner_id: int,
        item_id: int,
        scheduled_for: date,
        *,
        overrides: Optional[dict] = None,
        notes: Optional[str] = None,
        impromptu: bool = False,
    ) -> ScheduledSession:
        item = assert_schedulable(self.db, owner_id, item_id)
        session = self.sessions.create(
            owner_id=owner_id,
            item_id=item.id,
            is_impromptu=impromptu,
            recurrence_rule_id=None,
            scheduled_for=scheduled_for,
            snapshot=snapshot_of(item),
            overrides=dict(overrides or {}),
            notes=_clean_notes(notes),
        )
        self.db.commit()
        log.info("owner=%s scheduled item=%s on %s (session=%s)", owner_id, item_id, scheduled_for, session.id)
        return session

    def start_impromptu_session(
        self, owner_id: int, item_id: int, *, overrides: Optional[dict] = None, notes: Optional[str] = None
    ) -> ScheduledSession:
        return self.add_session(
            owner_id, item_id, self.clock.today(), overrides=overrides, notes=notes, impromptu=True
        )

    # recurring series
    def add_recurring_series(
        self,
        owner_id: int,
        item_id: int,
        start_date: date,
        recurrence: RecurrenceSpec,
        *,
        overrides: Optional[dict] = None,
        notes: Optional[str] = None,
    ) -> RecurrenceRule:
        if recurrence.interval < 1:
            raise InvalidRecurrence("Interval must be at least 1.")
        weekdays = sorted({int(d) for d in recurrence.by_weekdays or []})
        if any(d < 0 or d > 6 for d in weekdays):
            raise InvalidRecurrence("Weekdays must be between 0 (Sunday) and 6 (Saturday).")
        if recurrence.until is not None and recurrence.until < start_date:
            raise InvalidRecurrence("The series must end on or after its start date.")

        item = assert_schedulable(self.db, owner_id, item_id)
        rule = self.rules.create(
            owner_id=owner_id,
            item_id=item.id,
            start_date=start_date,
            frequency=Frequency(recurrence.frequency),
            interval=int(recurrence.interval),
            by_weekdays=weekdays or None,
            until=recurrence.until,
            snapshot=snapshot_of(item),
            default_overrides=dict(overrides or {}),
            notes=_clean_notes(notes),
            active=True,
        )
        self.db.commit()
        log.info("owner=%s created %s rule=%s from %s", owner_id, rule.frequency.value, rule.id, start_date)
        return rule

    def materialize_recurring_occurrence(self, owner_id: int, rule_id: int, day: date) -> ScheduledSession:
        rule = self._owned_rule(owner_id, rule_id)
        session = self.materializer.materialize(rule, day)
        self.db.commit()
        return session

    def cancel_recurring_occurrence(self, owner_id: int, rule_id: int, day: date) -> None:
        rule = self._owned_rule(owner_id, rule_id)
        self.materializer.cancel_occurrence(rule, day, self.clock.today())
        self.db.commit()

    # per-occurrence edits
    def update_upcoming_session(
        self,
        owner_id: int,
        session_id: int,
        *,
        scheduled_for: Optional[date] = None,
        overrides: Optional[dict] = None,
        notes: Optional[str] = None,
    ) -> ScheduledSession:
        session = self._owned_session(owner_id, session_id)
        patch = SessionPatch(
            scheduled_for=scheduled_for,
            overrides=overrides,
            notes=None if notes is None else notes.strip(),
        )
        session = self.cascade.update_occurrence(session, patch, self.clock.today())
        self.db.commit()
        return session

    def remove_upcoming_session(self, owner_id: int, session_id: int) -> None:
        session = self._owned_session(owner_id, session_id)
        self.cascade.remove_occurrence(session, self.clock.today())
        self.db.commit()

    def complete_session(self, owner_id: int, session_id: int, *, notes: Optional[str] = None) -> ScheduledSession:
        session = self._owned_session(owner_id, session_id)
        if session.canceled_at:
            raise ImmutableState("Session was removed.")
        cleaned = _clean_notes(notes)
        if session.completed_at:
            # notes may still be backfilled on a completed session
            if cleaned:
                session.notes = cleaned
                self.db.commit()
            return session
        session.completed_at = self.clock.now()
        session.notes = cleaned or session.notes
        self.db.commit()
        return session

    # whole-series edits
    def update_recurring_rule_future(
        self,
        owner_id: int,
        rule_id: int,
        effective_from: date,
        *,
        overrides: Optional[dict] = None,
        notes: Optional[str] = None,
    ) -> RecurrenceRule:
        rule = self._owned_rule(owner_id, rule_id)
        self.cascade.update_rule_from_date(
            rule,
            effective_from,
            self.clock.today(),
            overrides=overrides,
            notes=None if notes is None else notes.strip(),
        )
        self.db.commit()
        return rule

    def remove_recurring_rule_future(self, owner_id: int, rule_id: int, effective_from: date) -> RemovalResult:
        rule = self._owned_rule(owner_id, rule_id)
        result = self.cascade.remove_rule_from_date(rule, effective_from, self.clock.today())
        self.db.commit()
        return result

    # reads
    def list_calendar_sessions_in_range(self, owner_id: int, range_start: date, range_end: date) -> CalendarWindow:
        return self.query.list_sessions(owner_id, range_start, range_end, today=self.clock.today())
