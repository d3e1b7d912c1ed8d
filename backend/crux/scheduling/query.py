# crux/scheduling/query.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.orm import Session

from crux.repositories.rule_repo import RuleRepository
from crux.repositories.session_repo import SessionRepository
from crux.scheduling.recurrence import month_window, occurrences_between
from crux.scheduling.sessions import CalendarEntry, ConcreteSession, VirtualOccurrence


@dataclass(slots=True)
class CalendarWindow:
    window_start: date
    window_end: date
    today: date
    sessions: list[CalendarEntry] = field(default_factory=list)


class ScheduleQueryService:
    def __init__(self, db: Session):
        self.sessions = SessionRepository(db)
        self.rules = RuleRepository(db)

    def list_sessions(self, owner_id: int, range_start: date, range_end: date, *, today: date) -> CalendarWindow:
        """Concrete rows plus virtual rule occurrences for the months covering the range.

        Nothing is written: occurrences only become rows when someone
        interacts with them.
        """
        first, last = month_window(range_start, range_end)
        window = CalendarWindow(window_start=first, window_end=last, today=today)

        blocked: set[tuple[int, date]] = set()
        for row in self.sessions.list_by_owner_between(owner_id, first, last):
            if row.recurrence_rule_id is not None:
                blocked.add((row.recurrence_rule_id, row.scheduled_for))
            if row.canceled_at is None:
                window.sessions.append(ConcreteSession(row))

        for rule in self.rules.list_active_starting_by(owner_id, last):
            for day in occurrences_between(rule, first, last):
                if (rule.id, day) in blocked:
                    continue
                window.sessions.append(VirtualOccurrence.from_rule(rule, day))

        window.sessions.sort(key=lambda entry: entry.sort_key)
        return window
