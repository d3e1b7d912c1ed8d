# crux/repositories/session_repo.py
from __future__ import annotations
from datetime import date
from typing import Optional

from sqlalchemy import select

from crux.models import ScheduledSession
from crux.repositories.base import BaseRepository

class SessionRepository(BaseRepository[ScheduledSession]):
    model = ScheduledSession

    def get_for_rule_date(self, rule_id: int, day: date) -> Optional[ScheduledSession]:
        stmt = select(ScheduledSession).where(
            ScheduledSession.recurrence_rule_id == rule_id,
            ScheduledSession.scheduled_for == day,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_by_owner_between(self, owner_id: int, first: date, last: date) -> list[ScheduledSession]:
        stmt = (
            select(ScheduledSession)
            .where(
                ScheduledSession.owner_id == owner_id,
                ScheduledSession.scheduled_for >= first,
                ScheduledSession.scheduled_for <= last,
            )
            .order_by(ScheduledSession.scheduled_for.asc(), ScheduledSession.id.asc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_for_rule_from(self, rule_id: int, first: date) -> list[ScheduledSession]:
        stmt = (
            select(ScheduledSession)
            .where(
                ScheduledSession.recurrence_rule_id == rule_id,
                ScheduledSession.scheduled_for >= first,
            )
            .order_by(ScheduledSession.scheduled_for.asc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def create(self, **fields) -> ScheduledSession:
        return self.add_and_refresh(ScheduledSession(**fields))
