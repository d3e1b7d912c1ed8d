# crux/repositories/rule_repo.py
from __future__ import annotations
from datetime import date

from sqlalchemy import select

from crux.models import RecurrenceRule
from crux.repositories.base import BaseRepository

class RuleRepository(BaseRepository[RecurrenceRule]):
    model = RecurrenceRule

    def list_active_starting_by(self, owner_id: int, last_day: date) -> list[RecurrenceRule]:
        stmt = (
            select(RecurrenceRule)
            .where(
                RecurrenceRule.owner_id == owner_id,
                RecurrenceRule.active.is_(True),
                RecurrenceRule.start_date <= last_day,
            )
            .order_by(RecurrenceRule.start_date.asc(), RecurrenceRule.id.asc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def create(self, **fields) -> RecurrenceRule:
        return self.add_and_refresh(RecurrenceRule(**fields))
