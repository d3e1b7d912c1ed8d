# crux/repositories/log_repo.py
from __future__ import annotations
from typing import Optional

from sqlalchemy import select, func

from crux.models import ExecutionLog, ExecutionStep
from crux.repositories.base import BaseRepository

class LogRepository(BaseRepository[ExecutionLog]):
    model = ExecutionLog

    def latest_for_session(self, session_id: int) -> Optional[ExecutionLog]:
        stmt = (
            select(ExecutionLog)
            .where(ExecutionLog.session_id == session_id)
            .order_by(ExecutionLog.started_at.desc(), ExecutionLog.id.desc())
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_recent(self, owner_id: int, *, limit: int) -> list[ExecutionLog]:
        stmt = (
            select(ExecutionLog)
            .where(ExecutionLog.owner_id == owner_id)
            .order_by(ExecutionLog.started_at.desc(), ExecutionLog.id.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def create(self, **fields) -> ExecutionLog:
        return self.add_and_refresh(ExecutionLog(**fields))

class StepRepository(BaseRepository[ExecutionStep]):
    model = ExecutionStep

    def list_for_log(self, log_id: int) -> list[ExecutionStep]:
        stmt = select(ExecutionStep).where(ExecutionStep.log_id == log_id).order_by(ExecutionStep.position.asc())
        return list(self.db.execute(stmt).scalars().all())

    def append(self, log_id: int, **fields) -> ExecutionStep:
        # Next position based on current max for this log
        max_pos = self.db.execute(
            select(func.max(ExecutionStep.position)).where(ExecutionStep.log_id == log_id)
        ).scalar_one()
        step = ExecutionStep(log_id=log_id, position=(max_pos or 0) + 1, **fields)
        return self.add_and_refresh(step)
