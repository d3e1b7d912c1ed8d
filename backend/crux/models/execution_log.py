from datetime import datetime
from enum import Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, ForeignKey, DateTime, Text, JSON, Enum as SAEnum, func
from crux.db import Base

class LogStatus(str, Enum):
    active = "active"
    completed = "completed"
    stopped_early = "stopped_early"

class ExecutionLog(Base):
    __tablename__ = "execution_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    session_id: Mapped[int] = mapped_column(
        ForeignKey("scheduled_sessions.id", ondelete="CASCADE"), index=True
    )
    item_id: Mapped[int] = mapped_column(ForeignKey("training_items.id", ondelete="CASCADE"))
    status: Mapped[LogStatus] = mapped_column(
        SAEnum(LogStatus, name="log_status"), nullable=False, default=LogStatus.active
    )
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    planned: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    completed_sets: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_reps: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    skipped_sets: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_rep_duration_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_rest_duration_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    session = relationship("ScheduledSession", back_populates="logs")
    steps = relationship(
        "ExecutionStep",
        back_populates="log",
        cascade="all, delete-orphan",
        order_by="ExecutionStep.position",
    )

    @property
    def summary(self) -> dict:
        return {
            "completed_sets": self.completed_sets,
            "completed_reps": self.completed_reps,
            "skipped_sets": self.skipped_sets,
            "total_rep_duration_ms": self.total_rep_duration_ms,
            "total_rest_duration_ms": self.total_rest_duration_ms,
        }

    @property
    def session_title(self) -> str:
        if self.session is None:
            return "Session"
        return (self.session.snapshot or {}).get("title") or "Session"

    @property
    def scheduled_for(self):
        return self.session.scheduled_for if self.session is not None else None
