from datetime import date, datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    Integer, ForeignKey, Date, DateTime, Boolean, Text, JSON, UniqueConstraint, Index, func,
)
from crux.db import Base

class ScheduledSession(Base):
    __tablename__ = "scheduled_sessions"
    __table_args__ = (
        # One row per rule occurrence; NULL rule ids (one-off sessions) never collide
        UniqueConstraint("recurrence_rule_id", "scheduled_for", name="uq_scheduled_sessions_rule_date"),
        Index("ix_scheduled_sessions_owner_date", "owner_id", "scheduled_for"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    item_id: Mapped[int] = mapped_column(ForeignKey("training_items.id", ondelete="CASCADE"), index=True)
    is_impromptu: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recurrence_rule_id: Mapped[int | None] = mapped_column(
        ForeignKey("recurrence_rules.id", ondelete="CASCADE"), nullable=True, index=True
    )
    scheduled_for: Mapped[date] = mapped_column(Date, nullable=False)
    snapshot: Mapped[dict] = mapped_column(JSON, nullable=False)
    overrides: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    canceled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    owner = relationship("User", back_populates="scheduled_sessions")
    rule = relationship("RecurrenceRule", back_populates="sessions")
    logs = relationship("ExecutionLog", back_populates="session", cascade="all, delete-orphan")

    @property
    def is_open(self) -> bool:
        return self.completed_at is None and self.canceled_at is None
