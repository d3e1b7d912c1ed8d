from datetime import date, datetime
from enum import Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    Integer, ForeignKey, Date, DateTime, Boolean, Text, JSON, Enum as SAEnum, Index, func,
)
from crux.db import Base

class Frequency(str, Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"

class RecurrenceRule(Base):
    __tablename__ = "recurrence_rules"
    __table_args__ = (
        Index("ix_recurrence_rules_owner_active_start", "owner_id", "active", "start_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    item_id: Mapped[int] = mapped_column(ForeignKey("training_items.id", ondelete="CASCADE"), index=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    frequency: Mapped[Frequency] = mapped_column(SAEnum(Frequency, name="frequency"), nullable=False)
    interval: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    # 0 = Sunday .. 6 = Saturday; empty means "the start date's weekday"
    by_weekdays: Mapped[list | None] = mapped_column(JSON, nullable=True)
    until: Mapped[date | None] = mapped_column(Date, nullable=True)
    snapshot: Mapped[dict] = mapped_column(JSON, nullable=False)
    default_overrides: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    sessions = relationship("ScheduledSession", back_populates="rule")

    @property
    def recurrence(self) -> dict:
        return {
            "frequency": self.frequency,
            "interval": self.interval,
            "by_weekdays": list(self.by_weekdays or []),
            "until": self.until,
        }
