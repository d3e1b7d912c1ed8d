from datetime import datetime
from enum import Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    Integer, ForeignKey, DateTime, String, Enum as SAEnum, UniqueConstraint, func,
)
from crux.db import Base

class StepKind(str, Enum):
    rep = "rep"
    rest = "rest"
    set_skipped = "set_skipped"

class ExecutionStep(Base):
    """One appended entry of an execution log; rows are never updated."""
    __tablename__ = "execution_steps"
    __table_args__ = (UniqueConstraint("log_id", "position", name="uq_execution_steps_log_position"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    log_id: Mapped[int] = mapped_column(ForeignKey("execution_logs.id", ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    kind: Mapped[StepKind] = mapped_column(SAEnum(StepKind, name="step_kind"), nullable=False)
    set_number: Mapped[int] = mapped_column(Integer, nullable=False)
    rep_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    completed_reps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    planned_duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    actual_duration_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # "between_reps" / "between_sets" for rest steps, free text otherwise
    note: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    log = relationship("ExecutionLog", back_populates="steps")
