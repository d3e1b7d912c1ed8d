from datetime import datetime
from enum import Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    Integer, ForeignKey, String, Text, DateTime, JSON, UniqueConstraint, Enum as SAEnum, func,
)
from crux.db import Base

class TrainingType(str, Enum):
    hang = "hang"
    weight_training = "weight_training"
    climbing = "climbing"
    others = "others"

class Difficulty(str, Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"

class ItemStatus(str, Enum):
    draft = "draft"
    published = "published"

class TrainingItem(Base):
    """Exercise definition owned by the catalog; scheduling only reads it."""
    __tablename__ = "training_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(160), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    categories: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    training_type: Mapped[TrainingType | None] = mapped_column(
        SAEnum(TrainingType, name="training_type"), nullable=True
    )
    difficulty: Mapped[Difficulty] = mapped_column(
        SAEnum(Difficulty, name="difficulty"), nullable=False, default=Difficulty.beginner
    )
    equipment: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    variables: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[ItemStatus] = mapped_column(
        SAEnum(ItemStatus, name="item_status"), nullable=False, default=ItemStatus.draft
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    owner = relationship("User", back_populates="training_items")

class SavedItem(Base):
    __tablename__ = "saved_items"
    __table_args__ = (UniqueConstraint("user_id", "item_id", name="uq_saved_items_user_item"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    item_id: Mapped[int] = mapped_column(ForeignKey("training_items.id", ondelete="CASCADE"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
