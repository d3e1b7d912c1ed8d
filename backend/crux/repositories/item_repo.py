# crux/repositories/item_repo.py
from __future__ import annotations

from sqlalchemy import select

from crux.models import TrainingItem, SavedItem
from crux.repositories.base import BaseRepository

class ItemRepository(BaseRepository[TrainingItem]):
    model = TrainingItem

    def create(self, owner_id: int, *, title: str, categories: list[str], variables: dict, **fields) -> TrainingItem:
        item = TrainingItem(owner_id=owner_id, title=title, categories=categories, variables=variables, **fields)
        return self.add_and_refresh(item)

    def is_saved_by(self, user_id: int, item_id: int) -> bool:
        stmt = select(SavedItem.id).where(SavedItem.user_id == user_id, SavedItem.item_id == item_id)
        return self.db.execute(stmt).first() is not None

    def save_for(self, user_id: int, item_id: int) -> SavedItem:
        existing = self.db.execute(
            select(SavedItem).where(SavedItem.user_id == user_id, SavedItem.item_id == item_id)
        ).scalar_one_or_none()
        if existing:
            return existing
        return self.add_and_refresh(SavedItem(user_id=user_id, item_id=item_id))
