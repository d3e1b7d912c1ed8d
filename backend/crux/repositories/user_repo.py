# crux/repositories/user_repo.py
from __future__ import annotations
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from crux.models import User
from crux.repositories.base import BaseRepository

class UserRepository(BaseRepository[User]):
    model = User

    def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.lower())
        return self.db.execute(stmt).scalar_one_or_none()

    def create(self, *, email: str, name: str, password_hash: str) -> User:
        user = User(email=email, name=name, password_hash=password_hash)
        try:
            self.add_and_refresh(user)
            self.db.commit()
            return user
        except IntegrityError:
            self.db.rollback()
            # Re-raise a clean marker the router can map to 400
            raise ValueError("email_already_exists")
