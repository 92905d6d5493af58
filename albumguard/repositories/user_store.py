"""SQLModel-backed user lookups."""

from typing import Iterable

from sqlmodel import Session, col, select

from albumguard.models.user import User
from albumguard.repositories.base import store_call


class SqlUserStore:
    def __init__(self, session: Session):
        self.session = session

    @store_call
    def get_existing_ids(self, user_ids: Iterable[str]) -> set[str]:
        user_ids = list(user_ids)
        if not user_ids:
            return set()
        return set(self.session.exec(
            select(User.id).where(col(User.id).in_(user_ids))
        ).all())
