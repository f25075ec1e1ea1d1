"""
User Store: the only place the auth services touch persisted users.

Lookups return None when nothing matches. update_by_id() either goes through
the model (normalizers, password hashing) or, with skip_validation=True,
writes just the named columns in a single UPDATE.
"""
from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import or_, update

from models.db_storage import DBStorage
from models.user import User


class UserStore:
    def __init__(self, storage: DBStorage):
        self._storage = storage

    @property
    def _session(self):
        return self._storage.get_session()

    def create(self, **fields: Any) -> User:
        user = User(**fields)
        self._storage.new(user)
        self._storage.save()
        return user

    def find_by_id(self, user_id: str) -> User | None:
        if not user_id:
            return None
        # always re-read so a stale identity-map copy never answers
        return self._session.get(User, user_id, populate_existing=True)

    def find_by_username_or_email(self, identifier: str, email: str | None = None) -> User | None:
        """Match identifier against username or email; email widens the match."""
        identifier = (identifier or "").strip().lower()
        candidates = [User.username == identifier, User.email == identifier]
        if email:
            candidates.append(User.email == email.strip().lower())
        return self._session.query(User).filter(or_(*candidates)).first()

    def update_by_id(self, user_id: str, fields: Mapping[str, Any], skip_validation: bool = False) -> User | None:
        if skip_validation:
            result = self._session.execute(
                update(User).where(User.id == user_id).values(**fields)
            )
            updated = result.rowcount
            self._storage.save()
            if updated == 0:
                return None
            return self.find_by_id(user_id)

        user = self.find_by_id(user_id)
        if user is None:
            return None
        for key, value in fields.items():
            setattr(user, key, value)
        self._storage.save()
        return user

    def swap_refresh_token(self, user_id: str, expected: str | None, new: str | None) -> bool:
        """
        Compare-and-set on the stored refresh token.
        Returns False when the stored value no longer equals `expected`.
        """
        current = User.refresh_token.is_(None) if expected is None else User.refresh_token == expected
        result = self._session.execute(
            update(User)
            .where(User.id == user_id, current)
            .values(refresh_token=new)
        )
        swapped = result.rowcount == 1
        self._storage.save()
        return swapped
