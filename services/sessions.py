"""
Session Manager: issues token pairs and keeps the single authoritative
refresh token on the user record.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from models.schemas.user import UserOutSchema
from models.user_store import UserStore
from services.errors import InternalError, NotFoundError, UnauthorizedError
from utils.tokens import TokenKind, TokenSettings, issue_with

logger = logging.getLogger(__name__)

public_user_schema = UserOutSchema()


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str

    @property
    def bearer_access_token(self) -> str:
        return f"Bearer {self.access_token}"


def public_user(user) -> dict:
    """Project a user record to its public fields."""
    return public_user_schema.dump(user)


class SessionManager:
    def __init__(self, users: UserStore, settings: TokenSettings):
        self.users = users
        self.settings = settings

    def create_session(self, subject_id: str, expected_refresh_token: str | None = None) -> TokenPair:
        """
        Mint a fresh pair and store its refresh token on the user.

        Without expected_refresh_token the stored value is overwritten.
        With it, the write only lands if the stored value still equals it;
        otherwise UnauthorizedError is raised and nothing changes.
        """
        try:
            user = self.users.find_by_id(subject_id)
            if user is None:
                raise NotFoundError("User not found")

            pair = TokenPair(
                access_token=issue_with(self.settings, TokenKind.ACCESS, user.id),
                refresh_token=issue_with(self.settings, TokenKind.REFRESH, user.id),
            )

            if expected_refresh_token is None:
                stored = self.users.update_by_id(
                    user.id, {"refresh_token": pair.refresh_token}, skip_validation=True
                )
                swapped = stored is not None
            else:
                swapped = self.users.swap_refresh_token(
                    user.id, expected_refresh_token, pair.refresh_token
                )
        except SQLAlchemyError:
            logger.exception("Persisting refresh token failed for user %s", subject_id)
            raise InternalError("Something went wrong while generating tokens")

        if not swapped:
            if expected_refresh_token is None:
                raise NotFoundError("User not found")
            logger.info("Refresh token for user %s changed during rotation", user.id)
            raise UnauthorizedError("Unauthorized token")
        return pair

    def end_session(self, subject_id: str) -> None:
        """Clear the stored refresh token. Safe to call repeatedly."""
        try:
            self.users.update_by_id(subject_id, {"refresh_token": None}, skip_validation=True)
        except SQLAlchemyError:
            logger.exception("Clearing refresh token failed for user %s", subject_id)
            raise InternalError("Something went wrong while logging out")

    def current_user(self, subject_id: str) -> dict:
        try:
            user = self.users.find_by_id(subject_id)
        except SQLAlchemyError:
            logger.exception("Loading user %s failed", subject_id)
            raise InternalError("Something went wrong while loading the user")
        if user is None:
            raise NotFoundError("User not found")
        return public_user(user)
