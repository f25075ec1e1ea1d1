"""
Refresh-token rotation.

A presented refresh token is exchanged for a new pair only if it verifies
and still equals the value stored on its user. Every failure reason
collapses into the same UnauthorizedError so callers cannot tell an
expired token from a forged or revoked one.
"""
from __future__ import annotations

import logging
import secrets

from services.errors import NotFoundError, UnauthorizedError
from services.sessions import SessionManager, TokenPair
from utils.tokens import TokenError, TokenKind, verify_with

logger = logging.getLogger(__name__)

REJECTED = "Unauthorized token"


class RotationProtocol:
    def __init__(self, sessions: SessionManager):
        self.sessions = sessions

    def refresh(self, presented: str | None) -> TokenPair:
        if not presented:
            raise UnauthorizedError(REJECTED)

        try:
            claims = verify_with(self.sessions.settings, TokenKind.REFRESH, presented)
        except TokenError as exc:
            logger.info("Refresh rejected: %s", exc.__class__.__name__)
            raise UnauthorizedError(REJECTED)

        user = self.sessions.users.find_by_id(claims.subject_id)
        if user is None:
            raise UnauthorizedError(REJECTED)

        stored = user.refresh_token or ""
        if not secrets.compare_digest(stored.encode(), presented.encode()):
            logger.info("Refresh rejected for user %s: token no longer current", user.id)
            raise UnauthorizedError(REJECTED)

        # compare-and-set against the value just checked; a concurrent
        # rotation that got there first makes this raise UnauthorizedError
        try:
            return self.sessions.create_session(user.id, expected_refresh_token=presented)
        except NotFoundError:
            raise UnauthorizedError(REJECTED)
