from __future__ import annotations

import logging
from functools import wraps

from flask import Request, g, request

from models.user_store import UserStore
from services import get_services
from services.errors import UnauthorizedError
from services.sessions import public_user
from utils.extractors import ACCESS_TOKEN_SOURCES, TokenStrategy, extract_first
from utils.tokens import TokenError, TokenKind, TokenSettings, verify_with

logger = logging.getLogger(__name__)


class AuthGuard:
    """
    Request-time gate for access tokens.

    The acting identity always comes from the verified token; a user id
    sent by the caller is never consulted.
    """

    def __init__(self, users: UserStore, settings: TokenSettings,
                 sources: tuple[TokenStrategy, ...] = ACCESS_TOKEN_SOURCES):
        self.users = users
        self.settings = settings
        self.sources = sources

    def authenticate(self, req: Request) -> dict:
        """Return the public projection of the token's subject, or raise UnauthorizedError."""
        token = extract_first(req, self.sources)
        if not token:
            raise UnauthorizedError("Unauthorized access!")

        try:
            claims = verify_with(self.settings, TokenKind.ACCESS, token)
        except TokenError as exc:
            logger.info("Access token rejected: %s", exc.__class__.__name__)
            raise UnauthorizedError(str(exc))

        user = self.users.find_by_id(claims.subject_id)
        if user is None:
            raise UnauthorizedError("Unauthorized access!")

        return public_user(user)


def login_required():
    """Run the AuthGuard before the view; g.current_user holds the public user."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            identity = get_services().guard.authenticate(request)
            g.current_user = identity
            g.current_user_id = identity["id"]
            return fn(*args, **kwargs)

        return wrapper

    return decorator
