"""
Token extraction strategies.

Each strategy takes the current request and returns the raw token or None.
extract_first() tries them in order and the first hit wins, so the order
of a strategy list is the precedence rule.
"""
from __future__ import annotations

from typing import Callable, Iterable, Optional

from flask import Request

BEARER_PREFIX = "Bearer "

TokenStrategy = Callable[[Request], Optional[str]]


def strip_bearer(value: str | None) -> str | None:
    if not value or not value.startswith(BEARER_PREFIX):
        return None
    token = value[len(BEARER_PREFIX):].strip()
    return token or None


def bearer_cookie(name: str) -> TokenStrategy:
    def strategy(req: Request) -> str | None:
        return strip_bearer(req.cookies.get(name))
    return strategy


def bearer_header(name: str = "Authorization") -> TokenStrategy:
    def strategy(req: Request) -> str | None:
        return strip_bearer(req.headers.get(name))
    return strategy


def plain_cookie(name: str) -> TokenStrategy:
    def strategy(req: Request) -> str | None:
        return req.cookies.get(name) or None
    return strategy


def body_field(name: str) -> TokenStrategy:
    """Read a field from a JSON body, falling back to form data."""
    def strategy(req: Request) -> str | None:
        payload = req.get_json(silent=True)
        if isinstance(payload, dict):
            value = payload.get(name)
        else:
            value = req.form.get(name)
        return value if isinstance(value, str) and value else None
    return strategy


def extract_first(req: Request, strategies: Iterable[TokenStrategy]) -> str | None:
    for strategy in strategies:
        token = strategy(req)
        if token:
            return token
    return None


# Access token: cookie first, then the Authorization header
ACCESS_TOKEN_SOURCES = (bearer_cookie("accessToken"), bearer_header("Authorization"))

# Refresh token: cookie first, then the request body
REFRESH_TOKEN_SOURCES = (plain_cookie("refreshToken"), body_field("refreshToken"))
