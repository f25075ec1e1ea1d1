"""
Token codec: signed access and refresh tokens (JWT, HS256 by default).

Both kinds carry the same claims: sub (the subject id), iat, exp, a random
jti and a "type" claim. Access and refresh tokens are signed with different
secrets and the type claim is checked on decode, so a token minted as one
kind never verifies as the other, even under shared key material.
"""
from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

import jwt


class TokenError(Exception):
    """Base class for token verification failures."""


class TokenInvalid(TokenError):
    """Bad signature, malformed token, or wrong token kind."""


class TokenExpired(TokenError):
    """Signature is fine but the token is past its expiry."""


class TokenKind(str, enum.Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenSettings:
    """Process-wide token configuration, immutable after startup."""

    access_secret: str
    refresh_secret: str
    access_ttl: timedelta
    refresh_ttl: timedelta
    algorithm: str = "HS256"
    issuer: str | None = None

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "TokenSettings":
        return cls(
            access_secret=config["ACCESS_TOKEN_SECRET"],
            refresh_secret=config["REFRESH_TOKEN_SECRET"],
            access_ttl=config["ACCESS_TOKEN_EXPIRES"],
            refresh_ttl=config["REFRESH_TOKEN_EXPIRES"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            issuer=config.get("JWT_ISSUER"),
        )

    def secret_for(self, kind: TokenKind) -> str:
        return self.access_secret if kind is TokenKind.ACCESS else self.refresh_secret

    def ttl_for(self, kind: TokenKind) -> timedelta:
        return self.access_ttl if kind is TokenKind.ACCESS else self.refresh_ttl


@dataclass(frozen=True)
class TokenClaims:
    subject_id: str
    kind: TokenKind
    issued_at: datetime
    expires_at: datetime
    jti: str


def _now() -> datetime:
    return datetime.now(timezone.utc)


def issue_token(
    kind: TokenKind,
    subject_id: str,
    secret: str,
    ttl: timedelta,
    algorithm: str = "HS256",
    issuer: str | None = None,
) -> str:
    """Sign a token for subject_id that expires at now + ttl."""
    now = _now()
    payload = {
        "sub": str(subject_id),
        "type": kind.value,
        "iat": now,
        "exp": now + ttl,
        "jti": uuid.uuid4().hex,
    }
    if issuer:
        payload["iss"] = issuer
    return jwt.encode(payload, secret, algorithm=algorithm)


def verify_token(
    kind: TokenKind,
    token: str,
    secret: str,
    algorithm: str = "HS256",
    issuer: str | None = None,
) -> TokenClaims:
    """
    Decode and validate a token of the expected kind.
    Raises TokenExpired past exp, TokenInvalid for anything else.
    """
    if not token:
        raise TokenInvalid("Token is empty")
    try:
        decoded = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            issuer=issuer,
            options={"require": ["sub", "exp", "iat", "type"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpired("Token expired")
    except jwt.InvalidTokenError as exc:
        raise TokenInvalid(f"Invalid token: {exc}")

    if decoded.get("type") != kind.value:
        raise TokenInvalid("Wrong token type")

    return TokenClaims(
        subject_id=decoded["sub"],
        kind=kind,
        issued_at=datetime.fromtimestamp(decoded["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(decoded["exp"], tz=timezone.utc),
        jti=decoded.get("jti", ""),
    )


def issue_with(settings: TokenSettings, kind: TokenKind, subject_id: str) -> str:
    return issue_token(
        kind,
        subject_id,
        settings.secret_for(kind),
        settings.ttl_for(kind),
        algorithm=settings.algorithm,
        issuer=settings.issuer,
    )


def verify_with(settings: TokenSettings, kind: TokenKind, token: str) -> TokenClaims:
    return verify_token(
        kind,
        token,
        settings.secret_for(kind),
        algorithm=settings.algorithm,
        issuer=settings.issuer,
    )
