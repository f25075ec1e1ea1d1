"""
Auth services wired once per application and kept in app.extensions.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from flask import current_app

from models.user_store import UserStore
from services.media import MediaUploader
from services.rotation import RotationProtocol
from services.sessions import SessionManager
from utils.tokens import TokenSettings

if TYPE_CHECKING:
    from utils.decorators import AuthGuard

EXTENSION_KEY = "session_auth"


@dataclass
class AuthServices:
    settings: TokenSettings
    users: UserStore
    sessions: SessionManager
    rotation: RotationProtocol
    guard: "AuthGuard"
    media: MediaUploader


def get_services() -> AuthServices:
    return current_app.extensions[EXTENSION_KEY]
