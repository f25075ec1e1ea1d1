"""
Authentication blueprint, mounted at /api/v1/users:
- POST /register         multipart form with avatar (required) and coverImage
- POST /login            identifier (username or email) + password
- POST /logout           guarded; clears the stored refresh token
- POST /refresh          rotates the refresh token (cookie or body)
- POST /change-password  guarded

Tokens travel both as httpOnly cookies and in the JSON body. The access
token value carries its "Bearer " scheme prefix in both places.
"""
from __future__ import annotations

import logging

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy.exc import IntegrityError

from services import get_services
from services.errors import ConflictError, InputError, NotFoundError, UnauthorizedError
from services.media import discard_local, save_upload
from services.sessions import TokenPair, public_user
from models.schemas.user import PasswordChangeSchema, UserCreateSchema, UserLoginSchema
from utils.decorators import login_required
from utils.extractors import REFRESH_TOKEN_SOURCES, extract_first
from utils.security import needs_rehash, verify_password

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

user_create_schema = UserCreateSchema()
user_login_schema = UserLoginSchema()
password_change_schema = PasswordChangeSchema()

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def _payload() -> dict:
    """JSON body if there is one, else form fields."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": current_app.config.get("AUTH_COOKIE_SECURE", True),
        "samesite": current_app.config.get("AUTH_COOKIE_SAMESITE", "Lax"),
    }


def _with_token_cookies(response, pair: TokenPair):
    options = _cookie_options()
    response.set_cookie(ACCESS_COOKIE, pair.bearer_access_token, **options)
    response.set_cookie(REFRESH_COOKIE, pair.refresh_token, **options)
    return response


@bp.post("/register")
def register():
    """
    Register a new user.
    ---
    tags:
      - Auth
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: fullName, type: string, required: true }
      - { in: formData, name: username, type: string, required: true }
      - { in: formData, name: email, type: string, required: true }
      - { in: formData, name: password, type: string, required: true }
      - { in: formData, name: avatar, type: file, required: true }
      - { in: formData, name: coverImage, type: file }
    responses:
      201:
        description: Created
      400:
        description: Missing fields or avatar
      409:
        description: Username or email already taken
    """
    data = user_create_schema.load(_payload())
    services = get_services()

    if services.users.find_by_username_or_email(data["username"], data["email"]):
        raise ConflictError("User with email or username already exists")

    tmp_dir = current_app.config["UPLOAD_TMP_DIR"]
    avatar_path = save_upload(request.files.get("avatar"), tmp_dir)
    cover_path = save_upload(request.files.get("coverImage"), tmp_dir)
    if not avatar_path:
        discard_local(cover_path)
        raise InputError("Avatar file is required")

    avatar = services.media.upload(avatar_path)
    if not avatar or not avatar.get("url"):
        discard_local(cover_path)
        raise InputError("Avatar file is required")
    cover = services.media.upload(cover_path) if cover_path else None
    cover_url = (cover or {}).get("url", "")

    try:
        user = services.users.create(
            full_name=data["full_name"],
            username=data["username"],
            email=data["email"],
            password=data["password"],
            avatar=avatar["url"],
            cover_image=cover_url,
        )
    except IntegrityError:
        # lost a uniqueness race after the conflict check; drop what was uploaded
        services.media.remove(avatar["url"])
        services.media.remove(cover_url)
        raise
    logger.info("Registered user %s", user.id)

    return jsonify(
        {
            "data": public_user(user),
            "message": "User registered successfully!",
        }
    ), 201


@bp.post("/login")
def login():
    """
    Login: returns the token pair in cookies and body.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             identifier: { type: string, description: username or email }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      400:
        description: Missing fields
      401:
        description: Invalid credentials
      404:
        description: No such user
    """
    data = user_login_schema.load(_payload())
    services = get_services()

    user = services.users.find_by_username_or_email(data["identifier"])
    if user is None:
        raise NotFoundError("User does not exist!")
    if not verify_password(data["password"], user.password_hash):
        raise UnauthorizedError("Invalid credentials!")
    if needs_rehash(user.password_hash):
        services.users.update_by_id(user.id, {"password": data["password"]})
        logger.info("Upgraded password hash for user %s", user.id)

    pair = services.sessions.create_session(user.id)
    response = jsonify(
        {
            "data": {
                "user": services.sessions.current_user(user.id),
                "accessToken": pair.bearer_access_token,
                "refreshToken": pair.refresh_token,
            },
            "message": "User logged in successfully!",
        }
    )
    return _with_token_cookies(response, pair), 200


@bp.post("/logout")
@login_required()
def logout():
    """
    Logout: invalidates the stored refresh token and clears cookies.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    get_services().sessions.end_session(g.current_user_id)

    response = jsonify({"data": None, "message": "User logged out successfully!"})
    options = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)
    return response, 200


@bp.post("/refresh")
def refresh():
    """
    Exchange a refresh token for a new pair (rotation).
    The refresh token is read from the refreshToken cookie, else the body.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: New token pair
      401:
        description: Missing, invalid, expired or revoked refresh token
    """
    presented = extract_first(request, REFRESH_TOKEN_SOURCES)
    pair = get_services().rotation.refresh(presented)

    response = jsonify(
        {
            "data": {
                "accessToken": pair.bearer_access_token,
                "refreshToken": pair.refresh_token,
            },
            "message": "Access token refreshed successfully!",
        }
    )
    return _with_token_cookies(response, pair), 200


@bp.post("/change-password")
@login_required()
def change_password():
    """
    Change the current user's password.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             oldPassword: { type: string }
             newPassword: { type: string }
    responses:
      200:
        description: Password changed
      400:
        description: Missing fields or new password equals old one
      401:
        description: Old password is wrong
    """
    data = password_change_schema.load(_payload())
    services = get_services()

    user = services.users.find_by_id(g.current_user_id)
    if user is None:
        raise UnauthorizedError("Unauthorized access!")
    if not verify_password(data["old_password"], user.password_hash):
        raise UnauthorizedError("Invalid credentials!")
    if data["old_password"] == data["new_password"]:
        raise InputError("New password should be different from old password!")

    services.users.update_by_id(user.id, {"password": data["new_password"]})
    return jsonify({"data": None, "message": "Password changed successfully!"}), 200
