from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from services import get_services
from services.errors import ConflictError, InputError, NotFoundError
from services.media import save_upload
from services.sessions import public_user
from models.schemas.user import UserUpdateSchema
from utils.decorators import login_required

bp = Blueprint("users", __name__)

user_update_schema = UserUpdateSchema()

# form field -> user column
IMAGE_FIELDS = {
    "avatar": "avatar",
    "coverImage": "cover_image",
}


@bp.get("/current-user")
@login_required()
def current_user():
    """
    Get current user info.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify(
        {
            "data": g.current_user,
            "message": "User fetched successfully!",
        }
    ), 200


@bp.patch("/update-account")
@login_required()
def update_account():
    """
    Update full name, username and email of the current user.
    ---
    tags:
      - Users
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
             fullName: { type: string }
             username: { type: string }
             email: { type: string }
    responses:
      200: { description: OK }
      400: { description: Missing fields }
      409: { description: Username or email taken by another user }
    """
    data = user_update_schema.load(request.get_json(silent=True) or {})
    services = get_services()

    existing = services.users.find_by_username_or_email(data["username"], data["email"])
    if existing is not None and existing.id != g.current_user_id:
        raise ConflictError("User with email or username already exists")

    user = services.users.update_by_id(g.current_user_id, data)
    if user is None:
        raise NotFoundError("User not found")
    return jsonify(
        {
            "data": public_user(user),
            "message": "User updated successfully!",
        }
    ), 200


def _replace_image(field: str, label: str):
    local_path = save_upload(request.files.get(field), current_app.config["UPLOAD_TMP_DIR"])
    if not local_path:
        raise InputError(f"{label} file is required")

    services = get_services()
    uploaded = services.media.upload(local_path)
    if not uploaded or not uploaded.get("url"):
        raise InputError(f"Error while uploading {label.lower()} file")

    user = services.users.update_by_id(
        g.current_user_id, {IMAGE_FIELDS[field]: uploaded["url"]}, skip_validation=True
    )
    if user is None:
        raise NotFoundError("User not found")
    return public_user(user)


@bp.patch("/avatar")
@login_required()
def update_avatar():
    """
    Replace the current user's avatar.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: avatar, type: file, required: true }
    responses:
      200: { description: OK }
      400: { description: Missing file or upload failed }
    """
    user = _replace_image("avatar", "Avatar")
    return jsonify({"data": user, "message": "User avatar updated successfully!"}), 200


@bp.patch("/cover-image")
@login_required()
def update_cover_image():
    """
    Replace the current user's cover image.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: coverImage, type: file, required: true }
    responses:
      200: { description: OK }
      400: { description: Missing file or upload failed }
    """
    user = _replace_image("coverImage", "Cover image")
    return jsonify({"data": user, "message": "User cover image updated successfully!"}), 200
