from marshmallow import EXCLUDE, Schema, fields, pre_load, validates, validate, ValidationError

# Wire names are camelCase; attributes stay snake_case via data_key.


def _norm_identity(v):
    return v.strip().lower() if isinstance(v, str) else v


def _not_blank(value):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Field may not be blank.")


class UserCreateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    full_name = fields.String(required=True, data_key="fullName", validate=_not_blank)
    username = fields.String(required=True, validate=[_not_blank, validate.Length(max=64)])
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True, validate=_not_blank)

    @pre_load
    def normalize(self, data, **kwargs):
        data = dict(data)
        for key in ("email", "username"):
            if key in data:
                data[key] = _norm_identity(data[key])
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class UserLoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    identifier = fields.String(required=True, validate=_not_blank)
    password = fields.String(required=True, load_only=True, validate=_not_blank)

    @pre_load
    def normalize(self, data, **kwargs):
        data = dict(data)
        if "identifier" in data:
            data["identifier"] = _norm_identity(data["identifier"])
        return data


class PasswordChangeSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    old_password = fields.String(required=True, data_key="oldPassword", validate=_not_blank)
    new_password = fields.String(required=True, data_key="newPassword", validate=_not_blank)

    @validates("new_password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class UserUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    full_name = fields.String(required=True, data_key="fullName", validate=_not_blank)
    username = fields.String(required=True, validate=[_not_blank, validate.Length(max=64)])
    email = fields.Email(required=True)

    @pre_load
    def normalize(self, data, **kwargs):
        data = dict(data)
        for key in ("email", "username"):
            if key in data:
                data[key] = _norm_identity(data[key])
        return data


class UserOutSchema(Schema):
    """Public projection of a user: no password hash, no refresh token."""
    id = fields.String(allow_none=False)
    username = fields.String()
    email = fields.String()
    full_name = fields.String(data_key="fullName")
    avatar = fields.String()
    cover_image = fields.String(allow_none=True, data_key="coverImage")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
