"""
Error taxonomy for the auth services.

Every failure a route can surface is one of these classes; api.errors maps
them to the JSON error envelope by reading `status` and `error` instead of
inspecting message strings.
"""


class AuthError(Exception):
    status = 500
    error = "INTERNAL_ERROR"
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details


class InputError(AuthError):
    status = 400
    error = "VALIDATION_ERROR"
    default_message = "Invalid input"


class UnauthorizedError(AuthError):
    status = 401
    error = "UNAUTHORIZED"
    default_message = "Unauthorized access"


class NotFoundError(AuthError):
    status = 404
    error = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(AuthError):
    status = 409
    error = "CONFLICT"
    default_message = "Conflict"


class InternalError(AuthError):
    pass
