"""Application error taxonomy.

Services raise these; ``main.py`` renders them as ``{"detail", "error"}`` JSON.
"""


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def name(self) -> str:
        return type(self).__name__


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class Conflict(AppError):
    status_code = 400
    default_message = "User already exists"


class InvalidCredentials(AppError):
    status_code = 401
    default_message = "Invalid credentials"


class InvalidOrExpired(AppError):
    status_code = 400
    default_message = "Invalid or expired reset token"


class UnsupportedMediaType(AppError):
    status_code = 400
    default_message = "Unsupported file type"


class PayloadTooLarge(AppError):
    status_code = 400
    default_message = "File too large"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(AppError):
    status_code = 403
    default_message = "Admin access required"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class ServerError(AppError):
    status_code = 500
    default_message = "Server error"
