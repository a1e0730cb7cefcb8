"""
Error taxonomy.

Each class is an ``HTTPException`` with a fixed status code, so handlers keep
raising the way FastAPI expects and the application-wide handler in
``main.py`` renders every one of them as ``{"error": detail}``.

    Unauthorized      401   no session / invalid session
    Forbidden         403   valid session, wrong role or owner
    NotFound          404   id does not resolve
    Conflict          409   state precondition violated
    ValidationError   400   malformed input
    InternalError     500   unexpected failure
"""

from fastapi import HTTPException, status


class AppError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: str | None = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"


class InvalidToken(Unauthorized):
    default_detail = "Invalid token"


class InvalidCredentials(Unauthorized):
    # Same text for "no such email" and "wrong password"
    default_detail = "Invalid email or password"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class AlreadyClockedIn(Conflict):
    default_detail = "You are already clocked in. Please clock out first."


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class InternalError(AppError):
    pass
