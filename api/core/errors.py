"""
Application error taxonomy.

Services raise these; `main.py` turns them into `{"success": false, "message"}`
responses using `STATUS_BY_ERROR`, the only place an error kind gets its HTTP
status. Store errors (asyncpg) are not wrapped by services and are mapped by
the same handler.
"""

from __future__ import annotations


class AppError(RuntimeError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    pass


class AuthError(AppError):
    pass


class AuthorizationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class ConflictError(AppError):
    pass


class StoreError(AppError):
    pass


STATUS_BY_ERROR: dict[type[AppError], int] = {
    ValidationError: 400,
    AuthError: 401,
    AuthorizationError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    StoreError: 500,
}


def status_for(exc: AppError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    # Errors relayed from upstream services carry their own status.
    return getattr(exc, "status_code", 500)
