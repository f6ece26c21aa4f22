"""
Error taxonomy for the account API.

Every error is an ``HTTPException`` so FastAPI routes can raise them
directly; ``api.middleware`` renders them in the response envelope.
"""

from __future__ import annotations

from fastapi import HTTPException, status


class ApiError(HTTPException):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(status_code=type(self).status_code, detail=self.message)


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthenticationError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized request"


class AuthorizationError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Invalid refresh token"


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class DependencyFailure(ApiError):
    """Hashing, upload or persistence failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "An upstream dependency failed"
