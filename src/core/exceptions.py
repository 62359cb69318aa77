"""Error taxonomy shared by every service.

Services raise these; the handlers registered in ``src.main`` turn them into
the ``{success: false, message, code}`` envelope with the matching status.
"""

from fastapi import status


class NewsdeskError(Exception):
    """Base application error."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, code: str = "newsdesk_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(NewsdeskError):
    """Malformed or missing input, or a business-rule violation."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Validation failed", code: str = "validation_error"):
        super().__init__(message, code)


class NotFoundError(NewsdeskError):
    """Resource absent or hidden from the requester."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Resource not found", code: str = "not_found"):
        super().__init__(message, code)


class ForbiddenError(NewsdeskError):
    """Authenticated but not allowed."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Access denied", code: str = "forbidden"):
        super().__init__(message, code)


class ConflictError(NewsdeskError):
    """Uniqueness violation or delete blocked by references."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Resource already exists", code: str = "conflict"):
        super().__init__(message, code)


class AuthenticationError(NewsdeskError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(
        self,
        message: str = "Access denied. No token provided.",
        code: str = "not_authenticated",
    ):
        super().__init__(message, code)


__all__ = [
    "AuthenticationError",
    "ConflictError",
    "ForbiddenError",
    "NewsdeskError",
    "NotFoundError",
    "ValidationError",
]
