"""
Domain errors raised by the service layer.

Services raise subclasses of :class:`ServiceError`; the exception
handlers installed in ``main.create_app`` turn them into the JSON
response envelope with the matching HTTP status.  They derive from
``ValueError`` so callers that only care about "bad request" style
failures can keep catching ``ValueError``.
"""

from fastapi import status


class ServiceError(ValueError):
    """Base class for expected, user-facing failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(ServiceError):
    """Malformed or missing input."""


class ConflictError(ServiceError):
    """Duplicate resource, slot collision or a violated business rule."""


class AuthenticationError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDenied(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
