"""
Domain errors raised by services and turned into error envelopes by routes
"""

from typing import Dict, Optional


class ServiceError(Exception):
    """Expected domain failure with the HTTP status it maps to."""

    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(ServiceError):
    status_code = 422

    def __init__(self, errors: Dict[str, str], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors


class AuthenticationError(ServiceError):
    status_code = 401


class PermissionDenied(ServiceError):
    status_code = 403


class NotFound(ServiceError):
    status_code = 404


class Conflict(ServiceError):
    """Duplicate registration, capacity reached, email taken and similar."""

    status_code = 400
