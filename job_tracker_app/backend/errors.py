"""
Domain errors raised by the service layer.

Services raise these and never build HTTP responses themselves; the handlers
registered in ``utils.api_helpers`` turn them into the JSON error envelope.
"""
from typing import Any, Dict, List, Optional


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra = extra


class ValidationFailed(AppError):
    status_code = 400

    def __init__(self, errors: List[Dict[str, str]], message: str = "Validation failed"):
        super().__init__(message, errors=errors)
        self.errors = errors


class Unauthenticated(AppError):
    status_code = 401


class NotFound(AppError):
    status_code = 404


class DuplicateApplication(AppError):
    """The caller already tracks an application with this company and title."""

    status_code = 409

    def __init__(self, existing: Optional[Any] = None,
                 message: str = "This job application already exists in your tracker"):
        super().__init__(message)
        self.existing = existing


class AuthFlowFailed(AppError):
    """The identity provider exchange did not produce a usable identity."""

    status_code = 502
