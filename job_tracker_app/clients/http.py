"""
HTTP plumbing shared by the capture and dashboard clients.

Connectivity problems (timeouts, refused connections) are reported
separately from authentication failures so a caller can offer "retry
connection" instead of sending the user back to the login page.
"""
import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}


class AuthenticationError(ApiError):
    """Missing, expired or rejected credential (HTTP 401)."""


class ConnectivityError(ApiError):
    """The backend did not answer: timeout or network failure."""


class DuplicateApplicationError(ApiError):
    """HTTP 409; ``existing`` holds the record already being tracked."""

    @property
    def existing(self) -> Optional[Dict[str, Any]]:
        return self.payload.get("existingApplication")


def send(session, method: str, url: str, timeout: float = DEFAULT_TIMEOUT, **kwargs):
    """Issue a request, mapping transport failures to ConnectivityError."""
    try:
        return session.request(method, url, timeout=timeout, **kwargs)
    except requests.Timeout as e:
        logger.warning("Request to %s timed out after %ss", url, timeout)
        raise ConnectivityError(f"Backend did not respond within {timeout}s") from e
    except requests.ConnectionError as e:
        logger.warning("Could not connect to %s: %s", url, e)
        raise ConnectivityError("Could not connect to backend") from e


def parse_body(response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {"data": body}
