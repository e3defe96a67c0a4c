"""
Dashboard-side API client.

Wraps the REST surface of the backend with one method per user action and
turns the error envelope into typed exceptions:

* 401 -> ``AuthenticationError`` (send the user to the login page)
* 409 -> ``DuplicateApplicationError`` (``existing`` holds the tracked record)
* timeout / network failure -> ``ConnectivityError`` (offer a retry)
* anything else -> ``ApiError``
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from ..channel import DASHBOARD_SOURCE, LOGIN, LOGOUT, AuthChannel
from ..http import (
    DEFAULT_TIMEOUT,
    ApiError,
    AuthenticationError,
    DuplicateApplicationError,
    parse_body,
    send,
)

logger = logging.getLogger(__name__)


class DashboardClient:
    def __init__(
        self,
        api_base_url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        channel: Optional[AuthChannel] = None,
        session=None,
    ):
        self.api_base_url = api_base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.channel = channel
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _request(self, method: str, path: str, **kwargs):
        response = send(
            self.session,
            method,
            f"{self.api_base_url}{path}",
            timeout=self.timeout,
            headers=self._headers(),
            **kwargs,
        )
        if response.status_code < 400:
            return response

        body = parse_body(response)
        message = body.get("error") or f"Request failed with status {response.status_code}"
        if response.status_code == 401:
            raise AuthenticationError(message, response.status_code, body)
        if response.status_code == 409:
            raise DuplicateApplicationError(message, response.status_code, body)
        raise ApiError(message, response.status_code, body)

    def _data(self, method: str, path: str, **kwargs) -> Any:
        return parse_body(self._request(method, path, **kwargs)).get("data")

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    def list_applications(
        self,
        status: Optional[str] = None,
        source: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = "date_applied",
        order: str = "desc",
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Return ``(records, total)`` for the signed-in user."""
        params = {
            "status": status, "source": source, "search": search,
            "sort": sort, "order": order, "skip": skip, "limit": limit,
        }
        params = {key: value for key, value in params.items() if value is not None}
        body = parse_body(self._request("GET", "/api/applications", params=params))
        records = body.get("data") or []
        return records, body.get("total", len(records))

    def get_application(self, application_id: int) -> Dict[str, Any]:
        return self._data("GET", f"/api/applications/{application_id}")

    def create_application(self, **fields) -> Dict[str, Any]:
        return self._data("POST", "/api/applications", json=fields)

    def update_application(self, application_id: int, **fields) -> Dict[str, Any]:
        return self._data("PUT", f"/api/applications/{application_id}", json=fields)

    def update_status(self, application_id: int, status: str) -> Dict[str, Any]:
        return self.update_application(application_id, status=status)

    def update_notes(self, application_id: int, notes: str) -> Dict[str, Any]:
        return self.update_application(application_id, notes=notes)

    def delete_application(self, application_id: int) -> Dict[str, Any]:
        return self._data("DELETE", f"/api/applications/{application_id}")

    def stats(self) -> Dict[str, int]:
        return self._data("GET", "/api/applications/stats")

    def export_csv(self) -> str:
        return self._request("GET", "/api/applications/export").text

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def me(self) -> Dict[str, Any]:
        return self._data("GET", "/api/auth/me")

    def complete_login(self) -> str:
        """
        After the OAuth redirect lands on the auth-success page: trade the
        session cookie held by ``session`` for a bearer token and announce it.
        """
        token = parse_body(self._request("GET", "/api/auth/token"))["token"]
        self.announce_login(token)
        return token

    def announce_login(self, token: str) -> None:
        """Adopt ``token`` and tell the extension about it."""
        self.token = token
        if self.channel:
            self.channel.post(LOGIN, token=token)

    def logout(self) -> None:
        """
        End the session. The extension is told to forget its token even if
        the backend cannot be reached.
        """
        try:
            self._request("POST", "/api/auth/logout")
        finally:
            self.token = None
            if self.channel:
                self.channel.post(LOGOUT, source=DASHBOARD_SOURCE)
            logger.info("Dashboard signed out")
