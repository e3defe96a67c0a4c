"""
Same-origin login/logout broadcast between the dashboard and the extension.

The extension has no stable network address, so the dashboard announces
sign-in (with the bearer token) and sign-out on an in-page channel and the
extension's listener updates its token store.
"""
import json
import logging
import os
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

LOGIN = "JOB_TRACKER_LOGIN"
LOGOUT = "JOB_TRACKER_LOGOUT"
DASHBOARD_SOURCE = "job-tracker-dashboard"


@dataclass(frozen=True)
class AuthMessage:
    type: str
    origin: str
    token: Optional[str] = None
    source: Optional[str] = None


class AuthChannel:
    """A tiny pub/sub bus scoped to one page origin."""

    def __init__(self, origin: str):
        self.origin = origin
        self._listeners: List[Callable[[AuthMessage], None]] = []

    def subscribe(self, listener: Callable[[AuthMessage], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def post(self, message_type: str, origin: Optional[str] = None, **fields) -> AuthMessage:
        message = AuthMessage(type=message_type, origin=origin or self.origin, **fields)
        for listener in list(self._listeners):
            listener(message)
        return message


class TokenStore:
    """The extension's stored credential, optionally persisted to a JSON file."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self.token: Optional[str] = None
        self.user_id: Optional[int] = None
        self.user_name: Optional[str] = None
        if path and os.path.exists(path):
            self._load()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def set_token(self, token: str, user_id: Optional[int] = None, user_name: Optional[str] = None) -> None:
        self.token = token
        self.user_id = user_id
        self.user_name = user_name
        self._save()

    def clear(self) -> None:
        self.token = None
        self.user_id = None
        self.user_name = None
        if self.path and os.path.exists(self.path):
            os.remove(self.path)

    def _load(self) -> None:
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        self.token = data.get("authToken")
        self.user_id = data.get("userId")
        self.user_name = data.get("userName")

    def _save(self) -> None:
        if not self.path:
            return
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"authToken": self.token, "userId": self.user_id, "userName": self.user_name}, f)


class ExtensionListener:
    """Applies dashboard auth announcements to the extension's token store."""

    def __init__(self, channel: AuthChannel, store: TokenStore):
        self.channel = channel
        self.store = store
        self.unsubscribe = channel.subscribe(self)

    def __call__(self, message: AuthMessage) -> None:
        if message.origin != self.channel.origin:
            logger.debug("Ignoring auth message from foreign origin %s", message.origin)
            return

        if message.type == LOGIN and message.token:
            self.store.set_token(message.token)
            logger.info("Stored login token announced by dashboard")
        elif message.type == LOGOUT and message.source == DASHBOARD_SOURCE:
            self.store.clear()
            logger.info("Cleared stored token after dashboard logout")
