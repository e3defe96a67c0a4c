"""
Auto-capture: turns an "apply" click on a job page into a tracked application.
"""
import enum
import logging
import time
from typing import Any, Callable, Dict, Optional

import requests
from bs4 import Tag

from ..channel import TokenStore
from ..http import DEFAULT_TIMEOUT, parse_body, send
from .extractor import extract_job, is_capturable
from .triggers import is_apply_trigger

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY = 1.0


class CaptureOutcome(str, enum.Enum):
    SAVED = "saved"
    DUPLICATE = "duplicate"
    AUTH_REQUIRED = "auth_required"
    SKIPPED = "skipped"
    FAILED = "failed"


class CaptureClient:
    def __init__(
        self,
        api_base_url: str,
        token_store: TokenStore,
        timeout: float = DEFAULT_TIMEOUT,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        session=None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_base_url = api_base_url.rstrip("/")
        self.token_store = token_store
        self.timeout = timeout
        self.settle_delay = settle_delay
        self.session = session or requests.Session()
        self.sleep = sleep
        self.last_response: Optional[Dict[str, Any]] = None

    def handle_click(self, element: Tag, url: str, load_page: Callable[[], str]) -> CaptureOutcome:
        """
        React to a click on a job page.

        ``load_page`` returns the page HTML as it is after the click; it is
        called only once the settle delay has passed so content rendered by
        the site's own scripts is present.
        """
        if not is_apply_trigger(element):
            return CaptureOutcome.SKIPPED

        if self.settle_delay:
            self.sleep(self.settle_delay)
        return self.capture(url, load_page())

    def capture(self, url: str, html: str) -> CaptureOutcome:
        job = extract_job(url, html)
        if not is_capturable(job):
            logger.debug("Dropping capture from %s: incomplete fields", url)
            return CaptureOutcome.SKIPPED
        return self.submit(job.to_payload())

    def submit(self, payload: Dict[str, Any]) -> CaptureOutcome:
        if not self.token_store.is_authenticated:
            logger.info("Not signed in; capture of %s not sent", payload.get("company_name"))
            return CaptureOutcome.AUTH_REQUIRED

        response = send(
            self.session,
            "POST",
            f"{self.api_base_url}/api/applications",
            timeout=self.timeout,
            json=payload,
            headers={"Authorization": f"Bearer {self.token_store.token}"},
        )
        body = parse_body(response)
        self.last_response = body

        if response.status_code == 201:
            logger.info("Saved %s at %s", payload.get("job_title"), payload.get("company_name"))
            return CaptureOutcome.SAVED
        if response.status_code == 409:
            logger.info("Already tracking %s at %s", payload.get("job_title"), payload.get("company_name"))
            return CaptureOutcome.DUPLICATE
        if response.status_code == 401:
            self.token_store.clear()
            return CaptureOutcome.AUTH_REQUIRED

        logger.warning("Capture rejected (%s): %s", response.status_code, body.get("error", "unknown error"))
        return CaptureOutcome.FAILED
