import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bs4 import BeautifulSoup

from .sites import detect_site, source_for_url

logger = logging.getLogger(__name__)

MIN_FIELD_LENGTH = 2


@dataclass
class JobPosting:
    company: str
    title: str
    location: str
    url: str
    source: str

    def to_payload(self, captured_at: Optional[datetime] = None) -> Dict[str, Any]:
        """Request body for ``POST /api/applications``."""
        captured_at = captured_at or datetime.now(timezone.utc)
        return {
            "company_name": self.company,
            "job_title": self.title,
            "location": self.location or "",
            "url": self.url,
            "source": self.source,
            "status": "Applied",
            "date_applied": captured_at.isoformat(),
        }


def extract_job(url: str, html: str) -> Optional[JobPosting]:
    """Pull company, title and location out of a supported job page."""
    site = detect_site(url)
    if site is None:
        logger.debug("No extraction rules for %s", url)
        return None

    soup = BeautifulSoup(html, "lxml")
    job = JobPosting(
        company=site.extract_company(soup),
        title=site.extract_title(soup),
        location=site.extract_location(soup),
        url=url,
        source=source_for_url(url),
    )
    logger.debug("%s capture: %s", site.name, job)
    return job


def is_capturable(job: Optional[JobPosting]) -> bool:
    """
    Reject empty or implausible captures: a stray single character, or a
    login prompt read as the company. Short real names ("IBM", "HP") pass.
    """
    if job is None or not job.company or not job.title:
        return False
    return (
        len(job.company.strip()) >= MIN_FIELD_LENGTH
        and len(job.title.strip()) >= MIN_FIELD_LENGTH
        and "login" not in job.company.lower()
    )
