"""
Supported job sites and their extraction rules.

Each site is a ``SiteVariant`` holding ordered rule lists for company,
title and location. Rules are tried in order and the first non-empty text
wins. Supporting another site means adding a variant to ``SITES``.
"""
import re
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Tuple, Union

from bs4 import BeautifulSoup, Tag


def element_text(element: Tag) -> str:
    return element.get_text(" ", strip=True)


def class_names(element: Tag) -> str:
    classes = element.get("class") or []
    if isinstance(classes, str):
        return classes
    return " ".join(classes)


@dataclass(frozen=True)
class Selector:
    """First element matching a CSS selector."""

    css: str
    transform: Optional[Callable[[str], str]] = None

    def extract(self, soup: BeautifulSoup) -> str:
        element = soup.select_one(self.css)
        if element is None:
            return ""
        text = element_text(element)
        if text and self.transform:
            text = self.transform(text).strip()
        return text


@dataclass(frozen=True)
class Finder:
    """First element among ``tags`` accepted by ``predicate``."""

    tags: Tuple[str, ...]
    predicate: Callable[[Tag, str], bool]
    transform: Optional[Callable[[str], str]] = None

    def extract(self, soup: BeautifulSoup) -> str:
        for element in soup.find_all(list(self.tags)):
            text = element_text(element)
            if text and self.predicate(element, text):
                return self.transform(text).strip() if self.transform else text
        return ""


Rule = Union[Selector, Finder]


def first_match(rules: Sequence[Rule], soup: BeautifulSoup) -> str:
    for rule in rules:
        value = rule.extract(soup)
        if value:
            return value
    return ""


@dataclass(frozen=True)
class SiteVariant:
    name: str
    url_marker: str
    source: str
    company_rules: Tuple[Rule, ...]
    title_rules: Tuple[Rule, ...]
    location_rules: Tuple[Rule, ...] = field(default_factory=tuple)
    company_fallback: str = ""
    location_fallback: str = ""
    company_sanitizer: Optional[Callable[[str], str]] = None

    def matches(self, url: str) -> bool:
        return self.url_marker in url

    def extract_company(self, soup: BeautifulSoup) -> str:
        company = first_match(self.company_rules, soup) or self.company_fallback
        if self.company_sanitizer:
            company = self.company_sanitizer(company)
        return company

    def extract_title(self, soup: BeautifulSoup) -> str:
        return first_match(self.title_rules, soup)

    def extract_location(self, soup: BeautifulSoup) -> str:
        return first_match(self.location_rules, soup) or self.location_fallback


# =============================================================================
# INDEED
# =============================================================================

def _indeed_company_element(element: Tag, text: str) -> bool:
    classes = class_names(element)
    return 2 < len(text) < 100 and ("company" in classes or "employer" in classes)


def _indeed_title_heading(element: Tag, text: str) -> bool:
    return 5 < len(text) < 150


def _indeed_location_leaf(element: Tag, text: str) -> bool:
    return (
        4 < len(text) < 50
        and ("," in text or "Remote" in text)
        and "$" not in text
        and "year" not in text
        and element.find(True) is None
    )


# =============================================================================
# ONLINEJOBS.PH
# =============================================================================

ONLINEJOBS_EMPLOYER = "OnlineJobs.ph Employer"


def _onlinejobs_byline(element: Tag, text: str) -> bool:
    return "by " in text and len(text) < 100


def _strip_byline(text: str) -> str:
    return re.sub(r".*by\s+", "", text, flags=re.IGNORECASE)


def _sanitize_onlinejobs_company(company: str) -> str:
    lowered = company.lower()
    if "login" in lowered or "register" in lowered or len(company) > 100:
        return ONLINEJOBS_EMPLOYER
    return company


SITES: Tuple[SiteVariant, ...] = (
    SiteVariant(
        name="LinkedIn",
        url_marker="linkedin.com/jobs",
        source="LinkedIn",
        company_rules=(
            Selector(".job-details-jobs-unified-top-card__company-name"),
            Selector(".topcard__org-name-link"),
            Selector('[data-anonymize="company-name"]'),
        ),
        title_rules=(
            Selector(".job-details-jobs-unified-top-card__job-title"),
            Selector(".topcard__title"),
            Selector("h1.t-24"),
        ),
        location_rules=(
            Selector(".job-details-jobs-unified-top-card__bullet"),
            Selector(".topcard__flavor--bullet"),
        ),
    ),
    SiteVariant(
        name="Indeed",
        url_marker="indeed.com",
        source="Indeed",
        company_rules=(
            Selector('[data-company-name="true"]'),
            Selector('[data-testid="inlineHeader-companyName"]'),
            Selector(".jobsearch-CompanyInfoWithoutHeaderImage"),
            Selector(".icl-u-lg-mr--sm.icl-u-xs-mr--xs"),
            Selector("div[data-company-name]"),
            Finder(("a", "span", "div"), _indeed_company_element),
        ),
        title_rules=(
            Selector('[data-testid="jobsearch-JobInfoHeader-title"]'),
            Selector('[class*="jobsearch-JobInfoHeader-title"]'),
            Selector("h1.jobTitle"),
            Selector('h1[class*="jobTitle"]'),
            Finder(("h1", "h2"), _indeed_title_heading),
        ),
        location_rules=(
            Selector('[data-testid="job-location"]'),
            Selector('[data-testid="inlineHeader-companyLocation"]'),
            Selector(".jobsearch-JobInfoHeader-subtitle", transform=lambda text: text.split("•")[0]),
            Finder(("div",), _indeed_location_leaf),
        ),
    ),
    SiteVariant(
        name="Glassdoor",
        url_marker="glassdoor.com",
        source="Glassdoor",
        company_rules=(
            Selector('[data-test="employerName"]'),
            Selector(".EmployerProfile_employerName__Xemli"),
        ),
        title_rules=(
            Selector('[data-test="job-title"]'),
            Selector(".JobDetails_jobTitle__Rw_gn"),
        ),
        location_rules=(
            Selector('[data-test="location"]'),
            Selector(".JobDetails_location__mSg5h"),
        ),
    ),
    SiteVariant(
        name="OnlineJobs.ph",
        url_marker="onlinejobs.ph",
        source="OnlineJobs.ph",
        company_rules=(
            Selector(".employer-name"),
            Selector(".job-employer"),
            Selector('[class*="employer"]'),
            Finder(("div", "span", "p"), _onlinejobs_byline, transform=_strip_byline),
        ),
        title_rules=(
            Selector(".post-title"),
            Selector("h1.title"),
            Selector('[class*="job-title"]'),
            Selector("h1"),
        ),
        location_rules=(
            Selector(".location"),
            Selector('[class*="location"]'),
        ),
        company_fallback=ONLINEJOBS_EMPLOYER,
        location_fallback="Remote/Philippines",
        company_sanitizer=_sanitize_onlinejobs_company,
    ),
)

# Host markers used to label where a page came from
SOURCE_MARKERS = (
    ("linkedin.com", "LinkedIn"),
    ("indeed.com", "Indeed"),
    ("glassdoor.com", "Glassdoor"),
    ("onlinejobs.ph", "OnlineJobs.ph"),
)


def detect_site(url: str) -> Optional[SiteVariant]:
    for site in SITES:
        if site.matches(url):
            return site
    return None


def source_for_url(url: str) -> str:
    for marker, source in SOURCE_MARKERS:
        if marker in url:
            return source
    return "Manual"
