"""Pure list helpers behind the dashboard table: filter, sort, paginate, summarize."""
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

STATUSES = ("Applied", "Interviewing", "Offered", "Rejected", "Accepted", "Ignored")
SEARCH_FIELDS = ("company_name", "job_title", "location", "notes")


@dataclass
class Page:
    items: List[Dict[str, Any]]
    page: int
    per_page: int
    total: int

    @property
    def pages(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


def filter_applications(
    records: Sequence[Dict[str, Any]],
    search: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Case-insensitive substring search across the text columns, plus an exact status filter."""
    term = (search or "").strip().casefold()
    result = []
    for record in records:
        if status and record.get("status") != status:
            continue
        if term and not any(term in (record.get(field) or "").casefold() for field in SEARCH_FIELDS):
            continue
        result.append(record)
    return result


def sort_applications(
    records: Sequence[Dict[str, Any]],
    key: str = "date_applied",
    descending: bool = True,
) -> List[Dict[str, Any]]:
    def sort_key(record):
        value = record.get(key)
        if isinstance(value, str):
            value = value.casefold()
        # Missing values sort last in ascending order
        return (value is None, value if value is not None else "")

    return sorted(records, key=sort_key, reverse=descending)


def paginate(records: Sequence[Dict[str, Any]], page: int = 1, per_page: int = 20) -> Page:
    if per_page < 1:
        raise ValueError("per_page must be at least 1")
    total = len(records)
    last_page = max(1, math.ceil(total / per_page))
    page = min(max(page, 1), last_page)
    start = (page - 1) * per_page
    return Page(items=list(records[start:start + per_page]), page=page, per_page=per_page, total=total)


def summarize(records: Sequence[Dict[str, Any]]) -> Dict[str, int]:
    """Per-status counts; ``total`` leaves out ignored applications like the backend does."""
    summary = {status.lower(): 0 for status in STATUSES}
    for record in records:
        status = (record.get("status") or "").lower()
        if status in summary:
            summary[status] += 1
    summary["total"] = len(records) - summary["ignored"]
    return summary
