"""
Duplicate guard for tracked applications.

Two layers keep a user from tracking the same company + title twice:

* ``check_duplicate`` is the pre-check. It lets the API answer 409 with the
  record that already exists before anything is written.
* The ``uq_application_user_company_title`` constraint on the normalized key
  columns is the authority. Two identical submissions racing past the
  pre-check still produce exactly one row; ``commit_or_conflict`` turns the
  losing commit into the same 409.
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import DuplicateApplication
from ..models.db import application as application_model
from ..utils.normalize import normalize_key

logger = logging.getLogger(__name__)


def check_duplicate(
    db: Session,
    user_id: int,
    company_name: str,
    job_title: str,
    exclude_id: Optional[int] = None,
) -> Optional[application_model.Application]:
    """Return the caller's record matching company + title (trimmed, case-folded), if any."""
    Application = application_model.Application
    query = db.query(Application).filter(
        Application.user_id == user_id,
        Application.company_key == normalize_key(company_name),
        Application.title_key == normalize_key(job_title),
    )
    if exclude_id is not None:
        query = query.filter(Application.id != exclude_id)
    return query.first()


def commit_or_conflict(
    db: Session,
    user_id: int,
    company_name: str,
    job_title: str,
    exclude_id: Optional[int] = None,
) -> None:
    """Commit the pending change, translating a unique-key violation into DuplicateApplication."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        existing = check_duplicate(db, user_id, company_name, job_title, exclude_id=exclude_id)
        if existing is None:
            raise
        logger.warning(
            "Storage constraint rejected duplicate for user %s (existing application %s)",
            user_id, existing.id,
        )
        raise DuplicateApplication(existing) from exc
