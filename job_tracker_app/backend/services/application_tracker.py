import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..models.db import application as application_model
from .. import schemas
from ..errors import DuplicateApplication, NotFound
from ..utils.normalize import normalize_key
from .duplicate_guard import check_duplicate, commit_or_conflict

logger = logging.getLogger(__name__)

Application = application_model.Application

SORT_COLUMNS = {
    "date_applied": Application.date_applied,
    "company_name": Application.company_key,
    "job_title": Application.title_key,
    "status": Application.status,
    "created_at": Application.created_at,
}

# Columns that hold "" rather than NULL when cleared
BLANKABLE_FIELDS = ("location", "url", "notes")


def _plain_values(data: Dict) -> Dict:
    return {key: value.value if isinstance(value, Enum) else value for key, value in data.items()}


def get_application_by_id(db: Session, application_id: int, user_id: int) -> Application:
    """Ownership is part of the lookup: another user's record is simply not found."""
    db_application = db.query(Application).filter(
        Application.id == application_id,
        Application.user_id == user_id
    ).first()
    if db_application is None:
        raise NotFound("Application not found")
    return db_application


def get_applications_for_user(
    db: Session,
    user_id: int,
    status: Optional[str] = None,
    source: Optional[str] = None,
    search: Optional[str] = None,
    sort: str = "date_applied",
    descending: bool = True,
    skip: int = 0,
    limit: int = 100,
) -> Tuple[List[Application], int]:
    query = db.query(Application).filter(Application.user_id == user_id)
    if status:
        query = query.filter(Application.status == status)
    if source:
        query = query.filter(Application.source == source)
    term = normalize_key(search)
    if term:
        query = query.filter(or_(
            Application.company_key.contains(term, autoescape=True),
            Application.title_key.contains(term, autoescape=True),
        ))

    total = query.count()
    column = SORT_COLUMNS[sort]
    ordering = column.desc() if descending else column.asc()
    tiebreak = Application.id.desc() if descending else Application.id.asc()
    items = query.order_by(ordering, tiebreak).offset(skip).limit(limit).all()
    return items, total


def create_application_for_user(db: Session, application: schemas.ApplicationCreate, user_id: int) -> Application:
    existing = check_duplicate(db, user_id, application.company_name, application.job_title)
    if existing is not None:
        logger.info("Duplicate application rejected for user %s (existing application %s)", user_id, existing.id)
        raise DuplicateApplication(existing)

    data = _plain_values(application.model_dump())
    for field in BLANKABLE_FIELDS:
        data[field] = data[field] or ""
    if data["date_applied"] is None:
        data["date_applied"] = datetime.now(timezone.utc)

    db_application = Application(**data, user_id=user_id)
    db.add(db_application)
    commit_or_conflict(db, user_id, application.company_name, application.job_title)
    db.refresh(db_application)
    logger.info("Created application %s for user %s", db_application.id, user_id)
    return db_application


def update_application(
    db: Session,
    application_id: int,
    application_update: schemas.ApplicationUpdate,
    user_id: int,
) -> Application:
    db_application = get_application_by_id(db=db, application_id=application_id, user_id=user_id)

    update_data = _plain_values(application_update.model_dump(exclude_unset=True))
    for key, value in list(update_data.items()):
        if value is None:
            if key in BLANKABLE_FIELDS:
                update_data[key] = ""
            else:
                # Required columns cannot be cleared; treat null as "leave unchanged"
                del update_data[key]

    company_name = update_data.get("company_name", db_application.company_name)
    job_title = update_data.get("job_title", db_application.job_title)
    renamed = "company_name" in update_data or "job_title" in update_data
    if renamed:
        existing = check_duplicate(db, user_id, company_name, job_title, exclude_id=db_application.id)
        if existing is not None:
            raise DuplicateApplication(existing)

    for key, value in update_data.items():
        setattr(db_application, key, value)
    db_application.updated_at = datetime.now(timezone.utc)

    commit_or_conflict(db, user_id, company_name, job_title, exclude_id=db_application.id)
    db.refresh(db_application)
    return db_application


def delete_application(db: Session, application_id: int, user_id: int) -> schemas.Application:
    """Physically delete the record and return a snapshot of what was removed."""
    db_application = get_application_by_id(db=db, application_id=application_id, user_id=user_id)
    snapshot = schemas.Application.model_validate(db_application)
    db.delete(db_application)
    db.commit()
    logger.info("Deleted application %s for user %s", application_id, user_id)
    return snapshot


def get_application_stats(db: Session, user_id: int) -> Dict[str, int]:
    """Counts per status; ``total`` leaves out ignored postings."""
    rows = db.query(Application.status, func.count(Application.id)).filter(
        Application.user_id == user_id
    ).group_by(Application.status).all()
    counts = {status.value.lower(): 0 for status in schemas.ApplicationStatus}
    for status, count in rows:
        counts[status.lower()] = count
    counts["total"] = sum(count for key, count in counts.items() if key != "ignored")
    return counts
