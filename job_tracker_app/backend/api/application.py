from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from .. import schemas
from ..config.settings import Settings, get_app_settings
from ..models.db.database import get_db
from ..models.db.user import User
from ..security import get_current_user
from ..services import application_tracker as application_service
from ..services.export import applications_to_csv

router = APIRouter(
    responses={
        400: {"model": schemas.ErrorResponse},
        401: {"model": schemas.ErrorResponse},
        404: {"model": schemas.ErrorResponse},
    }
)

SortField = Literal["date_applied", "company_name", "job_title", "status", "created_at"]


@router.get("", response_model=schemas.ApplicationList)
def read_applications(
    status_filter: Optional[schemas.ApplicationStatus] = Query(None, alias="status"),
    source: Optional[schemas.ApplicationSource] = None,
    search: Optional[str] = Query(None, max_length=200),
    sort: SortField = "date_applied",
    order: Literal["asc", "desc"] = "desc",
    skip: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
):
    """
    Retrieve the current user's job applications, newest application date first by default.
    """
    page_size = min(limit or settings.default_page_size, settings.max_page_size)
    applications, total = application_service.get_applications_for_user(
        db,
        user_id=current_user.id,
        status=status_filter.value if status_filter else None,
        source=source.value if source else None,
        search=search,
        sort=sort,
        descending=order == "desc",
        skip=skip,
        limit=page_size,
    )
    return {"success": True, "count": len(applications), "total": total, "data": applications}


@router.get("/stats", response_model=schemas.ApplicationStatsResponse)
def read_application_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Per-status counts for the dashboard summary cards."""
    return {"success": True, "data": application_service.get_application_stats(db, user_id=current_user.id)}


@router.get("/export", response_class=Response)
def export_applications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Download every tracked application as a flat CSV file."""
    applications, _ = application_service.get_applications_for_user(
        db, user_id=current_user.id, limit=None
    )
    return Response(
        content=applications_to_csv(applications),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="job-applications.csv"'},
    )


@router.post(
    "",
    response_model=schemas.ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": schemas.ErrorResponse}},
)
def create_application(
    application: schemas.ApplicationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Create a new job application entry for the current user.
    Answers 409 with the existing record when company + title is already tracked.
    """
    db_application = application_service.create_application_for_user(
        db=db, application=application, user_id=current_user.id
    )
    return {"success": True, "data": db_application}


@router.get("/{application_id}", response_model=schemas.ApplicationResponse)
def read_application(
    application_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    db_application = application_service.get_application_by_id(
        db, application_id=application_id, user_id=current_user.id
    )
    return {"success": True, "data": db_application}


@router.put("/{application_id}", response_model=schemas.ApplicationResponse)
def update_application(
    application_id: int,
    application: schemas.ApplicationUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Partially update a job application (status-only updates are the common case).
    """
    db_application = application_service.update_application(
        db, application_id=application_id, application_update=application, user_id=current_user.id
    )
    return {"success": True, "data": db_application}


@router.delete("/{application_id}", response_model=schemas.ApplicationResponse)
def delete_application(
    application_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    deleted = application_service.delete_application(
        db, application_id=application_id, user_id=current_user.id
    )
    return {"success": True, "data": deleted}
