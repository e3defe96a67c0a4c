"""
Health check and configuration status endpoints.
"""
import logging
from typing import Dict, Any

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config.settings import Settings, get_app_settings
from ..models.db.database import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health", summary="Health Check")
def health_check(settings: Settings = Depends(get_app_settings)) -> Dict[str, Any]:
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }


@router.get("/health/detailed", summary="Detailed Health Check")
def detailed_health_check(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> Dict[str, Any]:
    """
    Health check including store reachability and configuration problems.
    Never exposes secrets, only whether they are configured.
    """
    checks: Dict[str, Any] = {}
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = {"ok": True}
    except SQLAlchemyError as e:
        logger.error("Database health check failed: %s", e)
        checks["database"] = {"ok": False}

    config_issues = settings.validate_required_settings()
    checks["configuration"] = {"ok": not config_issues, "issues": config_issues}
    checks["oauth"] = {"ok": bool(settings.google_client_id and settings.google_client_secret)}

    healthy = checks["database"]["ok"] and checks["configuration"]["ok"]
    if not healthy:
        logger.warning("Health check degraded: %s", checks)

    return {
        "status": "healthy" if healthy else "degraded",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks,
        "cookie": {
            "samesite": settings.cookie_samesite,
            "secure": settings.cookie_secure(),
            "token_expiry_minutes": settings.access_token_expire_minutes,
        },
    }
