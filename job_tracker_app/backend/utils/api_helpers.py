"""
Common API utilities: the response envelope and the exception handlers that
convert every failure into ``{"success": false, "error": ...}``.
"""
import logging
from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import schemas
from ..errors import AppError, DuplicateApplication, NotFound, Unauthenticated, ValidationFailed

logger = logging.getLogger(__name__)

# Location prefixes FastAPI adds in front of the offending field name
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


def error_response(status_code: int, message: str, headers=None, **extra: Any) -> JSONResponse:
    payload: Dict[str, Any] = {"success": False, "error": message}
    payload.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload), headers=headers)


def validation_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    """Flatten FastAPI's validation errors into ``[{field, message}]``."""
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in _LOCATION_PREFIXES]
        errors.append({
            "field": ".".join(location) or "body",
            "message": error.get("msg", "Invalid value"),
        })
    return errors


def register_exception_handlers(app: FastAPI, settings) -> None:
    """Install the handlers that keep every error response in the same envelope."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        extra = dict(exc.extra)
        headers = None
        if isinstance(exc, DuplicateApplication) and exc.existing is not None:
            extra["existingApplication"] = schemas.Application.model_validate(exc.existing).model_dump()
        if isinstance(exc, Unauthenticated):
            headers = {"WWW-Authenticate": "Bearer"}
        return error_response(exc.status_code, exc.message, headers=headers, **extra)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        # A malformed path segment (e.g. /api/applications/abc) names no resource
        if any(tuple(error.get("loc", ()))[:1] == ("path",) for error in exc.errors()):
            return await handle_app_error(request, NotFound("Not Found"))
        return await handle_app_error(request, ValidationFailed(validation_errors(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        message = "Internal server error" if settings.is_production() else f"{type(exc).__name__}: {exc}"
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)
