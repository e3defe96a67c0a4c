"""
Credential issuing and validation.

A credential is a signed, expiring JWT whose ``sub`` claim is the user id.
It reaches the API either as the http-only ``auth_token`` cookie (dashboard)
or as a bearer token (browser extension and other non-cookie clients).
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Sequence

from fastapi import Depends, Request, Response
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError
from sqlalchemy.orm import Session

from .config.settings import Settings, get_app_settings
from .errors import Unauthenticated
from .models.db import crud
from .models.db.database import get_db
from .models.db import user as user_model

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime


class TokenService:
    """Mints and verifies credentials with the app's secret and expiry."""

    def __init__(self, settings: Settings):
        self.secret_key = settings.secret_key
        self.algorithm = settings.algorithm
        self.expire_minutes = settings.access_token_expire_minutes

    def create_access_token(self, user_id: int, expires_delta: Optional[timedelta] = None) -> IssuedToken:
        issued_at = datetime.now(timezone.utc)
        expires_at = issued_at + (expires_delta if expires_delta is not None
                                  else timedelta(minutes=self.expire_minutes))
        claims = {"sub": str(user_id), "iat": issued_at, "exp": expires_at}
        token = jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        return IssuedToken(token=token, expires_at=expires_at)

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise Unauthenticated("Token expired")
        except JWTError:
            raise Unauthenticated("Token is not valid")

    def decode_user_id(self, token: str) -> int:
        claims = self.decode(token)
        try:
            return int(claims["sub"])
        except (KeyError, TypeError, ValueError):
            raise Unauthenticated("Invalid token payload")


# =============================================================================
# CREDENTIAL RESOLUTION
# =============================================================================

def _from_cookie(request: Request, settings: Settings) -> Optional[str]:
    return request.cookies.get(settings.auth_cookie_name)


def _from_authorization_header(request: Request, settings: Settings) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return value.strip() or None


# Order is part of the contract: cookie first, then bearer header
CREDENTIAL_SOURCES: Sequence[Callable[[Request, Settings], Optional[str]]] = (
    _from_cookie,
    _from_authorization_header,
)


def resolve_credential(request: Request, settings: Settings) -> Optional[str]:
    """Return the first credential present, without falling through on invalid ones."""
    for source in CREDENTIAL_SOURCES:
        value = source(request, settings)
        if value:
            return value
    return None


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_app_settings),
) -> user_model.User:
    token = resolve_credential(request, settings)
    if not token:
        raise Unauthenticated("No authentication token, access denied")

    user_id = tokens.decode_user_id(token)
    user = crud.get_user(db, user_id)
    if user is None:
        logger.warning("Valid token for unknown user id %s", user_id)
        raise Unauthenticated("User not found")
    return user


# =============================================================================
# COOKIE HELPERS
# =============================================================================

def set_auth_cookie(response: Response, issued: IssuedToken, settings: Settings) -> None:
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=issued.token,
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
        domain=settings.cookie_domain,
        secure=settings.cookie_secure(),
        httponly=True,
        samesite=settings.cookie_samesite,
    )


def clear_auth_cookie(response: Response, settings: Settings) -> None:
    # Attributes must match the ones the cookie was set with
    response.delete_cookie(
        key=settings.auth_cookie_name,
        path="/",
        domain=settings.cookie_domain,
        secure=settings.cookie_secure(),
        httponly=True,
        samesite=settings.cookie_samesite,
    )
