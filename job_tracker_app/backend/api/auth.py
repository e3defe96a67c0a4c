import logging
import secrets
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from .. import schemas
from ..config.settings import Settings, get_app_settings
from ..errors import AuthFlowFailed
from ..models.db.database import get_db
from ..models.db.user import User
from ..security import (
    TokenService,
    clear_auth_cookie,
    get_current_user,
    get_token_service,
    resolve_credential,
    set_auth_cookie,
)
from ..services import auth_service
from ..services.oauth import GoogleOAuthClient, get_oauth_client

logger = logging.getLogger(__name__)

router = APIRouter()

OAUTH_STATE_KEY = "oauth_state"


def _login_redirect(settings: Settings, error: str) -> RedirectResponse:
    return RedirectResponse(
        f"{settings.client_url}/login?{urlencode({'error': error})}",
        status_code=302,
    )


@router.get("/google")
def google_login(request: Request, oauth: GoogleOAuthClient = Depends(get_oauth_client)):
    """
    Begin the Google sign-in flow. A random state value is kept in the
    session and must come back unchanged on the callback.
    """
    state = secrets.token_hex(32)
    request.session[OAUTH_STATE_KEY] = state
    return RedirectResponse(oauth.authorization_url(state), status_code=302)


@router.get("/google/callback")
def google_callback(
    request: Request,
    state: Optional[str] = None,
    code: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db),
    oauth: GoogleOAuthClient = Depends(get_oauth_client),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Complete the sign-in flow: verify state, exchange the code, issue the
    credential cookie and send the browser back to the dashboard.
    """
    # Single use: the stored state is discarded whatever the outcome
    stored_state = request.session.pop(OAUTH_STATE_KEY, None)
    if not state or not stored_state or not secrets.compare_digest(
        state.encode("utf-8"), stored_state.encode("utf-8")
    ):
        logger.warning("OAuth callback rejected: state mismatch")
        return _login_redirect(settings, "invalid_state")

    if error or not code:
        logger.info("OAuth callback without code (provider error: %s)", error)
        return _login_redirect(settings, "auth_failed")

    try:
        identity = oauth.exchange_code(code)
        user = auth_service.authenticate(db, identity)
    except AuthFlowFailed as e:
        logger.warning("OAuth sign-in failed: %s", e.message)
        return _login_redirect(settings, "auth_failed")

    issued = tokens.create_access_token(user.id)
    response = RedirectResponse(f"{settings.client_url}/auth-success", status_code=302)
    set_auth_cookie(response, issued, settings)
    logger.info("User %s signed in", user.id)
    return response


@router.get("/me", response_model=schemas.UserResponse)
def read_current_user(current_user: User = Depends(get_current_user)):
    return {"success": True, "data": current_user}


@router.get("/token", response_model=schemas.Token)
def read_bearer_token(
    request: Request,
    current_user: User = Depends(get_current_user),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Hand the session's credential to a non-cookie client (the browser
    extension), which sends it back as ``Authorization: Bearer``.
    """
    token = resolve_credential(request, settings)
    claims = tokens.decode(token)
    return {
        "token": token,
        "token_type": "bearer",
        "expires_at": datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
    }


@router.post("/logout", response_model=schemas.MessageResponse)
def logout(response: Response, settings: Settings = Depends(get_app_settings)):
    """
    Clear the credential cookie. Issued tokens are not revoked server-side
    and stay valid until they expire.
    """
    clear_auth_cookie(response, settings)
    return {"success": True, "message": "Logged out successfully"}
