"""
Google OAuth 2.0 client: builds the consent redirect and exchanges the
callback code for the signed-in user's identity.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import requests
from fastapi import Request

from ..errors import AuthFlowFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityAssertion:
    provider_id: str
    email: str
    name: str
    picture: Optional[str] = None


class GoogleOAuthClient:
    scope = "openid email profile"

    def __init__(self, settings):
        self.client_id = settings.google_client_id
        self.client_secret = settings.google_client_secret
        self.redirect_uri = settings.google_redirect_uri
        self.auth_url = settings.google_auth_url
        self.token_url = settings.google_token_url
        self.userinfo_url = settings.google_userinfo_url
        self.timeout = settings.oauth_timeout_seconds

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id or "",
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.scope,
            "state": state,
            "prompt": "select_account",
        }
        return f"{self.auth_url}?{urlencode(params)}"

    def exchange_code(self, code: str) -> IdentityAssertion:
        """Trade an authorization code for the user's profile."""
        try:
            token_response = requests.post(
                self.token_url,
                data={
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": self.redirect_uri,
                    "grant_type": "authorization_code",
                },
                timeout=self.timeout,
            )
            token_response.raise_for_status()
            access_token = token_response.json()["access_token"]

            profile_response = requests.get(
                self.userinfo_url,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self.timeout,
            )
            profile_response.raise_for_status()
            profile = profile_response.json()
        except (requests.RequestException, KeyError, ValueError) as e:
            logger.error("Google OAuth exchange failed: %s", e)
            raise AuthFlowFailed("Could not complete sign-in with Google") from e

        if not profile.get("sub") or not profile.get("email"):
            logger.error("Google profile response missing sub/email")
            raise AuthFlowFailed("Google did not return a usable identity")

        return IdentityAssertion(
            provider_id=str(profile["sub"]),
            email=profile["email"],
            name=profile.get("name") or profile["email"],
            picture=profile.get("picture"),
        )


def get_oauth_client(request: Request) -> GoogleOAuthClient:
    return request.app.state.oauth_client
