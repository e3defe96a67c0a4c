"""
Centralized configuration management for the Job Tracker backend.
All environment variables and configuration settings are managed here.

The settings object is built once at the process entry point and handed to
``create_app``; components receive it explicitly rather than importing a
module-level instance.
"""
import secrets
from typing import Optional, List
from functools import lru_cache

from fastapi import Request
from pydantic import field_validator
from pydantic_settings import BaseSettings


VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_SAMESITE_POLICIES = ["lax", "strict", "none"]


class Settings(BaseSettings):
    """Application settings with validation and type hints."""

    # =============================================================================
    # APPLICATION SETTINGS
    # =============================================================================
    app_name: str = "Job Tracker"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    testing: bool = False

    # =============================================================================
    # SECURITY SETTINGS
    # =============================================================================
    secret_key: str = secrets.token_urlsafe(32)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 7 * 24 * 60  # 7 days

    # Signs the short-lived session that carries the OAuth state value
    session_secret_key: str = secrets.token_urlsafe(32)
    session_max_age_seconds: int = 10 * 60

    # =============================================================================
    # COOKIE SETTINGS
    # =============================================================================
    auth_cookie_name: str = "auth_token"
    # "lax" when dashboard and API share a site, "none" for cross-site deployments
    cookie_samesite: str = "lax"
    cookie_domain: Optional[str] = None

    # =============================================================================
    # EXTERNAL IDENTITY PROVIDER (Google OAuth)
    # =============================================================================
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    google_redirect_uri: str = "http://localhost:8000/api/auth/google/callback"
    google_auth_url: str = "https://accounts.google.com/o/oauth2/v2/auth"
    google_token_url: str = "https://oauth2.googleapis.com/token"
    google_userinfo_url: str = "https://openidconnect.googleapis.com/v1/userinfo"
    oauth_timeout_seconds: int = 10

    # Dashboard origin used for post-login redirects
    client_url: str = "http://localhost:3000"

    # =============================================================================
    # DATABASE SETTINGS
    # =============================================================================
    database_url: str = "sqlite:///./job_tracker.db"
    database_echo: bool = False

    # =============================================================================
    # LOGGING SETTINGS
    # =============================================================================
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # =============================================================================
    # API SETTINGS
    # =============================================================================
    api_docs_enabled: bool = True
    cors_enabled: bool = True
    cors_origins: List[str] = ["http://localhost:3000"]
    default_page_size: int = 100
    max_page_size: int = 500

    # =============================================================================
    # CONFIGURATION LOADING
    # =============================================================================
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("cookie_samesite")
    @classmethod
    def normalize_samesite(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper()

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"

    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.testing or self.environment.lower() == "testing"

    def get_database_url(self) -> str:
        """Get database URL with appropriate settings for environment."""
        if self.is_testing():
            return "sqlite:///:memory:"
        return self.database_url

    def cookie_secure(self) -> bool:
        """Browsers drop SameSite=None cookies that are not marked Secure."""
        return self.is_production() or self.cookie_samesite == "none"

    def validate_required_settings(self) -> List[str]:
        """Validate that all required settings are properly configured."""
        missing = []

        if self.is_production():
            if not self.secret_key or len(self.secret_key) < 32:
                missing.append("SECRET_KEY must be at least 32 characters in production")

            if not self.google_client_id or not self.google_client_secret:
                missing.append("GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET are required in production")

            if self.debug:
                missing.append("DEBUG must be False in production")

        if self.log_level not in VALID_LOG_LEVELS:
            missing.append(f"Invalid LOG_LEVEL: {self.log_level}")

        if self.cookie_samesite not in VALID_SAMESITE_POLICIES:
            missing.append(f"Invalid COOKIE_SAMESITE: {self.cookie_samesite}")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).
    Only the process entry point calls this; everything else receives the
    object that was passed to ``create_app``.
    """
    return Settings()


def get_app_settings(request: Request) -> Settings:
    """FastAPI dependency returning the settings the running app was built with."""
    return request.app.state.settings
