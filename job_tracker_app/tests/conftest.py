"""
Pytest configuration and shared fixtures for the Job Tracker tests.
"""
import os
import sys
from itertools import count

import pytest
from fastapi.testclient import TestClient

# Import application components
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from backend.config.settings import Settings
from backend.errors import AuthFlowFailed
from backend.main import create_app
from backend.models.db import crud
from backend.services.oauth import IdentityAssertion


TEST_SECRET_KEY = "test-secret-key-for-jwt-tokens-12345678901234567890"


class FakeOAuthClient:
    """Stands in for Google: any code listed in ``identities`` signs that identity in."""

    def __init__(self):
        self.identities = {}
        self.exchanged_codes = []

    def authorization_url(self, state: str) -> str:
        return f"https://accounts.example.test/auth?state={state}"

    def exchange_code(self, code: str) -> IdentityAssertion:
        self.exchanged_codes.append(code)
        if code not in self.identities:
            raise AuthFlowFailed("Unknown authorization code")
        return self.identities[code]


# Settings / App Fixtures
@pytest.fixture
def test_settings():
    """Settings for an isolated in-memory app."""
    return Settings(
        _env_file=None,
        environment="testing",
        testing=True,
        secret_key=TEST_SECRET_KEY,
        session_secret_key="test-session-secret-1234567890abcdef",
        log_level="DEBUG",
        client_url="http://dashboard.test",
        google_client_id="test-client-id",
        google_client_secret="test-client-secret",
    )


@pytest.fixture
def fake_oauth():
    return FakeOAuthClient()


@pytest.fixture
def test_app(test_settings, fake_oauth):
    app = create_app(test_settings)
    app.state.oauth_client = fake_oauth
    return app


@pytest.fixture
def test_client(test_app):
    """Test client with the lifespan running, so tables exist."""
    with TestClient(test_app) as client:
        yield client


@pytest.fixture
def test_db_session(test_client, test_app):
    """A session on the same in-memory database the app uses."""
    session = test_app.state.session_factory()
    yield session
    session.close()


# User Fixtures
@pytest.fixture
def make_user(test_db_session):
    """Factory creating users directly through the CRUD layer."""
    sequence = count(1)

    def _make_user(email=None, name="Test User", google_id=None):
        n = next(sequence)
        identity = IdentityAssertion(
            provider_id=google_id or f"google-{n}",
            email=email or f"user{n}@example.com",
            name=name,
        )
        return crud.create_user(test_db_session, identity)

    return _make_user


@pytest.fixture
def test_user(make_user):
    return make_user(email="test@example.com", name="Test User")


@pytest.fixture
def token_for(test_app):
    def _token_for(user):
        return test_app.state.token_service.create_access_token(user.id).token

    return _token_for


@pytest.fixture
def auth_headers(test_user, token_for):
    """Bearer headers for ``test_user``."""
    return {"Authorization": f"Bearer {token_for(test_user)}"}


# Application Data Fixtures
@pytest.fixture
def sample_application():
    return {
        "company_name": "Tech Innovations Inc",
        "job_title": "Senior Python Developer",
        "location": "Remote",
        "url": "https://example.com/job/123",
        "date_applied": "2024-01-15T10:00:00Z",
        "source": "LinkedIn",
        "status": "Applied",
        "notes": "Applied through company website",
    }


@pytest.fixture
def create_application(test_client, auth_headers):
    """POST an application for ``test_user`` and return the stored record."""

    def _create(headers=None, **fields):
        payload = {"company_name": "Acme Corp", "job_title": "Backend Engineer"}
        payload.update(fields)
        response = test_client.post("/api/applications", json=payload, headers=headers or auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
