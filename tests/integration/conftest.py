"""Common fixtures for integration tests."""

import pytest
from fastapi.testclient import TestClient

from authgate.config import Settings
from authgate.main import create_app

SIGNUP_PAYLOAD = {"username": "ann", "email": "a@x.com", "password": "longenough1"}


@pytest.fixture
def app_settings(tmp_path):
    """Settings pointing at a throwaway SQLite database."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'api.sqlite'}",
        jwt_access_secret="integration-access-secret",
        jwt_refresh_secret="integration-refresh-secret",
        app_url="http://localhost:3000",
        google_client_id="client-id",
        google_client_secret="client-secret",
        log_file=None,
        log_format="text",
    )


@pytest.fixture
def client(app_settings):
    """Test client running the full application lifespan."""
    app = create_app(app_settings)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def signed_up(client):
    """Sign up the default user; the refresh cookie stays in the client jar."""
    response = client.post("/api/v1/auth/signup", json=SIGNUP_PAYLOAD)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def auth_headers(signed_up):
    """Authorization headers carrying the sign-up access token."""
    return {"Authorization": f"Bearer {signed_up['accessToken']}"}
