import uuid

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app

TEST_SECRET = "test-secret-not-for-production"


@pytest.fixture()
def settings():
    # Eigene In-Memory-DB pro Test, schnelles bcrypt
    return Settings(
        jwt_secret=TEST_SECRET,
        database_url="sqlite://",
        bcrypt_rounds=4,
        log_level="WARNING",
    )


@pytest.fixture()
def client(settings):
    # Create a test client with a trusted host (Host header matching TrustedHostMiddleware)
    app = create_app(settings)
    with TestClient(app, base_url="http://localhost:8000") as c:
        yield c


@pytest.fixture()
def signup(client):
    """Factory: registers a user and returns (token, user, headers)."""

    def _signup(name="Tester", email=None, password="testpassword123"):
        email = email or f"test_{uuid.uuid4().hex[:8]}@example.com"
        res = client.post("/auth/signup", json={"name": name, "email": email, "password": password})
        assert res.status_code == 201, res.text
        body = res.json()
        return body["token"], body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _signup


@pytest.fixture()
def db(client):
    """Session on the same in-memory database the app uses."""
    session = client.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()
