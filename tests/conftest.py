import os

import pytest

os.environ["DATABASE_URL"] = "sqlite://"  # in-memory database for tests
os.environ["JWT_SECRET"] = "test-secret"
os.environ["REMINDERS_ENABLED"] = "false"

from fastapi.testclient import TestClient

from membox.auth import hash_password
from membox.config import Settings
from membox.main import create_app
from membox.models import User

TEST_PASSWORD = "testpassword"


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", jwt_secret="test-secret", allow_open_registration=True)


@pytest.fixture
def app(settings):
    """Fresh application with its own in-memory database."""
    application = create_app(settings)
    db = application.state.session_factory()
    db.add(User(username="admin", password_hash=hash_password(TEST_PASSWORD), role="admin"))
    db.add(User(username="clerk", password_hash=hash_password(TEST_PASSWORD), role="staff"))
    db.commit()
    db.close()
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def session(app):
    db = app.state.session_factory()
    yield db
    db.close()


def _login(client, username):
    r = client.post("/auth/login", data={"username": username, "password": TEST_PASSWORD})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    return _login(client, "admin")


@pytest.fixture
def staff_headers(client):
    return _login(client, "clerk")
