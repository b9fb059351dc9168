"""
Shared fixtures: an in-memory SQLite farm database and a Flask test client.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from farm_portal.api.app import create_app
from farm_portal.api.auth import sessions
from farm_portal.database import create_schema
from farm_portal.rbac import provision_identity

PASSWORD = "correct horse battery"


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    create_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def app(engine):
    sessions.clear()
    application = create_app(engine)
    application.config["TESTING"] = True
    yield application
    sessions.clear()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def users(engine):
    """One provisioned account per role, keyed by role."""
    return {
        role: provision_identity(engine, f"{role}@farm.test", role.title(), role, PASSWORD)
        for role in ("administrator", "farm", "customer")
    }


@pytest.fixture
def login(client, users):
    """Return a callable that signs in as *role* and gives back auth headers."""
    def _login(role):
        resp = client.post("/api/auth/login", json={"email": f"{role}@farm.test", "password": PASSWORD})
        assert resp.status_code == 200, resp.get_json()
        return {"Authorization": f"Bearer {resp.get_json()['token']}"}
    return _login
