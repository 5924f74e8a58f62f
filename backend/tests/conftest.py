import os
import pytest

os.environ["FLASK_ENV"] = "testing"

from league import create_app
from league.events import event_bus
from league.extensions import db as _db
from league.models.user import User


@pytest.fixture(scope="session")
def app():
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def tables(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(autouse=True)
def _clean_bus():
    """Ensure global event_bus is clean before/after each test."""
    event_bus.clear()
    yield
    event_bus.clear()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_user(app):
    user = User(email="admin@league.test", name="Test Admin")
    user.set_password("Admin@2026")
    _db.session.add(user)
    _db.session.commit()
    return user


@pytest.fixture
def auth_headers(client, admin_user):
    resp = client.post(
        "/api/auth/login",
        json={"email": "admin@league.test", "password": "Admin@2026"},
    )
    token = resp.get_json()["access_token"]
    return {"Authorization": f"Bearer {token}"}
