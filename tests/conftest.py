"""
Shared fixtures.

The application reads its settings at import time, so the environment is
set up here before anything from ``backend/`` is imported.  Every test runs
against a fresh in-memory SQLite database shared by the app and the test
through a single StaticPool connection.
"""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "testing"
os.environ["SECRET_KEY"] = "test-secret-key-0123456789abcdef0123456789abcdef"
os.environ["APP_BASE_URL"] = "http://testserver"
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="crowlee-log-"))

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from core import clock  # noqa: E402
from core.security import SESSION_COOKIE, create_access_token, hash_password  # noqa: E402
from database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from main import app  # noqa: E402
from models.user import User  # noqa: E402

PASSWORD = "Secret123"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Hashing at 600k rounds is slow; every fixture user shares one hash.
_PASSWORD_HASH = hash_password(PASSWORD)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _override_get_db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def client():
    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def freeze(monkeypatch):
    """Pin ``clock.utcnow`` to the given instant; call again to move it."""

    def _freeze(moment: datetime) -> datetime:
        monkeypatch.setattr(clock, "utcnow", lambda: moment)
        return moment

    return _freeze


@pytest.fixture
def make_user():
    counter = {"n": 0}

    def _make(role: str = "worker", email: str = None, name: str = None) -> User:
        counter["n"] += 1
        session = TestingSession()
        user = User(
            name=name or f"{role.capitalize()} {counter['n']}",
            email=email or f"{role}{counter['n']}@example.com",
            password_hash=_PASSWORD_HASH,
            role=role,
            phone="+34 600 000 000",
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        session.close()
        return user

    return _make


def login_as(client: TestClient, user: User) -> TestClient:
    """
    Put a session cookie for *user* into the client's jar.  The token is
    long-lived so it stays valid whatever instant the test pins the clock to.
    """
    token = create_access_token(user.id, user.email, user.role, expires_delta=timedelta(days=3650))
    client.cookies.clear()
    client.cookies.set(SESSION_COOKIE, token)
    return client


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def worker(make_user):
    return make_user("worker")


@pytest.fixture
def customer(make_user):
    return make_user("client")


def location(lat: float = 40.4168, lng: float = -3.7038, accuracy: float = 12.5) -> dict:
    return {
        "latitude": lat,
        "longitude": lng,
        "timestamp": "2025-03-03T09:00:00Z",
        "accuracy": accuracy,
    }
