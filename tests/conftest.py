import os

# Must be set before musicshare.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from musicshare.db.base import Base
from musicshare.db.session import build_engine, get_db
import musicshare.db.models  # noqa: F401
from musicshare.db.models import User
from tests.support.fakes import InMemoryObjectStore


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store():
    return InMemoryObjectStore()


@pytest.fixture
def make_user(db_session):
    """Insert a user row directly, bypassing password hashing."""
    def _make(username="alice", email=None):
        user = User(username=username, email=email or f"{username}@example.com", password_hash="x")
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make


@pytest.fixture
def app(session_factory, store):
    from musicshare.api.dependencies import get_object_store
    from musicshare.main import app as application

    def _override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    application.dependency_overrides[get_db] = _override_get_db
    application.dependency_overrides[get_object_store] = lambda: store
    try:
        yield application
    finally:
        application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def register(client):
    """Register a user over HTTP; returns (user json, auth headers)."""
    def _register(username="alice", password="secret123"):
        r = client.post(
            "/api/v1/auth/register",
            json={"username": username, "email": f"{username}@example.com", "password": password},
        )
        assert r.status_code == 201, r.text
        body = r.json()
        return body["user"], {"Authorization": f"Bearer {body['access_token']}"}
    return _register
