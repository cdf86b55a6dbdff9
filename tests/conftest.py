"""
Shared fixtures: an in-memory SQLite database built from the ORM models and
a fresh in-memory session store per test. Environment is set before any
application module is imported.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["SESSION_BACKEND"] = "memory"
os.environ["BCRYPT_ROUNDS"] = "4"

import datetime as dt

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from dependencies import get_password_hash, get_session_store
from main import app
from models import Event, User
from session_store import InMemorySessionStore


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store():
    return InMemorySessionStore(ttl=3600)


@pytest.fixture
def client(db, store):
    app.dependency_overrides[get_session_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(email, password, role="editor", active=True, hashed=True):
        user = User(
            email=email,
            password=get_password_hash(password) if hashed else password,
            role=role,
            active=active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_event(db):
    def _make_event(date="2024-01-01", time="09:00", title="Launch", **fields):
        event = Event(
            date=dt.date.fromisoformat(date),
            time=dt.time.fromisoformat(time),
            title=title,
            **fields,
        )
        db.add(event)
        db.commit()
        db.refresh(event)
        return event
    return _make_event


@pytest.fixture
def login(client):
    def _login(email, password):
        return client.post("/api/login", json={"email": email, "password": password})
    return _login


@pytest.fixture
def editor(make_user):
    return make_user("editor@example.com", "editor-pass", role="editor")


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", "admin-pass", role="admin")


@pytest.fixture
def editor_client(client, editor, login):
    assert login("editor@example.com", "editor-pass").status_code == 200
    return client


@pytest.fixture
def admin_client(client, admin, login):
    assert login("admin@example.com", "admin-pass").status_code == 200
    return client
