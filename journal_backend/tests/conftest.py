"""
Shared pytest fixtures for the journal test suite.

Uses FastAPI TestClient with an isolated temporary database per test so tests
never touch the real database, and replaces the mail, weather and chat
collaborators with in-memory fakes.
"""

import os

# Cheap bcrypt for tests; must be set before the models are imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from journal_backend.database import Base, get_db
from journal_backend.main import app
from journal_backend.models import User, JournalEntry  # noqa: F401
from journal_backend.services.chat import get_chat_model
from journal_backend.services.notifier import get_notifier
from journal_backend.services.user import register_admin
from journal_backend.services.weather import WeatherSnapshot, get_weather_provider


class FakeNotifier:
    """Records every send() instead of talking to SMTP."""

    def __init__(self):
        self.sent = []

    def send(self, to, subject, body):
        self.sent.append({"to": to, "subject": subject, "body": body})
        return True


class FakeWeatherProvider:
    async def current(self, city):
        return WeatherSnapshot(city=city, country="India", temperature=31, descriptions=["Sunny"])


class FakeChatModel:
    def __init__(self):
        self.prompts = []

    async def complete(self, prompt):
        self.prompts.append(prompt)
        return f"echo: {prompt}"


@pytest.fixture
def test_engine(tmp_path):
    """A fresh SQLite database file for each test."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'journal_test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(bind=test_engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    """Direct SQLAlchemy session for service-level tests."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def failing_commit(db, monkeypatch):
    """
    Call the returned function to make db.commit() flush and then fail, the way
    a commit rejected by the database does. monkeypatch.undo() restores it.
    """

    def arm():
        def commit():
            db.flush()
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        monkeypatch.setattr(db, "commit", commit)

    return arm


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def chat_model():
    return FakeChatModel()


@pytest.fixture
def client(session_factory, notifier, chat_model):
    """TestClient wired to the temporary database and the fake collaborators."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_weather_provider] = lambda: FakeWeatherProvider()
    app.dependency_overrides[get_chat_model] = lambda: chat_model
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """POST /api/users and return the created user's envelope data."""

    def _register(username, password, email=None):
        body = {"username": username, "password": password}
        if email:
            body["email"] = email
        r = client.post("/api/users", json=body)
        assert r.status_code == 201, r.text
        return r.json()["data"]

    return _register


@pytest.fixture
def login(client):
    """Log in and return an Authorization header carrying the bearer token."""

    def _login(username, password):
        r = client.post("/api/login", json={"username": username, "password": password})
        assert r.status_code == 200, r.text
        token = r.json()["data"]["access_token"]
        return {"Authorization": f"Bearer {token}"}

    return _login


@pytest.fixture
def alice(register, login):
    register("alice", "pw123")
    return login("alice", "pw123")


@pytest.fixture
def bob(register, login):
    register("bob", "hunter2")
    return login("bob", "hunter2")


@pytest.fixture
def admin(client, session_factory, login):
    """An ADMIN account created through the service layer, logged in."""
    db = session_factory()
    try:
        register_admin("root", "toor", db)
    finally:
        db.close()
    return login("root", "toor")
