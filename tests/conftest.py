import os
from contextlib import ExitStack
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# Configure the environment before the application module is imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from reminder_hub.config import Settings  # noqa: E402
from reminder_hub.database import Database  # noqa: E402
from reminder_hub.main import create_app  # noqa: E402

TEST_SECRET = "test-secret-key"


@pytest.fixture()
def make_settings():
    """Build settings for an isolated in-memory application."""

    def _make(**overrides) -> Settings:
        values = {
            "database_url": "sqlite://",
            "jwt_secret": TEST_SECRET,
            "bcrypt_rounds": 4,
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture()
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture()
def make_client(make_settings):
    """Factory for clients bound to a fresh app; startup hooks create the schema."""
    with ExitStack() as stack:

        def _make(**overrides) -> TestClient:
            app = create_app(make_settings(**overrides))
            return stack.enter_context(TestClient(app))

        yield _make


@pytest.fixture()
def client(make_client) -> Generator[TestClient, None, None]:
    yield make_client()


@pytest.fixture()
def db_session(client):
    db = client.app.state.db.session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def register(client):
    """Register a user over HTTP and return ``(auth_headers, user_json)``."""

    def _register(username: str = "alice", password: str = "secret1", on=None):
        target = on or client
        resp = target.post(
            "/api/auth/register",
            json={"username": username, "password": password},
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["user"]

    return _register


@pytest.fixture()
def auth_headers(register):
    headers, _ = register()
    return headers


@pytest.fixture()
def group_factory(client, auth_headers):
    def _create_group(name: str = "Chores", headers=None) -> dict:
        resp = client.post("/api/groups", json={"name": name}, headers=headers or auth_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create_group


@pytest.fixture()
def reminder_factory(client, auth_headers):
    def _create_reminder(group_id: int, title: str = "Trash", headers=None, **fields) -> dict:
        payload = {"title": title}
        payload.update(fields)
        resp = client.post(
            f"/api/groups/{group_id}/reminders",
            json=payload,
            headers=headers or auth_headers,
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create_reminder


@pytest.fixture()
def store(tmp_path) -> Generator[Database, None, None]:
    """File-backed SQLite store for tests that need real concurrent connections."""
    database = Database.from_url(f"sqlite:///{tmp_path / 'reminders.db'}")
    database.create_schema()
    try:
        yield database
    finally:
        database.dispose()
