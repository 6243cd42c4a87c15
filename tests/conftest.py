from pathlib import Path
from typing import Any, Callable, Dict, List

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from social_platform.api.server import create_app
from social_platform.config import Config
from social_platform.db import init_db


@pytest.fixture()
def cfg(tmp_path: Path) -> Config:
    """Config pointing at a fresh SQLite file; no CORS, no real SMTP."""
    return Config(
        DB_DSN=str(tmp_path / "social.sqlite"),
        AUTH_JWT_SECRET="test-secret",
        AUTH_COOKIE_SECURE=False,
        CORS_ALLOW_ORIGINS="",
        ADMIN_EMAIL=None,
        ADMIN_PASSWORD=None,
    )


@pytest.fixture()
def app(cfg: Config) -> FastAPI:
    init_db(cfg.DB_DSN)
    return create_app(cfg)


@pytest.fixture()
def make_client(app: FastAPI) -> Callable[[], TestClient]:
    """Each client keeps its own cookie jar, i.e. one browser per user."""

    def _make() -> TestClient:
        return TestClient(app)

    return _make


@pytest.fixture()
def client(make_client) -> TestClient:
    return make_client()


@pytest.fixture()
def signup() -> Callable[..., Dict[str, Any]]:
    def _signup(
        client: TestClient,
        username: str,
        *,
        email: str | None = None,
        password: str = "password123",
        name: str | None = None,
    ) -> Dict[str, Any]:
        r = client.post(
            "/api/users/signup",
            json={
                "name": name or username.title(),
                "username": username,
                "email": email or f"{username}@x.com",
                "password": password,
            },
        )
        assert r.status_code == 201, r.text
        return r.json()["user"]

    return _signup


@pytest.fixture()
def sent_mail(monkeypatch) -> List[Dict[str, Any]]:
    """Capture reset emails instead of talking to SMTP."""
    sent: List[Dict[str, Any]] = []

    def _fake_send(cfg, *, name: str, email: str, reset_token: str) -> bool:
        sent.append({"name": name, "email": email, "reset_token": reset_token})
        return True

    monkeypatch.setattr("social_platform.api.users.send_reset_password_email", _fake_send)
    return sent
