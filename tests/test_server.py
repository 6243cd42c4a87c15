import dataclasses

from fastapi.testclient import TestClient

from social_platform.api.server import create_app


def _boom(*args, **kwargs):
    raise RuntimeError("boom")


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_internal_error_message_is_exposed_when_enabled(app, cfg, monkeypatch):
    monkeypatch.setattr("social_platform.api.posts.list_posts", _boom)
    loud = create_app(dataclasses.replace(cfg, EXPOSE_INTERNAL_ERRORS=True))
    c = TestClient(loud, raise_server_exceptions=False)

    r = c.get("/api/posts")
    assert r.status_code == 500
    assert r.json() == {"detail": "internal_error", "message": "boom"}


def test_internal_error_message_is_hidden_when_disabled(app, cfg, monkeypatch):
    monkeypatch.setattr("social_platform.api.posts.list_posts", _boom)
    quiet = create_app(dataclasses.replace(cfg, EXPOSE_INTERNAL_ERRORS=False))
    c = TestClient(quiet, raise_server_exceptions=False)

    r = c.get("/api/posts")
    assert r.status_code == 500
    assert r.json() == {"detail": "internal_error"}
