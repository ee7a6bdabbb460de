"""Tests for the Flask application factory and cross-cutting behaviour."""
from __future__ import annotations

from pathlib import Path

from flask import Flask

import app as app_module
from app import create_app
from mail import ConsoleTransport, MemoryTransport
from services.matching import RandomCompatibilityScorer, RuleBasedSearchParser

from conftest import _BaseTestConfig


def _build_app(**overrides) -> Flask:
    class TestConfig(_BaseTestConfig):
        pass

    for key, value in overrides.items():
        setattr(TestConfig, key, value)

    return create_app(TestConfig)


def test_health_endpoint_returns_ok(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_blueprints_registered(app):
    assert {"auth", "listings", "search"}.issubset(set(app.blueprints.keys()))


def test_collaborators_built_from_config():
    app = _build_app(MAIL_TRANSPORT="console")

    assert isinstance(app.extensions["uninest.mailer"].transport, ConsoleTransport)
    assert isinstance(app.extensions["uninest.search_parser"], RuleBasedSearchParser)
    assert isinstance(app.extensions["uninest.scorer"], RandomCompatibilityScorer)


def test_mailer_is_shut_down_at_exit(monkeypatch):
    registered = []
    monkeypatch.setattr(app_module.atexit, "register", registered.append)

    app = _build_app()

    assert registered == [app.extensions["uninest.mailer"].shutdown]


def test_injected_transport_wins(app, outbox):
    assert app.extensions["uninest.mailer"].transport is outbox
    assert isinstance(outbox, MemoryTransport)


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers.get("X-Request-ID") == "req-123"


def test_cors_allows_configured_origin():
    app = _build_app(CORS_ORIGINS=["https://client.example"])
    client = app.test_client()

    response = client.get("/health", headers={"Origin": "https://client.example"})

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == "https://client.example"
    assert response.headers.get("X-Request-ID")


def test_rate_limit_exceeded_returns_json():
    app = _build_app(RATE_LIMIT="2 per minute")
    client = app.test_client()

    client.get("/health")
    client.get("/health")
    response = client.get("/health")

    assert response.status_code == 429
    payload = response.get_json()
    assert payload["error"] == "Too Many Requests"
    assert "request_id" in payload


def test_json_error_shape_for_invalid_request(client):
    response = client.post(
        "/api/auth/signup",
        data="not-json",
        content_type="text/plain",
    )

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["error"] == "ValidationError"
    assert "Request content type" in payload["message"]
    assert payload["request_id"]


def test_unknown_route_uses_json_errors(client):
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.get_json()["error"] == "Not Found"


def test_unexpected_errors_are_hidden(app, client, monkeypatch):
    def _explode(*args, **kwargs):
        raise RuntimeError("database password is hunter2")

    monkeypatch.setattr(app.extensions["uninest.auth"], "login", _explode)

    response = client.post(
        "/api/auth/login", json={"email": "ana@uni.edu", "password": "secret1"}
    )

    assert response.status_code == 500
    payload = response.get_json()
    assert payload["error"] == "InternalError"
    assert "hunter2" not in payload["message"]


def test_migration_creates_accounts_table():
    versions = Path(__file__).resolve().parent.parent / "migrations" / "versions"
    sources = [p.read_text() for p in versions.glob("*.py")]

    assert any('"accounts"' in source and '"otp_expires_at"' in source for source in sources)
