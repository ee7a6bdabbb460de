"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import re
import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from mail import MemoryTransport  # noqa: E402
from models import db  # noqa: E402

CODE_RE = re.compile(r"verification code is (\d{6})")


class _BaseTestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key-with-enough-bytes-for-hs256"
    JWT_SECRET_KEY = SECRET_KEY
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    RATE_LIMIT = "1000 per minute"
    MAIL_TRANSPORT = "memory"
    MAIL_TIMEOUT = 2
    AI_PROVIDER = "local"


@pytest.fixture()
def outbox() -> MemoryTransport:
    """Mail transport that keeps sent messages for inspection."""

    return MemoryTransport()


@pytest.fixture()
def app(outbox: MemoryTransport) -> Flask:
    """Create a Flask application instance for tests."""

    application = create_app(_BaseTestConfig, mail_transport=outbox)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()
    application.extensions["uninest.mailer"].shutdown()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def app_ctx(app: Flask):
    """Run the test body inside an application context."""

    with app.app_context():
        yield app


@pytest.fixture()
def auth_service(app_ctx):
    return app_ctx.extensions["uninest.auth"]


@pytest.fixture()
def emailed_code(outbox: MemoryTransport):
    """Return a function that extracts the latest code sent to an address."""

    def _code_for(email: str) -> str:
        message = outbox.last_to(email)
        assert message is not None, f"no email sent to {email}"
        match = CODE_RE.search(message.body)
        assert match is not None
        return match.group(1)

    return _code_for
