"""Tests for the Python session client and the auth state container."""

from __future__ import annotations

from urllib.parse import urlsplit

import pytest
import requests

from client import (
    ApiError,
    AuthState,
    AuthenticationError,
    FileTokenStore,
    MemoryTokenStore,
    SessionClient,
)
from models import db
from models.account import Account


class _FlaskResponse:
    def __init__(self, response):
        self.status_code = response.status_code
        self._data = response.get_json(silent=True)

    def json(self):
        if self._data is None:
            raise ValueError("no JSON body")
        return self._data


class _FlaskHttp:
    """Adapter giving the Flask test client the ``requests.Session.request`` shape."""

    def __init__(self, flask_client):
        self.flask_client = flask_client
        self.sent = []

    def request(self, method, url, json=None, headers=None, timeout=None):
        path = urlsplit(url).path
        self.sent.append((method, path, dict(headers or {})))
        return _FlaskResponse(
            self.flask_client.open(path, method=method, json=json, headers=headers or {})
        )


@pytest.fixture()
def http(client):
    return _FlaskHttp(client)


@pytest.fixture()
def store():
    return MemoryTokenStore()


@pytest.fixture()
def session_client(http, store):
    return SessionClient("http://uninest.test", store, http=http)


def _register_verified(session_client, emailed_code, email="ana@uni.edu"):
    session_client.signup("Ana", email, "secret1", "STUDENT")
    return session_client.verify_otp(email, emailed_code(email))


def test_signup_does_not_store_a_token(session_client, store):
    message = session_client.signup("Ana", "ana@uni.edu", "secret1", "STUDENT")

    assert message
    assert store.load() is None
    assert session_client.get_session() is None


def test_verify_stores_token_and_session_resolves(session_client, store, emailed_code, http):
    user = _register_verified(session_client, emailed_code)

    assert store.load()
    assert session_client.get_session() == user
    method, path, headers = http.sent[-1]
    assert (method, path) == ("GET", "/api/auth/me")
    assert headers["Authorization"] == f"Bearer {store.load()}"


def test_login_and_logout(session_client, store, emailed_code):
    _register_verified(session_client, emailed_code)
    session_client.logout()
    assert store.load() is None

    user = session_client.login("ana@uni.edu", "secret1")

    assert user["email"] == "ana@uni.edu"
    assert session_client.has_token()
    session_client.logout()
    assert session_client.get_session() is None


def test_errors_carry_status_and_message(session_client, emailed_code):
    _register_verified(session_client, emailed_code)

    with pytest.raises(ApiError) as conflict:
        session_client.signup("Ana", "ana@uni.edu", "secret1", "STUDENT")
    assert conflict.value.status == 409
    assert conflict.value.message == "User with this email already exists"

    with pytest.raises(AuthenticationError) as bad_login:
        session_client.login("ana@uni.edu", "wrongpass")
    assert bad_login.value.status == 401
    assert bad_login.value.message == "Invalid email or password"


def test_unverified_login_is_403(session_client):
    session_client.signup("Ana", "ana@uni.edu", "secret1", "STUDENT")

    with pytest.raises(ApiError) as excinfo:
        session_client.login("ana@uni.edu", "secret1")

    assert excinfo.value.status == 403
    assert not isinstance(excinfo.value, AuthenticationError)


def test_invalid_token_is_cleared(session_client, store):
    store.save("stale.token.value")

    with pytest.raises(AuthenticationError):
        session_client.get_session()

    assert store.load() is None


def test_unreachable_server():
    class _DownHttp:
        def request(self, *args, **kwargs):
            raise requests.ConnectionError("refused")

    offline = SessionClient("http://uninest.test", MemoryTokenStore("t"), http=_DownHttp())

    with pytest.raises(ApiError) as excinfo:
        offline.get_session()
    assert excinfo.value.status == 0


def test_file_token_store_survives_restart(tmp_path, http, emailed_code):
    path = tmp_path / "session.json"
    first = SessionClient("http://uninest.test", FileTokenStore(path), http=http)
    user = _register_verified(first, emailed_code)

    restarted = SessionClient("http://uninest.test", FileTokenStore(path), http=http)

    assert restarted.get_session() == user
    restarted.logout()
    assert FileTokenStore(path).load() is None


def test_file_token_store_tolerates_corruption(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json")

    store = FileTokenStore(path)

    assert store.load() is None
    store.save("abc")
    assert store.load() == "abc"


def test_auth_state_restores_and_tracks_user(session_client, emailed_code):
    user = _register_verified(session_client, emailed_code)
    state = AuthState(session_client)
    seen = []
    state.subscribe(lambda s: seen.append((s.is_loading, s.user)))

    assert state.restore() == user

    assert state.user == user
    assert state.is_authenticated
    assert state.is_loading is False
    assert seen[0] == (True, None)
    assert seen[-1] == (False, user)

    state.logout()
    assert state.user is None
    assert session_client.get_session() is None


def test_auth_state_signup_then_verify(session_client, emailed_code):
    state = AuthState(session_client)

    state.signup("Ana", "ana@uni.edu", "secret1", "STUDENT")
    assert state.user is None
    assert state.pending_email == "ana@uni.edu"

    user = state.verify_otp("ana@uni.edu", emailed_code("ana@uni.edu"))
    assert state.user == user
    assert state.pending_email is None


def test_auth_state_records_errors(session_client):
    state = AuthState(session_client)

    with pytest.raises(AuthenticationError):
        state.login("ghost@uni.edu", "nope")

    assert state.error == "Invalid email or password"
    assert state.user is None
    assert state.is_loading is False
    state.clear_error()
    assert state.error is None


def test_auth_state_restore_after_account_removed(app, session_client, emailed_code):
    _register_verified(session_client, emailed_code)
    with app.app_context():
        Account.query.delete()
        db.session.commit()

    state = AuthState(session_client)

    assert state.restore() is None
    assert state.user is None
    assert state.error is None


def test_logout_during_login_request_keeps_session_cleared(session_client, store, http, emailed_code):
    _register_verified(session_client, emailed_code)
    session_client.logout()
    state = AuthState(session_client)
    send = http.request

    def _logout_while_in_flight(method, url, **kwargs):
        response = send(method, url, **kwargs)
        if url.endswith("/auth/login"):
            state.logout()
        return response

    http.request = _logout_while_in_flight

    state.login("ana@uni.edu", "secret1")

    assert state.user is None
    assert state.is_loading is False
    assert store.load() is None
    assert AuthState(session_client).restore() is None


def test_current_login_stores_its_token(session_client, store, emailed_code):
    _register_verified(session_client, emailed_code)
    session_client.logout()
    state = AuthState(session_client)

    user = state.login("ana@uni.edu", "secret1")

    assert store.load()
    assert AuthState(session_client).restore() == user
