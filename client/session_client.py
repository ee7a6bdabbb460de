"""
HTTP client for the UniNest auth API.

Usage:

    from client import FileTokenStore, SessionClient

    client = SessionClient("http://127.0.0.1:5000", FileTokenStore("~/.uninest/session.json"))
    client.signup("Ana", "ana@uni.edu", "secret1", "STUDENT")
    user = client.verify_otp("ana@uni.edu", "123456")   # token is stored
    client.get_session()                                  # same user, after a restart too
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Tuple

import requests

from .token_store import MemoryTokenStore, TokenStore

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:5000"


class ApiError(Exception):
    """Non-2xx answer from the API, carrying its status and message."""

    def __init__(self, status: int, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.error = error


class AuthenticationError(ApiError):
    """401 from the API; the stored token has already been cleared."""


class SessionClient:
    """Translate auth calls to HTTP requests and manage the stored token."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_store: Optional[TokenStore] = None,
        *,
        http: Any = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = (
            base_url or os.getenv("UNINEST_API_BASE_URL") or DEFAULT_BASE_URL
        ).rstrip("/")
        self.token_store = token_store or MemoryTokenStore()
        self.http = http or requests.Session()
        self.timeout = timeout

    # ---------- Internal helpers ----------

    def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        *,
        authenticated: bool = False,
    ) -> Dict[str, Any]:
        headers: Dict[str, str] = {}
        if authenticated:
            token = self.token_store.load()
            if token:
                headers["Authorization"] = f"Bearer {token}"

        try:
            resp = self.http.request(
                method,
                f"{self.base_url}/api{path}",
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ApiError(0, f"Could not reach the server: {exc}") from exc

        try:
            data = resp.json() or {}
        except ValueError:
            data = {}

        if 200 <= resp.status_code < 300:
            return data

        message = data.get("message") or "An error occurred"
        if resp.status_code == 401:
            logger.info("Session rejected by %s: %s; clearing stored token", path, message)
            self.token_store.clear()
            raise AuthenticationError(resp.status_code, message, data.get("error"))
        raise ApiError(resp.status_code, message, data.get("error"))

    @staticmethod
    def _session_from(data: Dict[str, Any]) -> Tuple[Dict[str, Any], str]:
        token = data.get("token")
        if not token:
            raise ApiError(0, "Server did not return a session token")
        return data["user"], token

    # ---------- Public methods ----------

    def has_token(self) -> bool:
        return bool(self.token_store.load())

    def store_token(self, token: str) -> None:
        self.token_store.save(token)

    def signup(self, name: str, email: str, password: str, role: str) -> str:
        """Create an account. No session is started until the email is verified."""
        data = self._request(
            "POST",
            "/auth/signup",
            {"name": name, "email": email, "password": password, "role": role},
        )
        return data.get("message", "")

    def confirm_otp(self, email: str, otp: str) -> Tuple[Dict[str, Any], str]:
        """Verify the emailed code and return ``(user, token)`` without storing it."""
        data = self._request("POST", "/auth/verify", {"email": email, "otp": otp})
        return self._session_from(data)

    def verify_otp(self, email: str, otp: str) -> Dict[str, Any]:
        user, token = self.confirm_otp(email, otp)
        self.store_token(token)
        return user

    def resend_otp(self, email: str) -> str:
        data = self._request("POST", "/auth/resend", {"email": email})
        return data.get("message", "")

    def authenticate(self, email: str, password: str) -> Tuple[Dict[str, Any], str]:
        """Log in and return ``(user, token)`` without storing the token."""
        data = self._request(
            "POST", "/auth/login", {"email": email, "password": password}
        )
        return self._session_from(data)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        user, token = self.authenticate(email, password)
        self.store_token(token)
        return user

    def get_session(self) -> Optional[Dict[str, Any]]:
        """Return the stored session's user, or None when logged out."""
        if not self.has_token():
            return None
        data = self._request("GET", "/auth/me", authenticated=True)
        return data.get("user")

    def logout(self) -> None:
        self.token_store.clear()
