"""Current-user state owned by the UI layer.

``AuthState`` is created once per client session and handed to whatever needs
it. The user cell is written only by ``restore``, ``login``, ``verify_otp`` and
``logout`` (and cleared by any 401). When actions overlap, only the most recently
started one may write its result; older results are dropped, and so are the
session tokens they brought back.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from .session_client import ApiError, AuthenticationError, SessionClient

logger = logging.getLogger(__name__)

Listener = Callable[["AuthState"], None]


class AuthState:
    def __init__(self, client: SessionClient) -> None:
        self.client = client
        self.user: Optional[Dict[str, Any]] = None
        self.is_loading = False
        self.error: Optional[str] = None
        self.pending_email: Optional[str] = None
        self._generation = 0
        self._lock = threading.Lock()
        self._listeners: List[Listener] = []

    # ---------- Update contract ----------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _begin(self) -> int:
        with self._lock:
            self._generation += 1
            self.is_loading = True
            self.error = None
            ticket = self._generation
        self._notify()
        return ticket

    def _finish(self, ticket: int, token: Optional[str] = None, **changes: Any) -> bool:
        """Apply ``changes`` and store ``token`` if ``ticket`` belongs to the latest action."""
        with self._lock:
            if ticket != self._generation:
                logger.debug("Dropping stale auth result (ticket %s)", ticket)
                return False
            if token is not None:
                self.client.store_token(token)
            for name, value in changes.items():
                setattr(self, name, value)
            self.is_loading = False
        self._notify()
        return True

    # ---------- Actions ----------

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def restore(self) -> Optional[Dict[str, Any]]:
        """Resolve a stored token into the current user, if there is one."""
        ticket = self._begin()
        try:
            user = self.client.get_session()
        except AuthenticationError:
            user = None
        except ApiError as exc:
            logger.warning("Session restoration failed: %s", exc.message)
            user = None
        self._finish(ticket, user=user)
        return user

    def _run(self, ticket: int, action: Callable[[], Any], fallback: str) -> Any:
        try:
            return action()
        except ApiError as exc:
            changes: Dict[str, Any] = {"error": exc.message or fallback}
            if isinstance(exc, AuthenticationError):
                changes["user"] = None
            self._finish(ticket, **changes)
            raise

    def signup(self, name: str, email: str, password: str, role: str) -> str:
        ticket = self._begin()
        message = self._run(
            ticket,
            lambda: self.client.signup(name, email, password, role),
            "An unexpected error occurred during signup.",
        )
        self._finish(ticket, pending_email=email)
        return message

    def verify_otp(self, email: str, otp: str) -> Dict[str, Any]:
        ticket = self._begin()
        user, token = self._run(
            ticket,
            lambda: self.client.confirm_otp(email, otp),
            "An unexpected error occurred during verification.",
        )
        self._finish(ticket, token, user=user, pending_email=None)
        return user

    def login(self, email: str, password: str) -> Dict[str, Any]:
        ticket = self._begin()
        user, token = self._run(
            ticket,
            lambda: self.client.authenticate(email, password),
            "An unexpected error occurred during login.",
        )
        self._finish(ticket, token, user=user)
        return user

    def logout(self) -> None:
        ticket = self._begin()
        self.client.logout()
        self._finish(ticket, user=None, pending_email=None)

    def clear_error(self) -> None:
        self.error = None
        self._notify()
