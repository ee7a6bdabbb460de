"""Python client for the UniNest auth API and the session state built on it."""

from .auth_state import AuthState
from .session_client import ApiError, AuthenticationError, SessionClient
from .token_store import FileTokenStore, MemoryTokenStore, TokenStore

__all__ = [
    "ApiError",
    "AuthState",
    "AuthenticationError",
    "FileTokenStore",
    "MemoryTokenStore",
    "SessionClient",
    "TokenStore",
]
