"""Bearer-token guard shared by every authenticated endpoint.

All JWT failures are funnelled through the same error classes and JSON shape
used by the rest of the API.
"""

from __future__ import annotations

from flask_jwt_extended import JWTManager

from errors import InvalidTokenError, NotFoundError, UnauthenticatedError
from models import db
from models.account import Account

from .responses import error_response


def register_token_guard(jwt: JWTManager) -> None:
    """Install the loader callbacks on a ``JWTManager``."""

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return error_response(UnauthenticatedError())

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return error_response(InvalidTokenError())

    @jwt.expired_token_loader
    def _expired_token(jwt_header: dict, jwt_payload: dict):
        return error_response(InvalidTokenError())

    @jwt.revoked_token_loader
    def _revoked_token(jwt_header: dict, jwt_payload: dict):
        return error_response(InvalidTokenError())

    @jwt.user_lookup_loader
    def _load_account(jwt_header: dict, jwt_payload: dict) -> Account | None:
        return db.session.get(Account, jwt_payload.get("sub"))

    @jwt.user_lookup_error_loader
    def _account_gone(jwt_header: dict, jwt_payload: dict):
        return error_response(NotFoundError())
