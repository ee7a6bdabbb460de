"""Account lifecycle: signup, email verification and login.

Accounts move ``PENDING_VERIFICATION -> VERIFIED`` and never back. Session
tokens are JWTs carrying the account id as subject plus an ``email`` claim; they
are only ever issued for verified accounts. Bearer tokens are checked by the
JWT loaders in ``utils.token_guard``.
"""

from __future__ import annotations

import logging
import secrets
from typing import Mapping

from flask_jwt_extended import create_access_token
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from errors import (
    ConflictError,
    ExpiredCodeError,
    InternalError,
    InvalidCodeError,
    InvalidCredentialsError,
    NotFoundError,
    UnverifiedAccountError,
    ValidationError,
)
from mail import DispatchResult, Mailer
from models import db
from models.account import ACCOUNT_ROLES, Account
from utils.clock import utcnow

from .verification import (
    DEFAULT_OTP_LENGTH,
    DEFAULT_OTP_TTL_MINUTES,
    build_verification_message,
    generate_otp,
    otp_expiry,
)

logger = logging.getLogger(__name__)

SIGNUP_MESSAGE = "Account created. Check your email for the verification code."
RESEND_MESSAGE = "A new verification code has been sent."
ALREADY_VERIFIED_MESSAGE = "Account is already verified."

# Checked against when the email is unknown so both login failures hash once.
_DUMMY_PASSWORD_HASH = generate_password_hash("uninest-unknown-account")


def _missing(fields: Mapping[str, object]) -> list[str]:
    return sorted(
        key for key, value in fields.items() if not isinstance(value, str) or not value.strip()
    )


class AuthService:
    """Orchestrates the credential store, the OTP issuer and the mailer."""

    def __init__(
        self,
        mailer: Mailer,
        *,
        otp_length: int = DEFAULT_OTP_LENGTH,
        otp_ttl_minutes: int = DEFAULT_OTP_TTL_MINUTES,
    ):
        self.mailer = mailer
        self.otp_length = otp_length
        self.otp_ttl_minutes = otp_ttl_minutes

    # Store access

    def find_by_email(self, email: str) -> Account | None:
        return Account.query.filter_by(email=email).first()

    def _commit(self) -> None:
        try:
            db.session.commit()
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("Account store write failed")
            raise InternalError() from exc

    # Tokens

    def issue_token(self, account: Account) -> str:
        if not account.is_verified:
            raise UnverifiedAccountError()
        return create_access_token(
            identity=account.id, additional_claims={"email": account.email}
        )

    def _send_code(self, account: Account) -> DispatchResult:
        message = build_verification_message(
            account.name, account.email, account.otp_code, self.otp_ttl_minutes
        )
        result = self.mailer.dispatch(message)
        if not result.ok:
            logger.warning(
                "Verification email for account %s not delivered: %s",
                account.id,
                result.error,
            )
        return result

    def _new_code(self, account: Account) -> None:
        account.issue_otp(
            generate_otp(self.otp_length),
            otp_expiry(minutes=self.otp_ttl_minutes),
        )

    # Operations

    def signup(self, name, email, password, role) -> str:
        """Create an unverified account and email it a verification code."""

        missing = _missing(
            {"name": name, "email": email, "password": password, "role": role}
        )
        if missing:
            raise ValidationError(
                "Missing required fields: {}.".format(", ".join(missing))
            )
        if role not in ACCOUNT_ROLES:
            raise ValidationError(
                "Role must be one of: {}.".format(", ".join(ACCOUNT_ROLES))
            )

        if self.find_by_email(email) is not None:
            raise ConflictError()

        account = Account(name=name.strip(), email=email, role=role)
        account.set_password(password)
        self._new_code(account)
        db.session.add(account)
        try:
            self._commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent signup for the same email.
            db.session.rollback()
            raise ConflictError() from exc

        logger.info("Account %s created with role %s", account.id, account.role)
        self._send_code(account)
        return SIGNUP_MESSAGE

    def verify_otp(self, email, code) -> tuple[Account, str]:
        """Confirm the emailed code and return the verified account with a token."""

        if not isinstance(email, str) or not email.strip():
            raise ValidationError("Missing required fields: email.")
        account = self.find_by_email(email)
        if account is None:
            raise NotFoundError()

        if account.is_verified:
            return account, self.issue_token(account)

        submitted = "" if code is None else str(code).strip()
        if not account.otp_code or not secrets.compare_digest(
            submitted.encode(), account.otp_code.encode()
        ):
            raise InvalidCodeError()
        if account.otp_expired(utcnow()):
            raise ExpiredCodeError()

        account.mark_verified()
        self._commit()
        logger.info("Account %s verified", account.id)
        return account, self.issue_token(account)

    def resend_otp(self, email) -> str:
        """Replace a pending account's code with a fresh one and email it."""

        if not isinstance(email, str) or not email.strip():
            raise ValidationError("Missing required fields: email.")
        account = self.find_by_email(email)
        if account is None:
            raise NotFoundError()
        if account.is_verified:
            return ALREADY_VERIFIED_MESSAGE

        self._new_code(account)
        self._commit()
        self._send_code(account)
        return RESEND_MESSAGE

    def login(self, email, password) -> tuple[Account, str]:
        missing = _missing({"email": email, "password": password})
        if missing:
            raise ValidationError(
                "Missing required fields: {}.".format(", ".join(missing))
            )

        account = self.find_by_email(email)
        if account is None:
            check_password_hash(_DUMMY_PASSWORD_HASH, password)
            raise InvalidCredentialsError()
        if not account.check_password(password):
            raise InvalidCredentialsError()
        if not account.is_verified:
            raise UnverifiedAccountError()

        return account, self.issue_token(account)

