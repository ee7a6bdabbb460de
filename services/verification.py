"""One-time verification codes and the email that carries them."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from utils.clock import utcnow

OTP_ALPHABET = "0123456789"
DEFAULT_OTP_LENGTH = 6
DEFAULT_OTP_TTL_MINUTES = 10


@dataclass(frozen=True)
class OutboundEmail:
    to: str
    subject: str
    body: str


def generate_otp(length: int = DEFAULT_OTP_LENGTH) -> str:
    """Return a numeric code drawn from the OS CSPRNG."""

    if length <= 0:
        raise ValueError("OTP length must be positive.")
    return "".join(secrets.choice(OTP_ALPHABET) for _ in range(length))


def otp_expiry(
    now: Optional[datetime] = None, minutes: int = DEFAULT_OTP_TTL_MINUTES
) -> datetime:
    return (now or utcnow()) + timedelta(minutes=minutes)


def build_verification_message(
    name: str, email: str, code: str, minutes: int = DEFAULT_OTP_TTL_MINUTES
) -> OutboundEmail:
    """Render the verification email for a pending account."""

    body = (
        f"Hi {name},\n\n"
        f"Your UniNest verification code is {code}.\n"
        f"It expires in {minutes} minutes.\n\n"
        "If you did not create an account you can ignore this email.\n"
    )
    return OutboundEmail(to=email, subject="Verify your UniNest account", body=body)
