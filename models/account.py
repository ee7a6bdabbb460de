"""Account model definition."""

import uuid
from datetime import datetime
from typing import Optional
from urllib.parse import quote

from werkzeug.security import check_password_hash, generate_password_hash

from utils.clock import utcnow

from . import db


ACCOUNT_ROLES = ("STUDENT", "LANDLORD")
AVATAR_URL_TEMPLATE = "https://ui-avatars.com/api/?name={name}&background=random&color=fff"


def avatar_url_for(name: str) -> str:
    """Return the generated avatar URL for a display name."""

    return AVATAR_URL_TEMPLATE.format(name=quote(name, safe="~()*!.'"))


class Account(db.Model):
    """A registered user and its verification state."""

    __tablename__ = "accounts"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_accounts_email"),
        db.CheckConstraint(
            "(otp_code IS NULL) = (otp_expires_at IS NULL)",
            name="ck_accounts_otp_pair",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    password_hash = db.Column("password", db.String(255), nullable=False)
    role = db.Column(db.String(16), nullable=False)
    avatar = db.Column(db.Text, nullable=True)
    is_verified = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.false(),
    )
    otp_code = db.Column(db.String(6), nullable=True)
    otp_expires_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __init__(self, **kwargs) -> None:
        kwargs.setdefault("is_verified", False)
        super().__init__(**kwargs)
        if self.avatar is None and self.name:
            self.avatar = avatar_url_for(self.name)

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        return check_password_hash(self.password_hash, password)

    def issue_otp(self, code: str, expires_at: datetime) -> None:
        """Attach a pending verification code; both fields are always set together."""

        if self.is_verified:
            raise ValueError("Verified accounts cannot hold a verification code.")
        self.otp_code = code
        self.otp_expires_at = expires_at

    def otp_expired(self, now: Optional[datetime] = None) -> bool:
        if self.otp_expires_at is None:
            return True
        return (now or utcnow()) > self.otp_expires_at

    def mark_verified(self) -> None:
        """Flip the account to verified and drop the pending code."""

        self.is_verified = True
        self.otp_code = None
        self.otp_expires_at = None

    def to_dict(self) -> dict:
        """Serialize the account without credentials or verification secrets."""

        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "avatar": self.avatar,
            "isVerified": bool(self.is_verified),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<Account {self.email}>"
