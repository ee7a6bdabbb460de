"""Seed verified demo accounts for local development."""

from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app import create_app
from models import db
from models.account import Account

DEMO_ACCOUNTS = (
    ("Ana Student", "ana@uni.edu", "secret1", "STUDENT"),
    ("Sarah Jenkins", "sarah@landlord.example", "LandlordPass123", "LANDLORD"),
)


def get_or_create_account(name: str, email: str, password: str, role: str) -> tuple[Account, str]:
    """Create a verified account, or reset the password of an existing one."""

    account = Account.query.filter_by(email=email).first()
    if account is None:
        account = Account(name=name, email=email, role=role)
        account.set_password(password)
        account.mark_verified()
        db.session.add(account)
        return account, "created"

    account.set_password(password)
    if not account.is_verified:
        account.mark_verified()
    return account, "updated"


def main() -> None:
    app = create_app()
    with app.app_context():
        db.create_all()
        for name, email, password, role in DEMO_ACCOUNTS:
            _, action = get_or_create_account(name, email, password, role)
            print(f"{role.title()} account {action}: {email}")
        db.session.commit()


if __name__ == "__main__":
    main()
