"""Create an account or reset its password for local development."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure the project root is on sys.path so ``salonbook`` imports when run directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from salonbook import create_app
from salonbook.accounts import ROLES
from salonbook.auth import hash_password
from salonbook.extensions import db
from salonbook.models import AuthAccount, User

DEFAULT_NAMES = {"user": "Demo Customer", "owner": "Demo Owner"}


def set_password(email: str, password: str, role: str = "owner") -> None:
    app = create_app()
    email = email.strip().lower()

    with app.app_context():
        user = User.query.filter_by(email=email).first()
        if user is None:
            user = User(name=DEFAULT_NAMES[role], email=email, role=role)
            db.session.add(user)
            db.session.flush()
            print(f"Created new {role} account: {email}")
        elif user.role != role:
            # Roles are fixed once registered; refuse rather than promote.
            print(f"Error: {email} is registered as '{user.role}', not '{role}'")
            return

        account = db.session.get(AuthAccount, user.user_id)
        if account is None:
            account = AuthAccount(user_id=user.user_id, password_hash="")
            db.session.add(account)

        account.password_hash = hash_password(password)
        db.session.commit()

        print(f"Password for {role} account '{email}' has been set.")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Set an account password for local testing.")
    parser.add_argument("email", help="Account email address")
    parser.add_argument("password", help="Plain-text password to hash and store")
    parser.add_argument("--role", choices=ROLES, default="owner", help="Account role (default: owner)")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    set_password(args.email, args.password, args.role)


if __name__ == "__main__":
    main()
