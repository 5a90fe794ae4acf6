"""Account registration and credential checks."""
from __future__ import annotations

from datetime import datetime, timezone

from flask import current_app

from .auth import hash_password, verify_password
from .errors import DuplicateEmail, InvalidCredential, NotFound, RoleMismatch, ValidationError
from .extensions import db
from .models import AuthAccount, User

ROLES = ("user", "owner")


def _text(payload: dict, key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value.strip()


def _password(payload: dict) -> str:
    # Passwords are used as given, never trimmed.
    password = payload.get("password")
    if password is None:
        return ""
    if not isinstance(password, str):
        raise ValidationError("password must be a string")
    return password


def register_user(payload: dict) -> User:
    name = _text(payload, "name")
    email = _text(payload, "email").lower()
    password = _password(payload)
    role = (_text(payload, "role") or "user").lower()
    phone = _text(payload, "phone") or None

    if not name or not email or not password:
        raise ValidationError("name, email, and password are required")

    if role not in ROLES:
        raise ValidationError("role must be 'user' or 'owner'")

    if User.query.filter_by(email=email).first():
        raise DuplicateEmail()

    user = User(name=name, email=email, role=role, phone=phone)
    db.session.add(user)
    db.session.flush()  # need user_id for the auth account

    db.session.add(AuthAccount(user_id=user.user_id, password_hash=hash_password(password)))
    db.session.commit()

    current_app.logger.info("Registered %s account %s", role, email)
    return user


def authenticate(payload: dict) -> User:
    """Check email, password and requested role, in that order.

    The role is only compared once the password has matched, so a failed
    login never reveals which role an account holds.
    """
    email = _text(payload, "email").lower()
    password = _password(payload)
    role = _text(payload, "role").lower()

    if not email or not password:
        raise ValidationError("email and password are required")

    record = (
        db.session.query(User, AuthAccount)
        .join(AuthAccount, AuthAccount.user_id == User.user_id)
        .filter(User.email == email)
        .first()
    )
    if not record:
        current_app.logger.info("Login for unknown email %s", email)
        raise NotFound("User does not exist")

    user, auth_account = record

    if not verify_password(auth_account.password_hash, password):
        current_app.logger.info("Invalid password for %s", email)
        raise InvalidCredential()

    if user.role != role:
        current_app.logger.info("Role mismatch on login for %s", email)
        raise RoleMismatch()

    auth_account.last_login_at = datetime.now(timezone.utc)
    db.session.add(auth_account)
    db.session.commit()

    return user
