"""Session tokens, password hashing and the role/ownership gates."""
from __future__ import annotations

from dataclasses import dataclass
from functools import wraps

from flask import current_app, g, jsonify, request
from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import ApiError, Forbidden, InvalidToken, NoToken, TokenExpired

TOKEN_SALT = "auth-token"


@dataclass(frozen=True)
class Session:
    """Identity decoded from the session token, valid for one request."""

    user_id: int
    name: str
    email: str
    role: str

    def to_dict(self) -> dict[str, object]:
        return {
            "userId": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
        }


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_token(user) -> str:
    return _serializer().dumps({
        "userId": user.user_id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
    })


def verify_session(token: str | None) -> Session:
    """Decode a session token.

    Raises ``NoToken`` when absent, ``TokenExpired`` once older than
    ``SESSION_MAX_AGE`` seconds and ``InvalidToken`` for anything else.
    """
    if not token:
        raise NoToken()

    try:
        payload = _serializer().loads(token, max_age=current_app.config["SESSION_MAX_AGE"])
    except SignatureExpired as exc:
        raise TokenExpired() from exc
    except BadData as exc:
        raise InvalidToken() from exc

    try:
        return Session(
            user_id=int(payload["userId"]),
            name=payload["name"],
            email=payload["email"],
            role=payload["role"],
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidToken() from exc


def token_from_request() -> str | None:
    token = request.cookies.get(current_app.config["AUTH_COOKIE_NAME"])
    if token:
        return token

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:] or None
    return None


def set_token_cookie(response, token: str):
    response.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        token,
        max_age=current_app.config["SESSION_MAX_AGE"],
        httponly=True,
        secure=current_app.config["SESSION_COOKIE_SECURE"],
        samesite="Lax",
    )
    return response


def clear_token_cookie(response):
    response.delete_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        httponly=True,
        secure=current_app.config["SESSION_COOKIE_SECURE"],
        samesite="Lax",
    )
    return response


def login_required(view):
    """Reject the request with a 401 envelope unless it carries a valid session."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            g.session = verify_session(token_from_request())
        except ApiError as exc:
            current_app.logger.info("Rejected session on %s: %s", request.path, exc.message)
            return jsonify(exc.to_dict()), exc.status_code
        return view(*args, **kwargs)

    return wrapper


def require_role(session: Session, role: str, message: str | None = None) -> None:
    if session.role != role:
        raise Forbidden(message)


def require_owner(owner_id: int, session: Session, message: str | None = None) -> None:
    if owner_id != session.user_id:
        raise Forbidden(message)
