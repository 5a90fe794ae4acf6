"""Configuration defaults, overridable through environment variables."""
from __future__ import annotations

import os


def _env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default) in {"1", "true", "True"}


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///salonbook.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Comma separated list; the frontend dev server by default.
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "http://localhost:5173")

    # Session cookie carrying the signed identity token.
    AUTH_COOKIE_NAME = "token"
    SESSION_COOKIE_SECURE = _env_flag("SESSION_COOKIE_SECURE")
    SESSION_MAX_AGE = int(os.environ.get("SESSION_MAX_AGE", 60 * 60))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Replaced with a real geocoder in deployments that have one.
    GEOCODER = None


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "testing-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
