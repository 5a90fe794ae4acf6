"""pytest fixtures: an app on in-memory SQLite and logged-in test clients."""
from __future__ import annotations

import itertools
import sys
from datetime import date, timedelta
from pathlib import Path

import pytest

# Ensure the project root is available on sys.path so tests can import the package.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from salonbook import create_app  # noqa: E402
from salonbook.config import TestingConfig  # noqa: E402
from salonbook.extensions import db  # noqa: E402

PASSWORD = "Secret123!"

SALON_PAYLOAD = {
    "name": "Fade Factory",
    "description": "Cuts, fades and beard work.",
    "address": "12 King St W",
    "city": "Seattle",
    "province": "WA",
    "postalCode": "98101",
    "phone": "206-555-0101",
    "email": "Hello@FadeFactory.com",
    "website": "https://fadefactory.example.com",
    "services": [{"name": "Haircut", "price": 35}, {"name": "Beard Trim"}],
}


def tomorrow() -> str:
    return (date.today() + timedelta(days=1)).isoformat()


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def register(app):
    """Register an account and return a test client holding its session cookie."""
    counter = itertools.count(1)

    def _register(role: str = "user", email: str | None = None, name: str | None = None, **extra):
        n = next(counter)
        test_client = app.test_client()
        response = test_client.post("/api/users/register", json={
            "name": name or f"{role.title()} {n}",
            "email": email or f"{role}{n}@example.com",
            "password": PASSWORD,
            "role": role,
            **extra,
        })
        assert response.status_code == 201, response.get_json()
        test_client.user = response.get_json()["data"]
        return test_client

    return _register


@pytest.fixture
def owner(register):
    return register("owner")


@pytest.fixture
def customer(register):
    return register("user", phone="555-0199")


@pytest.fixture
def create_salon():
    def _create_salon(owner_client, **overrides):
        response = owner_client.post("/api/salons", json={**SALON_PAYLOAD, **overrides})
        assert response.status_code == 201, response.get_json()
        return response.get_json()["data"]

    return _create_salon


@pytest.fixture
def salon(owner, create_salon):
    return create_salon(owner)


@pytest.fixture
def book():
    def _book(customer_client, salon_id, **overrides):
        payload = {
            "salonId": salon_id,
            "services": ["Haircut"],
            "date": tomorrow(),
            "time": "10:00",
            **overrides,
        }
        return customer_client.post("/api/bookings/create", json=payload)

    return _book
