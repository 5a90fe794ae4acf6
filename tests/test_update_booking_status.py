"""Tests for booking status transitions and cancellation."""
from __future__ import annotations

from datetime import date, timedelta

import pytest

from salonbook.extensions import db
from salonbook.models import Booking


@pytest.fixture
def booking(customer, salon, book):
    response = book(customer, salon["id"])
    assert response.status_code == 201
    return response.get_json()["data"]


def _set_status(client, booking_id, status, **extra):
    return client.put(f"/api/bookings/{booking_id}/status", json={"status": status, **extra})


def test_owner_confirms_pending_booking(owner, booking) -> None:
    response = _set_status(owner, booking["id"], "confirmed")

    assert response.status_code == 200
    body = response.get_json()
    assert body["message"] == "Booking confirmed successfully"
    assert body["data"]["status"] == "confirmed"


def test_customer_cannot_confirm(customer, booking) -> None:
    response = _set_status(customer, booking["id"], "confirmed")

    assert response.status_code == 403
    assert response.get_json()["message"] == "Users can only cancel bookings"


def test_owner_can_complete_without_confirming(owner, booking) -> None:
    response = _set_status(owner, booking["id"], "completed")

    assert response.status_code == 200
    assert response.get_json()["data"]["status"] == "completed"


def test_completed_booking_is_terminal(owner, booking) -> None:
    _set_status(owner, booking["id"], "completed")

    reopen = _set_status(owner, booking["id"], "confirmed")
    assert reopen.status_code == 400
    assert reopen.get_json()["error"] == "invalid_status"

    cancel = _set_status(owner, booking["id"], "cancelled")
    assert cancel.status_code == 400
    assert cancel.get_json()["message"] == "This booking cannot be cancelled"


def test_cancelled_booking_is_terminal(owner, customer, booking) -> None:
    assert customer.put(f"/api/bookings/{booking['id']}/cancel").status_code == 200

    assert _set_status(owner, booking["id"], "confirmed").get_json()["error"] == "invalid_status"
    assert _set_status(owner, booking["id"], "cancelled").get_json()["message"] == (
        "This booking cannot be cancelled"
    )


def test_no_move_back_to_pending(owner, booking) -> None:
    _set_status(owner, booking["id"], "confirmed")

    response = _set_status(owner, booking["id"], "pending")

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_status"


def test_unrecognized_status(owner, booking) -> None:
    response = _set_status(owner, booking["id"], "in_progress")

    assert response.status_code == 400
    assert response.get_json()["message"] == "Invalid status"


def test_customer_cancel_stamps_fields(customer, booking) -> None:
    response = _set_status(customer, booking["id"], "cancelled", cancellationReason="Feeling sick")

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["status"] == "cancelled"
    assert data["cancelledBy"] == "user"
    assert data["cancellationReason"] == "Feeling sick"
    assert data["cancelledAt"] is not None


def test_owner_cancel_records_owner(owner, booking) -> None:
    _set_status(owner, booking["id"], "confirmed")

    response = owner.put(f"/api/bookings/{booking['id']}/cancel", json={"cancellationReason": "Closed"})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["cancelledBy"] == "owner"
    assert data["cancellationReason"] == "Closed"


def test_cannot_cancel_past_booking(app, customer, booking) -> None:
    with app.app_context():
        stored = db.session.get(Booking, booking["id"])
        stored.booking_date = date.today() - timedelta(days=1)
        db.session.commit()

    response = customer.put(f"/api/bookings/{booking['id']}/cancel")

    assert response.status_code == 400
    assert response.get_json()["message"] == "This booking cannot be cancelled"


def test_cannot_cancel_earlier_today(customer, salon, book) -> None:
    # Allowed at creation (date-only check) but already started.
    created = book(customer, salon["id"], date=date.today().isoformat(), time="00:00")
    booking_id = created.get_json()["data"]["id"]

    response = customer.put(f"/api/bookings/{booking_id}/cancel")

    assert response.status_code == 400


def test_stranger_cannot_update_or_cancel(register, booking) -> None:
    stranger = register("user")

    assert _set_status(stranger, booking["id"], "cancelled").status_code == 403
    assert stranger.put(f"/api/bookings/{booking['id']}/cancel").status_code == 403


def test_other_owner_cannot_confirm(register, booking) -> None:
    response = _set_status(register("owner"), booking["id"], "confirmed")

    assert response.status_code == 403


def test_missing_booking(owner) -> None:
    assert _set_status(owner, 999, "confirmed").status_code == 404
    assert owner.put("/api/bookings/999/cancel").status_code == 404
