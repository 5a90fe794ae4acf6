"""Booking ledger: creation, listings and the status state machine.

Status moves::

    pending   -> confirmed | cancelled | completed
    confirmed -> cancelled | completed

``cancelled`` and ``completed`` are terminal. Nothing stops two customers
from booking the same salon, date and time; owners sort out overlaps when
they confirm.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time

from flask import current_app
from sqlalchemy.orm import joinedload

from .auth import Session, require_owner
from .errors import (Forbidden, InvalidStatus, NotCancellable, NotFound,
                     OwnSalonBooking, ValidationError)
from .extensions import db
from .models import Booking, Salon, User, utc_now

STATUSES = ("pending", "confirmed", "cancelled", "completed")
TERMINAL_STATUSES = ("cancelled", "completed")
TRANSITIONS = {
    "pending": ("confirmed", "cancelled", "completed"),
    "confirmed": ("cancelled", "completed"),
    "cancelled": (),
    "completed": (),
}

TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
MAX_NOTES_LENGTH = 500


def parse_booking_date(value) -> date:
    """Accept ``YYYY-MM-DD`` or a full ISO timestamp (its date part is used)."""
    if not isinstance(value, str):
        raise ValidationError("date must be a YYYY-MM-DD string")
    try:
        return date.fromisoformat(value[:10])
    except ValueError as exc:
        raise ValidationError("date must be a YYYY-MM-DD string") from exc


def parse_booking_time(value) -> str:
    if not isinstance(value, str) or not TIME_RE.match(value.strip()):
        raise ValidationError("time must be in HH:MM format")
    return value.strip()


def starts_at(booking: Booking) -> datetime | None:
    match = TIME_RE.match(booking.booking_time or "")
    if not match:
        return None
    return datetime.combine(booking.booking_date, time(int(match.group(1)), int(match.group(2))))


def can_be_cancelled(booking: Booking, now: datetime | None = None) -> bool:
    """Cancellable while not terminal and the appointment is still ahead."""
    if booking.status in TERMINAL_STATUSES:
        return False
    start = starts_at(booking)
    if start is None:
        return False
    return start > (now or datetime.now())


def _with_relations():
    return Booking.query.options(joinedload(Booking.customer), joinedload(Booking.salon))


def create_booking(session: Session, payload: dict) -> Booking:
    salon_id = payload.get("salonId")
    services = payload.get("services")
    raw_date = payload.get("date")
    raw_time = payload.get("time")

    if not salon_id or not services or not raw_date or not raw_time:
        raise ValidationError("Salon ID, services, date, and time are required")

    if not isinstance(services, list) or not all(isinstance(s, str) and s.strip() for s in services):
        raise ValidationError("services must be a list of service names")

    try:
        salon_id = int(salon_id)
    except (TypeError, ValueError) as exc:
        raise ValidationError("salonId must be an integer") from exc

    booking_date = parse_booking_date(raw_date)
    booking_time = parse_booking_time(raw_time)

    notes = payload.get("notes")
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("notes must be a string")
    notes = (notes or "").strip()
    if len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError("Notes cannot exceed 500 characters")

    total_amount = payload.get("totalAmount") or 0
    if isinstance(total_amount, bool) or not isinstance(total_amount, (int, float)) or total_amount < 0:
        raise ValidationError("totalAmount must be a non-negative number")

    salon = db.session.get(Salon, salon_id)
    if salon is None:
        raise NotFound("Salon not found")

    if not salon.is_active:
        raise ValidationError("This salon is currently not accepting bookings")

    # Date only; a booking for earlier today is still accepted.
    if booking_date < date.today():
        raise ValidationError("Cannot book appointments in the past")

    if session.role == "owner" and salon.owner_id == session.user_id:
        raise OwnSalonBooking()

    customer = db.session.get(User, session.user_id)

    booking = Booking(
        user_id=session.user_id,
        salon_id=salon.salon_id,
        services=[s.strip() for s in services],
        booking_date=booking_date,
        booking_time=booking_time,
        notes=notes,
        status="pending",
        total_amount=total_amount,
        customer_name=customer.name if customer else session.name,
        customer_email=customer.email if customer else session.email,
        customer_phone=(customer.phone if customer else None) or "",
        salon_name=salon.name,
        salon_address=salon.full_address,
        salon_phone=salon.phone or "",
    )
    db.session.add(booking)
    db.session.commit()

    current_app.logger.info(
        "Booking %s created by user %s for salon %s on %s %s",
        booking.booking_id,
        session.user_id,
        salon.salon_id,
        booking_date.isoformat(),
        booking_time,
    )
    return booking


def list_user_bookings(session: Session) -> list[Booking]:
    return (
        _with_relations()
        .filter(Booking.user_id == session.user_id)
        .order_by(Booking.booking_date.desc(), Booking.booking_time.desc())
        .all()
    )


def list_salon_bookings(session: Session, salon_id: int, status: str | None = None) -> list[Booking]:
    salon = db.session.get(Salon, salon_id)
    if salon is None:
        raise NotFound("Salon not found")

    require_owner(salon.owner_id, session, "You do not have permission to view these bookings")

    query = _with_relations().filter(Booking.salon_id == salon_id)
    if status:
        if status not in STATUSES:
            raise InvalidStatus(f"Status must be one of: {', '.join(STATUSES)}")
        query = query.filter(Booking.status == status)

    return query.order_by(Booking.booking_date.asc(), Booking.booking_time.asc()).all()


def _access(session: Session, booking: Booking) -> tuple[bool, bool]:
    """Return ``(is_owner, is_customer)`` for the caller."""
    is_owner = booking.salon is not None and booking.salon.owner_id == session.user_id
    is_customer = booking.user_id == session.user_id
    return is_owner, is_customer


def _load(booking_id: int) -> Booking:
    booking = _with_relations().filter(Booking.booking_id == booking_id).first()
    if booking is None:
        raise NotFound("Booking not found")
    return booking


def get_booking(session: Session, booking_id: int) -> Booking:
    booking = _load(booking_id)
    is_owner, is_customer = _access(session, booking)
    if not is_owner and not is_customer:
        raise Forbidden("You do not have permission to view this booking")
    return booking


def transition_booking(
    session: Session,
    booking_id: int,
    status,
    cancellation_reason: str | None = None,
) -> Booking:
    if status not in STATUSES:
        raise InvalidStatus()

    booking = _load(booking_id)
    is_owner, is_customer = _access(session, booking)

    if not is_owner and not is_customer:
        raise Forbidden("You do not have permission to update this booking")

    if is_customer and not is_owner and status != "cancelled":
        raise Forbidden("Users can only cancel bookings")

    if status == "cancelled":
        if not can_be_cancelled(booking):
            raise NotCancellable()
        booking.cancelled_at = utc_now()
        booking.cancelled_by = "owner" if is_owner else "user"
        if cancellation_reason:
            booking.cancellation_reason = cancellation_reason.strip()[:MAX_NOTES_LENGTH]
    elif status not in TRANSITIONS[booking.status]:
        raise InvalidStatus(f"Cannot change status of a {booking.status} booking to {status}")

    previous = booking.status
    booking.status = status
    db.session.commit()

    current_app.logger.info(
        "Booking %s moved %s -> %s by user %s", booking.booking_id, previous, status, session.user_id
    )
    return booking


def cancel_booking(session: Session, booking_id: int, cancellation_reason: str | None = None) -> Booking:
    return transition_booking(session, booking_id, "cancelled", cancellation_reason)
