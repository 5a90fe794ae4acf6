"""Database models for the salon booking backend."""
from __future__ import annotations

from datetime import datetime, timezone

from .extensions import db


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def _iso(value) -> str | None:
    return value.isoformat() if value else None


WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def default_opening_hours() -> dict[str, dict[str, object]]:
    hours = {day: {"open": "09:00", "close": "18:00", "closed": False} for day in WEEKDAYS[:5]}
    hours["saturday"] = {"open": "10:00", "close": "16:00", "closed": False}
    hours["sunday"] = {"open": "10:00", "close": "16:00", "closed": True}
    return hours


class User(db.Model):
    __tablename__ = "users"

    user_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    role = db.Column(
        db.Enum(
            "user",
            "owner",
            name="user_role",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        server_default="user",
    )
    phone = db.Column(db.String(30))
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    salons = db.relationship("Salon", back_populates="owner", lazy="dynamic")
    auth_account = db.relationship("AuthAccount", back_populates="user", uselist=False)

    def to_dict_basic(self) -> dict[str, object]:
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
        }


class AuthAccount(db.Model):
    __tablename__ = "auth_accounts"

    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), primary_key=True)
    password_hash = db.Column(db.String(255), nullable=False)
    last_login_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    user = db.relationship("User", back_populates="auth_account")


class Salon(db.Model):
    __tablename__ = "salons"

    salon_id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    address = db.Column(db.String(255), nullable=False)
    city = db.Column(db.String(100), nullable=False)
    province = db.Column(db.String(100), nullable=False)
    postal_code = db.Column(db.String(20))
    phone = db.Column(db.String(30))
    email = db.Column(db.String(255))
    website = db.Column(db.String(255))
    opening_hours = db.Column(db.JSON, nullable=False, default=default_opening_hours)
    # GeoJSON order is [longitude, latitude]; kept as two columns for querying.
    longitude = db.Column(db.Float)
    latitude = db.Column(db.Float)
    rating = db.Column(db.Float, nullable=False, default=0)
    review_count = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    owner = db.relationship("User", back_populates="salons")
    services = db.relationship(
        "SalonService",
        back_populates="salon",
        order_by="SalonService.position",
        cascade="all, delete-orphan",
    )

    @property
    def full_address(self) -> str:
        return f"{self.address}, {self.city}, {self.province}"

    def location(self) -> dict[str, object] | None:
        if self.longitude is None or self.latitude is None:
            return None
        return {"type": "Point", "coordinates": [self.longitude, self.latitude]}

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.salon_id,
            "name": self.name,
            "description": self.description,
            "address": self.address,
            "city": self.city,
            "province": self.province,
            "postalCode": self.postal_code,
            "phone": self.phone,
            "email": self.email,
            "website": self.website,
            "services": [service.to_dict() for service in self.services],
            "openingHours": self.opening_hours or default_opening_hours(),
            "location": self.location(),
            "ownerId": self.owner_id,
            "owner": {
                "id": self.owner.user_id,
                "name": self.owner.name,
                "email": self.owner.email,
            } if self.owner else None,
            "rating": self.rating,
            "reviewCount": self.review_count,
            "isActive": bool(self.is_active),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class SalonService(db.Model):
    """A named service a salon offers, with an optional price."""

    __tablename__ = "salon_services"

    service_id = db.Column(db.Integer, primary_key=True)
    salon_id = db.Column(db.Integer, db.ForeignKey("salons.salon_id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    price_cents = db.Column(db.Integer)
    position = db.Column(db.Integer, nullable=False, default=0)

    salon = db.relationship("Salon", back_populates="services")

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"name": self.name}
        if self.price_cents is not None:
            payload["price"] = self.price_cents / 100
        return payload


class Booking(db.Model):
    """Appointment request from a customer to a salon."""

    __tablename__ = "bookings"
    __table_args__ = (
        db.Index("ix_bookings_user_created", "user_id", "created_at"),
        db.Index("ix_bookings_salon_date", "salon_id", "date"),
        db.Index("ix_bookings_status_date", "status", "date"),
    )

    booking_id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    salon_id = db.Column(db.Integer, db.ForeignKey("salons.salon_id"), nullable=False)
    services = db.Column(db.JSON, nullable=False, default=list)
    booking_date = db.Column("date", db.Date, nullable=False)
    # Salon-local "HH:MM", no timezone.
    booking_time = db.Column("time", db.String(5), nullable=False)
    notes = db.Column(db.String(500))
    status = db.Column(
        db.Enum(
            "pending",
            "confirmed",
            "cancelled",
            "completed",
            name="booking_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default="pending",
        server_default="pending",
    )
    total_amount = db.Column(db.Float, nullable=False, default=0)

    # Snapshot of the customer at booking time
    customer_name = db.Column(db.String(100), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(30))

    # Snapshot of the salon at booking time
    salon_name = db.Column(db.String(100), nullable=False)
    salon_address = db.Column(db.String(255))
    salon_phone = db.Column(db.String(30))

    cancellation_reason = db.Column(db.String(500))
    cancelled_at = db.Column(db.DateTime)
    # "admin" has no corresponding role; kept so stored rows keep their shape.
    cancelled_by = db.Column(
        db.Enum(
            "user",
            "owner",
            "admin",
            name="booking_cancelled_by",
            native_enum=False,
            validate_strings=True,
        )
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    customer = db.relationship("User")
    salon = db.relationship("Salon")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.booking_id,
            "userId": self.user_id,
            "salonId": self.salon_id,
            "customer": {
                "id": self.customer.user_id,
                "name": self.customer.name,
                "email": self.customer.email,
                "phone": self.customer.phone,
            } if self.customer else None,
            "salon": {
                "id": self.salon.salon_id,
                "name": self.salon.name,
                "address": self.salon.address,
                "city": self.salon.city,
                "province": self.salon.province,
                "phone": self.salon.phone,
            } if self.salon else None,
            "services": list(self.services or []),
            "date": _iso(self.booking_date),
            "time": self.booking_time,
            "notes": self.notes,
            "status": self.status,
            "totalAmount": self.total_amount,
            "customerName": self.customer_name,
            "customerEmail": self.customer_email,
            "customerPhone": self.customer_phone,
            "salonName": self.salon_name,
            "salonAddress": self.salon_address,
            "salonPhone": self.salon_phone,
            "cancellationReason": self.cancellation_reason,
            "cancelledAt": _iso(self.cancelled_at),
            "cancelledBy": self.cancelled_by,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
