"""HTTP routes for the salon booking backend."""
from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from . import accounts, bookings, salons
from .auth import clear_token_cookie, issue_token, login_required, set_token_cookie
from .errors import ApiError
from .extensions import db

bp = Blueprint("api", __name__, url_prefix="/api")


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _fail(exc: ApiError):
    db.session.rollback()
    current_app.logger.warning("%s %s rejected: %s", request.method, request.path, exc.message)
    return jsonify(exc.to_dict()), exc.status_code


def _database_error(exc: SQLAlchemyError, message: str):
    db.session.rollback()
    current_app.logger.exception(message, exc_info=exc)
    return jsonify({"success": False, "error": "database_error", "message": message}), 500


@bp.get("/health")
def health_check() -> tuple[dict[str, object], int]:
    """
    Expose a simple uptime check endpoint.
    ---
    tags:
      - Health
    responses:
      200:
        description: Service is healthy and running.
    """
    return jsonify({"success": True, "message": "Server is running!"}), 200


@bp.get("/db-health")
def database_health() -> tuple[dict[str, object], int]:
    """Check connectivity to the configured database."""
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        current_app.logger.exception("Database connectivity check failed", exc_info=exc)
        return jsonify({"success": False, "database": "unavailable"}), 500

    return jsonify({"success": True, "database": "ok"}), 200


# --- Users / authentication ---


@bp.post("/users/register")
def register_user():
    """Register a customer or owner account and start a session.
    ---
    tags:
      - Authentication
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            name:
              type: string
            email:
              type: string
            password:
              type: string
            role:
              type: string
              enum: [user, owner]
          required:
            - name
            - email
            - password
    responses:
      201:
        description: User registered, session cookie set
      400:
        description: Invalid payload or email already exists
      500:
        description: Server error
    """
    payload = _json_body()

    try:
        user = accounts.register_user(payload)
    except ApiError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _database_error(exc, "Failed to register user")

    response = jsonify({
        "success": True,
        "message": "User registered successfully",
        "data": user.to_dict_basic(),
    })
    set_token_cookie(response, issue_token(user))
    return response, 201


@bp.post("/users/login")
def login():
    """Authenticate by email, password and the role tab the user logged in from.
    ---
    tags:
      - Authentication
    responses:
      200:
        description: Login successful, session cookie set
      400:
        description: Missing fields, wrong password or role mismatch
      404:
        description: No user with that email
    """
    payload = _json_body()

    try:
        user = accounts.authenticate(payload)
    except ApiError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _database_error(exc, "Failed to log in")

    current_app.logger.info("Login successful for %s", user.email)
    response = jsonify({
        "success": True,
        "message": "Login successful",
        "data": user.to_dict_basic(),
    })
    set_token_cookie(response, issue_token(user))
    return response, 200


@bp.post("/users/logout")
def logout():
    # The token itself stays valid until it expires; only the cookie goes away.
    response = jsonify({"success": True, "message": "Logout successful"})
    clear_token_cookie(response)
    return response, 200


@bp.get("/auth/me")
@login_required
def current_identity():
    """Return the identity carried by the session cookie."""
    return jsonify({"success": True, "isAuthenticated": True, **g.session.to_dict()}), 200


# --- Salons ---


@bp.post("/salons")
@login_required
def create_salon():
    """Create a salon owned by the authenticated owner.
    ---
    tags:
      - Salons
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name:
              type: string
            address:
              type: string
            city:
              type: string
            province:
              type: string
            services:
              type: array
              items:
                type: object
            openingHours:
              type: object
          required:
            - name
            - address
            - city
            - province
    responses:
      201:
        description: Salon created successfully
      400:
        description: Invalid payload
      403:
        description: Caller is not an owner
    """
    payload = _json_body()

    try:
        salon = salons.create_salon(g.session, payload)
    except ApiError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _database_error(exc, "Failed to create salon")

    return jsonify({
        "success": True,
        "message": "Salon created successfully",
        "data": salon.to_dict(),
    }), 201


@bp.get("/salons")
def list_salons():
    """List active salons with city, services, text and radius filters.
    ---
    tags:
      - Salons
    parameters:
      - name: city
        in: query
        type: string
        description: Case-insensitive substring match
      - name: services
        in: query
        type: string
        description: Comma separated service names, any may match
      - name: search
        in: query
        type: string
      - name: latitude
        in: query
        type: number
      - name: longitude
        in: query
        type: number
      - name: maxDistance
        in: query
        type: number
        default: 50
      - name: page
        in: query
        type: integer
        default: 1
      - name: limit
        in: query
        type: integer
        default: 20
        maximum: 100
    responses:
      200:
        description: Page of salons with pagination metadata
      400:
        description: Invalid parameters
    """
    try:
        items, pagination = salons.list_salons(request.args)
    except ApiError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _database_error(exc, "Failed to fetch salons")

    return jsonify({"success": True, "data": items, "pagination": pagination}), 200


@bp.get("/salons/owner/my-salons")
@login_required
def list_my_salons():
    """All salons owned by the caller, inactive ones included."""
    try:
        owned = salons.list_owner_salons(g.session)
    except ApiError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _database_error(exc, "Failed to fetch salons")

    return jsonify({"success": True, "data": [salon.to_dict() for salon in owned]}), 200


@bp.get("/salons/<int:salon_id>")
def get_salon(salon_id: int):
    try:
        salon = salons.get_salon(salon_id)
    except ApiError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _database_error(exc, "Failed to fetch salon")

    return jsonify({"success": True, "data": salon.to_dict()}), 200


@bp.put("/salons/<int:salon_id>")
@login_required
def update_salon(salon_id: int):
    """Partially update a salon the caller owns.

    A body holding only ``isActive`` toggles the salon's activity without
    re-validating the rest of the record.
    ---
    tags:
      - Salons
    responses:
      200:
        description: Salon updated successfully
      400:
        description: Invalid payload
      403:
        description: Not the owner of this salon
      404:
        description: Salon not found
    """
    payload = _json_body()

    try:
        if set(payload) == {"isActive"} and isinstance(payload["isActive"], bool):
            salon = salons.set_salon_active(g.session, salon_id, payload["isActive"])
        else:
            salon = salons.update_salon(g.session, salon_id, payload)
    except ApiError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _database_error(exc, "Failed to update salon")

    return jsonify({
        "success": True,
        "message": "Salon updated successfully",
        "data": salon.to_dict(),
    }), 200


@bp.post("/salons/<int:salon_id>/reactivate")
@login_required
def reactivate_salon(salon_id: int):
    try:
        salon = salons.reactivate_salon(g.session, salon_id)
    except ApiError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _database_error(exc, "Failed to reactivate salon")

    return jsonify({
        "success": True,
        "message": "Salon reactivated successfully",
        "data": salon.to_dict(),
    }), 200


@bp.delete("/salons/<int:salon_id>")
@login_required
def delete_salon(salon_id: int):
    """Soft delete a salon the caller owns."""
    try:
        salons.delete_salon(g.session, salon_id)
    except ApiError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _database_error(exc, "Failed to delete salon")

    return jsonify({"success": True, "message": "Salon deleted successfully"}), 200


@bp.post("/salons/search/nearby")
def search_nearby():
    """Active salons within ``maxDistance`` km of a point, nearest first.
    ---
    tags:
      - Salons
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            latitude:
              type: number
            longitude:
              type: number
            maxDistance:
              type: number
              default: 50
          required:
            - latitude
            - longitude
    responses:
      200:
        description: Up to 20 salons ordered by distance
      400:
        description: Missing coordinates
    """
    payload = _json_body()

    try:
        nearby = salons.nearby_salons(payload)
    except ApiError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _database_error(exc, "Failed to search salons")

    return jsonify({"success": True, "data": nearby}), 200


# --- Bookings ---


@bp.post("/bookings/create")
@login_required
def create_booking():
    """Request an appointment at a salon.
    ---
    tags:
      - Bookings
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            salonId:
              type: integer
            services:
              type: array
              items:
                type: string
            date:
              type: string
              example: 2026-01-31
            time:
              type: string
              example: "10:00"
            notes:
              type: string
            totalAmount:
              type: number
          required:
            - salonId
            - services
            - date
            - time
    responses:
      201:
        description: Booking created with status pending
      400:
        description: Invalid payload, inactive salon, past date or own salon
      404:
        description: Salon not found
    """
    payload = _json_body()

    try:
        booking = bookings.create_booking(g.session, payload)
    except ApiError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _database_error(exc, "Failed to create booking")

    return jsonify({
        "success": True,
        "message": "Booking created successfully",
        "data": booking.to_dict(),
    }), 201


@bp.get("/bookings/my-bookings")
@login_required
def list_my_bookings():
    try:
        mine = bookings.list_user_bookings(g.session)
    except SQLAlchemyError as exc:
        return _database_error(exc, "Failed to fetch bookings")

    return jsonify({"success": True, "data": [booking.to_dict() for booking in mine]}), 200


@bp.get("/bookings/salon/<int:salon_id>")
@login_required
def list_salon_bookings(salon_id: int):
    """Bookings for a salon the caller owns, earliest first.
    ---
    tags:
      - Bookings
    parameters:
      - name: salon_id
        in: path
        type: integer
        required: true
      - name: status
        in: query
        type: string
        enum: [pending, confirmed, cancelled, completed]
    responses:
      200:
        description: Bookings for the salon
      403:
        description: Caller does not own the salon
      404:
        description: Salon not found
    """
    status = (request.args.get("status") or "").strip() or None

    try:
        found = bookings.list_salon_bookings(g.session, salon_id, status)
    except ApiError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _database_error(exc, "Failed to fetch salon bookings")

    return jsonify({"success": True, "data": [booking.to_dict() for booking in found]}), 200


@bp.get("/bookings/<int:booking_id>")
@login_required
def get_booking(booking_id: int):
    try:
        booking = bookings.get_booking(g.session, booking_id)
    except ApiError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _database_error(exc, "Failed to fetch booking")

    return jsonify({"success": True, "data": booking.to_dict()}), 200


def _reason(payload: dict) -> str | None:
    reason = payload.get("cancellationReason")
    return reason if isinstance(reason, str) else None


@bp.put("/bookings/<int:booking_id>/status")
@login_required
def update_booking_status(booking_id: int):
    """Move a booking to a new status.

    Customers may only cancel; the salon's owner may confirm, complete or
    cancel.
    ---
    tags:
      - Bookings
    parameters:
      - in: path
        name: booking_id
        required: true
        type: integer
      - in: body
        name: body
        required: true
        schema:
          properties:
            status:
              type: string
              enum: [pending, confirmed, cancelled, completed]
            cancellationReason:
              type: string
    responses:
      200:
        description: Booking updated
      400:
        description: Invalid status, disallowed move or not cancellable
      403:
        description: Caller may not make this change
      404:
        description: Booking not found
    """
    payload = _json_body()
    status = payload.get("status")

    try:
        booking = bookings.transition_booking(g.session, booking_id, status, _reason(payload))
    except ApiError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _database_error(exc, "Failed to update booking")

    return jsonify({
        "success": True,
        "message": f"Booking {status} successfully",
        "data": booking.to_dict(),
    }), 200


@bp.put("/bookings/<int:booking_id>/cancel")
@login_required
def cancel_booking(booking_id: int):
    payload = _json_body()

    try:
        booking = bookings.cancel_booking(g.session, booking_id, _reason(payload))
    except ApiError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _database_error(exc, "Failed to cancel booking")

    return jsonify({
        "success": True,
        "message": "Booking cancelled successfully",
        "data": booking.to_dict(),
    }), 200


def register_routes(app) -> None:
    app.register_blueprint(bp)
