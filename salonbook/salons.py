"""Salon registry: CRUD, soft delete and discovery queries."""
from __future__ import annotations

import re

from flask import current_app
from sqlalchemy import func, or_
from sqlalchemy.orm import joinedload, selectinload

from .auth import Session, require_owner, require_role
from .errors import NotFound, ValidationError
from .extensions import db
from .geocoding import distance_km, get_geocoder
from .models import WEEKDAYS, Salon, SalonService, default_opening_hours

DEFAULT_RADIUS_KM = 50.0
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
NEARBY_LIMIT = 20

EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")
HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

# request key -> Salon attribute
TEXT_FIELDS = {
    "name": "name",
    "description": "description",
    "address": "address",
    "city": "city",
    "province": "province",
    "postalCode": "postal_code",
    "phone": "phone",
    "email": "email",
    "website": "website",
}
ADDRESS_FIELDS = ("address", "city", "province", "postalCode")


def _clean(value) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("text fields must be strings")
    return value.strip() or None


def parse_services(raw) -> list[tuple[str, int | None]]:
    """Normalize ``[{name, price?}]`` (or plain names) to ``(name, price_cents)`` pairs."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("services must be a list")

    services: list[tuple[str, int | None]] = []
    seen: set[str] = set()
    for item in raw:
        if isinstance(item, str):
            name, price = item, None
        elif isinstance(item, dict):
            name, price = item.get("name"), item.get("price")
        else:
            raise ValidationError("each service must be a name or an object with a name")

        name = (name or "").strip() if isinstance(name, str) else ""
        if not name:
            raise ValidationError("each service needs a name")

        price_cents = None
        if price is not None:
            if isinstance(price, bool) or not isinstance(price, (int, float)) or price < 0:
                raise ValidationError(f"price for service '{name}' must be a non-negative number")
            price_cents = int(round(price * 100))

        # Duplicate names collapse to the first occurrence.
        if name.lower() in seen:
            continue
        seen.add(name.lower())
        services.append((name, price_cents))
    return services


def parse_opening_hours(raw, base: dict | None = None) -> dict[str, dict[str, object]]:
    hours = {day: dict(value) for day, value in (base or default_opening_hours()).items()}
    if raw is None:
        return hours
    if not isinstance(raw, dict):
        raise ValidationError("openingHours must be an object keyed by weekday")

    for day, entry in raw.items():
        key = str(day).lower()
        if key not in WEEKDAYS:
            raise ValidationError(f"unknown weekday '{day}' in openingHours")
        if not isinstance(entry, dict):
            raise ValidationError(f"openingHours.{key} must be an object")

        merged = {**hours[key], **{k: entry[k] for k in ("open", "close", "closed") if k in entry}}
        if not isinstance(merged["closed"], bool):
            raise ValidationError(f"openingHours.{key}.closed must be a boolean")
        for field in ("open", "close"):
            if not isinstance(merged[field], str) or not HHMM_RE.match(merged[field]):
                raise ValidationError(f"openingHours.{key}.{field} must be HH:MM")
        hours[key] = merged
    return hours


def _validate_record(values: dict[str, object]) -> None:
    if not values.get("name"):
        raise ValidationError("Salon name is required")
    if len(values["name"]) > 100:
        raise ValidationError("Salon name cannot exceed 100 characters")
    if values.get("description") and len(values["description"]) > 1000:
        raise ValidationError("Description cannot exceed 1000 characters")
    for attr, label in (("address", "Address"), ("city", "City"), ("province", "Province")):
        if not values.get(attr):
            raise ValidationError(f"{label} is required")
    if values.get("email") and not EMAIL_RE.match(values["email"]):
        raise ValidationError("Please provide a valid email address")


def _apply_services(salon: Salon, services: list[tuple[str, int | None]]) -> None:
    salon.services = [
        SalonService(name=name, price_cents=price_cents, position=index)
        for index, (name, price_cents) in enumerate(services)
    ]


def _geocode(values: dict[str, object]) -> tuple[float, float]:
    return get_geocoder().geocode(
        values.get("address"),
        values.get("city"),
        values.get("province"),
        values.get("postal_code"),
    )


def create_salon(session: Session, payload: dict) -> Salon:
    require_role(session, "owner", "Only owners can create salons")

    values = {attr: _clean(payload.get(key)) for key, attr in TEXT_FIELDS.items()}
    if values["email"]:
        values["email"] = values["email"].lower()
    _validate_record(values)
    services = parse_services(payload.get("services"))
    hours = parse_opening_hours(payload.get("openingHours"))

    longitude, latitude = _geocode(values)

    salon = Salon(
        owner_id=session.user_id,
        opening_hours=hours,
        longitude=longitude,
        latitude=latitude,
        is_active=True,
        **values,
    )
    _apply_services(salon, services)
    db.session.add(salon)
    db.session.commit()

    current_app.logger.info("Owner %s created salon %s", session.user_id, salon.salon_id)
    return salon


def _load_owned(session: Session, salon_id: int, action: str) -> Salon:
    require_role(session, "owner", f"Only owners can {action} salons")

    salon = db.session.get(Salon, salon_id)
    if salon is None:
        raise NotFound("Salon not found")

    require_owner(salon.owner_id, session, f"You can only {action} your own salons")
    return salon


def get_salon(salon_id: int) -> Salon:
    """Fetch one salon by id, active or not."""
    salon = (
        Salon.query.options(joinedload(Salon.owner), selectinload(Salon.services))
        .filter(Salon.salon_id == salon_id)
        .first()
    )
    if salon is None:
        raise NotFound("Salon not found")
    return salon


def list_owner_salons(session: Session) -> list[Salon]:
    require_role(session, "owner", "Only owners can access this endpoint")
    return (
        Salon.query.filter(Salon.owner_id == session.user_id)
        .order_by(Salon.created_at.desc(), Salon.salon_id.desc())
        .all()
    )


def update_salon(session: Session, salon_id: int, payload: dict) -> Salon:
    """Merge the supplied fields into the salon and validate the result."""
    salon = _load_owned(session, salon_id, "update")

    values = {attr: getattr(salon, attr) for attr in TEXT_FIELDS.values()}
    for key, attr in TEXT_FIELDS.items():
        if key in payload:
            values[attr] = _clean(payload[key])
    if values["email"]:
        values["email"] = values["email"].lower()
    _validate_record(values)

    # An explicit null leaves the services alone, like a missing key.
    services = parse_services(payload["services"]) if payload.get("services") is not None else None
    hours = (
        parse_opening_hours(payload["openingHours"], base=salon.opening_hours)
        if "openingHours" in payload
        else None
    )
    is_active = payload.get("isActive")
    if is_active is not None and not isinstance(is_active, bool):
        raise ValidationError("isActive must be a boolean")

    for attr, value in values.items():
        setattr(salon, attr, value)
    if services is not None:
        _apply_services(salon, services)
    if hours is not None:
        salon.opening_hours = hours
    if is_active is not None:
        salon.is_active = is_active

    if any(payload.get(key) for key in ADDRESS_FIELDS):
        salon.longitude, salon.latitude = _geocode(values)

    db.session.commit()
    current_app.logger.info("Owner %s updated salon %s", session.user_id, salon.salon_id)
    return salon


def set_salon_active(session: Session, salon_id: int, active: bool) -> Salon:
    """Toggle ``is_active`` without validating the rest of the record.

    Salons saved under older field rules must still be reactivatable, so only
    the role and ownership gates apply here.
    """
    salon = _load_owned(session, salon_id, "reactivate" if active else "delete")
    salon.is_active = active
    db.session.commit()

    current_app.logger.info(
        "Owner %s %s salon %s",
        session.user_id,
        "reactivated" if active else "deactivated",
        salon.salon_id,
    )
    return salon


def reactivate_salon(session: Session, salon_id: int) -> Salon:
    return set_salon_active(session, salon_id, True)


def delete_salon(session: Session, salon_id: int) -> Salon:
    """Soft delete: the record stays and can be reactivated."""
    return set_salon_active(session, salon_id, False)


def _parse_float(value, label: str) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{label} must be a number") from exc


def _radius(value) -> float:
    radius = _parse_float(value, "maxDistance")
    if radius is None:
        return DEFAULT_RADIUS_KM
    if radius < 0:
        raise ValidationError("maxDistance cannot be negative")
    return radius


def _parse_int(value, label: str, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{label} must be an integer") from exc


def _search_terms(search: str) -> list[str]:
    return re.findall(r"\w+", search.lower())


def _relevance(salon: Salon, terms: list[str]) -> int:
    haystacks = [salon.name or "", salon.description or "", salon.city or ""]
    haystacks.extend(service.name for service in salon.services)
    haystacks = [text.lower() for text in haystacks]
    return sum(1 for term in terms for text in haystacks if term in text)


def _within(salons: list[Salon], longitude: float, latitude: float, radius_km: float):
    """Return ``(salon, distance)`` pairs inside the radius, nearest first."""
    hits = []
    for salon in salons:
        if salon.longitude is None or salon.latitude is None:
            continue
        distance = distance_km(longitude, latitude, salon.longitude, salon.latitude)
        if distance <= radius_km:
            hits.append((salon, distance))
    hits.sort(key=lambda hit: hit[1])
    return hits


def _with_distance(salon: Salon, distance: float | None) -> dict[str, object]:
    payload = salon.to_dict()
    if distance is not None:
        payload["distanceKm"] = round(distance, 2)
    return payload


def list_salons(args) -> tuple[list[dict[str, object]], dict[str, int]]:
    """Active salons filtered by city, services, free text and radius.

    ``args`` is the query-string mapping. Returns the page of serialized
    salons and the pagination block.
    """
    city = (args.get("city") or "").strip()
    services = [s.strip().lower() for s in (args.get("services") or "").split(",") if s.strip()]
    search = (args.get("search") or "").strip()
    latitude = _parse_float(args.get("latitude"), "latitude")
    longitude = _parse_float(args.get("longitude"), "longitude")
    max_distance = _radius(args.get("maxDistance"))
    page = max(1, _parse_int(args.get("page"), "page", 1))
    limit = min(MAX_PAGE_SIZE, max(1, _parse_int(args.get("limit"), "limit", DEFAULT_PAGE_SIZE)))

    query = Salon.query.options(joinedload(Salon.owner), selectinload(Salon.services)).filter(
        Salon.is_active.is_(True)
    )

    if city:
        query = query.filter(Salon.city.ilike(f"%{city}%"))

    if services:
        query = query.filter(Salon.services.any(func.lower(SalonService.name).in_(services)))

    terms = _search_terms(search) if search else []
    if terms:
        clauses = []
        for term in terms:
            pattern = f"%{term}%"
            clauses.extend([
                Salon.name.ilike(pattern),
                Salon.description.ilike(pattern),
                Salon.city.ilike(pattern),
                Salon.services.any(SalonService.name.ilike(pattern)),
            ])
        query = query.filter(or_(*clauses))

    query = query.order_by(Salon.created_at.desc(), Salon.salon_id.desc())
    near = latitude is not None and longitude is not None

    if not near and not terms:
        total = query.count()
        salons = query.limit(limit).offset((page - 1) * limit).all()
        items = [salon.to_dict() for salon in salons]
    else:
        candidates = query.all()
        if near:
            ranked = _within(candidates, longitude, latitude, max_distance)
        else:
            # sorted() is stable, so ties keep the newest-first order.
            ranked = [(salon, None) for salon in sorted(
                candidates, key=lambda salon: _relevance(salon, terms), reverse=True
            )]
        total = len(ranked)
        window = ranked[(page - 1) * limit:page * limit]
        items = [_with_distance(salon, distance) for salon, distance in window]

    pagination = {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": (total + limit - 1) // limit,
    }
    return items, pagination


def nearby_salons(payload: dict) -> list[dict[str, object]]:
    latitude = _parse_float(payload.get("latitude"), "latitude")
    longitude = _parse_float(payload.get("longitude"), "longitude")
    if latitude is None or longitude is None:
        raise ValidationError("Latitude and longitude are required")

    max_distance = _radius(payload.get("maxDistance"))

    candidates = (
        Salon.query.options(joinedload(Salon.owner), selectinload(Salon.services))
        .filter(Salon.is_active.is_(True), Salon.longitude.isnot(None), Salon.latitude.isnot(None))
        .all()
    )
    hits = _within(candidates, longitude, latitude, max_distance)[:NEARBY_LIMIT]
    return [_with_distance(salon, distance) for salon, distance in hits]
