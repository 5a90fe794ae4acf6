"""Approximate geocoding and great-circle distance helpers.

There is no real geocoding service behind this module. ``StaticCityGeocoder``
maps a handful of city names to fixed coordinates and falls back to a default
point for anything else. The fallback is logged because it stores coordinates
that have nothing to do with the salon's address.
"""
from __future__ import annotations

import math

from flask import current_app

EARTH_RADIUS_KM = 6371.0

# [longitude, latitude]
CITY_COORDINATES: dict[str, tuple[float, float]] = {
    "los angeles": (-118.2437, 34.0522),
    "new york": (-74.0060, 40.7128),
    "chicago": (-87.6298, 41.8781),
    "houston": (-95.3698, 29.7604),
    "phoenix": (-112.0740, 33.4484),
    "philadelphia": (-75.1652, 39.9526),
    "san antonio": (-98.4936, 29.4241),
    "san diego": (-117.1611, 32.7157),
    "dallas": (-96.7970, 32.7767),
    "san jose": (-121.8863, 37.3382),
    "miami": (-80.1918, 25.7617),
    "atlanta": (-84.3880, 33.7490),
    "seattle": (-122.3321, 47.6062),
    "boston": (-71.0589, 42.3601),
    "denver": (-104.9903, 39.7392),
}

DEFAULT_CITY = "los angeles"


class Geocoder:
    """Turns a postal address into ``(longitude, latitude)``."""

    def geocode(
        self,
        address: str | None,
        city: str | None,
        province: str | None,
        postal_code: str | None,
    ) -> tuple[float, float]:
        raise NotImplementedError


class StaticCityGeocoder(Geocoder):
    def __init__(
        self,
        table: dict[str, tuple[float, float]] | None = None,
        default: tuple[float, float] | None = None,
    ) -> None:
        self.table = dict(CITY_COORDINATES if table is None else table)
        self.default = default or CITY_COORDINATES[DEFAULT_CITY]

    def geocode(self, address, city, province, postal_code):
        key = (city or "").strip().lower()
        coords = self.table.get(key)
        if coords is None:
            current_app.logger.warning("No coordinates for city %r; using default location %s", city, self.default)
            return self.default
        return coords


def get_geocoder() -> Geocoder:
    return current_app.extensions["geocoder"]


def distance_km(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """Haversine distance between two points in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
