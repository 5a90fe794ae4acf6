"""Tests for listing, searching and radius queries over salons."""
from __future__ import annotations

import pytest

from salonbook.geocoding import CITY_COORDINATES


@pytest.fixture
def catalogue(owner, register, create_salon):
    other_owner = register("owner")
    salons = {
        "seattle": create_salon(owner, name="Emerald Cuts", city="Seattle",
                                services=[{"name": "Haircut", "price": 40}, {"name": "Color"}],
                                description="Color specialists downtown"),
        "toronto": create_salon(owner, name="North Shears", city="Greater Toronto Area", province="ON",
                                services=["Haircut", "Shave"]),
        "boston": create_salon(other_owner, name="Harbor Nails", city="Boston", province="MA",
                               services=["Manicure", "Pedicure"], description="Nail bar"),
        "hidden": create_salon(other_owner, name="Closed Color Studio", city="Boston", province="MA",
                               services=["Color"]),
    }
    other_owner.delete(f"/api/salons/{salons['hidden']['id']}")
    return salons


def _names(response) -> list[str]:
    return [salon["name"] for salon in response.get_json()["data"]]


def test_list_excludes_inactive_salons(client, catalogue) -> None:
    response = client.get("/api/salons")

    assert response.status_code == 200
    body = response.get_json()
    assert body["pagination"] == {"page": 1, "limit": 20, "total": 3, "pages": 1}
    assert "Closed Color Studio" not in _names(response)
    # Newest first by default.
    assert _names(response) == ["Harbor Nails", "North Shears", "Emerald Cuts"]


def test_soft_deleted_salon_still_fetchable_by_id(client, catalogue) -> None:
    response = client.get(f"/api/salons/{catalogue['hidden']['id']}")

    assert response.status_code == 200
    assert response.get_json()["data"]["isActive"] is False


def test_city_filter_is_case_insensitive_substring(client, catalogue) -> None:
    response = client.get("/api/salons?city=toronto")

    assert _names(response) == ["North Shears"]


def test_services_filter_matches_any(client, catalogue) -> None:
    response = client.get("/api/salons", query_string={"services": "shave, manicure"})

    assert sorted(_names(response)) == ["Harbor Nails", "North Shears"]


def test_search_orders_by_relevance(client, catalogue) -> None:
    response = client.get("/api/salons?search=color")

    # The inactive studio also offers Color but is not listed.
    assert _names(response) == ["Emerald Cuts"]

    response = client.get("/api/salons?search=haircut nail")
    assert sorted(_names(response)) == ["Emerald Cuts", "Harbor Nails", "North Shears"]


def test_radius_search_nearest_first(client, catalogue) -> None:
    lon, lat = CITY_COORDINATES["seattle"]

    response = client.get(f"/api/salons?latitude={lat}&longitude={lon}")

    assert _names(response) == ["Emerald Cuts"]
    assert response.get_json()["data"][0]["distanceKm"] == 0


def test_radius_search_with_wide_radius(client, catalogue) -> None:
    lon, lat = CITY_COORDINATES["boston"]

    response = client.get(f"/api/salons?latitude={lat}&longitude={lon}&maxDistance=5000")

    names = _names(response)
    assert names[0] == "Harbor Nails"
    assert "Emerald Cuts" in names


def test_radius_search_honours_zero_distance(client, catalogue) -> None:
    lon, lat = CITY_COORDINATES["seattle"]
    lat += 0.01

    assert _names(client.get(f"/api/salons?latitude={lat}&longitude={lon}")) == ["Emerald Cuts"]

    response = client.get(f"/api/salons?latitude={lat}&longitude={lon}&maxDistance=0")

    assert response.status_code == 200
    assert response.get_json()["data"] == []
    assert response.get_json()["pagination"]["total"] == 0


def test_pagination(client, catalogue) -> None:
    response = client.get("/api/salons?limit=2&page=2")

    body = response.get_json()
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}
    assert len(body["data"]) == 1


def test_invalid_pagination_params(client, catalogue) -> None:
    response = client.get("/api/salons?page=abc")

    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_nearby_endpoint(client, catalogue) -> None:
    lon, lat = CITY_COORDINATES["boston"]

    response = client.post("/api/salons/search/nearby", json={"latitude": lat, "longitude": lon})

    assert response.status_code == 200
    assert _names(response) == ["Harbor Nails"]


def test_nearby_requires_coordinates(client) -> None:
    response = client.post("/api/salons/search/nearby", json={"latitude": 40.0})

    assert response.status_code == 400
    assert response.get_json()["message"] == "Latitude and longitude are required"


def test_my_salons_includes_inactive(register, create_salon) -> None:
    owner = register("owner")
    first = create_salon(owner, name="First")
    create_salon(owner, name="Second")
    owner.delete(f"/api/salons/{first['id']}")

    response = owner.get("/api/salons/owner/my-salons")

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert [salon["name"] for salon in data] == ["Second", "First"]
    assert data[1]["isActive"] is False


def test_my_salons_requires_owner(customer) -> None:
    response = customer.get("/api/salons/owner/my-salons")

    assert response.status_code == 403


def test_nearby_honours_zero_distance(client, catalogue) -> None:
    lon, lat = CITY_COORDINATES["boston"]

    response = client.post(
        "/api/salons/search/nearby",
        json={"latitude": lat + 0.01, "longitude": lon, "maxDistance": 0},
    )

    assert response.status_code == 200
    assert response.get_json()["data"] == []


def test_negative_radius_rejected(client, catalogue) -> None:
    response = client.get("/api/salons?latitude=47.6&longitude=-122.3&maxDistance=-5")

    assert response.status_code == 400
    assert response.get_json()["message"] == "maxDistance cannot be negative"
