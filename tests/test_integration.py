import math

import pytest
from fastapi.testclient import TestClient

from src.evroute.config import settings
from src.evroute.main import create_app
from src.evroute.models.domain import Availability, Charger, Coordinate
from src.evroute.services.chargers.cache import InMemoryChargerCache
from src.evroute.services.geospatial import path_length_km
from src.evroute.services.routing.models import RouteDetails

KM_PER_DEGREE = 6371.0 * math.pi / 180.0


class DummyOSRM:
    def get_route(self, waypoints):
        distance_km = path_length_km(waypoints)
        return RouteDetails(distance_m=distance_km * 1000.0, duration_s=distance_km * 40.0, geometry=list(waypoints))


class DummySearch:
    def __init__(self, chargers=None):
        self.chargers = chargers
        self.calls = 0

    def search(self, point, radius_m, filters=None):
        self.calls += 1
        if self.chargers is not None:
            return list(self.chargers)
        return [Charger(id=f"C{self.calls}", position=point, name=f"Charger {self.calls}", power_kw=120.0)]


def _dublin_chargers() -> list[Charger]:
    return [
        Charger(
            id=f"D{i}",
            position=Coordinate(53.3498 + i * 0.0004, -6.2603 + i * 0.0003),
            name=f"Dublin {i}",
            rating=4.0,
            availability=Availability.AVAILABLE,
        )
        for i in range(8)
    ]


@pytest.fixture
def api_client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    from src.evroute.services.chargers import service as charger_service
    from src.evroute.services.routing import service as trip_service

    search = DummySearch()
    monkeypatch.setattr(settings, "search_delay_seconds", 0.0)
    monkeypatch.setattr(trip_service, "OSRMClient", lambda *args, **kwargs: DummyOSRM())
    monkeypatch.setattr(trip_service, "build_charger_search", lambda: search)
    monkeypatch.setattr(trip_service, "get_charger_cache", lambda: InMemoryChargerCache())
    monkeypatch.setattr(charger_service, "build_charger_search", lambda: DummySearch(_dublin_chargers()))
    cache = InMemoryChargerCache()
    monkeypatch.setattr(charger_service, "get_charger_cache", lambda: cache)

    return TestClient(create_app())


def _trip_payload(available: float, maximum: float, distance_km: float = 500.0) -> dict:
    return {
        "origin": {"latitude": 0.0, "longitude": 0.0},
        "destination": {"latitude": 0.0, "longitude": distance_km / KM_PER_DEGREE},
        "range": {"available_range_km": available, "max_range_km": maximum},
    }


def test_root_and_health(api_client: TestClient):
    root = api_client.get("/")
    health = api_client.get("/api/health")

    assert root.status_code == 200
    assert root.json()["status"] == "running"
    assert health.json() == {"status": "ok"}


def test_plan_trip_endpoint(api_client: TestClient):
    response = api_client.post("/api/trips/plan", json=_trip_payload(200.0, 300.0))

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "planned"
    assert len(payload["waypoints"]) == 3
    assert len(payload["stops"]) == 1
    assert payload["navigation"]["route_profile"] == "driving"


def test_plan_trip_sufficient_range(api_client: TestClient):
    response = api_client.post("/api/trips/plan", json=_trip_payload(300.0, 400.0, distance_km=120.0))

    assert response.status_code == 200
    assert response.json()["status"] == "sufficient_range"


def test_plan_trip_rejects_invalid_latitude(api_client: TestClient):
    payload = _trip_payload(200.0, 300.0)
    payload["origin"]["latitude"] = 95.0

    response = api_client.post("/api/trips/plan", json=payload)

    assert response.status_code == 422


def test_plan_trip_rejects_available_above_maximum(api_client: TestClient):
    response = api_client.post("/api/trips/plan", json=_trip_payload(350.0, 300.0))

    assert response.status_code == 400
    assert "max_range_km" in response.json()["detail"]


def test_plan_trip_no_route_is_404(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from src.evroute.services.routing import service as trip_service

    class NoRouteOSRM:
        def get_route(self, waypoints):
            return None

    monkeypatch.setattr(trip_service, "OSRMClient", lambda *args, **kwargs: NoRouteOSRM())

    response = api_client.post("/api/trips/plan", json=_trip_payload(200.0, 300.0))

    assert response.status_code == 404


def test_cluster_endpoint_groups_client_chargers(api_client: TestClient):
    chargers = [
        {"id": charger.id, "latitude": charger.position.latitude, "longitude": charger.position.longitude}
        for charger in _dublin_chargers()
    ]

    low = api_client.post("/api/chargers/clusters", json={"chargers": chargers, "zoom": 9})
    street = api_client.post("/api/chargers/clusters", json={"chargers": chargers, "zoom": 15})

    assert low.status_code == 200
    low_payload = low.json()
    assert low_payload["total_chargers"] == 8
    assert low_payload["radius_km"] == 3.0
    assert len(low_payload["nodes"]) == 1
    assert low_payload["nodes"][0]["label"] == "8"
    assert len(street.json()["nodes"]) == 8


def test_nearby_endpoint_uses_cache_for_close_centers(api_client: TestClient):
    body = {"center": {"latitude": 53.35, "longitude": -6.26}, "zoom": 11}

    first = api_client.post("/api/chargers/nearby", json=body)
    body["center"]["latitude"] = 53.36
    second = api_client.post("/api/chargers/nearby", json=body)

    assert first.status_code == 200
    assert first.json()["cached"] is False
    assert first.json()["search_radius_m"] == 15000
    assert second.json()["cached"] is True
    assert second.json()["total_chargers"] == 8


def test_nearby_endpoint_limits_to_viewport(api_client: TestClient):
    body = {
        "center": {"latitude": 53.35, "longitude": -6.26},
        "zoom": 16,
        "viewport": {"south": 53.3490, "west": -6.2610, "north": 53.3515, "east": -6.2590},
    }

    response = api_client.post("/api/chargers/nearby", json=body)

    assert response.status_code == 200
    # D0..D4 fall inside the latitude bound
    assert response.json()["total_chargers"] == 5


def test_focus_endpoint_returns_camera_target(api_client: TestClient):
    members = [
        {"latitude": 0.0, "longitude": 0.0},
        {"latitude": 0.05, "longitude": 0.05},
    ]

    response = api_client.post("/api/chargers/focus", json={"members": members, "current_zoom": 8})

    assert response.status_code == 200
    payload = response.json()
    assert payload["zoom"] == pytest.approx(11.678, abs=1e-3)
    assert payload["bounds"]["north"] == pytest.approx(0.0525)


def test_plan_trip_without_max_range_uses_available_range(api_client: TestClient):
    payload = _trip_payload(600.0, 0.0)
    del payload["range"]["max_range_km"]

    response = api_client.post("/api/trips/plan", json=payload)

    assert response.status_code == 200
    assert response.json()["status"] == "sufficient_range"


def test_plan_trip_without_max_range_plans_legs_within_available_range(api_client: TestClient):
    payload = _trip_payload(250.0, 0.0, distance_km=400.0)
    del payload["range"]["max_range_km"]

    response = api_client.post("/api/trips/plan", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "planned"
    assert body["metadata"]["feasibility_range_km"] == 250.0
    assert len(body["waypoints"]) == 3
    assert body["stops"][0]["distance_km"] == pytest.approx(200.0, abs=0.01)


def test_plan_trip_missing_provider_key_is_503(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from src.evroute.services.chargers.search_client import build_charger_search
    from src.evroute.services.routing import service as trip_service

    monkeypatch.setattr(settings, "charger_provider", "tomtom")
    monkeypatch.setattr(settings, "tomtom_api_key", None)
    monkeypatch.setattr(trip_service, "build_charger_search", build_charger_search)

    response = api_client.post("/api/trips/plan", json=_trip_payload(200.0, 300.0))

    assert response.status_code == 503
    assert "not configured" in response.json()["detail"]


def test_nearby_missing_provider_key_is_503(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from src.evroute.services.chargers import service as charger_service
    from src.evroute.services.chargers.search_client import build_charger_search

    monkeypatch.setattr(settings, "charger_provider", "google")
    monkeypatch.setattr(settings, "google_places_api_key", None)
    monkeypatch.setattr(charger_service, "build_charger_search", build_charger_search)

    response = api_client.post("/api/chargers/nearby", json={"center": {"latitude": 10.0, "longitude": 10.0}, "zoom": 11})

    assert response.status_code == 503
