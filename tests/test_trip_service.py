import math

import pytest

from src.evroute.config import settings
from src.evroute.models.domain import Charger, Coordinate
from src.evroute.schemas.common import CoordinateModel
from src.evroute.schemas.trips import RangeProfileModel, TripPlanRequest
from src.evroute.services.chargers.cache import NullChargerCache
from src.evroute.services.geospatial import path_length_km
from src.evroute.services.routing import service as trip_service
from src.evroute.services.routing.models import PlanStatus, RouteDetails

KM_PER_DEGREE = 6371.0 * math.pi / 180.0


def _point(along_km: float) -> CoordinateModel:
    return CoordinateModel(latitude=0.0, longitude=along_km / KM_PER_DEGREE)


class DummyOSRM:
    """Straight-line routes through the requested waypoints."""

    def __init__(self, reroute_fails: bool = False):
        self.requests: list[list[Coordinate]] = []
        self.reroute_fails = reroute_fails

    def get_route(self, waypoints):
        self.requests.append(list(waypoints))
        if self.reroute_fails and len(self.requests) > 1:
            return None
        distance_km = path_length_km(waypoints)
        return RouteDetails(distance_m=distance_km * 1000.0, duration_s=distance_km * 36.0, geometry=list(waypoints))


class DummySearch:
    def __init__(self):
        self.calls = 0

    def search(self, point, radius_m, filters=None):
        self.calls += 1
        return [Charger(id=f"C{self.calls}", position=point, name=f"Charger {self.calls}", power_kw=50.0)]


@pytest.fixture
def dummies(monkeypatch: pytest.MonkeyPatch):
    osrm = DummyOSRM()
    search = DummySearch()
    monkeypatch.setattr(settings, "search_delay_seconds", 0.0)
    monkeypatch.setattr(settings, "rate_limit_backoff_seconds", 0.0)
    monkeypatch.setattr(trip_service, "OSRMClient", lambda *args, **kwargs: osrm)
    monkeypatch.setattr(trip_service, "build_charger_search", lambda: search)
    monkeypatch.setattr(trip_service, "get_charger_cache", lambda: NullChargerCache())
    return osrm, search


def test_plan_trip_inserts_charging_stop(dummies):
    osrm, search = dummies
    request = TripPlanRequest(
        origin=_point(0.0),
        destination=_point(500.0),
        range=RangeProfileModel(available_range_km=200.0, max_range_km=300.0),
    )

    response = trip_service.plan_trip(request)

    assert response.status == PlanStatus.PLANNED
    assert len(response.waypoints) == 3
    assert len(response.stops) == 1
    assert response.stops[0].distance_km == pytest.approx(250.0, abs=0.01)
    assert response.navigation.waypoint_count == 3
    # [lng, lat] order for the renderer
    assert response.navigation.coordinates[0] == [0.0, 0.0]
    assert response.route_distance_km == pytest.approx(500.0, abs=0.01)
    assert response.metadata["unresolved_segments"] == 0
    # Initial route plus the reroute through the stop
    assert len(osrm.requests) == 2
    assert search.calls == 5
    assert any("charging stop" in notice for notice in response.notices)


def test_plan_trip_with_sufficient_range_skips_search(monkeypatch: pytest.MonkeyPatch):
    osrm = DummyOSRM()
    monkeypatch.setattr(trip_service, "OSRMClient", lambda *args, **kwargs: osrm)

    def no_search():
        raise AssertionError("charger search should not be built")

    monkeypatch.setattr(trip_service, "build_charger_search", no_search)
    request = TripPlanRequest(
        origin=_point(0.0),
        destination=_point(120.0),
        range=RangeProfileModel(available_range_km=150.0, max_range_km=400.0),
    )

    response = trip_service.plan_trip(request)

    assert response.status == PlanStatus.SUFFICIENT_RANGE
    assert len(response.waypoints) == 2
    assert response.stops == []
    assert response.notices == ["Your current range is sufficient for this trip."]
    assert len(osrm.requests) == 1


def test_plan_trip_keeps_via_points(dummies):
    osrm, _ = dummies
    request = TripPlanRequest(
        origin=_point(0.0),
        via=[_point(200.0)],
        destination=_point(600.0),
        range=RangeProfileModel(available_range_km=150.0, max_range_km=250.0),
    )

    response = trip_service.plan_trip(request)

    assert response.status == PlanStatus.PLANNED
    assert response.waypoints[0] == _point(0.0)
    assert response.waypoints[-1] == _point(600.0)
    assert response.waypoints[1] == _point(200.0)
    assert len(response.stops) == 1
    assert len(osrm.requests[0]) == 3


def test_plan_trip_reports_failed_reroute(monkeypatch: pytest.MonkeyPatch, dummies):
    osrm = DummyOSRM(reroute_fails=True)
    monkeypatch.setattr(trip_service, "OSRMClient", lambda *args, **kwargs: osrm)
    request = TripPlanRequest(
        origin=_point(0.0),
        destination=_point(500.0),
        range=RangeProfileModel(available_range_km=200.0, max_range_km=300.0),
    )

    response = trip_service.plan_trip(request)

    assert response.metadata["reroute_failed"] is True
    assert response.route_distance_km == pytest.approx(500.0, abs=0.01)


def test_plan_trip_raises_when_no_route(monkeypatch: pytest.MonkeyPatch):
    class NoRouteOSRM:
        def get_route(self, waypoints):
            return None

    monkeypatch.setattr(trip_service, "OSRMClient", lambda *args, **kwargs: NoRouteOSRM())
    request = TripPlanRequest(origin=_point(0.0), destination=_point(500.0))

    with pytest.raises(trip_service.RouteNotFoundError):
        trip_service.plan_trip(request)


def test_plan_trip_rejects_available_above_maximum(dummies):
    osrm, _ = dummies
    request = TripPlanRequest(
        origin=_point(0.0),
        destination=_point(500.0),
        range=RangeProfileModel(available_range_km=350.0, max_range_km=300.0),
    )

    with pytest.raises(ValueError):
        trip_service.plan_trip(request)
    assert osrm.requests == []


def test_range_profile_without_maximum_keeps_it_unset():
    profile = RangeProfileModel(available_range_km=250.0)

    assert profile.max_range_km is None
    assert profile.to_domain().feasibility_range_km == 250.0
