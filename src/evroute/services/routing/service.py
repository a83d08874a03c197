"""Trip planning orchestration."""

from __future__ import annotations

import logging

from ...models.domain import Coordinate
from ...schemas.common import CoordinateModel
from ...schemas.trips import ChargingStopModel, NavigationModel, TripPlanRequest, TripPlanResponse
from ..chargers.search_client import build_charger_search
from ..chargers.service import get_charger_cache
from ..geospatial import validate_coordinate
from .assembler import assemble_navigation
from .models import PlannedRoute, PlanStatus
from .osrm_client import OSRMClient
from .planner import CancellationToken, SegmentPlanner, has_sufficient_range, validate_range_profile

logger = logging.getLogger(__name__)


class RouteNotFoundError(LookupError):
    """Raised when the directions provider has no route for the trip."""


def _trip_waypoints(request: TripPlanRequest) -> list[Coordinate]:
    points = [request.origin, *request.via, request.destination]
    return [validate_coordinate(point.to_domain()) for point in points]


def _notices(status: PlanStatus, stop_count: int, unresolved_count: int) -> list[str]:
    if status == PlanStatus.SUFFICIENT_RANGE:
        return ["Your current range is sufficient for this trip."]
    notices = []
    if stop_count:
        notices.append(f"Added {stop_count} charging stop(s) to keep every leg within range.")
    if unresolved_count:
        notices.append(
            f"No suitable charger found for {unresolved_count} leg(s); those legs are left unchanged."
        )
    return notices


def plan_trip(request: TripPlanRequest, cancel_token: CancellationToken | None = None) -> TripPlanResponse:
    waypoints = _trip_waypoints(request)
    profile = validate_range_profile(request.range.to_domain())
    filters = request.filters.to_domain() if request.filters else None

    route_provider = OSRMClient()
    details = route_provider.get_route(waypoints)
    if details is None:
        raise RouteNotFoundError("No driving route found between the selected locations.")

    if has_sufficient_range(profile, details.distance_km):
        # No provider needed when the battery already covers the trip
        planned = PlannedRoute(
            waypoints=waypoints,
            status=PlanStatus.SUFFICIENT_RANGE,
            route_distance_km=details.distance_km,
        )
    else:
        planner = SegmentPlanner(build_charger_search(), cache=get_charger_cache())
        planned = planner.plan(waypoints, details.distance_km, profile, filters, cancel_token)

    metadata = {
        "original_distance_km": round(details.distance_km, 2),
        "feasibility_range_km": profile.feasibility_range_km,
        "unresolved_segments": len(planned.unresolved_segments),
    }
    final = details
    if planned.stops:
        rerouted = route_provider.get_route(planned.waypoints)
        if rerouted is not None:
            final = rerouted
        else:
            logger.warning("Could not fetch a route through the charging stops; keeping original metrics")
            metadata["reroute_failed"] = True

    navigation = assemble_navigation(planned)
    return TripPlanResponse(
        status=planned.status,
        waypoints=[CoordinateModel.from_domain(point) for point in planned.waypoints],
        stops=[ChargingStopModel(**stop) for stop in navigation.stops],
        navigation=NavigationModel(
            coordinates=navigation.coordinates,
            route_profile=navigation.route_profile,
            waypoint_count=navigation.waypoint_count,
        ),
        route_distance_km=round(final.distance_km, 2),
        route_duration_min=round(final.duration_s / 60.0, 1),
        notices=_notices(planned.status, len(planned.stops), len(planned.unresolved_segments)),
        metadata=metadata,
    )
