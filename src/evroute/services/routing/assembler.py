"""Formatting of planned routes for the turn-by-turn navigation view."""

from __future__ import annotations

from .models import NavigationPayload, PlannedRoute, ScoredCharger

ROUTE_PROFILE = "driving"


def stop_summary(stop: ScoredCharger) -> dict:
    charger = stop.charger
    return {
        "charger_id": charger.id,
        "name": charger.name,
        "operator": charger.operator,
        "latitude": charger.position.latitude,
        "longitude": charger.position.longitude,
        "power_kw": charger.power_kw,
        "availability": charger.availability.value,
        "distance_km": round(stop.distance_from_start_km, 2),
        "detour_percent": round(stop.detour_percent, 1),
        "score": round(stop.score, 4),
    }


def assemble_navigation(planned: PlannedRoute, profile: str = ROUTE_PROFILE) -> NavigationPayload:
    # The renderer takes [lng, lat] pairs.
    return NavigationPayload(
        coordinates=[[point.longitude, point.latitude] for point in planned.waypoints],
        route_profile=profile,
        waypoint_count=len(planned.waypoints),
        stops=[stop_summary(stop) for stop in planned.stops],
    )
