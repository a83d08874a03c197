"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ...models.domain import Charger, Coordinate


class PlanStatus(str, Enum):
    SUFFICIENT_RANGE = "sufficient_range"
    PLANNED = "planned"
    PARTIAL = "partial"


@dataclass(slots=True)
class RouteDetails:
    distance_m: float
    duration_s: float
    geometry: List[Coordinate]

    @property
    def distance_km(self) -> float:
        return self.distance_m / 1000.0


@dataclass(slots=True)
class RouteSegment:
    start: Coordinate
    end: Coordinate
    depth: int = 0


@dataclass(slots=True)
class ScoredCharger:
    charger: Charger
    score: float
    distance_from_start_km: float
    detour_percent: float


@dataclass(slots=True)
class PlannedRoute:
    waypoints: List[Coordinate]
    status: PlanStatus
    stops: List[ScoredCharger] = field(default_factory=list)
    unresolved_segments: List[RouteSegment] = field(default_factory=list)
    route_distance_km: Optional[float] = None

    @property
    def charger_count(self) -> int:
        return len(self.stops)


@dataclass(slots=True)
class NavigationPayload:
    coordinates: List[List[float]]
    route_profile: str
    waypoint_count: int
    stops: List[dict]
