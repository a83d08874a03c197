"""Range-constrained insertion of charging stops into a driving route."""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from ...config import settings
from ...models.domain import Charger, ChargerFilters, Coordinate, VehicleRangeProfile
from ..chargers.cache import ChargerCache, NullChargerCache, make_cache_key
from ..chargers.dedup import dedupe
from ..chargers.search_client import ChargerSearch, RateLimitError
from ..geospatial import coordinates_equal, distance_km, sample_points, validate_coordinate
from .models import PlannedRoute, PlanStatus, RouteSegment, ScoredCharger
from .scorer import select_best_charger

logger = logging.getLogger(__name__)

# Metres of search radius per kilometre of range
SEARCH_RADIUS_M_PER_RANGE_KM = 400


class PlanningCancelled(RuntimeError):
    """Raised when a planning pass is cancelled by its caller."""


class PlanningTimeout(RuntimeError):
    """Raised when a planning pass exceeds its wall-clock budget."""


class CancellationToken:
    """Thread-safe flag a caller sets to abandon an in-progress plan."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def validate_range_profile(profile: VehicleRangeProfile) -> VehicleRangeProfile:
    if not math.isfinite(profile.available_range_km) or profile.available_range_km < 0:
        raise ValueError("available_range_km must be a non-negative number.")
    if profile.max_range_km is not None:
        if not math.isfinite(profile.max_range_km) or profile.max_range_km <= 0:
            raise ValueError("max_range_km must be a positive number.")
        if profile.available_range_km > profile.max_range_km:
            raise ValueError(
                f"available_range_km ({profile.available_range_km}) cannot exceed "
                f"max_range_km ({profile.max_range_km})."
            )
    return profile


def has_sufficient_range(profile: VehicleRangeProfile, route_distance_km: float) -> bool:
    return profile.available_range_km >= route_distance_km


def search_radius_m(range_km: float, cap_m: int = 30000) -> int:
    return int(min(cap_m, range_km * SEARCH_RADIUS_M_PER_RANGE_KM))


@dataclass(slots=True)
class _PlanningPass:
    range_km: float
    radius_m: int
    filters: Optional[ChargerFilters]
    deadline: float
    token: Optional[CancellationToken]
    calls_made: int = 0
    unresolved: list[RouteSegment] = field(default_factory=list)


class SegmentPlanner:
    """Split route legs at chargers until every leg fits the vehicle range.

    Provider calls are serialised with a fixed delay between them; a call
    rejected for rate limiting is retried once after a longer backoff and
    otherwise contributes no candidates.
    """

    def __init__(
        self,
        search: ChargerSearch,
        *,
        sample_count: int | None = None,
        max_depth: int | None = None,
        search_delay_seconds: float | None = None,
        rate_limit_backoff_seconds: float | None = None,
        timeout_seconds: float | None = None,
        radius_cap_m: int | None = None,
        cache: ChargerCache | None = None,
        cache_ttl_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.search = search
        self.sample_count = sample_count if sample_count is not None else settings.planner_sample_count
        self.max_depth = max_depth if max_depth is not None else settings.planner_max_depth
        self.search_delay_seconds = (
            search_delay_seconds if search_delay_seconds is not None else settings.search_delay_seconds
        )
        self.rate_limit_backoff_seconds = (
            rate_limit_backoff_seconds
            if rate_limit_backoff_seconds is not None
            else settings.rate_limit_backoff_seconds
        )
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.planner_timeout_seconds
        self.radius_cap_m = radius_cap_m if radius_cap_m is not None else settings.search_radius_cap_m
        self.cache = cache if cache is not None else NullChargerCache()
        self.cache_ttl_seconds = (
            cache_ttl_seconds if cache_ttl_seconds is not None else settings.charger_cache_ttl_seconds
        )
        self.sleep = sleep
        self.clock = clock

    def plan(
        self,
        route_coordinates: Sequence[Coordinate],
        route_distance_km: float,
        profile: VehicleRangeProfile,
        filters: ChargerFilters | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> PlannedRoute:
        if len(route_coordinates) < 2:
            raise ValueError("A route needs at least a start and an end coordinate.")
        for coordinate in route_coordinates:
            validate_coordinate(coordinate)
        validate_range_profile(profile)

        if has_sufficient_range(profile, route_distance_km):
            logger.info(
                f"Range sufficient: {profile.available_range_km:.1f} km available for "
                f"{route_distance_km:.1f} km route"
            )
            return PlannedRoute(
                waypoints=list(route_coordinates),
                status=PlanStatus.SUFFICIENT_RANGE,
                route_distance_km=route_distance_km,
            )

        range_km = profile.feasibility_range_km
        state = _PlanningPass(
            range_km=range_km,
            radius_m=search_radius_m(range_km, self.radius_cap_m),
            filters=filters,
            deadline=self.clock() + self.timeout_seconds,
            token=cancel_token,
        )

        waypoints: list[Coordinate] = [route_coordinates[0]]
        stops: list[ScoredCharger] = []
        for start, end in zip(route_coordinates, route_coordinates[1:]):
            points, leg_stops = self._resolve(state, RouteSegment(start=start, end=end, depth=0))
            waypoints.extend(points[1:])
            stops.extend(leg_stops)

        self._check_active(state)
        status = PlanStatus.PARTIAL if state.unresolved else PlanStatus.PLANNED
        logger.info(
            f"Planned route with {len(stops)} charging stops, {len(state.unresolved)} unresolved "
            f"segments after {state.calls_made} search calls"
        )
        return PlannedRoute(
            waypoints=waypoints,
            status=status,
            stops=stops,
            unresolved_segments=list(state.unresolved),
            route_distance_km=route_distance_km,
        )

    def _resolve(
        self, state: _PlanningPass, segment: RouteSegment
    ) -> tuple[list[Coordinate], list[ScoredCharger]]:
        start, end = segment.start, segment.end
        if distance_km(start, end) <= state.range_km:
            return [start, end], []

        if segment.depth >= self.max_depth:
            logger.warning(f"Recursion depth {segment.depth} reached; leaving segment unresolved")
            state.unresolved.append(segment)
            return [start, end], []

        candidates = [
            charger
            for charger in self._collect_candidates(state, segment)
            if not coordinates_equal(charger.position, start) and not coordinates_equal(charger.position, end)
        ]
        best = select_best_charger(candidates, start, end, state.range_km)
        if best is None:
            logger.warning(
                f"No suitable charger found between {start.latitude:.4f},{start.longitude:.4f} "
                f"and {end.latitude:.4f},{end.longitude:.4f}"
            )
            state.unresolved.append(segment)
            return [start, end], []

        stop = best.charger.position
        left_points, left_stops = self._resolve(
            state, RouteSegment(start=start, end=stop, depth=segment.depth + 1)
        )
        right_points, right_stops = self._resolve(
            state, RouteSegment(start=stop, end=end, depth=segment.depth + 1)
        )
        return left_points + right_points[1:], left_stops + [best] + right_stops

    def _collect_candidates(self, state: _PlanningPass, segment: RouteSegment) -> list[Charger]:
        accumulated: list[Charger] = []
        for point in sample_points(segment.start, segment.end, self.sample_count):
            accumulated.extend(self._search_point(state, point))
        return dedupe(accumulated)

    def _search_point(self, state: _PlanningPass, point: Coordinate) -> list[Charger]:
        key = make_cache_key(point, state.radius_m, state.filters)
        cached = self.cache.get(key)
        if cached is not None:
            return list(cached.chargers)

        try:
            results = self._call_search(state, point)
        except RateLimitError:
            logger.info(f"Rate limited; retrying once in {self.rate_limit_backoff_seconds:.1f}s")
            self.sleep(self.rate_limit_backoff_seconds)
            try:
                results = self._call_search(state, point, throttle=False)
            except OSError as exc:
                logger.warning(f"Charger search failed after retry: {exc}")
                return []
        except OSError as exc:
            logger.warning(f"Charger search failed: {exc}")
            return []

        self.cache.put(key, results, self.cache_ttl_seconds)
        return results

    def _call_search(self, state: _PlanningPass, point: Coordinate, throttle: bool = True) -> list[Charger]:
        self._check_active(state)
        if throttle and state.calls_made > 0 and self.search_delay_seconds > 0:
            self.sleep(self.search_delay_seconds)
            self._check_active(state)
        state.calls_made += 1
        results = self.search.search(point, state.radius_m, state.filters)
        # Results of a call that finished after cancellation are dropped.
        self._check_active(state)
        return list(results)

    def _check_active(self, state: _PlanningPass) -> None:
        if state.token is not None and state.token.cancelled:
            raise PlanningCancelled("Route planning was cancelled.")
        if self.clock() > state.deadline:
            raise PlanningTimeout(f"Route planning exceeded {self.timeout_seconds:.0f}s.")
