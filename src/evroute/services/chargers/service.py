"""Orchestration for the charger map: search, filter, cache and cluster."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Charger, ChargerFilters, Coordinate
from ...schemas.chargers import (
    ChargerModel,
    ClusterNodeModel,
    ClusterRequest,
    ClusterResponse,
    FocusRequest,
    FocusResponse,
    NearbyChargersRequest,
    NearbyChargersResponse,
    ViewportModel,
)
from ...schemas.common import CoordinateModel
from ..clustering.engine import ClusterNode, cluster_chargers, cluster_radius_km, format_cluster_label, weighted_center
from ..clustering.focus import cluster_focus
from ..geospatial import in_viewport, validate_coordinate, viewport_box
from .cache import ChargerCache, InMemoryChargerCache, make_cache_key
from .dedup import dedupe
from .search_client import ChargerSearch, build_charger_search

logger = logging.getLogger(__name__)


@lru_cache()
def get_charger_cache() -> InMemoryChargerCache:
    """Process-wide charger cache; pass an explicit cache to bypass it."""
    return InMemoryChargerCache(
        max_entries=settings.charger_cache_max_entries,
        distance_threshold_deg=settings.charger_cache_distance_threshold_deg,
    )


def search_radius_for_zoom(zoom: float) -> int:
    """Wider searches at low zoom so clusters have enough chargers to group."""
    if zoom < 10:
        return 20000
    if zoom < 12:
        return 15000
    return 10000


def _node_cap(constrained: Optional[bool]) -> int:
    if constrained is None:
        return settings.effective_cluster_cap
    return settings.cluster_max_nodes_constrained if constrained else settings.cluster_max_nodes


def _node_to_model(node: ClusterNode) -> ClusterNodeModel:
    return ClusterNodeModel(
        id=node.id,
        latitude=node.center.latitude,
        longitude=node.center.longitude,
        cluster=node.cluster,
        count=node.count,
        label=format_cluster_label(node.count),
        members=[ChargerModel.from_domain(member) for member in node.members],
    )


@dataclass(slots=True)
class NearbyResult:
    chargers: list[Charger]
    radius_m: int
    cached: bool


def find_nearby_chargers(
    center: Coordinate,
    zoom: float,
    filters: ChargerFilters | None = None,
    *,
    search: ChargerSearch | None = None,
    cache: ChargerCache | None = None,
) -> NearbyResult:
    """Search around a map center, reusing recent results for nearby centers."""
    validate_coordinate(center)
    radius_m = search_radius_for_zoom(zoom)
    cache = cache if cache is not None else get_charger_cache()
    key = make_cache_key(center, radius_m, filters)

    entry = cache.get(key)
    if entry is not None:
        logger.info(f"Using {len(entry.chargers)} cached chargers")
        return NearbyResult(chargers=list(entry.chargers), radius_m=radius_m, cached=True)

    search = search if search is not None else build_charger_search()
    try:
        results = search.search(center, radius_m, filters)
    except OSError as exc:
        logger.warning(f"Charger search failed for map view: {exc}")
        return NearbyResult(chargers=[], radius_m=radius_m, cached=False)

    unique = dedupe(results)
    logger.info(f"Reduced {len(results)} chargers to {len(unique)} after deduplication")
    cache.put(key, unique, settings.charger_cache_ttl_seconds)
    return NearbyResult(chargers=unique, radius_m=radius_m, cached=False)


def cluster_for_display(
    chargers: Sequence[Charger], zoom: float, constrained: Optional[bool] = None
) -> ClusterResponse:
    nodes = cluster_chargers(chargers, zoom, max_nodes=_node_cap(constrained))
    return ClusterResponse(
        zoom=zoom,
        radius_km=cluster_radius_km(zoom),
        total_chargers=len(chargers),
        nodes=[_node_to_model(node) for node in nodes],
    )


def process_cluster_request(request: ClusterRequest) -> ClusterResponse:
    chargers = [model.to_domain() for model in request.chargers]
    return cluster_for_display(chargers, request.zoom, request.constrained_platform)


def process_nearby_request(
    request: NearbyChargersRequest,
    *,
    search: ChargerSearch | None = None,
    cache: ChargerCache | None = None,
) -> NearbyChargersResponse:
    filters = request.filters.to_domain() if request.filters else None
    result = find_nearby_chargers(request.center.to_domain(), request.zoom, filters, search=search, cache=cache)

    chargers = result.chargers
    if request.viewport is not None:
        bounds = viewport_box(
            request.viewport.south, request.viewport.west, request.viewport.north, request.viewport.east
        )
        chargers = [charger for charger in chargers if in_viewport(bounds, charger.position)]

    clustered = cluster_for_display(chargers, request.zoom, request.constrained_platform)
    return NearbyChargersResponse(
        **clustered.model_dump(),
        search_radius_m=result.radius_m,
        cached=result.cached,
    )


def process_focus_request(request: FocusRequest) -> FocusResponse:
    members = [model.to_domain() for model in request.members]
    center = request.center.to_domain() if request.center else weighted_center(members)
    node = ClusterNode(id="selected", center=center, members=members, cluster=len(members) > 1)
    target = cluster_focus(node, request.current_zoom)
    bounds = None
    if target.bounds is not None:
        south, west, north, east = target.bounds
        bounds = ViewportModel(
            south=max(south, -90.0),
            west=max(west, -180.0),
            north=min(north, 90.0),
            east=min(east, 180.0),
        )
    return FocusResponse(center=CoordinateModel.from_domain(target.center), zoom=target.zoom, bounds=bounds)
