"""Zoom-adaptive charger clustering for map display."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ...models.domain import Charger, Coordinate
from ..geospatial import distance_km

logger = logging.getLogger(__name__)

NO_CLUSTER_ZOOM = 14.0
DEFAULT_MAX_NODES = 150

# (upper zoom bound, radius km); the first row whose bound exceeds the zoom wins.
CLUSTER_RADIUS_STEPS: tuple[tuple[float, float], ...] = (
    (8.0, 5.0),
    (10.0, 3.0),
    (12.0, 1.5),
    (13.0, 0.8),
    (14.0, 0.4),
)


@dataclass(slots=True)
class ClusterNode:
    """A render-ready marker: one charger or an aggregate of several."""

    id: str
    center: Coordinate
    members: list[Charger]
    cluster: bool

    @property
    def count(self) -> int:
        return len(self.members)


def cluster_radius_km(zoom: float) -> float:
    """Clustering radius for a zoom level; never grows as zoom increases."""

    for upper_bound, radius in CLUSTER_RADIUS_STEPS:
        if zoom < upper_bound:
            return radius
    return 0.0


def weighted_center(members: Sequence[Charger]) -> Coordinate:
    """Rating-weighted centroid, or the plain mean when no member is rated."""

    lats = np.array([charger.position.latitude for charger in members], dtype=float)
    lons = np.array([charger.position.longitude for charger in members], dtype=float)
    if any(charger.rating is not None for charger in members):
        weights = np.array(
            [charger.rating if charger.rating is not None else 1.0 for charger in members],
            dtype=float,
        )
        if weights.sum() > 0:
            return Coordinate(
                latitude=float(np.average(lats, weights=weights)),
                longitude=float(np.average(lons, weights=weights)),
            )
    return Coordinate(latitude=float(lats.mean()), longitude=float(lons.mean()))


def _make_node(node_id: str, members: list[Charger]) -> ClusterNode:
    if len(members) == 1:
        only = members[0]
        return ClusterNode(id=only.id, center=only.position, members=members, cluster=False)
    return ClusterNode(id=node_id, center=weighted_center(members), members=members, cluster=True)


def _greedy_pass(chargers: Sequence[Charger], radius_km: float) -> list[ClusterNode]:
    assigned = [False] * len(chargers)
    nodes: list[ClusterNode] = []
    for i, seed in enumerate(chargers):
        if assigned[i]:
            continue
        assigned[i] = True
        members = [seed]
        for j in range(i + 1, len(chargers)):
            if assigned[j]:
                continue
            # Membership is decided by distance to the seed only.
            if distance_km(seed.position, chargers[j].position) <= radius_km:
                members.append(chargers[j])
                assigned[j] = True
        nodes.append(_make_node(f"cluster-{i}", members))
    return nodes


def merge_nodes(nodes: Sequence[ClusterNode], radius_km: float) -> list[ClusterNode]:
    """Seed-based merge of nodes by center distance, repeated until stable."""

    current = list(nodes)
    while True:
        absorbed = [False] * len(current)
        merged: list[ClusterNode] = []
        for i, seed in enumerate(current):
            if absorbed[i]:
                continue
            absorbed[i] = True
            members = list(seed.members)
            group_ids = [seed.id]
            for j in range(i + 1, len(current)):
                if absorbed[j]:
                    continue
                if distance_km(seed.center, current[j].center) <= radius_km:
                    members.extend(current[j].members)
                    group_ids.append(current[j].id)
                    absorbed[j] = True
            if len(group_ids) == 1:
                merged.append(seed)
            else:
                merged.append(_make_node(f"merged-{seed.id}", members))
        if len(merged) == len(current):
            return merged
        current = merged


def cluster_chargers(
    chargers: Sequence[Charger],
    zoom: float,
    *,
    max_nodes: int = DEFAULT_MAX_NODES,
) -> list[ClusterNode]:
    """Group chargers into map nodes for a zoom level.

    Every input charger ends up in exactly one node. Results depend on input
    order because clusters grow around the first unassigned charger.
    """

    if not chargers:
        return []

    if zoom >= NO_CLUSTER_ZOOM:
        return [_make_node(charger.id, [charger]) for charger in chargers]

    radius = cluster_radius_km(zoom)
    nodes = _greedy_pass(chargers, radius)

    crowded = zoom < 12 and len(nodes) > 0.75 * max_nodes
    if len(nodes) > max_nodes or crowded:
        merge_radius = radius * (1.5 if zoom < 10 else 1.2)
        before = len(nodes)
        nodes = merge_nodes(nodes, merge_radius)
        logger.debug(f"Merge pass at {merge_radius:.2f} km reduced {before} nodes to {len(nodes)}")
        if len(nodes) > max_nodes:
            logger.warning(f"Cluster output still exceeds node cap: {len(nodes)} > {max_nodes}")

    return nodes


def format_cluster_label(count: int) -> str:
    """Marker label for a cluster count."""

    if count > 999:
        return f"{count // 1000}k+"
    if count > 99:
        return "99+"
    return str(count)
