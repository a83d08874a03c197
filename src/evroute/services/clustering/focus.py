"""Camera targeting when a cluster marker is selected."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from ...models.domain import Coordinate
from .engine import ClusterNode


@dataclass(slots=True)
class CameraTarget:
    center: Coordinate
    zoom: Optional[float]
    # (south, west, north, east) when the camera should fit bounds instead
    bounds: Optional[tuple[float, float, float, float]] = None


def cluster_focus(node: ClusterNode, current_zoom: float) -> CameraTarget:
    """Pick a camera move that always zooms into the selected node."""

    if node.count <= 1:
        only = node.members[0].position if node.members else node.center
        return CameraTarget(center=only, zoom=max(current_zoom + 2, 15.5))

    lats = [member.position.latitude for member in node.members]
    lons = [member.position.longitude for member in node.members]
    min_lat, max_lat = min(lats), max(lats)
    min_lon, max_lon = min(lons), max(lons)
    lat_diff = max_lat - min_lat
    lon_diff = max_lon - min_lon
    span = max(lat_diff, lon_diff)

    if span < 0.005:
        return CameraTarget(center=node.center, zoom=max(current_zoom + 2.5, 16))

    padding = 0.1 if node.count > 50 or span > 0.1 else 0.05
    min_lat -= lat_diff * padding
    max_lat += lat_diff * padding
    min_lon -= lon_diff * padding
    max_lon += lon_diff * padding

    target_zoom = min(max(14 - math.log2(span * 100), 11), 16)
    target_zoom = max(target_zoom, current_zoom + 1.5)

    if span < 0.01 or target_zoom - current_zoom < 1.8:
        return CameraTarget(center=node.center, zoom=min(max(current_zoom + 2, 14), 16.5))
    if span > 0.5:
        return CameraTarget(center=node.center, zoom=min(max(current_zoom + 1, 11), 13))
    return CameraTarget(
        center=node.center,
        zoom=target_zoom,
        bounds=(min_lat, min_lon, max_lat, max_lon),
    )
