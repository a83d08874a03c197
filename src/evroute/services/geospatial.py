"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

from shapely.geometry import Point, box
from shapely.geometry.polygon import Polygon

from ..models.domain import Coordinate

EARTH_RADIUS_KM = 6371.0


class InvalidCoordinateError(ValueError):
    """Raised when a coordinate is outside the valid latitude/longitude range."""


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates in kilometres."""

    if a == b:
        return 0.0
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def validate_coordinate(coordinate: Coordinate) -> Coordinate:
    """Return the coordinate unchanged or raise ``InvalidCoordinateError``."""

    lat, lon = coordinate.latitude, coordinate.longitude
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise InvalidCoordinateError(f"Coordinate must be finite, got ({lat}, {lon}).")
    if not -90.0 <= lat <= 90.0:
        raise InvalidCoordinateError(f"Latitude {lat} is outside [-90, 90].")
    if not -180.0 <= lon <= 180.0:
        raise InvalidCoordinateError(f"Longitude {lon} is outside [-180, 180].")
    return coordinate


def coordinates_equal(a: Coordinate, b: Coordinate, tolerance: float = 1e-4) -> bool:
    return abs(a.latitude - b.latitude) < tolerance and abs(a.longitude - b.longitude) < tolerance


def interpolate(a: Coordinate, b: Coordinate, fraction: float) -> Coordinate:
    """Linear interpolation in latitude/longitude space (not along road geometry)."""

    return Coordinate(
        latitude=a.latitude + (b.latitude - a.latitude) * fraction,
        longitude=a.longitude + (b.longitude - a.longitude) * fraction,
    )


def sample_points(a: Coordinate, b: Coordinate, count: int) -> list[Coordinate]:
    """Return ``count`` evenly spaced interior points between ``a`` and ``b``."""

    if count < 1:
        return []
    return [interpolate(a, b, i / (count + 1)) for i in range(1, count + 1)]


def path_length_km(points: Sequence[Coordinate]) -> float:
    return sum(distance_km(points[i], points[i + 1]) for i in range(len(points) - 1))


def viewport_box(south: float, west: float, north: float, east: float) -> Polygon:
    return box(west, south, east, north)


def in_viewport(viewport: Polygon, coordinate: Coordinate) -> bool:
    return viewport.covers(Point(coordinate.longitude, coordinate.latitude))
