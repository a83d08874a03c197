"""HTTP client for OSRM route geometry."""

from __future__ import annotations

import logging
import time
from typing import Optional, Sequence

import httpx

from ...config import ConfigurationError, settings
from ...models.domain import Coordinate
from .models import RouteDetails

logger = logging.getLogger(__name__)

# OSRM codes meaning "no route between these points" rather than a failure
NO_ROUTE_CODES = {"NoRoute", "NoSegment"}


class OSRMClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float = 30.0,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.osrm_base_url
        if not self.base_url:
            raise ConfigurationError("OSRM base URL is not configured.")
        self.base_url = self.base_url.rstrip("/")
        self.profile = profile or settings.osrm_profile
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self.timeout = timeout
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )

    def route(self, coordinates: Sequence[tuple[float, float]]) -> dict:
        """Fetch the raw OSRM route response for (lat, lon) waypoints."""
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required for OSRM route.")

        # OSRM expects "lon,lat;lon,lat;..."
        coordinate_str = ";".join(f"{lon},{lat}" for lat, lon in coordinates)
        params = {
            "overview": "full",
            "geometries": "polyline",
            "steps": "false",
        }
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    # OSRM answers 400 with a JSON body for unroutable requests
                    if response.status_code == 400:
                        try:
                            data = response.json()
                        except ValueError:
                            data = {}
                        if data.get("code") in NO_ROUTE_CODES:
                            return data
                    response.raise_for_status()
                    return response.json()
                except httpx.HTTPStatusError:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise
                    time.sleep(self.backoff_seconds * attempt)
                except (httpx.TimeoutException, httpx.ReadTimeout) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"OSRM route request timed out after {self.max_retries} attempts: {e}")
                        raise
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM route timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
                except (httpx.ConnectError, httpx.NetworkError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ConnectionError(
                            f"Failed to connect to OSRM service at {self.base_url}: {e}"
                        ) from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    time.sleep(wait_time)
        finally:
            client.close()

    def get_route(self, waypoints: Sequence[Coordinate]) -> Optional[RouteDetails]:
        """Driving route through the waypoints, or None when OSRM finds no route."""
        data = self.route([waypoint.as_lat_lon() for waypoint in waypoints])
        routes = data.get("routes") or []
        if data.get("code") != "Ok" or not routes:
            logger.warning(f"No route returned by OSRM: {data.get('code')} {data.get('message', '')}")
            return None

        best = routes[0]
        geometry = [
            Coordinate(latitude=lat, longitude=lon)
            for lat, lon in decode_polyline(best.get("geometry") or "")
        ]
        return RouteDetails(
            distance_m=float(best.get("distance", 0.0)),
            duration_s=float(best.get("duration", 0.0)),
            geometry=geometry,
        )


def decode_polyline(polyline: str, precision: int = 5) -> list[tuple[float, float]]:
    """Decode an encoded polyline string to (lat, lon) pairs.

    OSRM uses Google's polyline encoding for route geometry.
    """
    coordinates = []
    factor = 10 ** precision
    index = 0
    lat = 0
    lon = 0

    while index < len(polyline):
        deltas = []
        for _ in range(2):
            shift = 0
            result = 0
            while True:
                b = ord(polyline[index]) - 63
                index += 1
                result |= (b & 0x1f) << shift
                shift += 5
                if b < 0x20:
                    break
            deltas.append(~(result >> 1) if (result & 1) else (result >> 1))
        lat += deltas[0]
        lon += deltas[1]
        coordinates.append((lat / factor, lon / factor))

    return coordinates


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM availability with a minimal two-point route request."""
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        test_coords = "13.388860,52.517037;13.385983,52.496891"
        url = f"{base.rstrip('/')}/route/v1/{settings.osrm_profile}/{test_coords}"
        response = httpx.get(url, params={"overview": "false"}, timeout=5.0)
        response.raise_for_status()
        return response.json().get("code") == "Ok"
    except (httpx.HTTPError, ValueError):
        return False
