"""HTTP clients for charger point-of-interest search providers."""

from __future__ import annotations

import logging
import time
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from ...config import ConfigurationError, settings
from ...models.domain import Charger, ChargerFilters, Coordinate
from .filters import apply_filters
from .providers import from_google_place, from_tomtom, parse_results

logger = logging.getLogger(__name__)

# TomTom category for electric vehicle charging stations
TOMTOM_EV_CATEGORY = "7309"
TOMTOM_MAX_RADIUS_M = 50000
GOOGLE_MAX_RADIUS_M = 50000


class ChargerSearchError(ConnectionError):
    """Raised when a provider cannot be reached or returns an unusable payload."""


class RateLimitError(ChargerSearchError):
    """Raised when a provider signals throttling (HTTP 429 or quota status)."""


class ChargerSearch(Protocol):
    def search(self, point: Coordinate, radius_m: int, filters: ChargerFilters | None = None) -> list[Charger]:
        ...


class _HTTPSearchClient:
    """Shared request/retry handling for provider clients.

    Network failures and server errors are retried with exponential backoff.
    Throttling is never retried here: it surfaces as ``RateLimitError`` so the
    caller can apply its own backoff policy.
    """

    provider_name = "provider"

    def __init__(
        self,
        timeout: float | None = None,
        max_retries: int = 2,
        backoff_seconds: float = 1.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.timeout = timeout if timeout is not None else settings.search_timeout_seconds
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )

    def _check_payload(self, data: Any) -> None:
        """Hook for providers that report errors inside a 200 response."""

    def _get_json(self, url: str, params: dict) -> Any:
        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    if response.status_code == 429:
                        raise RateLimitError(f"{self.provider_name} rate limit exceeded (HTTP 429)")
                    response.raise_for_status()
                    data = response.json()
                    self._check_payload(data)
                    return data
                except RateLimitError:
                    raise
                except httpx.HTTPStatusError as exc:
                    if exc.response.status_code < 500:
                        raise ChargerSearchError(
                            f"{self.provider_name} search failed with HTTP {exc.response.status_code}"
                        ) from exc
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ChargerSearchError(f"{self.provider_name} search failed: {exc}") from exc
                    time.sleep(self.backoff_seconds * attempt)
                except (httpx.TimeoutException, httpx.NetworkError) as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ChargerSearchError(
                            f"Failed to reach {self.provider_name} after {self.max_retries} retries: {exc}"
                        ) from exc
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(
                        f"{self.provider_name} network error, retrying in {wait_time:.1f}s "
                        f"(attempt {attempt}/{self.max_retries}): {exc}"
                    )
                    time.sleep(wait_time)
                except ValueError as exc:
                    raise ChargerSearchError(f"{self.provider_name} returned invalid JSON: {exc}") from exc
        finally:
            client.close()


class TomTomChargerSearch(_HTTPSearchClient):
    provider_name = "TomTom"

    def __init__(self, api_key: str | None = None, base_url: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key or settings.tomtom_api_key
        if not self.api_key:
            raise ConfigurationError("TomTom API key is not configured.")
        self.base_url = (base_url or settings.tomtom_base_url).rstrip("/")

    def search(self, point: Coordinate, radius_m: int, filters: ChargerFilters | None = None) -> list[Charger]:
        params: dict[str, Any] = {
            "key": self.api_key,
            "lat": point.latitude,
            "lon": point.longitude,
            "radius": min(int(radius_m), TOMTOM_MAX_RADIUS_M),
            "categorySet": TOMTOM_EV_CATEGORY,
            "limit": 100,
        }
        if filters and filters.connector_type:
            params["connectorSet"] = filters.connector_type
        if filters and filters.min_power_kw:
            params["minPowerKW"] = filters.min_power_kw
        url = f"{self.base_url}/search/2/poiSearch/{quote('ev charger')}.json"
        data = self._get_json(url, params)
        chargers = parse_results(data.get("results") or [], from_tomtom)
        logger.debug(f"TomTom returned {len(chargers)} chargers near {point.latitude:.4f},{point.longitude:.4f}")
        return apply_filters(chargers, filters)


class GooglePlacesChargerSearch(_HTTPSearchClient):
    provider_name = "Google Places"

    def __init__(self, api_key: str | None = None, base_url: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key or settings.google_places_api_key
        if not self.api_key:
            raise ConfigurationError("Google Places API key is not configured.")
        self.base_url = (base_url or settings.google_places_base_url).rstrip("/")

    def _check_payload(self, data: Any) -> None:
        status = data.get("status")
        if status == "OVER_QUERY_LIMIT":
            raise RateLimitError("Google Places quota exceeded (OVER_QUERY_LIMIT)")
        if status not in (None, "OK", "ZERO_RESULTS"):
            raise ChargerSearchError(f"Google Places search failed: {status} {data.get('error_message', '')}".strip())

    def search(self, point: Coordinate, radius_m: int, filters: ChargerFilters | None = None) -> list[Charger]:
        params = {
            "key": self.api_key,
            "location": f"{point.latitude},{point.longitude}",
            "radius": min(int(radius_m), GOOGLE_MAX_RADIUS_M),
            "type": "electric_vehicle_charging_station",
        }
        url = f"{self.base_url}/maps/api/place/nearbysearch/json"
        data = self._get_json(url, params)
        chargers = parse_results(data.get("results") or [], from_google_place)
        return apply_filters(chargers, filters)


def build_charger_search() -> ChargerSearch:
    """Return the search client selected by configuration."""

    if settings.charger_provider == "google":
        return GooglePlacesChargerSearch()
    return TomTomChargerSearch()
