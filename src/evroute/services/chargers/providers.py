"""Adapters normalising provider POI payloads into ``Charger`` records."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from ...models.domain import Availability, Charger, Connector, Coordinate

logger = logging.getLogger(__name__)

TOMTOM = "tomtom"
GOOGLE_PLACES = "google"

_GOOGLE_CLOSED_STATUSES = {"CLOSED_TEMPORARILY", "CLOSED_PERMANENTLY"}


def charger_id(provider: str, provider_id: Optional[str], position: Coordinate) -> str:
    if provider_id:
        return f"{provider}:{provider_id}"
    return f"{position.latitude:.6f},{position.longitude:.6f}"


def _to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _tomtom_connectors(result: dict) -> tuple[Connector, ...]:
    raw_connectors = (result.get("chargingAvailability") or {}).get("connectors")
    if raw_connectors is None:
        raw_connectors = (result.get("chargingPark") or {}).get("connectors") or []
    connectors: list[Connector] = []
    for raw in raw_connectors:
        current = ((raw.get("availability") or {}).get("current") or {})
        available = current.get("available")
        connectors.append(
            Connector(
                connector_type=str(raw.get("type") or raw.get("connectorType") or "unknown"),
                power_kw=_to_float(raw.get("powerKW", raw.get("ratedPowerKW"))),
                available=int(available) if available is not None else None,
            )
        )
    return tuple(connectors)


def _availability_from_connectors(connectors: Iterable[Connector]) -> Availability:
    reported = [conn.available for conn in connectors if conn.available is not None]
    if not reported:
        return Availability.UNKNOWN
    if any(count > 0 for count in reported):
        return Availability.AVAILABLE
    return Availability.UNAVAILABLE


def from_tomtom(result: dict) -> Charger:
    """Build a charger from a TomTom POI search result."""

    poi = result.get("poi") or {}
    position_raw = result.get("position") or {}
    position = Coordinate(latitude=float(position_raw["lat"]), longitude=float(position_raw["lon"]))
    connectors = _tomtom_connectors(result)
    powers = [conn.power_kw for conn in connectors if conn.power_kw is not None]
    brands = poi.get("brands") or []
    operator = brands[0].get("name") if brands else None
    provider_id = result.get("id")
    return Charger(
        id=charger_id(TOMTOM, provider_id, position),
        position=position,
        name=poi.get("name") or "Unnamed Charger",
        operator=operator,
        power_kw=max(powers) if powers else None,
        rating=None,
        availability=_availability_from_connectors(connectors),
        categories=frozenset(poi.get("categories") or ()),
        provider=TOMTOM,
        provider_id=provider_id,
        address=(result.get("address") or {}).get("freeformAddress"),
        connectors=connectors,
    )


def from_google_place(place: dict) -> Charger:
    """Build a charger from a Google Places nearby-search result."""

    location = (place.get("geometry") or {}).get("location") or {}
    position = Coordinate(latitude=float(location["lat"]), longitude=float(location["lng"]))
    business_status = place.get("business_status")
    if business_status in _GOOGLE_CLOSED_STATUSES:
        availability = Availability.UNAVAILABLE
    else:
        availability = Availability.UNKNOWN
    provider_id = place.get("place_id")
    types = frozenset(place.get("types") or ())
    return Charger(
        id=charger_id(GOOGLE_PLACES, provider_id, position),
        position=position,
        name=place.get("name") or "Unnamed Charger",
        operator=None,
        power_kw=None,
        rating=_to_float(place.get("rating")),
        availability=availability,
        categories=types,
        provider=GOOGLE_PLACES,
        provider_id=provider_id,
        address=place.get("vicinity") or place.get("formatted_address"),
        amenities=types,
    )


def parse_results(results: Iterable[dict], adapter) -> list[Charger]:
    """Apply an adapter to raw results, skipping entries without a usable position."""

    chargers: list[Charger] = []
    for raw in results:
        try:
            chargers.append(adapter(raw))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning(f"Skipping malformed charger result: {exc}")
    return chargers
