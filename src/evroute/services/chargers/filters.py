"""Post-search charger filtering for user-selected filters."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ...models.domain import Availability, Charger, ChargerFilters

logger = logging.getLogger(__name__)

# Amenity names offered in the app mapped to the place types providers report.
AMENITY_PLACE_TYPES: dict[str, tuple[str, ...]] = {
    "restaurant": ("restaurant", "meal_delivery", "meal_takeaway", "food"),
    "cafe": ("cafe", "bakery", "coffee_shop"),
    "hospital": ("hospital", "health_care", "medical_center", "doctor", "emergency_room"),
    "hotel": ("lodging", "hotel", "motel", "guest_house"),
    "gas_station": ("gas_station", "fuel", "electric_vehicle_charging_station"),
    "supermarket": ("supermarket", "grocery_or_supermarket", "convenience_store", "food_market"),
    "convenience_store": (
        "convenience_store",
        "grocery_or_supermarket",
        "store",
        "general_store",
        "mini_market",
    ),
    "shopping_mall": ("shopping_mall", "shopping_center", "department_store", "marketplace"),
    "pharmacy": ("pharmacy", "drugstore"),
    "bank": ("bank", "finance", "financial_institution"),
    "atm": ("atm", "finance"),
    "gym": ("gym", "fitness_center", "health_club", "sports_center"),
    "bar": ("bar", "night_club", "pub"),
    "museum": ("museum", "art_gallery", "tourist_attraction"),
    "library": ("library", "book_store"),
    "movie_theater": ("movie_theater", "cinema"),
    "post_office": ("post_office", "courier_service"),
    "parking": ("parking", "parking_lot"),
}


def _matches_amenities(charger: Charger, amenities: Sequence[str]) -> bool:
    if not charger.amenities:
        return False
    for amenity in amenities:
        place_types = AMENITY_PLACE_TYPES.get(amenity, (amenity,))
        if charger.amenities.intersection(place_types):
            return True
    return False


def _matches_brand(charger: Charger, brands: Sequence[str]) -> bool:
    haystack = " ".join(filter(None, (charger.operator, charger.name))).lower()
    return any(brand.lower() in haystack for brand in brands)


def matches_filters(charger: Charger, filters: ChargerFilters) -> bool:
    if filters.available_only and charger.availability != Availability.AVAILABLE:
        return False
    if filters.min_rating is not None and (charger.rating is None or charger.rating < filters.min_rating):
        return False
    if filters.min_power_kw is not None and charger.power_kw is not None and charger.power_kw < filters.min_power_kw:
        return False
    if filters.connector_type and charger.connectors:
        if not any(conn.connector_type == filters.connector_type for conn in charger.connectors):
            return False
    if filters.brands and not _matches_brand(charger, filters.brands):
        return False
    if filters.amenities and not _matches_amenities(charger, filters.amenities):
        return False
    return True


def apply_filters(chargers: Iterable[Charger], filters: ChargerFilters | None) -> list[Charger]:
    """Keep chargers satisfying every active filter, preserving input order."""

    chargers = list(chargers)
    if filters is None:
        return chargers
    kept = [charger for charger in chargers if matches_filters(charger, filters)]
    if len(kept) != len(chargers):
        logger.debug(f"Filters kept {len(kept)}/{len(chargers)} chargers")
    return kept
