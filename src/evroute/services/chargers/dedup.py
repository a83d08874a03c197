"""Duplicate removal for charger search results."""

from __future__ import annotations

from typing import Iterable

from ...models.domain import Charger, Coordinate

COORDINATE_PRECISION = 6


def coordinate_key(position: Coordinate, precision: int = COORDINATE_PRECISION) -> tuple[float, float]:
    return (round(position.latitude, precision), round(position.longitude, precision))


def dedupe(chargers: Iterable[Charger]) -> list[Charger]:
    """Collapse chargers sharing a rounded coordinate or a provider id.

    The first occurrence wins, so the output is stable for a stable input order.
    """

    seen_positions: set[tuple[float, float]] = set()
    seen_ids: set[tuple[str, str]] = set()
    unique: list[Charger] = []
    for charger in chargers:
        position_key = coordinate_key(charger.position)
        id_key = (charger.provider, charger.provider_id) if charger.provider_id else None
        duplicate = position_key in seen_positions or (id_key is not None and id_key in seen_ids)
        # Keys of dropped entries are remembered too, so aliases chain.
        seen_positions.add(position_key)
        if id_key is not None:
            seen_ids.add(id_key)
        if not duplicate:
            unique.append(charger)
    return unique
