"""Selection of the best charger to insert into a route leg."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ...models.domain import Availability, Charger, Coordinate
from ..geospatial import distance_km
from .models import ScoredCharger

logger = logging.getLogger(__name__)

REACHABILITY_MARGIN = 0.85
MAX_DETOUR_RATIO = 1.10
REFERENCE_POWER_KW = 150.0

DISTANCE_WEIGHT = 0.7
RATING_WEIGHT = 0.2
POWER_WEIGHT = 0.1
AVAILABILITY_BONUS = 0.1


def _candidates(
    chargers: Sequence[Charger],
    start: Coordinate,
    end: Coordinate,
    range_km: float,
    *,
    respect_availability: bool,
) -> list[Charger]:
    direct = distance_km(start, end)
    reachable: list[Charger] = []
    for charger in chargers:
        if respect_availability and charger.availability == Availability.UNAVAILABLE:
            continue
        if distance_km(start, charger.position) <= range_km * REACHABILITY_MARGIN:
            reachable.append(charger)

    onward = [charger for charger in reachable if distance_km(charger.position, end) <= range_km]
    if onward:
        return onward

    return [
        charger
        for charger in reachable
        if distance_km(start, charger.position) + distance_km(charger.position, end) <= direct * MAX_DETOUR_RATIO
    ]


def score_charger(charger: Charger, start: Coordinate, end: Coordinate) -> ScoredCharger:
    """Weighted score favouring minimal detour over charging speed."""

    to_charger = distance_km(start, charger.position)
    via = to_charger + distance_km(charger.position, end)
    direct = distance_km(start, end)
    if direct > 0:
        detour_factor = via / direct
        distance_score = 1.0 / detour_factor if detour_factor > 0 else 1.0
        detour_percent = (detour_factor - 1.0) * 100.0
    else:
        distance_score = 1.0 if via == 0 else 0.0
        detour_percent = 0.0

    power_score = min(charger.power_kw / REFERENCE_POWER_KW, 1.0) if charger.power_kw is not None else 0.5
    rating_score = charger.rating / 5.0 if charger.rating is not None else 0.5
    bonus = AVAILABILITY_BONUS if charger.availability == Availability.AVAILABLE else 0.0

    score = (
        DISTANCE_WEIGHT * distance_score
        + RATING_WEIGHT * rating_score
        + POWER_WEIGHT * power_score
        + bonus
    )
    return ScoredCharger(
        charger=charger,
        score=score,
        distance_from_start_km=to_charger,
        detour_percent=detour_percent,
    )


def select_best_charger(
    chargers: Sequence[Charger],
    start: Coordinate,
    end: Coordinate,
    range_km: float,
) -> Optional[ScoredCharger]:
    """Return the highest scoring feasible charger for the leg, or None.

    Chargers explicitly reported unavailable are skipped unless that leaves
    nothing, in which case the same filters are re-applied ignoring
    availability. Ties keep the earliest candidate.
    """

    if not chargers:
        return None

    candidates = _candidates(chargers, start, end, range_km, respect_availability=True)
    if not candidates:
        candidates = _candidates(chargers, start, end, range_km, respect_availability=False)
        if candidates:
            logger.info("Falling back to reachable chargers regardless of availability")
    if not candidates:
        logger.info(f"No charger meets the range criteria among {len(chargers)} candidates")
        return None

    best: Optional[ScoredCharger] = None
    for charger in candidates:
        scored = score_charger(charger, start, end)
        if best is None or scored.score > best.score:
            best = scored

    logger.debug(f"Selected charger {best.charger.name} with score {best.score:.3f}")
    return best
