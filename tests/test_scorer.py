import math

import pytest

from src.evroute.models.domain import Availability, Charger, Coordinate
from src.evroute.services.routing.scorer import score_charger, select_best_charger

KM_PER_DEGREE = 6371.0 * math.pi / 180.0

START = Coordinate(0.0, 0.0)
END = Coordinate(0.0, 500.0 / KM_PER_DEGREE)
MIDPOINT = Coordinate(0.0, 250.0 / KM_PER_DEGREE)


def _charger(
    cid: str,
    position: Coordinate,
    *,
    power_kw: float | None = None,
    rating: float | None = None,
    availability: Availability = Availability.UNKNOWN,
) -> Charger:
    return Charger(
        id=cid,
        position=position,
        name=f"Charger {cid}",
        power_kw=power_kw,
        rating=rating,
        availability=availability,
    )


def _km(along: float, lateral: float = 0.0) -> Coordinate:
    return Coordinate(lateral / KM_PER_DEGREE, along / KM_PER_DEGREE)


def test_score_uses_fixed_weights():
    charger = _charger("A", MIDPOINT, power_kw=75.0, rating=4.0, availability=Availability.AVAILABLE)

    scored = score_charger(charger, START, END)

    # 0.7 * 1.0 + 0.2 * 0.8 + 0.1 * 0.5 + 0.1
    assert scored.score == pytest.approx(1.01)
    assert scored.detour_percent == pytest.approx(0.0, abs=1e-9)
    assert scored.distance_from_start_km == pytest.approx(250.0)


def test_unknown_power_and_rating_score_half():
    scored = score_charger(_charger("A", MIDPOINT), START, END)
    assert scored.score == pytest.approx(0.7 + 0.1 + 0.05)


def test_power_score_is_capped_at_150_kw():
    fast = score_charger(_charger("A", MIDPOINT, power_kw=350.0), START, END)
    reference = score_charger(_charger("B", MIDPOINT, power_kw=150.0), START, END)
    assert fast.score == pytest.approx(reference.score)


def test_minimal_detour_outweighs_charging_speed():
    on_route = _charger("on-route", MIDPOINT, power_kw=50.0)
    # 250 km off the direct line but very fast and well rated
    detour = _charger("detour", _km(250.0, 250.0), power_kw=350.0, rating=5.0)

    best = select_best_charger([detour, on_route], START, END, 500.0)

    assert best is not None
    assert best.charger.id == "on-route"


def test_rating_and_availability_can_outweigh_small_detour():
    on_route = _charger("on-route", MIDPOINT)
    nearby = _charger("nearby", _km(250.0, 20.0), power_kw=150.0, rating=5.0, availability=Availability.AVAILABLE)

    best = select_best_charger([on_route, nearby], START, END, 300.0)

    assert best.charger.id == "nearby"


def test_explicitly_unavailable_chargers_are_skipped():
    unavailable = _charger("down", MIDPOINT, power_kw=150.0, rating=5.0, availability=Availability.UNAVAILABLE)
    fallback = _charger("up", _km(240.0, 10.0))

    best = select_best_charger([unavailable, fallback], START, END, 300.0)

    assert best.charger.id == "up"


def test_unavailable_charger_used_when_nothing_else_qualifies():
    unavailable = _charger("down", MIDPOINT, availability=Availability.UNAVAILABLE)

    best = select_best_charger([unavailable], START, END, 300.0)

    assert best is not None
    assert best.charger.id == "down"


def test_charger_beyond_safety_margin_is_rejected():
    # 260 km from start exceeds 0.85 * 300 = 255 km
    too_far = _charger("far", _km(260.0))

    assert select_best_charger([too_far], START, END, 300.0) is None


def test_falls_back_to_low_detour_when_destination_unreachable():
    end = _km(700.0)
    on_route = _charger("on-route", _km(250.0))
    # Reachable but neither onward-feasible nor within 10% detour
    off_route = _charger("off-route", _km(111.0, 167.0))

    assert select_best_charger([off_route], START, end, 300.0) is None
    best = select_best_charger([off_route, on_route], START, end, 300.0)
    assert best.charger.id == "on-route"


def test_onward_reachable_chargers_are_preferred_over_detour_fallback():
    end = _km(540.0)
    # Onward distance 310 km > 300: only qualifies through the detour fallback
    early = _charger("early", _km(230.0), power_kw=150.0, rating=5.0, availability=Availability.AVAILABLE)
    # Onward distance 290 km: qualifies directly
    late = _charger("late", _km(250.0))

    best = select_best_charger([early, late], START, end, 300.0)

    assert best.charger.id == "late"


def test_ties_are_broken_by_input_order():
    first = _charger("first", MIDPOINT)
    second = _charger("second", MIDPOINT)

    assert select_best_charger([first, second], START, END, 300.0).charger.id == "first"
    assert select_best_charger([second, first], START, END, 300.0).charger.id == "second"


def test_selection_is_deterministic():
    chargers = [
        _charger(str(i), _km(200.0 + i * 5.0, (i % 4) * 3.0), power_kw=50.0 + i * 10, rating=(i % 5) + 0.5)
        for i in range(10)
    ]

    picks = {select_best_charger(chargers, START, END, 300.0).charger.id for _ in range(5)}

    assert len(picks) == 1


def test_empty_candidates_return_none():
    assert select_best_charger([], START, END, 300.0) is None
