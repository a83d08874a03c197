from src.evroute.models.domain import Charger, Coordinate
from src.evroute.services.chargers.dedup import dedupe


def _charger(cid: str, lat: float, lon: float, provider: str = "tomtom", provider_id: str | None = None) -> Charger:
    return Charger(
        id=cid,
        position=Coordinate(lat, lon),
        name=f"Charger {cid}",
        provider=provider,
        provider_id=provider_id,
    )


def test_dedupe_collapses_coordinates_equal_at_six_decimals():
    chargers = [
        _charger("A", 53.1234561, -6.1234561),
        _charger("B", 53.1234564, -6.1234559),
        _charger("C", 53.1250000, -6.1234561),
    ]

    result = dedupe(chargers)

    assert [charger.id for charger in result] == ["A", "C"]


def test_dedupe_collapses_matching_provider_ids():
    chargers = [
        _charger("A", 53.10, -6.10, provider_id="poi-1"),
        _charger("B", 53.20, -6.20, provider_id="poi-1"),
        _charger("C", 53.30, -6.30, provider="google", provider_id="poi-1"),
    ]

    result = dedupe(chargers)

    # Same id from a different provider is a different station
    assert [charger.id for charger in result] == ["A", "C"]


def test_dedupe_is_order_preserving_and_keeps_first_seen():
    chargers = [_charger(str(i), 53.0 + (i % 3) * 0.01, -6.0) for i in range(9)]

    result = dedupe(chargers)

    assert [charger.id for charger in result] == ["0", "1", "2"]
    assert dedupe(chargers) == result
    assert dedupe([]) == []


def test_dedupe_remembers_ids_of_dropped_position_duplicates():
    chargers = [
        _charger("A", 53.10, -6.10, provider_id="poi-1"),
        _charger("B", 53.10, -6.10, provider_id="poi-2"),
        _charger("C", 53.11, -6.11, provider_id="poi-2"),
    ]

    result = dedupe(chargers)

    # C shares a provider id with B, which duplicated A's position
    assert [charger.id for charger in result] == ["A"]
