"""Domain models for chargers, coordinates and vehicle range."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass(frozen=True, slots=True)
class Coordinate:
    """Geographic point in decimal degrees."""

    latitude: float
    longitude: float

    def as_lat_lon(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


class Availability(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: object) -> "Availability":
        if isinstance(value, Availability):
            return value
        if value is None:
            return cls.UNKNOWN
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        return cls.UNKNOWN


@dataclass(frozen=True, slots=True)
class Connector:
    connector_type: str
    power_kw: Optional[float] = None
    available: Optional[int] = None


@dataclass(frozen=True, slots=True)
class Charger:
    """A charging station normalised from a provider search result.

    Instances are read-only snapshots: they are valid for one planning or
    clustering operation and carry no identity beyond position and provider id.
    """

    id: str
    position: Coordinate
    name: str
    operator: Optional[str] = None
    power_kw: Optional[float] = None
    rating: Optional[float] = None
    availability: Availability = Availability.UNKNOWN
    categories: frozenset[str] = field(default_factory=frozenset)
    provider: str = "unknown"
    provider_id: Optional[str] = None
    address: Optional[str] = None
    connectors: tuple[Connector, ...] = ()
    amenities: frozenset[str] = field(default_factory=frozenset)


@dataclass(slots=True)
class VehicleRangeProfile:
    """Vehicle range in kilometres.

    ``available_range_km`` is what the battery holds now; ``max_range_km`` is a
    full charge and is used for legs once charging stops are inserted.
    """

    available_range_km: float
    max_range_km: Optional[float] = None

    @property
    def feasibility_range_km(self) -> float:
        if self.max_range_km is not None:
            return self.max_range_km
        return self.available_range_km


@dataclass(slots=True)
class ChargerFilters:
    """User-selected charger filters."""

    connector_type: Optional[str] = None
    min_power_kw: Optional[float] = None
    min_rating: Optional[float] = None
    brands: tuple[str, ...] = ()
    amenities: tuple[str, ...] = ()
    available_only: bool = False

    def cache_key(self) -> tuple:
        return (
            self.connector_type,
            self.min_power_kw,
            self.min_rating,
            tuple(sorted(self.brands)),
            tuple(sorted(self.amenities)),
            self.available_only,
        )
