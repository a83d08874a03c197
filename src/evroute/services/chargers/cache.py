"""Injectable cache for charger search results."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from ...models.domain import Charger, ChargerFilters, Coordinate


@dataclass(frozen=True, slots=True)
class CacheKey:
    center: Coordinate
    radius_m: int
    filters: tuple


@dataclass(slots=True)
class CacheEntry:
    key: CacheKey
    chargers: tuple[Charger, ...]
    expires_at: float


def make_cache_key(center: Coordinate, radius_m: int, filters: ChargerFilters | None) -> CacheKey:
    return CacheKey(center=center, radius_m=int(radius_m), filters=(filters or ChargerFilters()).cache_key())


class ChargerCache(Protocol):
    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        ...

    def put(self, key: CacheKey, chargers: list[Charger], ttl_seconds: float) -> None:
        ...


class NullChargerCache:
    """Cache that never stores anything."""

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        return None

    def put(self, key: CacheKey, chargers: list[Charger], ttl_seconds: float) -> None:
        return None


class InMemoryChargerCache:
    """Small TTL cache matched by proximity of the search center.

    A lookup hits when an unexpired entry has the same radius and filters and
    its center lies within ``distance_threshold_deg`` (planar distance in
    degrees) of the requested center. At most ``max_entries`` are retained;
    the oldest insertion is evicted first.
    """

    def __init__(
        self,
        *,
        max_entries: int = 5,
        distance_threshold_deg: float = 0.05,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_entries = max_entries
        self.distance_threshold_deg = distance_threshold_deg
        self.clock = clock
        self._entries: list[CacheEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def _purge_expired(self) -> None:
        now = self.clock()
        self._entries = [entry for entry in self._entries if entry.expires_at > now]

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        self._purge_expired()
        for entry in self._entries:
            if entry.key.radius_m != key.radius_m or entry.key.filters != key.filters:
                continue
            offset = math.hypot(
                entry.key.center.latitude - key.center.latitude,
                entry.key.center.longitude - key.center.longitude,
            )
            if offset < self.distance_threshold_deg:
                return entry
        return None

    def put(self, key: CacheKey, chargers: list[Charger], ttl_seconds: float) -> None:
        self._purge_expired()
        expires_at = self.clock() + ttl_seconds
        self._entries.append(CacheEntry(key=key, chargers=tuple(chargers), expires_at=expires_at))
        while len(self._entries) > self.max_entries:
            self._entries.pop(0)
