"""Shared request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import ChargerFilters, Coordinate


class CoordinateModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    def to_domain(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)

    @classmethod
    def from_domain(cls, coordinate: Coordinate) -> "CoordinateModel":
        return cls(latitude=coordinate.latitude, longitude=coordinate.longitude)


class ChargerFiltersModel(BaseModel):
    connector_type: Optional[str] = Field(default=None, description="Provider connector code, e.g. IEC62196Type2CCS.")
    min_power_kw: Optional[float] = Field(default=None, ge=0)
    min_rating: Optional[float] = Field(default=None, ge=0, le=5)
    brands: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    available_only: bool = False

    def to_domain(self) -> ChargerFilters:
        return ChargerFilters(
            connector_type=self.connector_type,
            min_power_kw=self.min_power_kw,
            min_rating=self.min_rating,
            brands=tuple(self.brands),
            amenities=tuple(self.amenities),
            available_only=self.available_only,
        )
