"""Charger map request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..models.domain import Availability, Charger, Connector, Coordinate
from ..services.chargers.providers import charger_id
from .common import ChargerFiltersModel, CoordinateModel


class ConnectorModel(BaseModel):
    connector_type: str
    power_kw: Optional[float] = None
    available: Optional[int] = None


class ChargerModel(BaseModel):
    id: Optional[str] = None
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    name: str = "Unnamed Charger"
    operator: Optional[str] = None
    power_kw: Optional[float] = Field(default=None, ge=0)
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    availability: Availability = Availability.UNKNOWN
    categories: List[str] = Field(default_factory=list)
    provider: str = "client"
    provider_id: Optional[str] = None
    address: Optional[str] = None
    connectors: List[ConnectorModel] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)

    @field_validator("availability", mode="before")
    @classmethod
    def _parse_availability(cls, value: object) -> Availability:
        return Availability.parse(value)

    def to_domain(self) -> Charger:
        position = Coordinate(latitude=self.latitude, longitude=self.longitude)
        return Charger(
            id=self.id or charger_id(self.provider, self.provider_id, position),
            position=position,
            name=self.name,
            operator=self.operator,
            power_kw=self.power_kw,
            rating=self.rating,
            availability=self.availability,
            categories=frozenset(self.categories),
            provider=self.provider,
            provider_id=self.provider_id,
            address=self.address,
            connectors=tuple(
                Connector(connector_type=c.connector_type, power_kw=c.power_kw, available=c.available)
                for c in self.connectors
            ),
            amenities=frozenset(self.amenities),
        )

    @classmethod
    def from_domain(cls, charger: Charger) -> "ChargerModel":
        return cls(
            id=charger.id,
            latitude=charger.position.latitude,
            longitude=charger.position.longitude,
            name=charger.name,
            operator=charger.operator,
            power_kw=charger.power_kw,
            rating=charger.rating,
            availability=charger.availability,
            categories=sorted(charger.categories),
            provider=charger.provider,
            provider_id=charger.provider_id,
            address=charger.address,
            connectors=[
                ConnectorModel(connector_type=c.connector_type, power_kw=c.power_kw, available=c.available)
                for c in charger.connectors
            ],
            amenities=sorted(charger.amenities),
        )


class ClusterNodeModel(BaseModel):
    id: str
    latitude: float
    longitude: float
    cluster: bool
    count: int
    label: str
    members: List[ChargerModel]


class ClusterRequest(BaseModel):
    chargers: List[ChargerModel]
    zoom: float = Field(..., ge=0, le=24)
    constrained_platform: Optional[bool] = Field(
        default=None, description="Override the configured marker budget for low-end devices."
    )


class ClusterResponse(BaseModel):
    zoom: float
    radius_km: float
    total_chargers: int
    nodes: List[ClusterNodeModel]


class ViewportModel(BaseModel):
    south: float = Field(..., ge=-90, le=90)
    west: float = Field(..., ge=-180, le=180)
    north: float = Field(..., ge=-90, le=90)
    east: float = Field(..., ge=-180, le=180)


class NearbyChargersRequest(BaseModel):
    center: CoordinateModel
    zoom: float = Field(..., ge=0, le=24)
    filters: Optional[ChargerFiltersModel] = None
    viewport: Optional[ViewportModel] = Field(
        default=None, description="Only return chargers inside these bounds."
    )
    constrained_platform: Optional[bool] = None


class NearbyChargersResponse(ClusterResponse):
    search_radius_m: int
    cached: bool


class FocusRequest(BaseModel):
    members: List[ChargerModel] = Field(..., min_length=1)
    center: Optional[CoordinateModel] = None
    current_zoom: float = Field(..., ge=0, le=24)


class FocusResponse(BaseModel):
    center: CoordinateModel
    zoom: Optional[float]
    bounds: Optional[ViewportModel] = None
