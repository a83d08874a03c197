"""Trip planning request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import VehicleRangeProfile
from ..services.routing.models import PlanStatus
from .common import ChargerFiltersModel, CoordinateModel


class RangeProfileModel(BaseModel):
    available_range_km: float = Field(default=100.0, ge=0)
    max_range_km: Optional[float] = Field(default=None, gt=0)

    def to_domain(self) -> VehicleRangeProfile:
        return VehicleRangeProfile(
            available_range_km=self.available_range_km,
            max_range_km=self.max_range_km,
        )


class TripPlanRequest(BaseModel):
    origin: CoordinateModel
    destination: CoordinateModel
    via: List[CoordinateModel] = Field(default_factory=list, description="Intermediate stops chosen by the user.")
    range: RangeProfileModel = Field(default_factory=RangeProfileModel)
    filters: Optional[ChargerFiltersModel] = None


class ChargingStopModel(BaseModel):
    charger_id: str
    name: str
    operator: Optional[str] = None
    latitude: float
    longitude: float
    power_kw: Optional[float] = None
    availability: str
    distance_km: float
    detour_percent: float
    score: float


class NavigationModel(BaseModel):
    coordinates: List[List[float]] = Field(..., description="[lng, lat] pairs in travel order.")
    route_profile: str
    waypoint_count: int


class TripPlanResponse(BaseModel):
    status: PlanStatus
    waypoints: List[CoordinateModel]
    stops: List[ChargingStopModel]
    navigation: NavigationModel
    route_distance_km: float
    route_duration_min: Optional[float] = None
    notices: List[str] = Field(default_factory=list)
    metadata: dict = Field(default_factory=dict)
