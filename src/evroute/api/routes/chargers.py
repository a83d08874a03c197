"""Charger map endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...config import ConfigurationError
from ...schemas.chargers import (
    ClusterRequest,
    ClusterResponse,
    FocusRequest,
    FocusResponse,
    NearbyChargersRequest,
    NearbyChargersResponse,
)
from ...services.chargers.service import process_cluster_request, process_focus_request, process_nearby_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chargers", tags=["chargers"])


@router.post("/clusters", response_model=ClusterResponse, status_code=status.HTTP_200_OK)
def clusters(payload: ClusterRequest) -> ClusterResponse:
    return process_cluster_request(payload)


@router.post("/nearby", response_model=NearbyChargersResponse, status_code=status.HTTP_200_OK)
def nearby(payload: NearbyChargersRequest) -> NearbyChargersResponse:
    try:
        return process_nearby_request(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ConfigurationError as exc:
        logger.error(f"Charger search is not configured: {exc}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error fetching nearby chargers: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch chargers: {str(exc)}",
        ) from exc


@router.post("/focus", response_model=FocusResponse, status_code=status.HTTP_200_OK)
def focus(payload: FocusRequest) -> FocusResponse:
    return process_focus_request(payload)
