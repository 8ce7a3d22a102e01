"""Geocoding endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ...schemas.routing import GeocodeRequest, GeocodeResponse
from ...services.geocoding import Geocoder
from ..dependencies import get_geocoder

router = APIRouter(prefix="/geocode", tags=["geocoding"])


@router.post("", response_model=GeocodeResponse, status_code=status.HTTP_200_OK)
def geocode(payload: GeocodeRequest, geocoder: Geocoder = Depends(get_geocoder)) -> GeocodeResponse:
    coordinate = geocoder.geocode(payload.address)
    if coordinate is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Could not find coordinates for '{payload.address}'",
        )
    return GeocodeResponse(address=payload.address, lat=coordinate.lat, lng=coordinate.lng)
