"""Geo routes - reverse geocoding and nearby place search for the admin editor."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from coffey.api.deps import get_providers, require_admin
from coffey.providers import ProviderSet
from coffey.schemas.api import NearbySearchResponse, NearbySearchResult
from coffey.schemas.snapshots import GeocodeCityState

router = APIRouter(prefix="/admin", tags=["geo"], dependencies=[Depends(require_admin)])


@router.get("/geocode", response_model=GeocodeCityState)
async def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    providers: ProviderSet = Depends(get_providers),
):
    """City and state for a coordinate."""
    return await providers.geocoding.city_state(lat, lng)


@router.get("/places", response_model=NearbySearchResponse)
async def search_places(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    query: Optional[str] = Query(None, description="Free-text search; nearby popular places when omitted"),
    radius: int = Query(1500, ge=1, le=50000),
    providers: ProviderSet = Depends(get_providers),
):
    """Places around a coordinate, for picking a place reference."""
    results = await providers.places.search(lat, lng, query=query, radius_m=radius)
    return NearbySearchResponse(results=[NearbySearchResult(**r) for r in results])
