"""Google Places (New) v1: place details, nearby points of interest, admin search."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from coffey.schemas.snapshots import ApiSnapshot, NearbyPlaceSummary, NearbyPlacesSummary, PlaceSummary
from .base import BaseProvider

EARTH_RADIUS_M = 6_371_000

DEFAULT_NEARBY_RADIUS_M = 500
DEFAULT_SEARCH_RADIUS_M = 1500

NEARBY_FIELD_MASK = "places.id,places.displayName,places.formattedAddress,places.location,places.types"
DETAILS_FIELD_MASK = (
    "id,displayName,formattedAddress,shortFormattedAddress,location,googleMapsUri,"
    "websiteUri,internationalPhoneNumber,types,rating,userRatingCount,priceLevel"
)

# Points of interest considered worth recording next to a post
POI_TYPES = [
    "tourist_attraction",
    "museum",
    "art_gallery",
    "park",
    "amusement_park",
    "aquarium",
    "zoo",
    "restaurant",
    "cafe",
    "bar",
    "shopping_mall",
    "store",
    "movie_theater",
    "performing_arts_theater",
    "night_club",
    "casino",
    "stadium",
    "church",
    "hindu_temple",
    "mosque",
    "synagogue",
]

PRICE_LEVELS = {
    "PRICE_LEVEL_FREE": 0,
    "PRICE_LEVEL_INEXPENSIVE": 1,
    "PRICE_LEVEL_MODERATE": 2,
    "PRICE_LEVEL_EXPENSIVE": 3,
    "PRICE_LEVEL_VERY_EXPENSIVE": 4,
}


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def short_address(formatted: str) -> str:
    """First comma-separated part, e.g. ``"66 Mint St, San Francisco, CA"`` -> ``"66 Mint St"``."""
    head = formatted.split(",")[0].strip()
    return head or formatted


def maps_url(place_id: Optional[str]) -> Optional[str]:
    return f"https://www.google.com/maps/place/?q=place_id:{place_id}" if place_id else None


class PlacesProvider(BaseProvider):
    name = "google"
    product = "places"
    secret_name = "GOOGLE_API_KEY"

    BASE_URL = "https://places.googleapis.com/v1"

    def _headers(self, field_mask: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self._require_key(),
            "X-Goog-FieldMask": field_mask,
        }

    async def details(self, place_id: str) -> ApiSnapshot:
        headers = self._headers(DETAILS_FIELD_MASK)
        data = await self._get_json(f"{self.BASE_URL}/places/{place_id}", headers=headers)

        location = data.get("location") or {}
        formatted = data.get("formattedAddress") or ""
        price = data.get("priceLevel")
        summary = PlaceSummary(
            name=(data.get("displayName") or {}).get("text") or "Unknown Place",
            formatted_address=formatted,
            short_address=data.get("shortFormattedAddress") or short_address(formatted),
            lat=location.get("latitude") or 0,
            lng=location.get("longitude") or 0,
            place_id=data.get("id") or place_id,
            maps_url=data.get("googleMapsUri") or maps_url(place_id),
            website_url=data.get("websiteUri"),
            phone=data.get("internationalPhoneNumber"),
            types=data.get("types"),
            rating=data.get("rating"),
            user_rating_count=data.get("userRatingCount"),
            price_level=PRICE_LEVELS.get(price) if isinstance(price, str) else price,
            provider_ids={"google_places": data.get("id") or place_id},
        )
        return self._snapshot(summary)

    async def nearby(self, lat: float, lng: float, radius_m: int = DEFAULT_NEARBY_RADIUS_M) -> ApiSnapshot:
        """Up to 20 popular points of interest around a point, nearest first."""
        headers = self._headers(NEARBY_FIELD_MASK)
        body = {
            "locationRestriction": {
                "circle": {"center": {"latitude": lat, "longitude": lng}, "radius": radius_m},
            },
            "includedTypes": POI_TYPES,
            "maxResultCount": 20,
            "rankPreference": "POPULARITY",
        }
        data = await self._post_json(f"{self.BASE_URL}/places:searchNearby", body, headers=headers)

        places: List[NearbyPlaceSummary] = []
        for place in data.get("places") or []:
            location = place.get("location") or {}
            p_lat = location.get("latitude") or 0
            p_lng = location.get("longitude") or 0
            formatted = place.get("formattedAddress") or ""
            places.append(
                NearbyPlaceSummary(
                    name=(place.get("displayName") or {}).get("text") or "Unknown Place",
                    formatted_address=formatted,
                    short_address=short_address(formatted),
                    lat=p_lat,
                    lng=p_lng,
                    distance_m=round(haversine_m(lat, lng, p_lat, p_lng)),
                    place_id=place.get("id"),
                    maps_url=maps_url(place.get("id")),
                    types=place.get("types") or [],
                )
            )
        places.sort(key=lambda p: p.distance_m)

        summary = NearbyPlacesSummary(lat=lat, lng=lng, radius_m=radius_m, places=places)
        return self._snapshot(summary)

    async def search(
        self,
        lat: float,
        lng: float,
        query: Optional[str] = None,
        radius_m: float = DEFAULT_SEARCH_RADIUS_M,
    ) -> List[Dict[str, Any]]:
        """Unfiltered nearby search used by the admin place picker."""
        headers = self._headers(NEARBY_FIELD_MASK)
        body: Dict[str, Any] = {
            "locationRestriction": {
                "circle": {"center": {"latitude": lat, "longitude": lng}, "radius": radius_m},
            },
        }
        if query:
            body["textQuery"] = query
        data = await self._post_json(f"{self.BASE_URL}/places:searchNearby", body, headers=headers)

        results = []
        for place in data.get("places") or []:
            location = place.get("location") or {}
            results.append(
                {
                    "placeId": place.get("id"),
                    "name": (place.get("displayName") or {}).get("text") or "Unknown",
                    "address": place.get("formattedAddress"),
                    "lat": location.get("latitude") or 0,
                    "lng": location.get("longitude") or 0,
                    "types": place.get("types"),
                }
            )
        return results
