"""Reverse geocoding (Google Geocoding API)."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from coffey.core.errors import ProviderError
from coffey.schemas.snapshots import ApiSnapshot, GeocodeCityState, GeocodingSummary
from .base import BaseProvider


def _component(components: List[Dict[str, Any]], kind: str, short: bool = False) -> Optional[str]:
    for component in components:
        if kind in (component.get("types") or []):
            return component.get("short_name" if short else "long_name")
    return None


class GeocodingProvider(BaseProvider):
    name = "google"
    product = "geocoding"
    secret_name = "GOOGLE_API_KEY"

    URL = "https://maps.googleapis.com/maps/api/geocode/json"

    async def _lookup(self, lat: float, lng: float) -> Dict[str, Any]:
        key = self._require_key()
        data = await self._get_json(self.URL, params={"latlng": f"{lat},{lng}", "key": key})
        if data.get("status") != "OK":
            raise ProviderError(self.label, f"status {data.get('status')}: {data.get('error_message', 'Unknown error')}")
        if not data.get("results"):
            raise ProviderError(self.label, "no geocoding results found")
        return data["results"][0]

    async def fetch(self, lat: float, lng: float) -> ApiSnapshot:
        """Full reverse geocode of a point into address components."""
        result = await self._lookup(lat, lng)
        components = result.get("address_components") or []

        summary = GeocodingSummary(
            lat=lat,
            lng=lng,
            formatted_address=result.get("formatted_address") or "",
            country_code=_component(components, "country", short=True),
            country_name=_component(components, "country"),
            region_code=_component(components, "administrative_area_level_1", short=True),
            region_name=_component(components, "administrative_area_level_1"),
            locality=_component(components, "locality"),
            postal_code=_component(components, "postal_code"),
            neighborhood=_component(components, "neighborhood"),
            street_name=_component(components, "route"),
            street_number=_component(components, "street_number"),
        )
        return self._snapshot(summary)

    async def city_state(self, lat: float, lng: float) -> GeocodeCityState:
        """City/state/country for display, e.g. ``"San Francisco, CA"``."""
        result = await self._lookup(lat, lng)
        components = result.get("address_components") or []

        city = _component(components, "locality") or ""
        state = _component(components, "administrative_area_level_1", short=True) or ""
        country = _component(components, "country") or ""

        if not city:
            city = _component(components, "sublocality") or _component(components, "neighborhood") or ""

        separator = ", " if city and state else ""
        return GeocodeCityState(city=city, state=state, country=country, formatted=f"{city}{separator}{state}")
