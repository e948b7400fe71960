from __future__ import annotations

from coffey.core.errors import ProviderError
from coffey.schemas.snapshots import ApiSnapshot, ElevationSummary
from .base import BaseProvider

METERS_TO_FEET = 3.28084


class ElevationProvider(BaseProvider):
    """Ground elevation in feet (Google Elevation API)."""

    name = "google"
    product = "elevation"
    secret_name = "GOOGLE_API_KEY"

    URL = "https://maps.googleapis.com/maps/api/elevation/json"

    async def fetch(self, lat: float, lng: float) -> ApiSnapshot:
        key = self._require_key()
        data = await self._get_json(self.URL, params={"locations": f"{lat},{lng}", "key": key})

        if data.get("status") != "OK" or not data.get("results"):
            raise ProviderError(self.label, f"status {data.get('status')}: {data.get('error_message', 'no results')}")

        meters = data["results"][0].get("elevation")
        if meters is None:
            raise ProviderError(self.label, "elevation missing from response")

        summary = ElevationSummary(lat=lat, lng=lng, elevation_ft=round(meters * METERS_TO_FEET, 1))
        return self._snapshot(summary)
