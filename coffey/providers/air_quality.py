from __future__ import annotations

from coffey.schemas.snapshots import AirQualitySummary, ApiSnapshot
from .base import BaseProvider

# pollutant code -> summary field
POLLUTANT_FIELDS = {
    "pm25": "pm25_ugm3",
    "pm10": "pm10_ugm3",
    "o3": "o3_ppb",
    "no2": "no2_ppb",
    "so2": "so2_ppb",
    "co": "co_ppm",
}


class AirQualityProvider(BaseProvider):
    """Current air quality conditions (Google Air Quality API)."""

    name = "google"
    product = "air_quality"
    secret_name = "GOOGLE_API_KEY"

    URL = "https://airquality.googleapis.com/v1/currentConditions:lookup"

    async def fetch(self, lat: float, lng: float) -> ApiSnapshot:
        key = self._require_key()
        data = await self._post_json(
            self.URL,
            {"location": {"latitude": lat, "longitude": lng}, "universalAqi": True},
            params={"key": key},
        )

        pollutants = {}
        for pollutant in data.get("pollutants") or []:
            field = POLLUTANT_FIELDS.get(pollutant.get("code"))
            if field:
                pollutants[field] = (pollutant.get("concentration") or {}).get("value")

        index = (data.get("indexes") or [{}])[0]
        summary = AirQualitySummary(
            aqi=index.get("aqi"),
            aqi_scale="US EPA",
            aqi_category=index.get("category"),
            dominant_pollutant=index.get("dominantPollutant"),
            **pollutants,
        )
        return self._snapshot(summary)
