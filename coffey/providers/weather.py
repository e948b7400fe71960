"""Weather adapters: hourly history for the last 24h, daily archive before that."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import httpx

from coffey.core.errors import ProviderError
from coffey.core.logging import get_logger
from coffey.core.timeutils import parse_timestamp, utcnow
from coffey.schemas.snapshots import ApiSnapshot, WeatherSummary
from .base import BaseProvider

log = get_logger("providers.weather")

HOURLY_WINDOW = timedelta(hours=24)

# WMO weather interpretation codes
WEATHER_CODES: Dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}


def c_to_f(value: Optional[float]) -> Optional[float]:
    return value * 9 / 5 + 32 if value is not None else None


def km_to_mi(value: Optional[float]) -> Optional[float]:
    return value * 0.621371 if value is not None else None


def mm_to_in(value: Optional[float]) -> Optional[float]:
    return value * 0.0393701 if value is not None else None


def mb_to_inhg(value: Optional[float]) -> Optional[float]:
    return value * 0.02953 if value is not None else None


def _dig(data: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


class GoogleHourlyWeather(BaseProvider):
    """Google Weather hourly history; picks the hour closest to the target time."""

    name = "google"
    product = "weather_historical"
    secret_name = "GOOGLE_API_KEY"

    URL = "https://weather.googleapis.com/v1/history/hours:lookup"

    async def fetch(self, lat: float, lng: float, target: datetime) -> ApiSnapshot:
        key = self._require_key()
        data = await self._get_json(
            self.URL,
            params={"location.latitude": lat, "location.longitude": lng, "hours": 24, "key": key},
        )

        closest: Optional[Dict[str, Any]] = None
        best = None
        for hour in data.get("historyHours") or []:
            start = parse_timestamp(_dig(hour, "interval", "startTime"))
            if start is None:
                continue
            diff = abs((target - start).total_seconds())
            if best is None or diff < best:
                best, closest = diff, hour

        if closest is None:
            raise ProviderError(self.label, "no hourly weather data available")

        summary = WeatherSummary(
            temp_f=c_to_f(_dig(closest, "temperature", "degrees")),
            temp_feels_f=c_to_f(_dig(closest, "feelsLikeTemperature", "degrees")),
            condition_text=_dig(closest, "weatherCondition", "description", "text"),
            condition_code=_dig(closest, "weatherCondition", "type"),
            is_daytime=closest.get("isDaytime"),
            humidity_pct=closest.get("relativeHumidity"),
            pressure_inhg=mb_to_inhg(_dig(closest, "airPressure", "meanSeaLevelMillibars")),
            wind_speed_mph=km_to_mi(_dig(closest, "wind", "speed", "value")),
            wind_gust_mph=km_to_mi(_dig(closest, "wind", "gust", "value")),
            wind_dir_deg=_dig(closest, "wind", "direction", "degrees"),
            precip_chance_pct=_dig(closest, "precipitation", "probability", "percent"),
            precip_type=_dig(closest, "precipitation", "probability", "type"),
            precip_quantity_in=mm_to_in(_dig(closest, "precipitation", "qpf", "quantity")),
            cloud_pct=closest.get("cloudCover"),
            visibility_miles=km_to_mi(_dig(closest, "visibility", "distance")),
            uv_index=closest.get("uvIndex"),
            dewpoint_f=c_to_f(_dig(closest, "dewPoint", "degrees")),
            heat_index_f=c_to_f(_dig(closest, "heatIndex", "degrees")),
            wind_chill_f=c_to_f(_dig(closest, "windChill", "degrees")),
            wet_bulb_temp_f=c_to_f(_dig(closest, "wetBulbTemperature", "degrees")),
            thunderstorm_prob_pct=closest.get("thunderstormProbability"),
            ice_thickness_in=mm_to_in(_dig(closest, "iceThickness", "thickness")),
        )
        return self._snapshot(summary, captured_at=_dig(closest, "interval", "startTime"))


class OpenMeteoArchive(BaseProvider):
    """Open-Meteo daily archive (no key required), already in imperial units."""

    name = "open-meteo"
    product = "archive"

    URL = "https://archive-api.open-meteo.com/v1/archive"
    DAILY_FIELDS = [
        "temperature_2m_max",
        "temperature_2m_min",
        "temperature_2m_mean",
        "weather_code",
        "precipitation_sum",
        "wind_speed_10m_max",
        "sunrise",
        "sunset",
        "daylight_duration",
    ]

    async def fetch(self, lat: float, lng: float, target: datetime) -> ApiSnapshot:
        day = target.strftime("%Y-%m-%d")
        data = await self._get_json(
            self.URL,
            params={
                "latitude": lat,
                "longitude": lng,
                "start_date": day,
                "end_date": day,
                "temperature_unit": "fahrenheit",
                "wind_speed_unit": "mph",
                "precipitation_unit": "inch",
                "daily": ",".join(self.DAILY_FIELDS),
            },
        )
        daily = data.get("daily") or {}

        def first(field: str) -> Any:
            values = daily.get(field) or []
            return values[0] if values else None

        code = first("weather_code")
        daylight = first("daylight_duration")
        summary = WeatherSummary(
            temp_f_max=first("temperature_2m_max"),
            temp_f_min=first("temperature_2m_min"),
            temp_f_mean=first("temperature_2m_mean"),
            weather_code=code,
            condition_text=WEATHER_CODES.get(code) if code is not None else None,
            precipitation_sum=first("precipitation_sum"),
            wind_speed_mph_max=first("wind_speed_10m_max"),
            sunrise=first("sunrise"),
            sunset=first("sunset"),
            daylight_duration_hours=daylight / 3600 if daylight is not None else None,
            is_historical=True,
        )
        return self._snapshot(summary)


class WeatherProvider:
    """Routes a weather lookup by the age of the target timestamp.

    - future: no data (returns None, not an error)
    - at most 24h old: hourly history
    - older: daily archive
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        hourly: Optional[GoogleHourlyWeather] = None,
        archive: Optional[OpenMeteoArchive] = None,
    ):
        self.hourly = hourly or GoogleHourlyWeather(api_key=api_key, client=client)
        self.archive = archive or OpenMeteoArchive(client=client)

    async def fetch(self, lat: float, lng: float, when: Any = None) -> Optional[ApiSnapshot]:
        now = utcnow()
        target = parse_timestamp(when) if when else now
        if target is None:
            raise ProviderError("weather", f"unparseable timestamp: {when!r}")

        age = now - target
        if age < timedelta(0):
            log.debug(f"Target {target.isoformat()} is in the future, no weather data")
            return None
        if age <= HOURLY_WINDOW:
            return await self.hourly.fetch(lat, lng, target)
        return await self.archive.fetch(lat, lng, target)
