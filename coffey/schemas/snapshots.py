"""Normalized provider summaries and the uniform snapshot envelope.

Every adapter produces exactly one of the summary models below, wrapped in an
``ApiSnapshot``. Optional fields left as None are dropped when the snapshot is
dumped, so an absent provider field never shows up as an explicit null.
"""

from __future__ import annotations

from typing import Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel

SummaryT = TypeVar("SummaryT", bound=BaseModel)


class ProviderInfo(BaseModel):
    name: str
    product: str
    version: Optional[str] = None


class ApiSnapshot(BaseModel, Generic[SummaryT]):
    captured_at: str
    provider: ProviderInfo
    summary: SummaryT

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


class WeatherSummary(BaseModel):
    # Point-in-time conditions (hourly history)
    temp_f: Optional[float] = None
    temp_feels_f: Optional[float] = None
    condition_code: Optional[str] = None
    condition_text: Optional[str] = None
    is_daytime: Optional[bool] = None
    humidity_pct: Optional[float] = None
    pressure_inhg: Optional[float] = None
    wind_speed_mph: Optional[float] = None
    wind_gust_mph: Optional[float] = None
    wind_dir_deg: Optional[float] = None
    precip_chance_pct: Optional[float] = None
    precip_type: Optional[str] = None
    precip_quantity_in: Optional[float] = None
    cloud_pct: Optional[float] = None
    visibility_miles: Optional[float] = None
    uv_index: Optional[float] = None
    dewpoint_f: Optional[float] = None
    heat_index_f: Optional[float] = None
    wind_chill_f: Optional[float] = None
    wet_bulb_temp_f: Optional[float] = None
    thunderstorm_prob_pct: Optional[float] = None
    ice_thickness_in: Optional[float] = None

    # Daily aggregates (historical archive)
    temp_f_max: Optional[float] = None
    temp_f_min: Optional[float] = None
    temp_f_mean: Optional[float] = None
    weather_code: Optional[int] = None
    precipitation_sum: Optional[float] = None
    wind_speed_mph_max: Optional[float] = None
    sunrise: Optional[str] = None
    sunset: Optional[str] = None
    daylight_duration_hours: Optional[float] = None

    is_historical: Optional[bool] = None


class AirQualitySummary(BaseModel):
    aqi: Optional[float] = None
    aqi_scale: Optional[str] = None
    aqi_category: Optional[str] = None
    dominant_pollutant: Optional[str] = None
    pm25_ugm3: Optional[float] = None
    pm10_ugm3: Optional[float] = None
    o3_ppb: Optional[float] = None
    no2_ppb: Optional[float] = None
    so2_ppb: Optional[float] = None
    co_ppm: Optional[float] = None


class PollenSummary(BaseModel):
    date: Optional[str] = None
    index_overall: Optional[float] = None
    index_category: Optional[str] = None
    tree_index: Optional[float] = None
    tree_category: Optional[str] = None
    grass_index: Optional[float] = None
    grass_category: Optional[str] = None
    weed_index: Optional[float] = None
    weed_category: Optional[str] = None


class ElevationSummary(BaseModel):
    lat: float
    lng: float
    elevation_ft: float


class GeocodingSummary(BaseModel):
    lat: float
    lng: float
    formatted_address: str
    country_code: Optional[str] = None
    country_name: Optional[str] = None
    region_code: Optional[str] = None
    region_name: Optional[str] = None
    locality: Optional[str] = None
    postal_code: Optional[str] = None
    neighborhood: Optional[str] = None
    street_name: Optional[str] = None
    street_number: Optional[str] = None


class PlaceSummary(BaseModel):
    name: str
    formatted_address: str
    short_address: Optional[str] = None
    lat: float
    lng: float
    place_id: Optional[str] = None
    maps_url: Optional[str] = None
    website_url: Optional[str] = None
    phone: Optional[str] = None
    types: Optional[List[str]] = None
    rating: Optional[float] = None
    user_rating_count: Optional[int] = None
    price_level: Optional[int] = None
    provider_ids: Optional[Dict[str, str]] = None


class NearbyPlaceSummary(BaseModel):
    name: str
    formatted_address: str
    short_address: Optional[str] = None
    lat: float
    lng: float
    distance_m: int
    place_id: Optional[str] = None
    maps_url: Optional[str] = None
    types: List[str] = []


class NearbyPlacesSummary(BaseModel):
    lat: float
    lng: float
    radius_m: int
    places: List[NearbyPlaceSummary]


class MediaSummary(BaseModel):
    media_type: Literal["movie", "tv"]
    tmdb_id: int
    title: str
    release_date: Optional[str] = None
    overview: Optional[str] = None
    poster_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    genres: Optional[List[str]] = None
    tmdb_rating: Optional[float] = None
    vote_count: Optional[int] = None
    tmdb_url: str
    # Movies only
    runtime: Optional[int] = None
    director: Optional[str] = None
    # TV only
    number_of_seasons: Optional[int] = None
    number_of_episodes: Optional[int] = None
    creators: Optional[List[str]] = None
    cast: Optional[List[str]] = None


class GeocodeCityState(BaseModel):
    city: str
    state: str
    country: str
    formatted: str


class LinkPreview(BaseModel):
    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    domain: Optional[str] = None
