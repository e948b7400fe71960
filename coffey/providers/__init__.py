"""External data providers used for enrichment, bookmark sync and image hosting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from coffey.core.config import Credentials
from .air_quality import AirQualityProvider
from .elevation import ElevationProvider
from .geocoding import GeocodingProvider
from .image_host import ImageHost
from .link_preview import LinkPreviewProvider
from .places import PlacesProvider
from .pollen import PollenProvider
from .raindrop import RaindropClient
from .tmdb import TmdbProvider
from .weather import WeatherProvider


@dataclass
class ProviderSet:
    weather: WeatherProvider
    air_quality: AirQualityProvider
    pollen: PollenProvider
    elevation: ElevationProvider
    geocoding: GeocodingProvider
    places: PlacesProvider
    links: LinkPreviewProvider
    tmdb: TmdbProvider
    raindrop: RaindropClient
    image_host: ImageHost

    @classmethod
    def from_credentials(cls, creds: Credentials, client: Optional[httpx.AsyncClient] = None) -> "ProviderSet":
        google = creds.google_api_key
        return cls(
            weather=WeatherProvider(api_key=google, client=client),
            air_quality=AirQualityProvider(api_key=google, client=client),
            pollen=PollenProvider(api_key=google, client=client),
            elevation=ElevationProvider(api_key=google, client=client),
            geocoding=GeocodingProvider(api_key=google, client=client),
            places=PlacesProvider(api_key=google, client=client),
            links=LinkPreviewProvider(client=client),
            tmdb=TmdbProvider(api_key=creds.tmdb_api_key, client=client),
            raindrop=RaindropClient(api_key=creds.raindrop_token, client=client),
            image_host=ImageHost(
                api_key=creds.cloudflare_media_token,
                account_id=creds.cloudflare_account_id,
                account_hash=creds.cf_images_hash,
                signing_key=creds.cf_images_signing_key,
                client=client,
            ),
        )


__all__ = [
    "AirQualityProvider",
    "ElevationProvider",
    "GeocodingProvider",
    "ImageHost",
    "LinkPreviewProvider",
    "PlacesProvider",
    "PollenProvider",
    "ProviderSet",
    "RaindropClient",
    "TmdbProvider",
    "WeatherProvider",
]
