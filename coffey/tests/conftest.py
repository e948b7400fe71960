"""Shared fixtures: in-memory database, temporary blob store, stubbed providers."""

import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BLOB_STORE_PATH", tempfile.mkdtemp(prefix="coffey-blobs-"))
os.environ.setdefault("ADMIN_EMAILS", "admin@example.com")

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from coffey.core.blobstore import BlobStore  # noqa: E402
from coffey.models import Base  # noqa: E402
from coffey.providers import ProviderSet  # noqa: E402
from coffey.schemas.snapshots import (  # noqa: E402
    AirQualitySummary,
    ApiSnapshot,
    ElevationSummary,
    GeocodingSummary,
    NearbyPlacesSummary,
    NearbyPlaceSummary,
    PollenSummary,
    ProviderInfo,
    WeatherSummary,
)

CAPTURED_AT = "2026-01-10T12:00:00.000Z"


def make_snapshot(summary, name="google", product="test"):
    return ApiSnapshot(
        captured_at=CAPTURED_AT,
        provider=ProviderInfo(name=name, product=product, version="v1"),
        summary=summary,
    )


def canned_snapshots(lat=37.7749, lng=-122.4194):
    """One fixed snapshot per geo enrichment category."""
    return {
        "weather": make_snapshot(
            WeatherSummary(temp_f=61.5, condition_text="Partly cloudy", humidity_pct=72.5),
            product="weather_historical",
        ),
        "air_quality": make_snapshot(
            AirQualitySummary(aqi=42.5, aqi_scale="US EPA", aqi_category="Good"),
            product="air_quality",
        ),
        "pollen": make_snapshot(PollenSummary(date="2026-01-10", index_overall=1.5), product="pollen"),
        "elevation": make_snapshot(ElevationSummary(lat=lat, lng=lng, elevation_ft=52.5), product="elevation"),
        "geocoding": make_snapshot(
            GeocodingSummary(lat=lat, lng=lng, formatted_address="San Francisco, CA, USA", locality="San Francisco"),
            product="geocoding",
        ),
        "nearby_places": make_snapshot(
            NearbyPlacesSummary(
                lat=lat,
                lng=lng,
                radius_m=500,
                places=[
                    NearbyPlaceSummary(
                        name="Blue Bottle Coffee",
                        formatted_address="66 Mint St, San Francisco, CA 94103, USA",
                        lat=37.7825,
                        lng=-122.4075,
                        distance_m=133,
                        types=["cafe"],
                    )
                ],
            ),
            product="places",
        ),
    }


def stub_providers(snapshots=None):
    """ProviderSet whose adapters are mocks returning canned snapshots."""
    snapshots = canned_snapshots() if snapshots is None else snapshots
    providers = ProviderSet(
        weather=MagicMock(),
        air_quality=MagicMock(),
        pollen=MagicMock(),
        elevation=MagicMock(),
        geocoding=MagicMock(),
        places=MagicMock(),
        links=MagicMock(),
        tmdb=MagicMock(),
        raindrop=MagicMock(),
        image_host=MagicMock(),
    )
    providers.weather.fetch = AsyncMock(return_value=snapshots.get("weather"))
    providers.air_quality.fetch = AsyncMock(return_value=snapshots.get("air_quality"))
    providers.pollen.fetch = AsyncMock(return_value=snapshots.get("pollen"))
    providers.elevation.fetch = AsyncMock(return_value=snapshots.get("elevation"))
    providers.geocoding.fetch = AsyncMock(return_value=snapshots.get("geocoding"))
    providers.places.nearby = AsyncMock(return_value=snapshots.get("nearby_places"))
    providers.places.details = AsyncMock()
    providers.links.enrich = AsyncMock(side_effect=lambda links: links)
    providers.tmdb.search = AsyncMock()
    providers.tmdb.details = AsyncMock()
    providers.image_host.upload = AsyncMock(return_value="cf-image-0001")
    providers.image_host.delete = AsyncMock(return_value=None)
    providers.image_host.signed_url = MagicMock(return_value="https://imagedelivery.net/hash/cf-image-0001/public?exp=1&sig=abc")
    return providers


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def blobs(tmp_path):
    return BlobStore(tmp_path / "blobs")


@pytest.fixture
def providers():
    return stub_providers()
