"""Provider adapter tests (wire-level, via httpx.MockTransport)"""

import json
from datetime import timedelta
from unittest.mock import AsyncMock

import httpx
import pytest

from coffey.core.errors import ConfigurationError, ProviderError
from coffey.core.timeutils import to_iso, utcnow
from coffey.providers.elevation import ElevationProvider
from coffey.providers.image_host import ImageHost
from coffey.providers.places import PlacesProvider, haversine_m
from coffey.providers.raindrop import RaindropClient
from coffey.providers.weather import GoogleHourlyWeather, WeatherProvider


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestWeatherRouting:
    """Future / hourly / archive regimes"""

    @pytest.fixture
    def weather(self):
        return WeatherProvider(hourly=AsyncMock(), archive=AsyncMock())

    @pytest.mark.asyncio
    async def test_future_returns_none(self, weather):
        result = await weather.fetch(40.0, -74.0, to_iso(utcnow() + timedelta(hours=1)))

        assert result is None
        weather.hourly.fetch.assert_not_called()
        weather.archive.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_just_under_24h_uses_hourly(self, weather):
        await weather.fetch(40.0, -74.0, to_iso(utcnow() - timedelta(hours=23, minutes=59)))

        weather.hourly.fetch.assert_awaited_once()
        weather.archive.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_just_over_24h_uses_archive(self, weather):
        await weather.fetch(40.0, -74.0, to_iso(utcnow() - timedelta(hours=24, minutes=1)))

        weather.archive.fetch.assert_awaited_once()
        weather.hourly.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_exif_timestamp_accepted(self, weather):
        await weather.fetch(40.0, -74.0, "2019:07:04 18:30:00")
        weather.archive.fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_garbage_timestamp_is_provider_error(self, weather):
        with pytest.raises(ProviderError):
            await weather.fetch(40.0, -74.0, "not a date")


class TestHourlyWeather:
    """Unit conversion at the adapter boundary"""

    @pytest.mark.asyncio
    async def test_closest_hour_converted_to_imperial(self):
        target = utcnow().replace(minute=0, second=0, microsecond=0) - timedelta(hours=2)

        def hour(offset_h, celsius):
            start = to_iso(target + timedelta(hours=offset_h))
            return {
                "interval": {"startTime": start},
                "temperature": {"degrees": celsius, "unit": "CELSIUS"},
                "airPressure": {"meanSeaLevelMillibars": 1013.25},
                "wind": {"speed": {"value": 10, "unit": "KILOMETERS_PER_HOUR"}},
                "weatherCondition": {"type": "CLEAR", "description": {"text": "Sunny"}},
            }

        def handler(request):
            assert request.url.params["key"] == "test-key"
            return httpx.Response(200, json={"historyHours": [hour(-1, 10), hour(0, 20), hour(1, 30)]})

        async with mock_client(handler) as client:
            snapshot = await GoogleHourlyWeather(api_key="test-key", client=client).fetch(40.0, -74.0, target)

        summary = snapshot.summary
        assert summary.temp_f == pytest.approx(68.0)
        assert summary.pressure_inhg == pytest.approx(29.92, abs=0.01)
        assert summary.wind_speed_mph == pytest.approx(6.21, abs=0.01)
        assert summary.condition_text == "Sunny"
        assert snapshot.captured_at == to_iso(target)
        assert snapshot.provider.product == "weather_historical"

    @pytest.mark.asyncio
    async def test_missing_key_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            await GoogleHourlyWeather(api_key=None).fetch(40.0, -74.0, utcnow())


class TestNearbyPlaces:
    """Distance calculation and ordering"""

    def test_haversine_one_hundredth_degree_latitude(self):
        distance = haversine_m(40.7128, -74.0060, 40.7228, -74.0060)
        assert abs(distance - 1113) <= 3

    @pytest.mark.asyncio
    async def test_distance_reported_and_sorted(self):
        def handler(request):
            body = json.loads(request.content)
            assert body["maxResultCount"] == 20
            assert request.headers["X-Goog-Api-Key"] == "test-key"
            return httpx.Response(
                200,
                json={
                    "places": [
                        {
                            "id": "far",
                            "displayName": {"text": "Far Cafe"},
                            "formattedAddress": "10 Far St, New York, NY 10007, USA",
                            "location": {"latitude": 40.7228, "longitude": -74.0060},
                            "types": ["cafe"],
                        },
                        {
                            "id": "near",
                            "displayName": {"text": "Near Park"},
                            "formattedAddress": "1 Near St, New York, NY 10007, USA",
                            "location": {"latitude": 40.7138, "longitude": -74.0060},
                            "types": ["park"],
                        },
                    ]
                },
            )

        async with mock_client(handler) as client:
            snapshot = await PlacesProvider(api_key="test-key", client=client).nearby(40.7128, -74.0060)

        places = snapshot.summary.places
        assert [p.place_id for p in places] == ["near", "far"]
        assert abs(places[1].distance_m - 1113) <= 3
        assert isinstance(places[1].distance_m, int)
        assert places[1].short_address == "10 Far St"


class TestProviderErrors:
    """Non-2xx, transport and status failures"""

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        async with mock_client(lambda request: httpx.Response(500, text="boom")) as client:
            with pytest.raises(ProviderError) as exc_info:
                await ElevationProvider(api_key="k", client=client).fetch(1.0, 2.0)
        assert exc_info.value.status == 500
        assert exc_info.value.provider == "google/elevation"

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        async with mock_client(handler) as client:
            with pytest.raises(ProviderError):
                await ElevationProvider(api_key="k", client=client).fetch(1.0, 2.0)

    @pytest.mark.asyncio
    async def test_elevation_converted_to_feet(self):
        payload = {"status": "OK", "results": [{"elevation": 100.0}]}
        async with mock_client(lambda request: httpx.Response(200, json=payload)) as client:
            snapshot = await ElevationProvider(api_key="k", client=client).fetch(1.0, 2.0)
        assert snapshot.summary.elevation_ft == 328.1

    @pytest.mark.asyncio
    async def test_elevation_bad_status(self):
        payload = {"status": "REQUEST_DENIED", "results": []}
        async with mock_client(lambda request: httpx.Response(200, json=payload)) as client:
            with pytest.raises(ProviderError):
                await ElevationProvider(api_key="k", client=client).fetch(1.0, 2.0)


class TestRaindropClient:
    """Permanent copy resolution"""

    @pytest.mark.asyncio
    async def test_redirect_returns_location(self):
        def handler(request):
            assert request.headers["Authorization"] == "Bearer token"
            return httpx.Response(307, headers={"location": "https://cache.example/copy.html"})

        async with mock_client(handler) as client:
            url = await RaindropClient(api_key="token", client=client).permanent_copy_url(42)
        assert url == "https://cache.example/copy.html"

    @pytest.mark.asyncio
    async def test_not_found_returns_none(self):
        async with mock_client(lambda request: httpx.Response(404)) as client:
            assert await RaindropClient(api_key="token", client=client).permanent_copy_url(42) is None

    @pytest.mark.asyncio
    async def test_unexpected_status_raises(self):
        async with mock_client(lambda request: httpx.Response(500)) as client:
            with pytest.raises(ProviderError):
                await RaindropClient(api_key="token", client=client).permanent_copy_url(42)


class TestImageHost:
    """Signed delivery URLs and upload failures"""

    def test_signed_url_expires_in_one_hour(self):
        host = ImageHost(account_hash="acct", signing_key="secret")
        url = host.signed_url("img-1", "public", now=1_700_000_000)

        assert url.startswith("https://imagedelivery.net/acct/img-1/public?exp=1700003600&sig=")
        assert host.signed_url("img-1", "public", now=1_700_000_000) == url
        assert host.signed_url("img-1", "chatter", now=1_700_000_000) != url

    def test_signed_url_requires_signing_key(self):
        with pytest.raises(ConfigurationError):
            ImageHost(account_hash="acct").signed_url("img-1", "public")

    @pytest.mark.asyncio
    async def test_upload_returns_id(self):
        def handler(request):
            assert request.url.path == "/client/v4/accounts/acct-id/images/v1"
            return httpx.Response(200, json={"success": True, "result": {"id": "img-9"}})

        async with mock_client(handler) as client:
            host = ImageHost(api_key="token", account_id="acct-id", client=client)
            image_id = await host.upload(b"bytes", "a.png", "image/png", {"sha256": "x"})
        assert image_id == "img-9"
