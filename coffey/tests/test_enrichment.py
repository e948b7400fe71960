"""Enrichment fan-out, partial failure and chatter creation tests"""

import asyncio
import hashlib
import json
from datetime import timedelta
from unittest.mock import AsyncMock

import pydantic
import pytest

from conftest import canned_snapshots, make_snapshot
from coffey.core.errors import ProviderError
from coffey.core.timeutils import to_iso, utcnow
from coffey.models.chatter import ChatterIndex
from coffey.providers.weather import WeatherProvider
from coffey.schemas.chatter import CreateChatterRequest
from coffey.schemas.snapshots import MediaSummary, PlaceSummary
from coffey.services.chatter_service import ChatterService
from coffey.services.enrichment import (
    CHATTER_CATEGORIES,
    BranchOutcome,
    EnrichmentService,
    fan_out,
    merge_environment,
)

SF = {"lat": 37.7749, "lng": -122.4194}


async def _value(v):
    return v


async def _boom():
    raise ProviderError("google/elevation", "HTTP 500", status=500)


async def _cancelled():
    raise asyncio.CancelledError()


class TestFanOut:
    """Settle-all fan-out and the pure merge step"""

    @pytest.mark.asyncio
    async def test_failure_isolated_from_siblings(self):
        outcomes = await fan_out({"a": _value({"x": 1}), "b": _boom(), "c": _value(None)})

        by_key = {o.key: o for o in outcomes}
        assert by_key["a"].ok and by_key["a"].value == {"x": 1}
        assert not by_key["b"].ok and isinstance(by_key["b"].error, ProviderError)
        assert not by_key["c"].ok and by_key["c"].error is None

    @pytest.mark.asyncio
    async def test_cancelled_branch_recorded_as_failure(self):
        outcomes = await fan_out({"a": _value({"x": 1}), "b": _cancelled()})

        by_key = {o.key: o for o in outcomes}
        assert by_key["a"].ok
        assert not by_key["b"].ok and isinstance(by_key["b"].error, asyncio.CancelledError)
        assert merge_environment(outcomes) == {"a": {"x": 1}}

    def test_merge_keeps_only_successes(self):
        outcomes = [
            BranchOutcome(key="weather", value={"t": 1}),
            BranchOutcome(key="pollen", error=RuntimeError("down")),
            BranchOutcome(key="elevation"),
        ]
        assert merge_environment(outcomes) == {"weather": {"t": 1}}

    def test_merge_is_order_independent(self):
        outcomes = [BranchOutcome(key="a", value={"v": 1}), BranchOutcome(key="b", value={"v": 2})]
        assert merge_environment(outcomes) == merge_environment(list(reversed(outcomes)))


class TestChatterEnrichment:
    """Chatter creation through the orchestrator"""

    @pytest.mark.asyncio
    async def test_end_to_end_hash(self, db, blobs, providers):
        request = CreateChatterRequest(content="hello", location_hint=SF)
        result = await ChatterService(db, blobs, providers).create(request, created_by="admin@example.com")

        snapshots = canned_snapshots()
        expected_data = {
            "kind": "chatter",
            "content": "hello",
            "tags": [],
            "images": [],
            "publish": True,
            "location_hint": {"lat": 37.7749, "lng": -122.4194},
            "environment": {key: snapshots[key].to_dict() for key in CHATTER_CATEGORIES},
        }
        canonical = json.dumps(expected_data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        expected_hash = hashlib.sha256(canonical.encode("utf-8")).hexdigest()

        record = result["record"]
        assert record["id"] == f"sha256:{expected_hash}"
        assert record["data"] == expected_data
        assert record["created_by"] == "admin@example.com"
        assert result["is_duplicate"] is False

    @pytest.mark.asyncio
    async def test_weather_failure_does_not_fail_request(self, db, blobs, providers):
        providers.weather.fetch = AsyncMock(side_effect=ProviderError("google/weather_historical", "HTTP 500", status=500))

        request = CreateChatterRequest(content="rainy?", location_hint=SF)
        result = await ChatterService(db, blobs, providers).create(request, created_by="admin@example.com")

        environment = result["record"]["data"]["environment"]
        assert "weather" not in environment
        assert {"air_quality", "elevation", "geocoding"} <= set(environment)

    @pytest.mark.asyncio
    async def test_future_timestamp_skips_weather(self, db, blobs, providers):
        hourly, archive = AsyncMock(), AsyncMock()
        providers.weather = WeatherProvider(hourly=hourly, archive=archive)

        future = to_iso(utcnow() + timedelta(hours=1))
        request = CreateChatterRequest(content="from the future", location_hint=SF, created_at=future)
        result = await ChatterService(db, blobs, providers).create(request, created_by="admin@example.com")

        hourly.fetch.assert_not_called()
        archive.fetch.assert_not_called()
        assert "weather" not in result["record"]["data"]["environment"]
        assert result["record"]["created_at"] == future

    @pytest.mark.asyncio
    async def test_no_coordinates_skips_geo(self, db, blobs, providers):
        request = CreateChatterRequest(content="indoors")
        result = await ChatterService(db, blobs, providers).create(request, created_by="admin@example.com")

        assert "environment" not in result["record"]["data"]
        providers.weather.fetch.assert_not_called()
        providers.places.nearby.assert_not_called()

    def test_malformed_created_at_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            CreateChatterRequest(content="hi", location_hint=SF, created_at="yesterday")

    @pytest.mark.asyncio
    async def test_backdated_created_at_normalized(self, db, blobs, providers):
        request = CreateChatterRequest(content="backdated", created_at="2025-06-15T10:00:00+02:00")
        result = await ChatterService(db, blobs, providers).create(request, created_by="admin@example.com")

        assert result["record"]["created_at"] == "2025-06-15T08:00:00.000Z"
        assert result["object_key"].startswith("chatter/json/2025-06-15-sha_")

    @pytest.mark.asyncio
    async def test_duplicate_content_detected(self, db, blobs, providers):
        service = ChatterService(db, blobs, providers)
        request = CreateChatterRequest(content="same", created_at="2026-01-01T00:00:00.000Z")

        first = await service.create(request, created_by="admin@example.com")
        second = await service.create(request, created_by="admin@example.com")

        assert first["is_duplicate"] is False
        assert second["is_duplicate"] is True
        assert second["object_key"] == first["object_key"]
        assert db.query(ChatterIndex).count() == 1

    @pytest.mark.asyncio
    async def test_duplicate_returns_stored_record(self, db, blobs, providers):
        service = ChatterService(db, blobs, providers)
        first = await service.create(
            CreateChatterRequest(content="once", created_at="2026-02-01T09:00:00.000Z"), created_by="admin@example.com"
        )
        second = await service.create(CreateChatterRequest(content="once"), created_by="other@example.com")

        assert second["is_duplicate"] is True
        assert second["record"] == first["record"]
        assert second["record"]["created_by"] == "admin@example.com"
        assert second["record"]["created_at"] == "2026-02-01T09:00:00.000Z"

    @pytest.mark.asyncio
    async def test_blob_and_index_written(self, db, blobs, providers):
        request = CreateChatterRequest(content="stored", title="T", created_at="2025-06-15T08:00:00.000Z")
        result = await ChatterService(db, blobs, providers).create(request, created_by="admin@example.com")

        digest = result["record"]["sha256"]
        assert result["object_key"] == f"chatter/json/2025-06-15-sha_{digest}.json"
        stored = json.loads(await blobs.get(result["object_key"]))
        assert stored == result["record"]

        row = db.get(ChatterIndex, digest)
        assert row.title == "T"
        assert row.blob_key == result["object_key"]


class TestPlaceResolution:
    """Place reference validation and lookup"""

    def test_incomplete_manual_place_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            CreateChatterRequest(content="x", place={"name": "Cafe", "formatted_address": "1 Main St"})

    def test_manual_place_accepted(self):
        request = CreateChatterRequest(
            place={
                "name": "Cafe",
                "formatted_address": "1 Main St, Springfield, IL 62701, USA",
                "short_address": "1 Main St",
                "location": {"lat": 39.78, "lng": -89.65},
            }
        )
        assert request.place.google_place_id is None

    @pytest.mark.asyncio
    async def test_place_id_resolved_before_enrichment(self, db, blobs, providers):
        place_snapshot = make_snapshot(
            PlaceSummary(
                name="Ferry Building",
                formatted_address="1 Ferry Building, San Francisco, CA 94111, USA",
                short_address="1 Ferry Building",
                lat=37.7955,
                lng=-122.3937,
                place_id="abc123",
            ),
            product="places",
        )
        providers.places.details = AsyncMock(return_value=place_snapshot)

        request = CreateChatterRequest(content="lunch", place={"provider_ids": {"google_places": "abc123"}})
        result = await ChatterService(db, blobs, providers).create(request, created_by="admin@example.com")

        data = result["record"]["data"]
        assert data["place"]["name"] == "Ferry Building"
        assert data["place"]["location"] == {"lat": 37.7955, "lng": -122.3937}
        assert data["environment"]["place"] == place_snapshot.to_dict()
        providers.places.details.assert_awaited_once_with("abc123")
        providers.weather.fetch.assert_awaited_once()
        assert providers.weather.fetch.call_args.args[:2] == (37.7955, -122.3937)

    @pytest.mark.asyncio
    async def test_location_hint_beats_place_coordinates(self, db, blobs, providers):
        request = CreateChatterRequest(
            content="here",
            location_hint=SF,
            place={
                "name": "Elsewhere",
                "formatted_address": "2 Side St, Oakland, CA 94607, USA",
                "short_address": "2 Side St",
                "location": {"lat": 37.8, "lng": -122.27},
            },
        )
        await ChatterService(db, blobs, providers).create(request, created_by="admin@example.com")
        assert providers.elevation.fetch.call_args.args == (37.7749, -122.4194)

    @pytest.mark.asyncio
    async def test_place_failure_aborts_creation(self, db, blobs, providers):
        providers.places.details = AsyncMock(side_effect=ProviderError("google/places", "HTTP 404", status=404))

        request = CreateChatterRequest(content="lost", place={"provider_ids": {"google_places": "nope"}})
        with pytest.raises(ProviderError) as exc_info:
            await ChatterService(db, blobs, providers).create(request, created_by="admin@example.com")

        assert "failed to fetch place details" in exc_info.value.message
        providers.weather.fetch.assert_not_called()
        assert db.query(ChatterIndex).count() == 0


class TestSideBranches:
    """Links and watched media are best effort"""

    @pytest.mark.asyncio
    async def test_links_normalized_and_enriched(self, providers):
        providers.links.enrich = AsyncMock(
            return_value=[{"url": "https://example.com", "domain": "example.com", "title": "Example"}]
        )
        request = CreateChatterRequest(content="look", links="https://example.com")

        data = await EnrichmentService(providers).enrich_chatter(request)

        providers.links.enrich.assert_awaited_once_with([{"url": "https://example.com"}])
        assert data["links"][0]["title"] == "Example"

    @pytest.mark.asyncio
    async def test_link_failure_keeps_urls(self, providers):
        providers.links.enrich = AsyncMock(side_effect=RuntimeError("network down"))
        request = CreateChatterRequest(content="look", links=["https://a.example", "https://b.example"])

        data = await EnrichmentService(providers).enrich_chatter(request)

        assert data["links"] == [{"url": "https://a.example"}, {"url": "https://b.example"}]

    @pytest.mark.asyncio
    async def test_watched_resolved_by_title(self, providers):
        media = make_snapshot(
            MediaSummary(media_type="movie", tmdb_id=603, title="The Matrix", tmdb_url="https://www.themoviedb.org/movie/603"),
            name="themoviedb",
            product="api",
        )
        providers.tmdb.search = AsyncMock(return_value=603)
        providers.tmdb.details = AsyncMock(return_value=media)
        request = CreateChatterRequest(content="rewatch", watched={"media_type": "movie", "tmdb_title": "The Matrix"})

        data = await EnrichmentService(providers).enrich_chatter(request)

        providers.tmdb.details.assert_awaited_once_with("movie", 603)
        assert data["watched"] == media.to_dict()

    @pytest.mark.asyncio
    async def test_watched_failure_omits_field(self, providers):
        providers.tmdb.details = AsyncMock(side_effect=ProviderError("themoviedb/api", "HTTP 503", status=503))
        request = CreateChatterRequest(content="rewatch", watched={"media_type": "tv", "tmdb_id": 1399})

        data = await EnrichmentService(providers).enrich_chatter(request)

        assert "watched" not in data
        assert data["content"] == "rewatch"
