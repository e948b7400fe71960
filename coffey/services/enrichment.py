"""Enrichment orchestrator.

Fans out to independent providers concurrently and settles every branch before
merging. Each branch yields a tagged ``BranchOutcome``; a pure reduce
(``merge_environment``) turns the outcomes into the environment bag. A failed
or skipped branch simply has no key in the bag.

Only place resolution can fail the whole call: a bad place reference aborts
creation before any other work starts.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, Iterable, List, Optional, Tuple

from coffey.core.errors import CoffeyError, ProviderError, error_message
from coffey.core.logging import get_logger
from coffey.core.timeutils import now_iso
from coffey.providers import ProviderSet
from coffey.schemas.chatter import CreateChatterRequest, PlaceInput, WatchedInput
from coffey.schemas.snapshots import ApiSnapshot

log = get_logger("services.enrichment")

CHATTER_CATEGORIES = ("weather", "air_quality", "pollen", "elevation", "geocoding", "nearby_places")
IMAGE_CATEGORIES = ("weather", "elevation", "geocoding", "nearby_places")

NEARBY_RADIUS_M = 500


@dataclass(frozen=True)
class BranchOutcome:
    key: str
    value: Optional[Dict[str, Any]] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.value is not None


def _as_dict(result: Any) -> Dict[str, Any]:
    if isinstance(result, ApiSnapshot):
        return result.to_dict()
    return dict(result)


async def fan_out(branches: Dict[str, Awaitable[Any]]) -> List[BranchOutcome]:
    """Run all branches concurrently; never raises, never cancels siblings."""
    keys = list(branches)
    results = await asyncio.gather(*branches.values(), return_exceptions=True)

    outcomes: List[BranchOutcome] = []
    for key, result in zip(keys, results):
        if isinstance(result, BaseException):
            log.warning(f"Enrichment branch {key} failed: {error_message(result)}")
            outcomes.append(BranchOutcome(key=key, error=result))
        elif result is None:
            log.debug(f"Enrichment branch {key} returned no data")
            outcomes.append(BranchOutcome(key=key))
        else:
            outcomes.append(BranchOutcome(key=key, value=_as_dict(result)))
    return outcomes


def merge_environment(outcomes: Iterable[BranchOutcome]) -> Dict[str, Any]:
    return {o.key: o.value for o in outcomes if o.ok}


async def _ready(value: Any) -> Any:
    return value


class EnrichmentService:
    def __init__(self, providers: ProviderSet):
        self.providers = providers

    # =========================================================================
    # Place resolution (the only hard failure)
    # =========================================================================
    async def resolve_place(self, place: PlaceInput) -> Tuple[Dict[str, Any], Optional[ApiSnapshot]]:
        """Fill in display fields for a place given only by provider id."""
        if place.name or not place.google_place_id:
            return place.model_dump(exclude_none=True), None

        try:
            snapshot = await self.providers.places.details(place.google_place_id)
        except CoffeyError as exc:
            log.error(f"Place details fetch failed for {place.google_place_id}: {exc.message}")
            if isinstance(exc, ProviderError):
                raise ProviderError(exc.provider, f"failed to fetch place details: {exc.message}", status=exc.status) from exc
            raise

        summary = snapshot.summary
        resolved = {
            "name": summary.name,
            "formatted_address": summary.formatted_address,
            "short_address": summary.short_address or summary.name,
            "location": {"lat": summary.lat, "lng": summary.lng},
            "provider_ids": dict(place.provider_ids or {}),
        }
        return resolved, snapshot

    # =========================================================================
    # Geo fan-out
    # =========================================================================
    def _geo_branches(
        self,
        lat: float,
        lng: float,
        when: Optional[str],
        categories: Iterable[str],
    ) -> Dict[str, Awaitable[Any]]:
        p = self.providers
        factories = {
            "weather": lambda: p.weather.fetch(lat, lng, when),
            "air_quality": lambda: p.air_quality.fetch(lat, lng),
            "pollen": lambda: p.pollen.fetch(lat, lng),
            "elevation": lambda: p.elevation.fetch(lat, lng),
            "geocoding": lambda: p.geocoding.fetch(lat, lng),
            "nearby_places": lambda: p.places.nearby(lat, lng, NEARBY_RADIUS_M),
        }
        return {key: factories[key]() for key in categories}

    async def gather_environment(
        self,
        lat: float,
        lng: float,
        when: Optional[str] = None,
        categories: Iterable[str] = CHATTER_CATEGORIES,
        place_id: Optional[str] = None,
        place_snapshot: Optional[ApiSnapshot] = None,
    ) -> Dict[str, Any]:
        branches = self._geo_branches(lat, lng, when, categories)
        if place_snapshot is not None:
            branches["place"] = _ready(place_snapshot)
        elif place_id:
            branches["place"] = self.providers.places.details(place_id)

        outcomes = await fan_out(branches)
        environment = merge_environment(outcomes)
        log.info(f"Enrichment at ({lat}, {lng}): {sorted(environment)} ok, {len(outcomes) - len(environment)} missing")
        return environment

    # =========================================================================
    # Best-effort side branches
    # =========================================================================
    async def _links(self, links: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        try:
            return await self.providers.links.enrich(links)
        except Exception as exc:  # noqa: BLE001
            log.warning(f"Link enrichment failed, keeping links as given: {exc}")
            return links

    async def _watched(self, watched: WatchedInput) -> Optional[Dict[str, Any]]:
        tmdb = self.providers.tmdb
        try:
            tmdb_id = watched.tmdb_id
            if tmdb_id is None and watched.tmdb_title:
                tmdb_id = await tmdb.search(watched.media_type, watched.tmdb_title)
            if tmdb_id is None:
                return None
            snapshot = await tmdb.details(watched.media_type, tmdb_id)
            return snapshot.to_dict()
        except Exception as exc:  # noqa: BLE001
            log.warning(f"Watched media enrichment failed: {error_message(exc)}")
            return None

    # =========================================================================
    # Chatter
    # =========================================================================
    @staticmethod
    def build_draft(request: CreateChatterRequest, place: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Chatter data before enrichment. Optional fields that were not given are omitted."""
        draft: Dict[str, Any] = {"kind": request.kind}
        for field in ("content", "comment", "title"):
            value = getattr(request, field)
            if value is not None:
                draft[field] = value
        draft["tags"] = list(request.tags or [])
        draft["images"] = list(request.images or [])
        draft["publish"] = request.publish if request.publish is not None else True
        if request.location_hint is not None:
            draft["location_hint"] = request.location_hint.model_dump(exclude_none=True)
        if place is not None:
            draft["place"] = place
        return draft

    @staticmethod
    def coordinates(request: CreateChatterRequest, place: Optional[Dict[str, Any]]) -> Optional[Tuple[float, float]]:
        if request.location_hint is not None:
            return request.location_hint.lat, request.location_hint.lng
        location = (place or {}).get("location")
        if location:
            return location["lat"], location["lng"]
        return None

    async def enrich_chatter(self, request: CreateChatterRequest) -> Dict[str, Any]:
        place: Optional[Dict[str, Any]] = None
        place_snapshot: Optional[ApiSnapshot] = None
        if request.place is not None:
            place, place_snapshot = await self.resolve_place(request.place)

        data = self.build_draft(request, place)
        coords = self.coordinates(request, place)
        links = request.link_dicts()

        if coords is not None:
            env_task = self.gather_environment(
                coords[0],
                coords[1],
                when=request.created_at or now_iso(),
                place_id=request.place.google_place_id if request.place else None,
                place_snapshot=place_snapshot,
            )
        else:
            log.debug("No coordinates supplied, skipping geo enrichment")
            env_task = _ready(None)

        environment, enriched_links, watched = await asyncio.gather(
            env_task,
            self._links(links) if links else _ready(None),
            self._watched(request.watched) if request.watched else _ready(None),
        )

        if enriched_links is not None:
            data["links"] = enriched_links
        if watched is not None:
            data["watched"] = watched
        if environment is not None:
            data["environment"] = environment
        return data
