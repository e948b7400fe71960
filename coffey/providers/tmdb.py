"""The Movie Database (TMDB) lookups for watched movies and TV shows."""

from __future__ import annotations

from typing import Any, Dict, Literal

from coffey.core.errors import ProviderError
from coffey.schemas.snapshots import ApiSnapshot, MediaSummary
from .base import BaseProvider

IMAGE_BASE = "https://image.tmdb.org/t/p/original"

MediaType = Literal["movie", "tv"]


def tmdb_url(tmdb_id: int, media_type: MediaType) -> str:
    return f"https://www.themoviedb.org/{media_type}/{tmdb_id}"


def _image(path: Any) -> Any:
    return f"{IMAGE_BASE}{path}" if path else None


class TmdbProvider(BaseProvider):
    name = "themoviedb"
    product = "api"
    version = "3"
    secret_name = "TMDB_API_KEY"

    BASE_URL = "https://api.themoviedb.org/3"

    async def search(self, media_type: MediaType, title: str) -> int:
        """TMDB id of the most relevant result for ``title``."""
        key = self._require_key()
        data = await self._get_json(f"{self.BASE_URL}/search/{media_type}", params={"query": title, "api_key": key})
        results = data.get("results") or []
        if not results:
            raise ProviderError(self.label, f"no {media_type} found for title: {title}", status=404)
        return results[0]["id"]

    async def details(self, media_type: MediaType, tmdb_id: int) -> ApiSnapshot:
        key = self._require_key()
        data = await self._get_json(
            f"{self.BASE_URL}/{media_type}/{tmdb_id}",
            params={"api_key": key, "append_to_response": "credits"},
        )
        credits = data.get("credits") or {}
        common: Dict[str, Any] = {
            "media_type": media_type,
            "tmdb_id": data["id"],
            "overview": data.get("overview"),
            "poster_url": _image(data.get("poster_path")),
            "backdrop_url": _image(data.get("backdrop_path")),
            "genres": [g["name"] for g in data.get("genres") or []],
            "tmdb_rating": data.get("vote_average"),
            "vote_count": data.get("vote_count"),
            "tmdb_url": tmdb_url(data["id"], media_type),
            "cast": [p["name"] for p in (credits.get("cast") or [])[:5]],
        }

        if media_type == "movie":
            director = next((p["name"] for p in credits.get("crew") or [] if p.get("job") == "Director"), None)
            summary = MediaSummary(
                title=data.get("title") or "",
                release_date=data.get("release_date"),
                runtime=data.get("runtime"),
                director=director,
                **common,
            )
        else:
            summary = MediaSummary(
                title=data.get("name") or "",
                release_date=data.get("first_air_date"),
                number_of_seasons=data.get("number_of_seasons"),
                number_of_episodes=data.get("number_of_episodes"),
                creators=[p["name"] for p in data.get("created_by") or []],
                **common,
            )
        return self._snapshot(summary)
