from __future__ import annotations

from typing import Any, Dict, Optional

from coffey.schemas.snapshots import ApiSnapshot, PollenSummary
from .base import BaseProvider


class PollenProvider(BaseProvider):
    """Today's pollen forecast (Google Pollen API)."""

    name = "google"
    product = "pollen"
    secret_name = "GOOGLE_API_KEY"

    URL = "https://pollen.googleapis.com/v1/forecast:lookup"

    async def fetch(self, lat: float, lng: float) -> ApiSnapshot:
        key = self._require_key()
        data = await self._get_json(
            self.URL,
            params={"location.latitude": lat, "location.longitude": lng, "days": 1, "key": key},
        )
        days = data.get("dailyInfo") or [{}]
        today = days[0]

        by_type: Dict[str, Dict[str, Any]] = {}
        for info in today.get("pollenTypeInfo") or []:
            by_type[(info.get("code") or "").upper()] = info.get("indexInfo") or {}

        def index_of(code: str) -> Optional[Any]:
            return by_type.get(code, {}).get("value")

        def category_of(code: str) -> Optional[str]:
            return by_type.get(code, {}).get("category")

        present = [info for info in by_type.values() if info.get("value") is not None]
        overall = max(present, key=lambda info: info["value"]) if present else {}

        summary = PollenSummary(
            date=self._format_date(today.get("date")),
            index_overall=overall.get("value"),
            index_category=overall.get("category"),
            tree_index=index_of("TREE"),
            tree_category=category_of("TREE"),
            grass_index=index_of("GRASS"),
            grass_category=category_of("GRASS"),
            weed_index=index_of("WEED"),
            weed_category=category_of("WEED"),
        )
        return self._snapshot(summary)

    @staticmethod
    def _format_date(value: Any) -> Optional[str]:
        if not isinstance(value, dict) or not value.get("year"):
            return None
        return f"{value['year']:04d}-{value.get('month', 1):02d}-{value.get('day', 1):02d}"
