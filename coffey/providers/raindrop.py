"""Raindrop.io REST client used by the bookmark sync."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from coffey.core.errors import ProviderError
from coffey.core.logging import get_logger
from .base import BaseProvider

log = get_logger("providers.raindrop")

PAGE_SIZE = 50


class RaindropClient(BaseProvider):
    name = "raindrop.io"
    product = "api"
    secret_name = "RAINDROP_TOKEN"

    BASE_URL = "https://api.raindrop.io/rest/v1"

    def _auth(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._require_key()}"}

    async def list_raindrops(
        self,
        collection_id: int = 0,
        perpage: int = PAGE_SIZE,
        page: int = 0,
        sort: str = "-created",
        search: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """One page of raindrops. Collection 0 means all, -1 means unsorted."""
        params: Dict[str, Any] = {"perpage": perpage, "page": page, "sort": sort}
        if search:
            params["search"] = search
        data = await self._get_json(f"{self.BASE_URL}/raindrops/{collection_id}", params=params, headers=self._auth())
        return data.get("items") or []

    async def get_raindrop(self, raindrop_id: int) -> Dict[str, Any]:
        data = await self._get_json(f"{self.BASE_URL}/raindrop/{raindrop_id}", headers=self._auth())
        item = data.get("item")
        if not isinstance(item, dict):
            raise ProviderError(self.label, f"raindrop {raindrop_id} missing from response")
        return item

    async def list_collections(self) -> List[Dict[str, Any]]:
        """Root collections followed by nested ones."""
        headers = self._auth()
        root = await self._get_json(f"{self.BASE_URL}/collections", headers=headers)
        children = await self._get_json(f"{self.BASE_URL}/collections/childrens", headers=headers)
        return list(root.get("items") or []) + list(children.get("items") or [])

    async def permanent_copy_url(self, raindrop_id: int) -> Optional[str]:
        """Location of the archived copy, or None when there is none."""
        headers = self._auth()
        try:
            async with self._http() as client:
                resp = await client.get(
                    f"{self.BASE_URL}/raindrop/{raindrop_id}/cache",
                    headers=headers,
                    follow_redirects=False,
                )
        except httpx.HTTPError as exc:
            raise ProviderError(self.label, f"request failed: {exc}") from exc

        if resp.status_code == 307:
            return resp.headers.get("location")
        if resp.status_code in (400, 404):
            return None
        raise ProviderError(self.label, f"unexpected permanent copy response: {resp.status_code}", status=resp.status_code)

    async def download(self, url: str) -> httpx.Response:
        """Fetch an archived copy (pre-signed URL, no auth header)."""
        return await self._request("GET", url, follow_redirects=True)
