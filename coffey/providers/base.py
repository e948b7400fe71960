"""Abstract provider interface for enrichment sources."""

from __future__ import annotations

from abc import ABC
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from coffey.core.errors import ConfigurationError, ProviderError
from coffey.core.timeutils import now_iso
from coffey.schemas.snapshots import ApiSnapshot, ProviderInfo

DEFAULT_TIMEOUT = 30.0


class BaseProvider(ABC):
    """Base class for external data providers.

    Subclasses set ``name``/``product``/``version`` (reported in every snapshot)
    and ``secret_name`` (the setting that must be present before any call).
    An ``httpx.AsyncClient`` may be injected; otherwise one is opened per call.
    """

    name: str
    product: str
    version: Optional[str] = "v1"
    secret_name: Optional[str] = None

    def __init__(self, api_key: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key
        self.client = client

    @property
    def label(self) -> str:
        return f"{self.name}/{self.product}"

    def _require_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(f"{self.secret_name or 'API key'} not configured", details={"provider": self.label})
        return self.api_key

    @asynccontextmanager
    async def _http(self, timeout: float = DEFAULT_TIMEOUT) -> AsyncIterator[httpx.AsyncClient]:
        if self.client is not None:
            yield self.client
            return
        async with httpx.AsyncClient(timeout=timeout) as client:
            yield client

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            async with self._http() as client:
                resp = await client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise ProviderError(self.label, f"request failed: {exc}") from exc
        if resp.status_code >= 400:
            raise ProviderError(self.label, f"HTTP {resp.status_code}: {resp.text[:500]}", status=resp.status_code)
        return resp

    @staticmethod
    def _json(resp: httpx.Response, label: str) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise ProviderError(label, "response is not valid JSON", status=resp.status_code) from exc

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None, **kwargs: Any) -> Any:
        resp = await self._request("GET", url, params=params, **kwargs)
        return self._json(resp, self.label)

    async def _post_json(self, url: str, body: Dict[str, Any], **kwargs: Any) -> Any:
        resp = await self._request("POST", url, json=body, **kwargs)
        return self._json(resp, self.label)

    def _snapshot(self, summary: Any, captured_at: Optional[str] = None) -> ApiSnapshot:
        return ApiSnapshot(
            captured_at=captured_at or now_iso(),
            provider=ProviderInfo(name=self.name, product=self.product, version=self.version),
            summary=summary,
        )
