"""Cloudflare Images: upload, delete and signed delivery URLs."""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from typing import Dict, Optional

import httpx

from coffey.core.errors import ConfigurationError, ProviderError, UploadError
from coffey.core.logging import get_logger
from .base import BaseProvider

log = get_logger("providers.image_host")

VARIANTS = ("chatter", "content", "public")
SIGNED_URL_TTL = 3600


class ImageHost(BaseProvider):
    name = "cloudflare"
    product = "images"
    secret_name = "CLOUDFLARE_MEDIA_TOKEN"

    API_BASE = "https://api.cloudflare.com/client/v4/accounts"
    DELIVERY_BASE = "https://imagedelivery.net"

    def __init__(
        self,
        api_key: Optional[str] = None,
        account_id: Optional[str] = None,
        account_hash: Optional[str] = None,
        signing_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(api_key=api_key, client=client)
        self.account_id = account_id
        self.account_hash = account_hash
        self.signing_key = signing_key

    def _endpoint(self) -> str:
        if not self.account_id:
            raise ConfigurationError("CLOUDFLARE_ACCOUNT_ID not configured")
        return f"{self.API_BASE}/{self.account_id}/images/v1"

    async def upload(self, content: bytes, filename: str, content_type: str, metadata: Dict[str, str]) -> str:
        """Upload an image with signed URLs required; returns the host-assigned id."""
        try:
            token = self._require_key()
            endpoint = self._endpoint()
        except ConfigurationError as exc:
            raise UploadError(exc.message, status_code=500) from exc

        try:
            resp = await self._request(
                "POST",
                endpoint,
                headers={"Authorization": f"Bearer {token}"},
                files={"file": (filename, content, content_type)},
                data={"requireSignedURLs": "true", "metadata": json.dumps(metadata)},
            )
        except ProviderError as exc:
            raise UploadError(f"Image upload failed: {exc.message}", status_code=500) from exc

        result = self._json(resp, self.label)
        image_id = (result.get("result") or {}).get("id")
        if not result.get("success") or not image_id:
            errors = ", ".join(e.get("message", "") for e in result.get("errors") or []) or "Unknown error"
            raise UploadError(f"Image upload failed: {errors}", status_code=500)
        return image_id

    async def delete(self, image_id: str) -> None:
        token = self._require_key()
        await self._request("DELETE", f"{self._endpoint()}/{image_id}", headers={"Authorization": f"Bearer {token}"})

    def signed_url(self, image_id: str, variant: str, now: Optional[float] = None) -> str:
        """Delivery URL signed with HMAC-SHA256, valid for one hour."""
        if not self.account_hash:
            raise ConfigurationError("CF_HOSTED_IMAGES_HASH not configured")
        if not self.signing_key:
            raise ConfigurationError("CF_HOSTED_IMAGES_KEYS_API_TOKEN not configured")

        expiry = int(now if now is not None else time.time()) + SIGNED_URL_TTL
        path = f"/{self.account_hash}/{image_id}/{variant}"
        to_sign = f"{path}?exp={expiry}"
        sig = hmac.new(self.signing_key.encode("utf-8"), to_sign.encode("utf-8"), hashlib.sha256).hexdigest()
        return f"{self.DELIVERY_BASE}{path}?exp={expiry}&sig={sig}"
