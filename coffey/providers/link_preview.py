"""OpenGraph / meta-tag link previews."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from coffey.core.logging import get_logger

log = get_logger("providers.link_preview")

USER_AGENT = "Mozilla/5.0 (compatible; CoffeyBot/1.0)"
FETCH_TIMEOUT = 10.0
MAX_HTML_CHARS = 100_000


def extract_domain(url: str) -> str:
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


def _meta(soup: BeautifulSoup, **attrs: str) -> Optional[str]:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def parse_meta_tags(html: str) -> Dict[str, str]:
    """title/description/image from OpenGraph tags, falling back to plain HTML."""
    soup = BeautifulSoup(html, "html.parser")
    found: Dict[str, str] = {}

    title = _meta(soup, property="og:title")
    description = _meta(soup, property="og:description")
    image = _meta(soup, property="og:image")

    if not description:
        description = _meta(soup, name="description")
    if not title and soup.title and soup.title.string:
        title = soup.title.string.strip() or None

    if title:
        found["title"] = title
    if description:
        found["description"] = description
    if image:
        found["image"] = image
    return found


class LinkPreviewProvider:
    """Fetches page metadata. Never raises: failures degrade to ``{url, domain}``."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.client = client

    async def _get(self, url: str) -> httpx.Response:
        headers = {"User-Agent": USER_AGENT}
        if self.client is not None:
            return await self.client.get(url, headers=headers, timeout=FETCH_TIMEOUT, follow_redirects=True)
        async with httpx.AsyncClient(timeout=FETCH_TIMEOUT, follow_redirects=True) as client:
            return await client.get(url, headers=headers)

    async def fetch(self, url: str) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {"url": url, "domain": extract_domain(url)}
        try:
            resp = await asyncio.wait_for(self._get(url), FETCH_TIMEOUT)
        except asyncio.TimeoutError:
            log.warning(f"Link preview fetch timed out for {url} after {FETCH_TIMEOUT}s")
            return metadata
        except httpx.HTTPError as exc:
            log.warning(f"Link preview fetch failed for {url}: {exc}")
            return metadata

        if resp.status_code >= 400:
            log.debug(f"Link preview for {url} returned HTTP {resp.status_code}")
            return metadata
        if "text/html" not in resp.headers.get("content-type", ""):
            return metadata

        metadata.update(parse_meta_tags(resp.text[:MAX_HTML_CHARS]))
        return metadata

    async def enrich(self, links: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Fill in metadata for each link concurrently, keeping caller-supplied fields."""

        async def one(link: Dict[str, Any]) -> Dict[str, Any]:
            if link.get("title") or link.get("description") or link.get("image"):
                return {**link, "domain": link.get("domain") or extract_domain(link["url"])}
            return await self.fetch(link["url"])

        results = await asyncio.gather(*(one(link) for link in links), return_exceptions=True)

        enriched = []
        for link, result in zip(links, results):
            if isinstance(result, BaseException):
                log.warning(f"Link enrichment failed for {link.get('url')}: {result}")
                enriched.append({**link, "domain": link.get("domain") or extract_domain(link["url"])})
            else:
                enriched.append(result)
        return enriched
