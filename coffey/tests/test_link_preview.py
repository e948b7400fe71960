"""Link preview tests"""

import asyncio
import time

import httpx
import pytest

from coffey.providers import link_preview
from coffey.providers.link_preview import LinkPreviewProvider, extract_domain, parse_meta_tags

ARTICLE = """
<html><head>
<title>Plain Title</title>
<meta property="og:title" content="OG Title">
<meta property="og:description" content="OG description">
<meta property="og:image" content="https://example.com/cover.jpg">
</head><body>hi</body></html>
"""


class TestParseMetaTags:
    """HTML meta extraction"""

    def test_open_graph_preferred(self):
        assert parse_meta_tags(ARTICLE) == {
            "title": "OG Title",
            "description": "OG description",
            "image": "https://example.com/cover.jpg",
        }

    def test_falls_back_to_title_and_description(self):
        html = '<html><head><title> Only Title </title><meta name="description" content="Desc"></head></html>'
        assert parse_meta_tags(html) == {"title": "Only Title", "description": "Desc"}

    def test_empty_page(self):
        assert parse_meta_tags("<html></html>") == {}

    def test_extract_domain(self):
        assert extract_domain("https://www.example.com/a?b=c") == "www.example.com"


class TestLinkPreviewProvider:
    """Fetching never raises"""

    @pytest.mark.asyncio
    async def test_fetch_html(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, text=ARTICLE, headers={"content-type": "text/html; charset=utf-8"})
        )
        async with httpx.AsyncClient(transport=transport) as client:
            preview = await LinkPreviewProvider(client=client).fetch("https://example.com/post")

        assert preview["url"] == "https://example.com/post"
        assert preview["domain"] == "example.com"
        assert preview["title"] == "OG Title"

    @pytest.mark.asyncio
    async def test_non_html_degrades_to_url(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, content=b"%PDF", headers={"content-type": "application/pdf"})
        )
        async with httpx.AsyncClient(transport=transport) as client:
            preview = await LinkPreviewProvider(client=client).fetch("https://example.com/doc.pdf")

        assert preview == {"url": "https://example.com/doc.pdf", "domain": "example.com"}

    @pytest.mark.asyncio
    async def test_network_failure_degrades_to_url(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            preview = await LinkPreviewProvider(client=client).fetch("https://slow.example/")

        assert preview == {"url": "https://slow.example/", "domain": "slow.example"}

    @pytest.mark.asyncio
    async def test_enrich_keeps_supplied_metadata(self):
        calls = []

        def handler(request):
            calls.append(str(request.url))
            return httpx.Response(200, text=ARTICLE, headers={"content-type": "text/html"})

        links = [
            {"url": "https://example.com/mine", "title": "My Title"},
            {"url": "https://example.com/other"},
        ]
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            enriched = await LinkPreviewProvider(client=client).enrich(links)

        assert calls == ["https://example.com/other"]
        assert enriched[0] == {"url": "https://example.com/mine", "title": "My Title", "domain": "example.com"}
        assert enriched[1]["title"] == "OG Title"

    @pytest.mark.asyncio
    async def test_trickling_body_hits_total_deadline(self, monkeypatch):
        monkeypatch.setattr(link_preview, "FETCH_TIMEOUT", 0.5)

        async def trickle():
            yield b"<html><head><title>"
            for _ in range(40):
                await asyncio.sleep(0.25)
                yield b"x"

        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, headers={"content-type": "text/html"}, content=trickle())
        )
        started = time.monotonic()
        async with httpx.AsyncClient(transport=transport) as client:
            preview = await LinkPreviewProvider(client=client).fetch("https://slow.example/page")
        elapsed = time.monotonic() - started

        assert preview == {"url": "https://slow.example/page", "domain": "slow.example"}
        assert elapsed < 3
