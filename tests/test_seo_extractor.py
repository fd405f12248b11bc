"""Tests for SEO and favicon extraction."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from sitescout.seo_extractor import (
    default_favicon_url,
    extract_page_seo,
    parse_seo,
    performance_from_response,
)


FULL_HTML = """
<html>
<head>
  <title> Live Sessions | Example </title>
  <meta property="og:description" content="OG text">
  <meta name="description" content="Watch live sessions">
  <meta name="keywords" content="live, sessions, , video ">
  <link rel="canonical" href="/sessions">
  <link rel="shortcut icon" href="assets/fav.png">
</head>
<body><h1>First <span>heading</span></h1><h1>Second</h1></body>
</html>
"""


class TestParseSeo:
    """Tests for parse_seo."""

    def test_extracts_all_fields(self):
        seo, favicon = parse_seo(FULL_HTML, "https://example.com/home/index.html")

        assert seo.title == "Live Sessions | Example"
        assert seo.description == "Watch live sessions"
        assert seo.keywords == ["live", "sessions", "video"]
        assert seo.h1 == "Firstheading"
        assert seo.canonical == "/sessions"
        assert favicon == "https://example.com/home/assets/fav.png"

    def test_og_description_fallback(self):
        html = '<head><meta property="og:description" content="From OG"></head>'
        seo, _ = parse_seo(html, "https://example.com/")
        assert seo.description == "From OG"

    def test_empty_document(self):
        seo, favicon = parse_seo("", "https://example.com/a/b")

        assert seo.title == ""
        assert seo.keywords == []
        assert seo.canonical == ""
        assert favicon == "https://example.com/favicon.ico"


class TestDefaults:
    """Tests for fallbacks."""

    def test_default_favicon_is_origin_root(self):
        assert default_favicon_url("https://example.com/deep/page?x=1") == "https://example.com/favicon.ico"

    @pytest.mark.asyncio
    async def test_extract_page_seo_never_raises(self):
        page = MagicMock()
        page.url = "https://example.com/watch"
        page.content = AsyncMock(side_effect=Exception("Target closed"))

        seo, favicon = await extract_page_seo(page)

        assert seo.title == ""
        assert favicon == "https://example.com/favicon.ico"


class TestPerformanceFromResponse:
    """Tests for performance_from_response."""

    def test_content_length(self):
        response = MagicMock()
        response.headers = {"content-length": "5120"}
        assert performance_from_response(response, 830).page_size == 5120

    def test_missing_response_or_header(self):
        assert performance_from_response(None, 10).page_size == 0
        response = MagicMock()
        response.headers = {}
        perf = performance_from_response(response, 10)
        assert perf.page_size == 0
        assert perf.load_time_ms == 10

    def test_malformed_header(self):
        response = MagicMock()
        response.headers = {"content-length": "lots"}
        assert performance_from_response(response, 10).page_size == 0
