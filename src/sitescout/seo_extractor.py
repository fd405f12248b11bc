"""SEO metadata and favicon extraction from rendered pages."""

import logging
from typing import Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from sitescout.models import PerformanceData, SEOData

logger = logging.getLogger(__name__)


def _meta_content(soup: BeautifulSoup, name: str) -> str:
    """Content of <meta name=...> or <meta property=...>, whichever comes first."""
    tag = soup.find("meta", attrs={"name": name}) or soup.find("meta", attrs={"property": name})
    if tag and tag.get("content"):
        return tag.get("content").strip()
    return ""


def default_favicon_url(page_url: str) -> str:
    """The conventional /favicon.ico location for a page's origin."""
    return urljoin(page_url, "/favicon.ico")


def parse_seo(html: str, page_url: str) -> Tuple[SEOData, str]:
    """Extract SEO fields and the favicon URL from rendered HTML.

    Args:
        html: Rendered page HTML
        page_url: URL the HTML was loaded from (used to resolve the favicon)

    Returns:
        Tuple of (SEOData, absolute favicon URL)
    """
    soup = BeautifulSoup(html, "html.parser")

    # Title
    title = soup.find("title")
    title_text = title.get_text(strip=True) if title else ""

    # Meta description, with Open Graph as fallback
    description = _meta_content(soup, "description") or _meta_content(soup, "og:description")

    # Meta keywords
    keywords = [k.strip() for k in _meta_content(soup, "keywords").split(",") if k.strip()]

    # First H1
    h1 = soup.find("h1")
    h1_text = h1.get_text(strip=True) if h1 else ""

    # Canonical, kept as written
    canonical_tag = soup.find("link", rel="canonical")
    canonical = canonical_tag.get("href", "") if canonical_tag else ""

    # Favicon (rel is multi-valued, so "shortcut icon" matches too)
    icon_tag = soup.find("link", rel="icon", href=True)
    favicon_url = urljoin(page_url, icon_tag["href"]) if icon_tag else default_favicon_url(page_url)

    seo = SEOData(
        title=title_text,
        description=description,
        keywords=keywords,
        h1=h1_text,
        canonical=canonical,
    )
    return seo, favicon_url


async def extract_page_seo(page) -> Tuple[SEOData, str]:
    """Extract SEO fields from a live page.

    Never raises: on failure returns empty SEO fields and /favicon.ico.
    """
    page_url = page.url
    try:
        html = await page.content()
        return parse_seo(html, page_url)
    except Exception as e:
        logger.warning(f"SEO extraction failed for {page_url}: {e}")
        return SEOData(), default_favicon_url(page_url)


def performance_from_response(response, load_time_ms: int) -> PerformanceData:
    """Build PerformanceData from a navigation response.

    page_size comes from the Content-Length header and is 0 when absent.
    """
    page_size = 0
    headers: Optional[dict] = getattr(response, "headers", None) if response is not None else None
    if headers:
        try:
            page_size = int(headers.get("content-length", 0))
        except (TypeError, ValueError):
            page_size = 0
    return PerformanceData(load_time_ms=load_time_ms, page_size=page_size)
