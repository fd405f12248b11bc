"""
Sequential batch crawling.

Crawls many sites one after another with a courtesy delay between them,
retries each site with capped exponential backoff, uploads the screenshots
through a ScreenshotStore and returns a per-site summary. Persisting the
summary is left to the caller.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence
from urllib.parse import urlparse

from sitescout.config import CrawlerConfig
from sitescout.constants import BATCH_BASE_DELAY_SECONDS, BATCH_MAX_DELAY_SECONDS
from sitescout.exceptions import InvalidURLError
from sitescout.models import CrawlResult
from sitescout.storage import ScreenshotStore

logger = logging.getLogger(__name__)


@dataclass
class BatchSite:
    """A site queued for crawling."""

    site_id: str
    url: str
    name: str = ""


@dataclass
class SiteOutcome:
    """What happened to one site."""

    site_id: str
    url: str
    success: bool
    attempts: int = 0
    error: Optional[str] = None
    screenshot_urls: List[str] = field(default_factory=list)
    result: Optional[CrawlResult] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "site_id": self.site_id,
            "url": self.url,
            "success": self.success,
            "attempts": self.attempts,
            "error": self.error,
            "screenshot_urls": list(self.screenshot_urls),
        }
        if self.result is not None:
            data["result"] = self.result.to_dict()
        return data


@dataclass
class BatchSummary:
    """Outcome of a whole batch run."""

    outcomes: List[SiteOutcome] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    stopped: bool = False

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def error_count(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "stopped": self.stopped,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "sites": [o.to_dict() for o in self.outcomes],
        }


def batch_backoff_delay(
    attempt: int,
    base_delay: float = BATCH_BASE_DELAY_SECONDS,
    max_delay: float = BATCH_MAX_DELAY_SECONDS,
) -> float:
    """Delay after a failed 0-based attempt: min(base * 2^attempt, max)."""
    return min(base_delay * (2 ** attempt), max_delay)


def site_id_from_url(url: str) -> str:
    """Derive a filesystem-safe site id from a URL's host."""
    host = urlparse(url).netloc.lower() or url.lower()
    if host.startswith("www."):
        host = host[4:]
    return re.sub(r"[^a-z0-9]+", "-", host).strip("-") or "site"


def load_sites(path: str) -> List[BatchSite]:
    """
    Load the batch queue from a file.

    Supported formats:
    - JSON: a list of URL strings or objects with "url" and optional
      "id"/"site_id" and "name"
    - Plain text: one URL per line; blank lines and # comments are skipped

    Raises:
        ValueError: If a JSON file is not a list of strings or url objects
    """
    file_path = Path(path)
    text = file_path.read_text(encoding="utf-8")

    if file_path.suffix.lower() == ".json":
        entries = json.loads(text)
        if not isinstance(entries, list):
            raise ValueError("JSON sites file must contain a list")
        sites = []
        for index, entry in enumerate(entries):
            if isinstance(entry, str):
                sites.append(BatchSite(site_id=site_id_from_url(entry), url=entry))
                continue
            if not isinstance(entry, dict) or not isinstance(entry.get("url"), str):
                raise ValueError(f"Entry {index} must be a URL string or an object with a \"url\"")
            url = entry["url"]
            sites.append(BatchSite(
                site_id=entry.get("id") or entry.get("site_id") or site_id_from_url(url),
                url=url,
                name=entry.get("name", ""),
            ))
        return sites

    sites = []
    for line in text.splitlines():
        url = line.strip()
        if not url or url.startswith("#"):
            continue
        sites.append(BatchSite(site_id=site_id_from_url(url), url=url))
    return sites


class BatchCrawler:
    """
    Runs crawls for a list of sites, one at a time.

    Usage:
        crawler = SiteCrawler(config, advisor=build_advisor(config))
        batch = BatchCrawler(crawler.crawl, store=LocalScreenshotStore())
        summary = await batch.run(load_sites("sites.txt"))
    """

    def __init__(
        self,
        crawl: Callable[[str], Awaitable[CrawlResult]],
        store: Optional[ScreenshotStore] = None,
        config: Optional[CrawlerConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize the batch runner.

        Args:
            crawl: Coroutine function crawling one URL (e.g. SiteCrawler.crawl)
            store: Where screenshots are uploaded; None skips uploading
            config: Supplies batch_max_retries and delay_between_sites
            sleep: Sleep function (injectable for tests)
        """
        self.crawl = crawl
        self.store = store
        self.config = config or CrawlerConfig()
        self.sleep = sleep
        self._stop_requested = False

    def stop(self) -> None:
        """Stop after the site currently being processed."""
        self._stop_requested = True

    async def run(self, sites: Sequence[BatchSite]) -> BatchSummary:
        """
        Crawl every site in order.

        Returns:
            BatchSummary with one outcome per processed site
        """
        summary = BatchSummary()
        logger.info(f"Starting batch of {len(sites)} sites")

        for index, site in enumerate(sites):
            if self._stop_requested:
                logger.info("Batch stopped on request")
                summary.stopped = True
                break

            if index > 0 and self.config.delay_between_sites > 0:
                await self.sleep(self.config.delay_between_sites)

            outcome = await self.process_site(site)
            summary.outcomes.append(outcome)
            logger.info(
                f"[{index + 1}/{len(sites)}] {site.url}: "
                f"{'ok' if outcome.success else 'failed'}"
            )

        summary.finished_at = datetime.now()
        logger.info(
            f"Batch complete: {summary.success_count} succeeded, "
            f"{summary.error_count} failed"
        )
        return summary

    async def process_site(self, site: BatchSite) -> SiteOutcome:
        """Crawl and upload one site, retrying with capped backoff."""
        max_retries = max(1, self.config.batch_max_retries)
        last_error = "Max retries exceeded"

        for attempt in range(max_retries):
            logger.info(f"Processing {site.name or site.url} (attempt {attempt + 1}/{max_retries})")
            try:
                result = await self.crawl(site.url)
                urls = []
                if self.store is not None:
                    urls = await self.store.upload_all(result.screenshots, site.site_id)
                return SiteOutcome(
                    site_id=site.site_id,
                    url=site.url,
                    success=True,
                    attempts=attempt + 1,
                    screenshot_urls=urls,
                    result=result,
                )
            except InvalidURLError as e:
                logger.error(f"Skipping {site.url}: {e}")
                return SiteOutcome(
                    site_id=site.site_id, url=site.url, success=False,
                    attempts=attempt + 1, error=str(e),
                )
            except Exception as e:
                last_error = str(e)
                logger.error(f"Error processing {site.url} (attempt {attempt + 1}): {e}")
                if attempt < max_retries - 1:
                    delay = batch_backoff_delay(attempt)
                    logger.info(f"Retrying in {delay:.1f}s...")
                    await self.sleep(delay)

        return SiteOutcome(
            site_id=site.site_id,
            url=site.url,
            success=False,
            attempts=max_retries,
            error=last_error,
        )
