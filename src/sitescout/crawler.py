"""
Crawl orchestrator.

Runs one Observe -> Decide -> Act crawl of a site as an explicit state
machine:

    launching -> navigating -> blocker_clearance -> content_discovery
        -> exploration -> extraction -> done

with failed reachable from any state. Only InvalidURLError, LaunchError and
NavigationError escape crawl(); the browser is always released first.

Usage:
    result = await crawl_site("https://example.com")

    # or, outside an event loop
    result = crawl_sync("https://example.com")
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional
from urllib.parse import urlparse

from sitescout.actions import ActionExecutor
from sitescout.ai_advisor import AIAdvisor
from sitescout.browser_config import BrowserConfig
from sitescout.config import CrawlerConfig, settings
from sitescout.constants import GENERIC_DISMISS_TEXTS
from sitescout.decision import build_pipeline, detect_blocker, is_content_page
from sitescout.exceptions import ExtractionError, InvalidURLError, LaunchError, NavigationError
from sitescout.infrastructure.browser_controller import BrowserController
from sitescout.infrastructure.network_filter import NetworkFilter
from sitescout.infrastructure.retry import retryable_navigate
from sitescout.llm import VisionLLMClient
from sitescout.models import (
    CrawlPhase,
    CrawlResult,
    PageState,
    PerformanceData,
    ScreenshotBudget,
    ScrollStrategy,
)
from sitescout.page_state import PageStateExtractor
from sitescout.seo_extractor import extract_page_seo, performance_from_response
from sitescout.utils.human_timing import HumanTiming

logger = logging.getLogger(__name__)


def validate_url(url: str) -> str:
    """
    Check that url is an absolute http(s) URL.

    Raises:
        InvalidURLError: For any other scheme or a missing host
    """
    try:
        parsed = urlparse(url)
    except (TypeError, ValueError, AttributeError):
        raise InvalidURLError(str(url)) from None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidURLError(url)
    return url


@dataclass
class CrawlRun:
    """Mutable bookkeeping for one crawl."""

    url: str
    budget: ScreenshotBudget
    phase: CrawlPhase = CrawlPhase.LAUNCHING
    started_at: float = field(default_factory=time.monotonic)
    baseline: Optional[bytes] = None
    performance: PerformanceData = field(default_factory=PerformanceData)
    blocker_attempts: int = 0

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)


class SiteCrawler:
    """
    Crawls one site per call to crawl().

    Every collaborator is injectable. Without an advisor the crawl runs on
    heuristics alone and explores with the default scroll strategy.
    """

    def __init__(
        self,
        config: Optional[CrawlerConfig] = None,
        controller: Optional[BrowserController] = None,
        extractor: Optional[PageStateExtractor] = None,
        executor: Optional[ActionExecutor] = None,
        advisor: Optional[AIAdvisor] = None,
        timing: Optional[HumanTiming] = None,
        filter_factory: Callable[[], NetworkFilter] = NetworkFilter,
    ):
        """
        Initialize the crawler.

        Args:
            config: Crawl tuning. Uses defaults if not provided.
            controller: Browser lifecycle manager
            extractor: Page state extractor
            executor: Action executor
            advisor: Optional AI fallback advisor
            timing: Source of waits (shared with the default executor)
            filter_factory: Builds a fresh network filter per crawl
        """
        self.config = config or CrawlerConfig()
        self.timing = timing or HumanTiming()
        self.controller = controller or BrowserController()
        self.extractor = extractor or PageStateExtractor()
        self.executor = executor or ActionExecutor(
            self.timing,
            post_click_delay_ms=self.config.post_action_delay_ms,
        )
        self.advisor = advisor
        self.pipeline = build_pipeline(advisor)
        self.filter_factory = filter_factory

    async def crawl(self, url: str) -> CrawlResult:
        """
        Crawl a site.

        Args:
            url: Absolute http(s) URL

        Returns:
            CrawlResult with up to max_screenshots screenshots

        Raises:
            InvalidURLError: If url is not http(s)
            LaunchError: If no browser could be started
            NavigationError: If navigation failed after all retries
        """
        validate_url(url)
        run = CrawlRun(url=url, budget=ScreenshotBudget(self.config.max_screenshots))
        logger.info(f"Starting crawl: {url}")

        try:
            self._enter(run, CrawlPhase.LAUNCHING)
            async with self.controller.session() as handle:
                page = handle.page
                network_filter = self.filter_factory()
                try:
                    await network_filter.attach(page)
                except Exception as e:
                    raise LaunchError(f"Could not attach network filter: {e}") from e

                self._enter(run, CrawlPhase.NAVIGATING)
                await self._navigate(page, run)

                self._enter(run, CrawlPhase.BLOCKER_CLEARANCE)
                await self._clear_blockers(page, run)

                self._enter(run, CrawlPhase.CONTENT_DISCOVERY)
                await self._discover_content(page, run)

                self._enter(run, CrawlPhase.EXPLORATION)
                await self._explore(page, run)

                self._enter(run, CrawlPhase.EXTRACTION)
                seo, favicon_url = await extract_page_seo(page)
                final_url = page.url

                logger.info(
                    f"Network filter: {network_filter.stats.allowed} allowed, "
                    f"{network_filter.stats.blocked} blocked"
                )
        except Exception as e:
            self._enter(run, CrawlPhase.FAILED)
            logger.error(f"Crawl failed for {url}: {e}")
            raise

        result = CrawlResult(
            url=url,
            final_url=final_url,
            screenshots=run.budget.freeze(),
            seo=seo,
            performance=run.performance,
            favicon_url=favicon_url,
            elapsed_ms=run.elapsed_ms(),
        )
        self._enter(run, CrawlPhase.DONE)
        logger.info(
            f"Crawl complete: {url} ({len(result.screenshots)} screenshots, "
            f"{result.elapsed_ms}ms)"
        )
        return result

    # =========================================================================
    # Phases
    # =========================================================================

    async def _navigate(self, page, run: CrawlRun) -> None:
        nav_start = time.monotonic()
        try:
            response = await retryable_navigate(
                page,
                run.url,
                timeout_ms=self.config.navigation_timeout_ms,
                max_retries=self.config.navigation_max_retries,
                base_delay=self.config.navigation_base_delay,
            )
        except Exception as e:
            raise NavigationError(run.url, max(1, self.config.navigation_max_retries)) from e

        load_time_ms = int((time.monotonic() - nav_start) * 1000)
        run.performance = performance_from_response(response, load_time_ms)
        logger.info(f"Page loaded in {load_time_ms}ms")

        await self.timing.sleep_ms(self.config.post_navigation_delay_ms)

    async def _clear_blockers(self, page, run: CrawlRun) -> None:
        """Best-effort: never fails the crawl."""
        dismissed = False
        for attempt in range(1, self.config.max_blocker_attempts + 1):
            run.blocker_attempts = attempt
            dismissed = False
            state = await self._observe(page)
            if state is None:
                continue

            blocker = detect_blocker(state)
            if blocker is None:
                logger.info("No blocker present")
                return

            dismissed = (
                await self.executor.dismiss_blocker(page, blocker)
                or await self._click_generic_label(page)
                or await self.executor.dismiss_overlay(page)
            )

        if dismissed:
            logger.info(
                f"Blocker dismissed on attempt {self.config.max_blocker_attempts}; not re-checked"
            )
        else:
            logger.warning(
                f"Blocker clearance stopped after {self.config.max_blocker_attempts} attempts; continuing"
            )

    async def _click_generic_label(self, page) -> bool:
        for label in GENERIC_DISMISS_TEXTS:
            if await self.executor.click_by_text(page, label):
                logger.info(f"Blocker dismissed via generic label: \"{label}\"")
                return True
        return False

    async def _discover_content(self, page, run: CrawlRun) -> None:
        run.baseline = await self._capture(page, run)

        state = await self._observe(page)
        if state is None:
            return

        decision = await self.pipeline.decide(state, run.baseline)
        if decision is None:
            return

        outcome = await self.executor.click_and_verify(page, decision.target_text)
        if not outcome.clicked:
            return
        if not outcome.changed:
            logger.info(f"Click on \"{decision.target_text}\" did not visibly change the page")

        shot = await self.executor.capture_screenshot(page)
        if shot is None:
            return

        if await self._is_content(page, shot):
            if run.budget.add(shot):
                logger.info(f"Content screenshot {len(run.budget)}/{run.budget.limit} captured")
        else:
            logger.info("Clicked page is not content; screenshot discarded")

    async def _explore(self, page, run: CrawlRun) -> None:
        if run.budget.is_full:
            logger.info("Screenshot budget exhausted; skipping exploration")
            return
        if run.baseline is None:
            logger.info("No baseline screenshot; skipping exploration")
            return

        if self.advisor is not None:
            strategy = await self.advisor.scroll_strategy(run.baseline)
        else:
            strategy = ScrollStrategy()

        if not strategy.should_scroll:
            logger.info(f"Not scrolling: {strategy.reason}")
            return

        async def _capture_step():
            await self._capture(page, run)

        steps = min(strategy.scroll_count, run.budget.remaining)
        await self.executor.scroll(page, on_each_step=_capture_step, max_steps=steps)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _observe(self, page) -> Optional[PageState]:
        try:
            return await self.extractor.observe(page)
        except ExtractionError as e:
            logger.warning(f"Observation failed: {e}")
            return None

    async def _capture(self, page, run: CrawlRun) -> Optional[bytes]:
        """Capture a screenshot into the budget. Returns it if kept."""
        if run.budget.is_full:
            return None
        shot = await self.executor.capture_screenshot(page)
        if run.budget.add(shot):
            logger.info(f"Screenshot {len(run.budget)}/{run.budget.limit} captured")
            return shot
        return None

    async def _is_content(self, page, screenshot: bytes) -> bool:
        state = await self._observe(page)
        if state is not None and is_content_page(state):
            return True
        if self.advisor is not None:
            return await self.advisor.is_content_page(screenshot)
        return False

    def _enter(self, run: CrawlRun, phase: CrawlPhase) -> None:
        logger.debug(f"{run.url}: {run.phase.value} -> {phase.value}")
        run.phase = phase
        if phase not in (CrawlPhase.DONE, CrawlPhase.FAILED):
            logger.info(f"Phase: {phase.value}")


def build_advisor(config: CrawlerConfig) -> Optional[AIAdvisor]:
    """Create the AI advisor from config, or None if AI is off or unconfigured."""
    if not config.ai_enabled:
        return None
    if not config.llm_api_key:
        logger.info("No LLM API key configured; AI fallback disabled")
        return None
    client = VisionLLMClient(
        api_key=config.llm_api_key,
        model=config.llm_model,
        provider=config.llm_provider,
        timeout=config.llm_timeout,
    )
    return AIAdvisor(client)


async def crawl_site(
    url: str,
    config: Optional[CrawlerConfig] = None,
    browser_config: Optional[BrowserConfig] = None,
    advisor: Optional[AIAdvisor] = None,
) -> CrawlResult:
    """
    Crawl one site with default collaborators.

    Args:
        url: Absolute http(s) URL
        config: Crawl tuning (defaults to CrawlerConfig.from_env())
        browser_config: Browser settings (defaults to BrowserConfig with
            serverless taken from SITESCOUT_SERVERLESS)
        advisor: AI advisor; built from config when not given

    Returns:
        CrawlResult

    Raises:
        InvalidURLError, LaunchError, NavigationError
    """
    config = config or CrawlerConfig.from_env()
    if browser_config is None:
        browser_config = BrowserConfig(serverless=settings.SERVERLESS)
    if advisor is None:
        advisor = build_advisor(config)

    crawler = SiteCrawler(
        config=config,
        controller=BrowserController(browser_config),
        advisor=advisor,
    )
    return await crawler.crawl(url)


def crawl_sync(url: str, **kwargs) -> CrawlResult:
    """
    Synchronous wrapper around crawl_site().

    Convenience function for non-async contexts.
    """
    return asyncio.run(crawl_site(url, **kwargs))
