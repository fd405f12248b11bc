"""Autonomous site crawler: clears interstitials, finds content, captures evidence."""

__version__ = "0.1.0"

from sitescout.crawler import SiteCrawler, crawl_site, crawl_sync, build_advisor
from sitescout.models import (
    BlockingState,
    ButtonInfo,
    LinkInfo,
    PageState,
    BlockerInfo,
    ActionDecision,
    AIActionDecision,
    ScrollStrategy,
    SEOData,
    PerformanceData,
    CrawlResult,
    CrawlPhase,
    ScreenshotBudget,
)
from sitescout.exceptions import (
    SiteScoutError,
    InvalidURLError,
    LaunchError,
    NavigationError,
    ExtractionError,
)
from sitescout.ai_advisor import AIAdvisor
from sitescout.llm import VisionLLMClient, VisionModel
from sitescout.batch import BatchCrawler, BatchSite, load_sites
from sitescout.storage import ScreenshotStore, LocalScreenshotStore
from sitescout.config import CrawlerConfig, settings
from sitescout.browser_config import BrowserConfig

__all__ = [
    "__version__",
    # Crawling
    "SiteCrawler",
    "crawl_site",
    "crawl_sync",
    "build_advisor",
    # Models
    "BlockingState",
    "ButtonInfo",
    "LinkInfo",
    "PageState",
    "BlockerInfo",
    "ActionDecision",
    "AIActionDecision",
    "ScrollStrategy",
    "SEOData",
    "PerformanceData",
    "CrawlResult",
    "CrawlPhase",
    "ScreenshotBudget",
    # Errors
    "SiteScoutError",
    "InvalidURLError",
    "LaunchError",
    "NavigationError",
    "ExtractionError",
    # AI
    "AIAdvisor",
    "VisionLLMClient",
    "VisionModel",
    # Batch and storage
    "BatchCrawler",
    "BatchSite",
    "load_sites",
    "ScreenshotStore",
    "LocalScreenshotStore",
    # Configuration
    "CrawlerConfig",
    "BrowserConfig",
    "settings",
]
