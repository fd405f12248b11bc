"""Data models for the site crawler."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from sitescout.constants import MAX_SCREENSHOTS, SCROLL_DEPTH_STEPS


class BlockingState(str, Enum):
    """Kind of overlay currently gating the page."""
    AGE_GATE = "age_gate"
    LOGIN_WALL = "login_wall"
    COOKIE_BANNER = "cookie_banner"
    CLEAR = "clear"


class Priority(str, Enum):
    """Priority of a heuristic action decision."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Confidence(str, Enum):
    """Confidence reported by the AI advisor."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ScrollDepth(str, Enum):
    """How far the AI advisor wants the page explored."""
    SHALLOW = "shallow"
    MEDIUM = "medium"
    DEEP = "deep"


class CrawlPhase(str, Enum):
    """States of a single crawl run."""
    LAUNCHING = "launching"
    NAVIGATING = "navigating"
    BLOCKER_CLEARANCE = "blocker_clearance"
    CONTENT_DISCOVERY = "content_discovery"
    EXPLORATION = "exploration"
    EXTRACTION = "extraction"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ButtonInfo:
    """A clickable, button-like element seen on the page."""

    text: str
    is_prominent: bool = False
    locator: str = ""


@dataclass(frozen=True)
class LinkInfo:
    """An anchor seen on the page."""

    text: str
    href: str
    is_internal: bool = False


@dataclass
class PageState:
    """Semantic snapshot of a page, recomputed on every observation."""

    url: str
    title: str = ""
    visible_text: str = ""  # lower-cased, bounded excerpt
    buttons: list[ButtonInfo] = field(default_factory=list)
    links: list[LinkInfo] = field(default_factory=list)
    blocking_state: BlockingState = BlockingState.CLEAR
    has_video: bool = False
    has_canvas: bool = False


@dataclass(frozen=True)
class BlockerInfo:
    """A detected blocker and the labels to try, in priority order."""

    type: BlockingState
    action_texts: tuple[str, ...]
    # True when no button matched and the static table was used as-is
    is_fallback: bool = False


@dataclass(frozen=True)
class ActionDecision:
    """What the executor should click next."""

    target_text: str
    reason: str
    priority: Priority


@dataclass(frozen=True)
class AIActionDecision:
    """Typed response of the AI advisor. target=None means nothing to click."""

    target: Optional[str]
    reason: str
    confidence: Confidence


@dataclass(frozen=True)
class ScrollStrategy:
    """AI-suggested exploration depth."""

    should_scroll: bool = True
    depth: ScrollDepth = ScrollDepth.MEDIUM
    reason: str = "Default"

    @property
    def scroll_count(self) -> int:
        """Number of scroll steps for this depth."""
        return SCROLL_DEPTH_STEPS[self.depth.value]


@dataclass
class SEOData:
    """SEO fields read from the page the crawl ended on."""

    title: str = ""
    description: str = ""
    keywords: list[str] = field(default_factory=list)
    h1: str = ""
    canonical: str = ""


@dataclass
class PerformanceData:
    """Load timing of the landing page."""

    load_time_ms: int = 0
    page_size: int = 0  # bytes, from Content-Length when available


@dataclass(frozen=True)
class CrawlResult:
    """Final artifact of one crawl. Screenshots are in capture order."""

    url: str
    final_url: str
    screenshots: tuple[bytes, ...]
    seo: SEOData
    performance: PerformanceData
    favicon_url: str
    elapsed_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary (screenshot sizes only)."""
        return {
            "url": self.url,
            "final_url": self.final_url,
            "screenshot_count": len(self.screenshots),
            "screenshot_bytes": [len(s) for s in self.screenshots],
            "seo": {
                "title": self.seo.title,
                "description": self.seo.description,
                "keywords": list(self.seo.keywords),
                "h1": self.seo.h1,
                "canonical": self.seo.canonical,
            },
            "performance": {
                "load_time_ms": self.performance.load_time_ms,
                "page_size": self.performance.page_size,
            },
            "favicon_url": self.favicon_url,
            "elapsed_ms": self.elapsed_ms,
        }


class ScreenshotBudget:
    """
    Append-only owner of the screenshots captured during one crawl.

    Every capture site goes through add(), which refuses new images once the
    cap is reached, so the cap holds at all times.
    """

    def __init__(self, limit: int = MAX_SCREENSHOTS):
        self.limit = limit
        self._shots: list[bytes] = []

    def __len__(self) -> int:
        return len(self._shots)

    @property
    def remaining(self) -> int:
        return max(0, self.limit - len(self._shots))

    @property
    def is_full(self) -> bool:
        return len(self._shots) >= self.limit

    def add(self, shot: Optional[bytes]) -> bool:
        """Append a screenshot. Returns False if it was None or over the cap."""
        if shot is None or self.is_full:
            return False
        self._shots.append(shot)
        return True

    def freeze(self) -> tuple[bytes, ...]:
        """Return the captured screenshots as an immutable tuple."""
        return tuple(self._shots)
