"""
Request filtering for crawl pages.

Aborts ad, tracking and heavy-media requests before they leave the browser,
and caps stylesheet loads per page. The stylesheet counter is re-armed on
every main-frame navigation.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from sitescout.constants import (
    BLOCKED_RESOURCE_TYPES,
    BLOCKED_URL_PATTERNS,
    MAX_STYLESHEETS_PER_PAGE,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterDecision:
    """Outcome of filtering one request."""

    allowed: bool
    reason: str = ""


ALLOW = FilterDecision(allowed=True)


@dataclass
class FilterStats:
    """Running counters for one filter."""

    allowed: int = 0
    blocked: int = 0
    blocked_by_reason: Dict[str, int] = field(default_factory=dict)

    def record(self, decision: FilterDecision) -> None:
        if decision.allowed:
            self.allowed += 1
            return
        self.blocked += 1
        self.blocked_by_reason[decision.reason] = self.blocked_by_reason.get(decision.reason, 0) + 1


class NetworkFilter:
    """
    Routes every request of a page through decide().

    Usage:
        network_filter = NetworkFilter()
        await network_filter.attach(page)
        ...
        logger.info(network_filter.stats)
    """

    def __init__(
        self,
        blocked_patterns: Optional[Iterable[str]] = None,
        blocked_resource_types: Optional[Iterable[str]] = None,
        max_stylesheets: int = MAX_STYLESHEETS_PER_PAGE,
    ):
        self.blocked_patterns = [
            p.lower() for p in (blocked_patterns if blocked_patterns is not None else BLOCKED_URL_PATTERNS)
        ]
        self.blocked_resource_types = frozenset(
            blocked_resource_types if blocked_resource_types is not None else BLOCKED_RESOURCE_TYPES
        )
        self.max_stylesheets = max_stylesheets
        self.stats = FilterStats()
        self._stylesheet_count = 0

    @property
    def stylesheet_count(self) -> int:
        """Stylesheets allowed since the last re-arm."""
        return self._stylesheet_count

    def rearm(self) -> None:
        """Reset per-page counters. Called on every main-frame navigation."""
        self._stylesheet_count = 0

    def decide(self, url: str, resource_type: str) -> FilterDecision:
        """
        Decide whether a request may proceed.

        Args:
            url: Request URL
            resource_type: Playwright resource type (document, stylesheet, ...)

        Returns:
            FilterDecision; the only side effect is the stylesheet counter
        """
        lowered = url.lower()
        for pattern in self.blocked_patterns:
            if pattern in lowered:
                return FilterDecision(allowed=False, reason="blocked_url")

        if resource_type in self.blocked_resource_types:
            return FilterDecision(allowed=False, reason=f"blocked_type:{resource_type}")

        if resource_type == "stylesheet":
            if self._stylesheet_count >= self.max_stylesheets:
                return FilterDecision(allowed=False, reason="stylesheet_cap")
            self._stylesheet_count += 1

        return ALLOW

    async def attach(self, page) -> None:
        """
        Install the filter on a page.

        Args:
            page: Playwright page
        """
        async def _handle(route):
            request = route.request
            decision = self.decide(request.url, request.resource_type)
            self.stats.record(decision)
            try:
                if decision.allowed:
                    await route.continue_()
                else:
                    await route.abort()
            except Exception as e:
                # Route may already be handled if the page navigated away
                logger.debug(f"Route handling failed for {request.url}: {e}")

        def _on_frame_navigated(frame):
            if frame == page.main_frame:
                self.rearm()

        await page.route("**/*", _handle)
        page.on("framenavigated", _on_frame_navigated)
        logger.debug("Network filter attached")
