"""Exceptions raised by the site crawler.

Only InvalidURLError, LaunchError and NavigationError cross the
crawl_site() boundary. Everything else is absorbed inside the crawl and
reflected in the shape of the returned CrawlResult.
"""


class SiteScoutError(Exception):
    """Base class for all crawler errors."""


class InvalidURLError(SiteScoutError):
    """Raised when the target URL is not an absolute http(s) URL."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid URL: {url!r} (only http and https are supported)")


class LaunchError(SiteScoutError):
    """Raised when no usable browser can be started."""


class NavigationError(SiteScoutError):
    """Raised when navigation still fails after the retry budget is spent."""

    def __init__(self, url: str, attempts: int):
        self.url = url
        self.attempts = attempts
        super().__init__(f"navigation failed: {url} ({attempts} attempts)")


class ExtractionError(SiteScoutError):
    """Raised when the in-page snapshot script cannot run."""
