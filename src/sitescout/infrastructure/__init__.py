"""
Infrastructure Package.

Provides browser lifecycle management, request filtering and retry with
backoff for crawl runs.
"""

from .browser_controller import (
    BrowserController,
    BrowserHandle,
    resolve_executable_path,
    STEALTH_INIT_SCRIPT,
)
from .network_filter import (
    NetworkFilter,
    FilterDecision,
    FilterStats,
)
from .retry import (
    with_retry,
    retryable_navigate,
    backoff_delay,
)

__all__ = [
    # Browser lifecycle
    'BrowserController',
    'BrowserHandle',
    'resolve_executable_path',
    'STEALTH_INIT_SCRIPT',
    # Network filter
    'NetworkFilter',
    'FilterDecision',
    'FilterStats',
    # Retry
    'with_retry',
    'retryable_navigate',
    'backoff_delay',
]
