"""
Human-like timing for browser actions.

All waits in the action executor go through HumanTiming so that:
- Scroll pauses and scroll distances carry random jitter (400-1200ms,
  50-80% of the viewport by default)
- The jitter source is a seedable random.Random, so runs are reproducible
- Fast mode skips every wait (for testing)
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Optional

from sitescout.constants import SCROLL_MAX_FRACTION, SCROLL_MIN_FRACTION

logger = logging.getLogger(__name__)


@dataclass
class HumanTimingConfig:
    """Configuration for action timing jitter."""

    # Pause between scroll steps
    min_pause_ms: int = 400
    max_pause_ms: int = 1200

    # Portion of the viewport covered by one scroll step
    min_scroll_fraction: float = SCROLL_MIN_FRACTION
    max_scroll_fraction: float = SCROLL_MAX_FRACTION

    # Seed for the jitter source; None draws from system entropy
    seed: Optional[int] = None

    # Skip all waits when True
    fast_mode: bool = False


class HumanTiming:
    """
    Injectable source of randomized pauses and scroll distances.

    Usage:
        timing = HumanTiming(HumanTimingConfig(seed=42))

        await timing.pause("between scrolls")
        distance = timing.scroll_distance(viewport_height=800)
        await timing.sleep_ms(1500)
    """

    def __init__(self, config: Optional[HumanTimingConfig] = None):
        self.config = config or HumanTimingConfig()
        self._rng = random.Random(self.config.seed)

    def pause_seconds(self) -> float:
        """Draw a random pause duration in seconds."""
        delay_ms = self._rng.uniform(self.config.min_pause_ms, self.config.max_pause_ms)
        return delay_ms / 1000.0

    def scroll_distance(self, viewport_height: int) -> int:
        """Draw a scroll distance in pixels for the given viewport height."""
        fraction = self._rng.uniform(
            self.config.min_scroll_fraction,
            self.config.max_scroll_fraction,
        )
        return int(viewport_height * fraction)

    async def pause(self, reason: str = "pause") -> float:
        """
        Sleep for a random human-like duration.

        Args:
            reason: Reason for the pause (for logging)

        Returns:
            The drawn pause duration in seconds (0.0 in fast mode)
        """
        if self.config.fast_mode:
            return 0.0

        duration = self.pause_seconds()
        logger.debug(f"Human pause ({reason}): {duration:.2f}s")
        await asyncio.sleep(duration)
        return duration

    async def sleep_ms(self, milliseconds: int) -> None:
        """Sleep for a fixed duration. No-op in fast mode."""
        if self.config.fast_mode or milliseconds <= 0:
            return
        await asyncio.sleep(milliseconds / 1000.0)


def create_human_timing(fast_mode: bool = False, seed: Optional[int] = None) -> HumanTiming:
    """
    Create a configured HumanTiming instance.

    Args:
        fast_mode: Skip all waits (for testing)
        seed: Seed for reproducible jitter

    Returns:
        Configured HumanTiming instance
    """
    return HumanTiming(HumanTimingConfig(fast_mode=fast_mode, seed=seed))
