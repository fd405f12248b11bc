"""
Action executor.

Performs clicks, blocker dismissal, scrolling and screenshots on a live
page. Nothing here raises: every failure is logged and reported as False,
None or a zero count so the crawl loop can keep going with less information.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from sitescout.constants import (
    CLICKABLE_SELECTOR,
    CLOSE_BUTTON_SELECTORS,
    DEFAULT_SCROLL_STEPS,
    DOM_CHANGE_THRESHOLD,
    MAX_SCROLL_STEPS,
)
from sitescout.models import BlockerInfo
from sitescout.utils.human_timing import HumanTiming

logger = logging.getLogger(__name__)


CLICK_BY_TEXT_SCRIPT = """
([selector, text]) => {
    const wanted = text.toLowerCase();
    for (const el of document.querySelectorAll(selector)) {
        const label = (el.textContent || '').trim().toLowerCase();
        if (!label.includes(wanted)) continue;
        const rect = el.getBoundingClientRect();
        if (rect.width > 0 && rect.height > 0) {
            el.click();
            return true;
        }
    }
    return false;
}
"""

CLICK_CLOSE_CONTROL_SCRIPT = """
(selectors) => {
    for (const selector of selectors) {
        let el;
        try {
            el = document.querySelector(selector);
        } catch (e) {
            continue;
        }
        if (!el) continue;
        const rect = el.getBoundingClientRect();
        const inViewport = rect.width > 0 && rect.height > 0
            && rect.bottom > 0 && rect.right > 0
            && rect.top < window.innerHeight && rect.left < window.innerWidth;
        if (inViewport) {
            el.click();
            return selector;
        }
    }
    return null;
}
"""

BODY_LENGTH_SCRIPT ="() => document.body ? document.body.innerHTML.length : 0"

DIMENSIONS_SCRIPT = """
() => ({
    totalHeight: document.body ? document.body.scrollHeight : 0,
    viewportHeight: window.innerHeight,
})
"""

SCROLL_TO_SCRIPT = "(top) => window.scrollTo({ top, behavior: 'smooth' })"

SCROLL_TOP_SCRIPT = "() => window.scrollTo({ top: 0, behavior: 'auto' })"


@dataclass(frozen=True)
class ClickOutcome:
    """Result of a verified click."""

    clicked: bool
    changed: bool = False


class ActionExecutor:
    """
    Executes the actions chosen by the decision engine.

    Usage:
        executor = ActionExecutor(HumanTiming())
        if await executor.click_by_text(page, "Enter"):
            shot = await executor.capture_screenshot(page)
    """

    def __init__(
        self,
        timing: Optional[HumanTiming] = None,
        post_click_delay_ms: int = 1500,
        post_dismiss_delay_ms: int = 1000,
        return_to_top_delay_ms: int = 300,
        escape_delay_ms: int = 300,
    ):
        """
        Initialize the executor.

        Args:
            timing: Source of waits and scroll jitter
            post_click_delay_ms: Wait after a successful click
            post_dismiss_delay_ms: Extra wait after a blocker is dismissed
            return_to_top_delay_ms: Wait after scrolling back to the top
            escape_delay_ms: Wait after pressing Escape on an overlay
        """
        self.timing = timing or HumanTiming()
        self.post_click_delay_ms = post_click_delay_ms
        self.post_dismiss_delay_ms = post_dismiss_delay_ms
        self.return_to_top_delay_ms = return_to_top_delay_ms
        self.escape_delay_ms = escape_delay_ms

    async def click_by_text(self, page, text: str) -> bool:
        """
        Click the first visible button, link or role=button containing text.

        Matching is case-insensitive on the trimmed text content.

        Returns:
            True if an element was clicked
        """
        logger.info(f"Attempting to click: \"{text}\"")
        try:
            clicked = await page.evaluate(CLICK_BY_TEXT_SCRIPT, [CLICKABLE_SELECTOR, text])
        except Exception as e:
            logger.warning(f"Click failed for \"{text}\": {e}")
            return False

        if not clicked:
            logger.warning(f"Could not find element with text: \"{text}\"")
            return False

        logger.info(f"Successfully clicked: \"{text}\"")
        await self.timing.sleep_ms(self.post_click_delay_ms)
        return True

    async def click_and_verify(self, page, text: str) -> ClickOutcome:
        """
        Click by text and report whether the page changed.

        A change is a different URL or a body length delta above the DOM
        change threshold. If the body cannot be read after the click the
        document was replaced, which also counts as a change.
        """
        url_before = page.url
        length_before = await self._body_length(page)

        if not await self.click_by_text(page, text):
            return ClickOutcome(clicked=False)

        if page.url != url_before:
            logger.info(f"Click on \"{text}\" navigated to {page.url}")
            return ClickOutcome(clicked=True, changed=True)

        length_after = await self._body_length(page)
        if length_after is None or length_before is None:
            return ClickOutcome(clicked=True, changed=length_after is None)

        changed = abs(length_after - length_before) > DOM_CHANGE_THRESHOLD
        logger.debug(
            f"Click on \"{text}\": body {length_before} -> {length_after} chars, changed={changed}"
        )
        return ClickOutcome(clicked=True, changed=changed)

    async def dismiss_blocker(self, page, blocker: BlockerInfo) -> bool:
        """
        Try the blocker's labels in order until one click succeeds.

        Returns:
            True if some label was clicked
        """
        logger.info(f"Attempting to dismiss {blocker.type.value}...")

        for label in blocker.action_texts:
            if await self.click_by_text(page, label):
                logger.info(f"Blocker dismissed via: \"{label}\"")
                await self.timing.sleep_ms(self.post_dismiss_delay_ms)
                return True

        logger.warning(f"Failed to dismiss blocker: {blocker.type.value}")
        return False

    async def dismiss_overlay(self, page) -> bool:
        """
        Last-resort dismissal for overlays without a usable label.

        Clicks the first close control in the viewport (class, aria-label
        or test id), otherwise presses Escape.

        Returns:
            True if a close control was clicked. Pressing Escape alone
            returns False since its effect is unknown.
        """
        try:
            selector = await page.evaluate(CLICK_CLOSE_CONTROL_SCRIPT, CLOSE_BUTTON_SELECTORS)
        except Exception as e:
            logger.debug(f"Close control lookup failed: {e}")
            selector = None

        if selector:
            logger.info(f"Closed overlay via selector: {selector}")
            await self.timing.sleep_ms(self.post_dismiss_delay_ms)
            return True

        try:
            await page.keyboard.press("Escape")
            logger.info("Pressed Escape to close overlay")
            await self.timing.sleep_ms(self.escape_delay_ms)
        except Exception as e:
            logger.warning(f"Escape key press failed: {e}")
        return False

    async def scroll(
        self,
        page,
        on_each_step: Optional[Callable[[], Awaitable[None]]] = None,
        max_steps: int = DEFAULT_SCROLL_STEPS,
    ) -> int:
        """
        Scroll down like a reader, then return to the top.

        Each step covers a random share of the viewport and is followed by a
        random pause and the optional callback. Stops at the page bottom or
        after max_steps (never more than 6).

        Args:
            page: Playwright page
            on_each_step: Async callback run after every step
            max_steps: Requested number of steps

        Returns:
            Number of steps performed
        """
        steps = max(0, min(max_steps, MAX_SCROLL_STEPS))
        performed = 0

        try:
            dimensions = await page.evaluate(DIMENSIONS_SCRIPT)
            total_height = int(dimensions.get("totalHeight") or 0)
            viewport_height = int(dimensions.get("viewportHeight") or 0)

            position = 0
            while performed < steps and position < total_height:
                position += self.timing.scroll_distance(viewport_height)
                await page.evaluate(SCROLL_TO_SCRIPT, position)
                await self.timing.pause("reading")
                performed += 1
                if on_each_step is not None:
                    await on_each_step()
        except Exception as e:
            logger.warning(f"Scroll failed after {performed} steps: {e}")
        finally:
            await self._scroll_to_top(page)

        logger.debug(f"Scrolled {performed}/{steps} steps")
        return performed

    async def capture_screenshot(self, page) -> Optional[bytes]:
        """Capture a PNG of the viewport, or None on failure."""
        try:
            return await page.screenshot(type="png", full_page=False)
        except Exception as e:
            logger.warning(f"Screenshot failed: {e}")
            return None

    async def wait_for(self, page, selector: str, timeout_ms: int = 5000) -> bool:
        """Wait for a visible element matching selector."""
        try:
            await page.wait_for_selector(selector, timeout=timeout_ms, state="visible")
            return True
        except Exception as e:
            logger.debug(f"Selector {selector} not found within {timeout_ms}ms: {e}")
            return False

    async def _body_length(self, page) -> Optional[int]:
        try:
            return int(await page.evaluate(BODY_LENGTH_SCRIPT))
        except Exception as e:
            logger.debug(f"Could not read body length: {e}")
            return None

    async def _scroll_to_top(self, page) -> None:
        try:
            await page.evaluate(SCROLL_TOP_SCRIPT)
            await self.timing.sleep_ms(self.return_to_top_delay_ms)
        except Exception as e:
            logger.warning(f"Return to top failed: {e}")
