"""
Browser lifecycle management for a single crawl.

The BrowserController owns one Playwright instance, one browser, one context
and one page per crawl. Acquisition is never retried: a launch failure is
fatal for that crawl and surfaces as LaunchError. Release always runs, is
idempotent and never raises.

Usage:
    controller = BrowserController(BrowserConfig())
    async with controller.session() as handle:
        await handle.page.goto("https://example.com")
"""

import logging
import os
import shutil
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Optional

from sitescout.browser_config import BrowserConfig, SERVERLESS_BINARY_NAMES
from sitescout.exceptions import LaunchError

logger = logging.getLogger(__name__)


# Init scripts applied to every page of the context
STEALTH_SCRIPTS = {
    "webdriver": """
        Object.defineProperty(navigator, 'webdriver', {
            get: () => undefined,
            configurable: true
        });
    """,
    "languages": """
        Object.defineProperty(navigator, 'languages', {
            get: () => ['en-US', 'en'],
            configurable: true
        });
    """,
    "plugins": """
        Object.defineProperty(navigator, 'plugins', {
            get: () => [
                { name: 'Chrome PDF Plugin', filename: 'internal-pdf-viewer' },
                { name: 'Chrome PDF Viewer', filename: 'internal-pdf-viewer' },
                { name: 'Native Client', filename: 'internal-nacl-plugin' }
            ],
            configurable: true
        });
    """,
    "chrome_runtime": """
        if (!window.chrome) {
            window.chrome = { runtime: {} };
        }
    """,
    "hardware": """
        Object.defineProperty(navigator, 'hardwareConcurrency', { get: () => 8 });
        Object.defineProperty(navigator, 'deviceMemory', { get: () => 8 });
    """,
}

STEALTH_INIT_SCRIPT = "\n".join(STEALTH_SCRIPTS.values())


@dataclass
class BrowserHandle:
    """Resources acquired for one crawl."""

    playwright: Any
    browser: Any
    context: Any
    page: Any
    released: bool = False


def resolve_executable_path(config: BrowserConfig) -> Optional[str]:
    """
    Work out which browser binary to launch.

    Resolution order:
    1. config.executable_path (must exist)
    2. In serverless mode: CHROMIUM_EXECUTABLE_PATH, then well-known
       Chromium binary names on PATH
    3. Otherwise None, meaning the Playwright-managed browser

    Raises:
        LaunchError: If a configured path is missing or no serverless
            binary can be found
    """
    if config.executable_path:
        if not Path(config.executable_path).exists():
            raise LaunchError(f"Browser executable not found: {config.executable_path}")
        return config.executable_path

    if not config.serverless:
        return None

    env_path = os.getenv("CHROMIUM_EXECUTABLE_PATH")
    if env_path and Path(env_path).exists():
        return env_path

    for name in SERVERLESS_BINARY_NAMES:
        found = shutil.which(name)
        if found:
            logger.debug(f"Resolved serverless Chromium binary: {found}")
            return found

    raise LaunchError(
        "Serverless mode is enabled but no Chromium binary was found. "
        "Set CHROMIUM_EXECUTABLE_PATH or install chromium on PATH."
    )


class BrowserController:
    """
    Scoped acquisition and release of browser resources.

    Each acquire() creates fresh resources; nothing is shared between crawls.
    """

    def __init__(self, config: Optional[BrowserConfig] = None):
        """
        Initialize the controller.

        Args:
            config: Browser settings. Uses defaults if not provided.
        """
        self.config = config or BrowserConfig()

    async def acquire(self) -> BrowserHandle:
        """
        Launch a browser and open a page.

        Returns:
            BrowserHandle holding playwright, browser, context and page

        Raises:
            LaunchError: If the binary cannot be resolved or Playwright fails
        """
        executable_path = resolve_executable_path(self.config)

        from playwright.async_api import async_playwright

        playwright = None
        browser = None
        try:
            playwright = await async_playwright().start()
            launcher = getattr(playwright, self.config.browser_type)

            launch_options = {"headless": self.config.headless}
            if self.config.launch_args:
                launch_options["args"] = self.config.launch_args
            if executable_path:
                launch_options["executable_path"] = executable_path

            logger.info(
                f"Launching {self.config.browser_type} "
                f"(headless={self.config.headless}, "
                f"executable={executable_path or 'playwright-managed'})"
            )
            browser = await launcher.launch(**launch_options)

            context = await browser.new_context(
                viewport=self.config.viewport,
                user_agent=self.config.get_user_agent(),
                locale="en-US",
                java_script_enabled=True,
            )
            if self.config.stealth_mode:
                await context.add_init_script(STEALTH_INIT_SCRIPT)

            page = await context.new_page()
            page.set_default_navigation_timeout(self.config.default_navigation_timeout)
            page.set_default_timeout(self.config.default_timeout)
        except Exception as e:
            logger.error(f"Browser launch failed: {e}")
            await self._close_quietly(browser, playwright)
            raise LaunchError(f"Browser launch failed: {e}") from e

        logger.info("Browser launched successfully")
        return BrowserHandle(
            playwright=playwright,
            browser=browser,
            context=context,
            page=page,
        )

    async def release(self, handle: Optional[BrowserHandle]) -> None:
        """
        Close everything held by the handle. Safe to call more than once.

        Teardown errors are logged, never raised.
        """
        if handle is None or handle.released:
            return
        handle.released = True

        for name, resource, closer in (
            ("context", handle.context, "close"),
            ("browser", handle.browser, "close"),
            ("playwright", handle.playwright, "stop"),
        ):
            if resource is None:
                continue
            try:
                await getattr(resource, closer)()
            except Exception as e:
                logger.warning(f"Error closing {name}: {e}")

        logger.info("Browser closed")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[BrowserHandle]:
        """Acquire resources for the duration of the block, then release."""
        handle = await self.acquire()
        try:
            yield handle
        finally:
            await self.release(handle)

    async def _close_quietly(self, browser, playwright) -> None:
        """Clean up a partially launched browser."""
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.debug(f"Ignoring close error during failed launch: {e}")
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as e:
                logger.debug(f"Ignoring stop error during failed launch: {e}")
