"""
Browser configuration for Playwright-based crawling.

This module provides a validated Pydantic configuration model for the
resource controller and pre-configured instances for local development and
serverless deployments.
"""
import random
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from sitescout.constants import DEFAULT_VIEWPORT


# User agent pool for rotation
USER_AGENTS = [
    # Chrome on Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    # Chrome on Mac
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
]

# Binary names searched on PATH in serverless mode
SERVERLESS_BINARY_NAMES = [
    "chromium",
    "chromium-browser",
    "headless_shell",
    "google-chrome",
]


def get_random_user_agent() -> str:
    """Get a random user agent from the pool."""
    return random.choice(USER_AGENTS)


class BrowserConfig(BaseModel):
    """
    Configuration for the BrowserController.

    All fields are validated by Pydantic to ensure type safety and valid values.
    """

    model_config = ConfigDict(validate_assignment=True)

    headless: bool = Field(
        default=True,
        description="Run browser in headless mode (no visible UI)"
    )

    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to launch"
    )

    executable_path: Optional[str] = Field(
        default=None,
        description="Explicit browser binary. None uses the Playwright-managed browser."
    )

    serverless: bool = Field(
        default=False,
        description="Resolve a system Chromium binary instead of the Playwright-managed one"
    )

    viewport: Dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_VIEWPORT),
        description="Viewport size for the page"
    )

    default_navigation_timeout: int = Field(
        default=45000,
        description="Default navigation timeout in milliseconds",
        ge=1000,
        le=300000
    )

    default_timeout: int = Field(
        default=5000,
        description="Default timeout for selector waits and actions in milliseconds",
        ge=100,
        le=120000
    )

    stealth_mode: bool = Field(
        default=True,
        description="Inject an init script that masks automation indicators"
    )

    user_agent: Optional[str] = Field(
        default=None,
        description="Custom user agent. If None and rotate_user_agent=True, a random one is used."
    )

    rotate_user_agent: bool = Field(
        default=True,
        description="Rotate user agent on each new context"
    )

    launch_args: List[str] = Field(
        default_factory=lambda: [
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-accelerated-2d-canvas",
            "--disable-gpu",
            "--disable-blink-features=AutomationControlled",
        ],
        description="Additional browser launch arguments"
    )

    def get_user_agent(self) -> str:
        """Get the user agent to use for this config."""
        if self.user_agent:
            return self.user_agent
        if self.rotate_user_agent:
            return get_random_user_agent()
        return USER_AGENTS[0]  # Default to first agent


# --- Pre-configured Instances ---

LOCAL_CONFIG = BrowserConfig(
    headless=True,
    serverless=False,
)
"""
Local development configuration.

Uses the Chromium build managed by `playwright install chromium`.
"""

SERVERLESS_CONFIG = BrowserConfig(
    headless=True,
    serverless=True,
    launch_args=[
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--disable-accelerated-2d-canvas",
        "--disable-gpu",
        "--single-process",
        "--no-zygote",
    ],
)
"""
Serverless configuration.

Resolves a system Chromium binary (CHROMIUM_EXECUTABLE_PATH or PATH) and
uses flags suited to small sandboxed containers.
"""
