from dotenv import load_dotenv
from dataclasses import dataclass
from typing import Optional
from pathlib import Path
import json
import os

from sitescout.constants import (
    BATCH_MAX_RETRIES,
    DELAY_BETWEEN_SITES_SECONDS,
    MAX_SCREENSHOTS,
)

load_dotenv()  # Loads variables from .env file


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    LLM_API_KEY = os.getenv("LLM_API_KEY")
    LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
    LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai")

    # Resolve a system Chromium instead of the Playwright-managed one
    SERVERLESS = _env_flag("SITESCOUT_SERVERLESS")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()


@dataclass
class CrawlerConfig:
    """Configuration for a crawl run."""

    # Screenshots
    max_screenshots: int = MAX_SCREENSHOTS

    # Blocker clearance
    max_blocker_attempts: int = 3

    # Navigation (milliseconds for timeouts, seconds for retry delay)
    navigation_timeout_ms: int = 20000
    navigation_max_retries: int = 3
    navigation_base_delay: float = 1.0
    post_navigation_delay_ms: int = 2000

    # Content discovery
    post_action_delay_ms: int = 1500

    # AI fallback
    ai_enabled: bool = True
    llm_api_key: Optional[str] = None
    llm_model: str = "gpt-4o-mini"
    llm_provider: str = "openai"
    llm_timeout: float = 30.0

    # Batch runs
    delay_between_sites: float = DELAY_BETWEEN_SITES_SECONDS
    batch_max_retries: int = BATCH_MAX_RETRIES

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "CrawlerConfig":
        """Load configuration from environment variables.

        Crawl tuning variables are prefixed with SITESCOUT_,
        e.g. SITESCOUT_MAX_SCREENSHOTS=3. LLM settings use the same
        LLM_* variables as Settings.

        Returns:
            CrawlerConfig with values from environment
        """
        config = cls(
            llm_api_key=os.getenv("LLM_API_KEY"),
            llm_model=os.getenv("LLM_MODEL", "gpt-4o-mini"),
            llm_provider=os.getenv("LLM_PROVIDER", "openai"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
        prefix = "SITESCOUT_"

        for field_name in config.__dataclass_fields__:
            if field_name.startswith("llm_") or field_name == "log_level":
                continue
            env_value = os.getenv(f"{prefix}{field_name.upper()}")
            if env_value is None:
                continue

            field_type = config.__dataclass_fields__[field_name].type
            try:
                if field_type in (bool, "bool"):
                    setattr(config, field_name, env_value.strip().lower() in ("1", "true", "yes", "on"))
                elif field_type in (int, "int"):
                    setattr(config, field_name, int(env_value))
                elif field_type in (float, "float"):
                    setattr(config, field_name, float(env_value))
            except ValueError:
                pass  # Keep default if conversion fails

        return config

    @classmethod
    def from_file(cls, path: str) -> "CrawlerConfig":
        """Load configuration from a JSON file.

        Args:
            path: Path to JSON configuration file

        Returns:
            CrawlerConfig with values from file (defaults if missing)
        """
        config = cls()
        file_path = Path(path)

        if not file_path.exists():
            return config

        with open(file_path, 'r') as f:
            data = json.load(f)

        crawler_data = data.get('crawler', data)

        for field_name in config.__dataclass_fields__:
            if field_name in crawler_data:
                setattr(config, field_name, crawler_data[field_name])

        return config

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary, without the API key."""
        return {
            field_name: getattr(self, field_name)
            for field_name in self.__dataclass_fields__
            if field_name != "llm_api_key"
        }
