"""Tests for crawl configuration."""

import json

from unittest.mock import patch

from sitescout.browser_config import BrowserConfig, SERVERLESS_CONFIG, USER_AGENTS
from sitescout.config import CrawlerConfig


class TestCrawlerConfig:
    """Tests for CrawlerConfig."""

    def test_defaults(self):
        config = CrawlerConfig()
        assert config.max_screenshots == 5
        assert config.max_blocker_attempts == 3
        assert config.navigation_timeout_ms == 20000
        assert config.navigation_max_retries == 3
        assert config.ai_enabled is True

    def test_from_env(self):
        env = {
            "SITESCOUT_MAX_SCREENSHOTS": "3",
            "SITESCOUT_NAVIGATION_BASE_DELAY": "0.5",
            "SITESCOUT_AI_ENABLED": "false",
            "SITESCOUT_NAVIGATION_MAX_RETRIES": "not-a-number",
            "LLM_API_KEY": "secret",
            "LLM_PROVIDER": "anthropic",
        }
        with patch.dict("os.environ", env, clear=True):
            config = CrawlerConfig.from_env()

        assert config.max_screenshots == 3
        assert config.navigation_base_delay == 0.5
        assert config.ai_enabled is False
        assert config.navigation_max_retries == 3
        assert config.llm_api_key == "secret"
        assert config.llm_provider == "anthropic"

    def test_from_file_with_crawler_section(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"crawler": {"max_screenshots": 2, "delay_between_sites": 0}}))

        config = CrawlerConfig.from_file(str(path))

        assert config.max_screenshots == 2
        assert config.delay_between_sites == 0

    def test_from_missing_file_gives_defaults(self, tmp_path):
        config = CrawlerConfig.from_file(str(tmp_path / "missing.json"))
        assert config == CrawlerConfig()

    def test_to_dict_omits_api_key(self):
        data = CrawlerConfig(llm_api_key="secret").to_dict()
        assert "llm_api_key" not in data
        assert data["max_screenshots"] == 5


class TestBrowserConfig:
    """Tests for BrowserConfig."""

    def test_defaults(self):
        config = BrowserConfig()
        assert config.headless is True
        assert config.viewport == {"width": 1280, "height": 800}
        assert config.serverless is False

    def test_explicit_user_agent(self):
        assert BrowserConfig(user_agent="ua/1.0").get_user_agent() == "ua/1.0"

    def test_rotating_user_agent_comes_from_pool(self):
        assert BrowserConfig().get_user_agent() in USER_AGENTS

    def test_serverless_preset(self):
        assert SERVERLESS_CONFIG.serverless is True
        assert "--single-process" in SERVERLESS_CONFIG.launch_args
