"""Tests for the command-line interface."""

import argparse
import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from sitescout import cli
from sitescout.exceptions import NavigationError
from sitescout.models import CrawlResult, PerformanceData, SEOData


def make_result():
    return CrawlResult(
        url="https://example.com",
        final_url="https://example.com/live",
        screenshots=(b"png",),
        seo=SEOData(title="Example", keywords=["live"]),
        performance=PerformanceData(load_time_ms=300, page_size=1000),
        favicon_url="https://example.com/favicon.ico",
        elapsed_ms=4200,
    )


class TestLoadConfig:
    """Tests for _load_config."""

    def test_no_ai_flag(self):
        args = argparse.Namespace(config=None, no_ai=True)
        assert cli._load_config(args).ai_enabled is False

    def test_config_file(self, tmp_path):
        path = tmp_path / "crawl.json"
        path.write_text(json.dumps({"max_screenshots": 3}))
        args = argparse.Namespace(config=str(path), no_ai=False)

        assert cli._load_config(args).max_screenshots == 3


class TestCrawlCommand:
    """Tests for crawl_command."""

    def _args(self, **overrides):
        values = dict(
            url="https://example.com", output="json", output_file=None, screenshot_dir=None,
            config=None, no_ai=True, headed=False, serverless=False,
        )
        values.update(overrides)
        return argparse.Namespace(**values)

    def test_json_output(self, capsys):
        crawler = MagicMock()
        crawler.crawl = AsyncMock(return_value=make_result())

        with patch("sitescout.cli._build_crawler", return_value=crawler):
            cli.crawl_command(self._args())

        data = json.loads(capsys.readouterr().out)
        assert data["final_url"] == "https://example.com/live"
        assert data["screenshot_count"] == 1

    def test_text_output_saves_screenshots(self, capsys, tmp_path):
        crawler = MagicMock()
        crawler.crawl = AsyncMock(return_value=make_result())

        with patch("sitescout.cli._build_crawler", return_value=crawler):
            cli.crawl_command(self._args(output="text", screenshot_dir=str(tmp_path)))

        out = capsys.readouterr().out
        assert "Crawl of: https://example.com" in out
        assert "Title: Example" in out
        assert len(list((tmp_path / "example-com").glob("*.png"))) == 1

    def test_crawl_error_exits_nonzero(self, capsys):
        crawler = MagicMock()
        crawler.crawl = AsyncMock(side_effect=NavigationError("https://example.com", 3))

        with patch("sitescout.cli._build_crawler", return_value=crawler):
            with pytest.raises(SystemExit) as exc_info:
                cli.crawl_command(self._args())

        assert exc_info.value.code == 1
        assert "navigation failed" in capsys.readouterr().err


class TestMain:
    """Tests for argument parsing."""

    def test_no_command_prints_help(self, capsys):
        with patch("sys.argv", ["sitescout"]), patch("sitescout.cli.setup_logging"):
            cli.main()
        assert "crawl" in capsys.readouterr().out

    def test_dispatches_batch(self, tmp_path):
        sites = tmp_path / "sites.txt"
        sites.write_text("https://a.example\n")

        with patch("sys.argv", ["sitescout", "batch", str(sites), "--delay", "0", "--no-ai"]), \
                patch("sitescout.cli.setup_logging"), \
                patch("sitescout.cli.batch_command") as batch_command:
            cli.main()

        args = batch_command.call_args.args[0]
        assert args.sites_file == str(sites)
        assert args.delay == 0.0
        assert args.no_ai is True


class TestBatchCommand:
    """Tests for batch_command."""

    def test_malformed_sites_file_exits_cleanly(self, tmp_path, capsys):
        sites = tmp_path / "sites.json"
        sites.write_text("[1]")
        args = argparse.Namespace(
            sites_file=str(sites), delay=None, config=None, no_ai=True,
            headed=False, serverless=False, screenshot_dir=str(tmp_path), output_file=None,
        )

        with pytest.raises(SystemExit) as exc_info:
            cli.batch_command(args)

        assert exc_info.value.code == 1
        assert "could not read" in capsys.readouterr().err
