"""Command-line interface for the site crawler."""

import asyncio
import json
import subprocess
import sys

from sitescout.batch import BatchCrawler, load_sites, site_id_from_url
from sitescout.browser_config import BrowserConfig
from sitescout.config import CrawlerConfig, settings
from sitescout.crawler import SiteCrawler, build_advisor
from sitescout.exceptions import SiteScoutError
from sitescout.infrastructure.browser_controller import BrowserController
from sitescout.logging_config import setup_logging
from sitescout.storage import LocalScreenshotStore


def _load_config(args) -> CrawlerConfig:
    """Build the crawl config from --config or the environment, then apply flags."""
    if getattr(args, "config", None):
        config = CrawlerConfig.from_file(args.config)
        if not config.llm_api_key:
            config.llm_api_key = settings.LLM_API_KEY
    else:
        config = CrawlerConfig.from_env()

    if getattr(args, "no_ai", False):
        config.ai_enabled = False
    return config


def _build_crawler(args, config: CrawlerConfig) -> SiteCrawler:
    browser_config = BrowserConfig(
        headless=not getattr(args, "headed", False),
        serverless=getattr(args, "serverless", False) or settings.SERVERLESS,
    )
    return SiteCrawler(
        config=config,
        controller=BrowserController(browser_config),
        advisor=build_advisor(config),
    )


def print_crawl_result(result):
    """Print a CrawlResult in a readable way.

    Args:
        result: CrawlResult object
    """
    print(f"\n{'=' * 60}")
    print(f"Crawl of: {result.url}")
    print(f"{'=' * 60}")
    print(f"Final URL: {result.final_url}")
    print(f"Elapsed: {result.elapsed_ms}ms "
          f"(load {result.performance.load_time_ms}ms, {result.performance.page_size} bytes)")
    print(f"Screenshots: {len(result.screenshots)}")
    print(f"Favicon: {result.favicon_url}")
    print("\nSEO:")
    print(f"  • Title: {result.seo.title or '-'}")
    print(f"  • Description: {result.seo.description or '-'}")
    print(f"  • Keywords: {', '.join(result.seo.keywords) or '-'}")
    print(f"  • H1: {result.seo.h1 or '-'}")
    print(f"  • Canonical: {result.seo.canonical or '-'}")
    print(f"\n{'=' * 60}\n")


def _write_output(data: dict, output_file):
    output = json.dumps(data, indent=2)
    if output_file:
        with open(output_file, "w") as f:
            f.write(output)
        print(f"Results written to {output_file}")
    else:
        print(output)


def crawl_command(args):
    """Crawl a single URL."""
    config = _load_config(args)
    crawler = _build_crawler(args, config)

    try:
        result = asyncio.run(crawler.crawl(args.url))
    except SiteScoutError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    data = result.to_dict()
    if args.screenshot_dir:
        store = LocalScreenshotStore(args.screenshot_dir)
        data["screenshot_urls"] = asyncio.run(
            store.upload_all(result.screenshots, site_id_from_url(args.url))
        )

    if args.output == "json":
        _write_output(data, args.output_file)
    else:
        print_crawl_result(result)
        for url in data.get("screenshot_urls", []):
            print(f"  saved {url}")


def batch_command(args):
    """Crawl every site listed in a file."""
    config = _load_config(args)
    if args.delay is not None:
        config.delay_between_sites = args.delay

    try:
        sites = load_sites(args.sites_file)
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: could not read {args.sites_file}: {e}", file=sys.stderr)
        sys.exit(1)

    crawler = _build_crawler(args, config)
    batch = BatchCrawler(
        crawler.crawl,
        store=LocalScreenshotStore(args.screenshot_dir),
        config=config,
    )
    summary = asyncio.run(batch.run(sites))

    if args.output_file:
        _write_output(summary.to_dict(), args.output_file)

    print(f"\nProcessed {summary.total} sites: "
          f"{summary.success_count} succeeded, {summary.error_count} failed")
    for outcome in summary.outcomes:
        if not outcome.success:
            print(f"  • {outcome.url}: {outcome.error}")

    if summary.error_count:
        sys.exit(1)


def install_browser_command(args):
    """Download the Chromium build used by Playwright."""
    print("Running 'playwright install chromium'...")
    try:
        result = subprocess.run(
            [sys.executable, "-m", "playwright", "install", "chromium"],
            check=True,
            capture_output=True,
            text=True,
        )
        if result.stdout:
            print(result.stdout)
        print("Chromium browser installed successfully.")
    except subprocess.CalledProcessError as e:
        print(f"Error installing Chromium browser for Playwright: {e}", file=sys.stderr)
        if e.stderr:
            print(e.stderr, file=sys.stderr)
        print(
            "Please run the following command manually:\n"
            "  playwright install chromium",
            file=sys.stderr,
        )
        sys.exit(1)


def _add_crawl_options(subparser):
    subparser.add_argument(
        "--config",
        help="JSON configuration file (defaults to SITESCOUT_* environment variables)",
    )
    subparser.add_argument(
        "--no-ai",
        action="store_true",
        help="Disable the AI fallback advisor",
    )
    subparser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window",
    )
    subparser.add_argument(
        "--serverless",
        action="store_true",
        help="Use a system Chromium binary instead of the Playwright-managed one",
    )


def main():
    """Main CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="SiteScout - Crawl websites past age gates and cookie banners "
                    "and capture screenshots and SEO data"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.LOG_LEVEL.upper() if settings.LOG_LEVEL else "INFO",
        help="Set logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file in addition to console",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Crawl command parser
    crawl_parser = subparsers.add_parser("crawl", help="Crawl a single URL.")
    crawl_parser.add_argument("url", help="URL to crawl (http or https)")
    crawl_parser.add_argument(
        "--output",
        "-o",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    crawl_parser.add_argument(
        "--output-file",
        "-f",
        help="Write output to file (only for json format)",
    )
    crawl_parser.add_argument(
        "--screenshot-dir",
        help="Save screenshots under this directory",
    )
    _add_crawl_options(crawl_parser)
    crawl_parser.set_defaults(func=crawl_command)

    # Batch command parser
    batch_parser = subparsers.add_parser(
        "batch", help="Crawl every site listed in a file (JSON or one URL per line)."
    )
    batch_parser.add_argument("sites_file", help="File listing the sites to crawl")
    batch_parser.add_argument(
        "--screenshot-dir",
        default="screenshots",
        help="Save screenshots under this directory (default: screenshots)",
    )
    batch_parser.add_argument(
        "--output-file",
        "-f",
        help="Write the JSON summary to file",
    )
    batch_parser.add_argument(
        "--delay",
        type=float,
        help="Seconds to wait between sites (default: 5)",
    )
    _add_crawl_options(batch_parser)
    batch_parser.set_defaults(func=batch_command)

    # Install command parser
    install_parser = subparsers.add_parser(
        "install-browser", help="Download the Chromium browser used by Playwright."
    )
    install_parser.set_defaults(func=install_browser_command)

    args = parser.parse_args()

    # Configure logging based on flags
    setup_logging(
        level=args.log_level,
        log_file=getattr(args, 'log_file', None),
    )

    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
