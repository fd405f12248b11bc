"""Logging configuration for the site crawler."""

import logging
import sys
from pathlib import Path
from typing import Optional

# Third-party loggers that flood INFO output during a crawl
NOISY_LOGGERS = ['asyncio', 'httpx', 'httpcore', 'openai', 'anthropic']

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure logging for crawl runs.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path; parent directories are created
        format_string: Optional custom format string
        quiet_third_party: Raise noisy client libraries to WARNING
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=numeric_level,
        format=format_string or DEFAULT_FORMAT,
        handlers=handlers,
        force=True  # Override any existing configuration
    )

    if quiet_third_party:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
