"""Structured logging configuration.

Two modes via the LOG_FORMAT setting:
- "json" (default): one JSON object per line, tagged with the request_id
- "text": human-readable lines for local development
"""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from scrapegate.middleware.request_id import get_request_id

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"


class RequestIDFilter(logging.Filter):
    """Inject request_id into every log record."""

    def filter(self, record):
        record.request_id = get_request_id()
        return True


class PlaywrightPipeFilter(logging.Filter):
    """Drop Playwright's 'pipe closed by peer' warnings.

    A render session that dies mid-navigation makes Playwright log this for
    every pending write.
    """

    def filter(self, record):
        msg = record.getMessage() if hasattr(record, "getMessage") else str(record.msg)
        return "pipe closed by peer" not in msg


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s %(request_id)s",
            rename_fields={
                "levelname": "level",
                "name": "logger",
                "asctime": "timestamp",
            },
        )
    return logging.Formatter(TEXT_FORMAT)


def configure_logging(log_format: str = "json", log_level: str = "INFO"):
    """Configure the root logger.

    Args:
        log_format: "json" or "text"
        log_level: Python log level name
    """
    root = logging.getLogger()
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDFilter())
    handler.addFilter(PlaywrightPipeFilter())
    handler.setFormatter(build_formatter(log_format))

    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    logging.getLogger("playwright").setLevel(logging.ERROR)
    logging.getLogger("httpx").setLevel(logging.WARNING)
