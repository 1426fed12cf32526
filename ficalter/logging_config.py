"""
Central logging configuration for ficalter.

Keeps the service's own loggers informative while suppressing verbose debug
output from the HTTP stack.
"""

import logging
import os
from typing import Optional

import colorlog

# Third-party loggers that are too chatty below WARNING
NOISY_LOGGERS = (
    "aiohttp.access",
    "aiohttp.server",
    "aiohttp.web_log",
    "httpx",
    "httpcore",
    "asyncio",
)

CONSOLE_FORMAT = (
    "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s [%(request_id)s] %(name)s: %(message)s"
)
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


class CorrelationIdFilter(logging.Filter):
    """Add the current request's correlation ID to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        # Import here to avoid pulling aiohttp in for pure-core users
        from .middleware import get_request_id

        record.request_id = get_request_id()
        return True


def build_console_handler(level: int = logging.NOTSET) -> logging.Handler:
    """Create a stderr handler with colorized, request-aware formatting."""
    handler = colorlog.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(
        colorlog.ColoredFormatter(CONSOLE_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS)
    )
    handler.addFilter(CorrelationIdFilter())
    return handler


def configure_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure log levels for ficalter and its third-party dependencies.

    Args:
        debug_mode: Whether to enable debug logging for ficalter modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        FICALTER_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        FICALTER_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("FICALTER_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("FICALTER_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    if not root_logger.handlers:
        root_logger.addHandler(build_console_handler())
    else:
        # Existing handlers still need request ids for the shared format
        for existing_handler in root_logger.handlers:
            if not any(isinstance(f, CorrelationIdFilter) for f in existing_handler.filters):
                existing_handler.addFilter(CorrelationIdFilter())

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger("ficalter").setLevel(logging.DEBUG if final_debug else logging.INFO)

    if final_debug:
        root_logger.debug("Debug logging enabled for ficalter modules")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ("ficalter", "aiohttp.access", "httpx", "asyncio"):
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
