"""
Central logging configuration for appstandard_lite.

Keeps the package's own loggers verbose enough for diagnosing import/merge
problems while suppressing DEBUG chatter from the ICS and date libraries.
"""

import logging
import os
from contextvars import ContextVar
from typing import Optional

_request_id: ContextVar[str] = ContextVar("appstandard_request_id", default="no-request-id")

_LIBRARY_LOGGERS = ("icalendar", "dateutil", "yaml")

_LITE_MODULES = (
    "appstandard_lite",
    "appstandard_lite.lite_parser",
    "appstandard_lite.lite_event_parser",
    "appstandard_lite.lite_rrule_expander",
    "appstandard_lite.duplicate_detection",
    "appstandard_lite.merge_engine",
    "appstandard_lite.share_bundle",
    "appstandard_lite.vcard",
)


def get_request_id() -> str:
    """Return the correlation id bound to the current context."""
    return _request_id.get()


def set_request_id(request_id: Optional[str]) -> None:
    """Bind a correlation id to the current context (None resets it)."""
    _request_id.set(request_id or "no-request-id")


class CorrelationIdFilter(logging.Filter):
    """Add correlation ID to all log records for request tracing."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add correlation ID to log record.

        Args:
            record: Log record to enhance

        Returns:
            True to allow record to be logged
        """
        record.request_id = get_request_id()
        return True


def configure_lite_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> int:
    """
    Configure logging levels for appstandard_lite.

    Suppresses verbose DEBUG logs from third-party libraries while keeping
    WARNING/ERROR/INFO logs for diagnostics. Debug mode can be overridden via
    environment variable for troubleshooting.

    Args:
        debug_mode: Whether to enable debug logging for appstandard_lite modules
        force_debug: Override debug mode setting (None to use env var detection)

    Returns:
        The root logging level that was applied.

    Environment Variables:
        APPSTANDARD_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        APPSTANDARD_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("APPSTANDARD_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("APPSTANDARD_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    # Don't use force=True to preserve the colorlog handler from __init__.py
    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    correlation_filter = CorrelationIdFilter()

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        formatter = logging.Formatter(
            "[%(asctime)s] [%(request_id)s] %(levelname)s - %(name)s - %(message)s"
        )
        handler.setFormatter(formatter)
        handler.addFilter(correlation_filter)
        root_logger.addHandler(handler)
    else:
        for existing_handler in root_logger.handlers:
            if not any(isinstance(f, CorrelationIdFilter) for f in existing_handler.filters):
                existing_handler.addFilter(correlation_filter)

    logger_config: dict[str, int] = {name: logging.WARNING for name in _LIBRARY_LOGGERS}

    lite_level = logging.DEBUG if final_debug else logging.INFO
    for module in _LITE_MODULES:
        logger_config[module] = lite_level

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    if final_debug:
        root_logger.info(
            "Debug logging enabled for appstandard_lite modules. Third-party debug logs suppressed."
        )
    else:
        root_logger.info("Production logging configuration applied.")

    return root_level


def reset_logging_to_debug() -> None:
    """
    Reset all loggers to DEBUG level for troubleshooting.

    Temporarily enables verbose logging for every module, including the
    third-party loggers suppressed by configure_lite_logging.
    """
    logging.getLogger().setLevel(logging.DEBUG)

    for logger_name in (*_LIBRARY_LOGGERS, *_LITE_MODULES):
        logging.getLogger(logger_name).setLevel(logging.DEBUG)

    logging.getLogger().info("All loggers reset to DEBUG level for troubleshooting")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}

    for logger_name in ("appstandard_lite", *_LIBRARY_LOGGERS):
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)

    return status
