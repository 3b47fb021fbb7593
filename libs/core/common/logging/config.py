"""Centralized logging configuration.

Example:
    >>> from libs.core.common.logging.config import configure_logging
    >>> logger = configure_logging(service_name="homepage_backend", log_level="INFO")
    >>> logger.info("Service started", extra={"port": 8000})
"""

import logging
import sys

from libs.core.common.logging.context import get_trace_id
from libs.core.common.logging.formatter import JSONFormatter


class TraceIDFilter(logging.Filter):
    """Logging filter that stamps the current trace ID onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = get_trace_id()
        return True


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    include_context: bool = True,
) -> logging.Logger:
    """Configure structured JSON logging on stdout for the whole process.

    Replaces any handlers already attached to the root logger, so calling it
    twice does not duplicate output. Should be called once at startup.

    Args:
        service_name: Name of the service (e.g., "homepage_backend")
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        include_context: Whether to include the context dict in output

    Returns:
        Configured root logger instance

    Raises:
        ValueError: If log_level is invalid
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter(service_name=service_name, include_context=include_context))
    handler.addFilter(TraceIDFilter())
    root_logger.addHandler(handler)

    # uvicorn installs its own handlers; route its records through ours instead
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    return root_logger


def is_logging_configured() -> bool:
    """Return True if configure_logging() already installed its handler on the root logger."""
    return any(isinstance(handler.formatter, JSONFormatter) for handler in logging.getLogger().handlers)
