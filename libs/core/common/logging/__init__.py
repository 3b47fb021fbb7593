"""Centralized structured logging library.

Structured JSON logging with trace ID support for request correlation.

Usage:
    # At service startup
    from libs.core.common.logging import configure_logging, add_trace_id_middleware

    configure_logging(service_name="homepage_backend", log_level="INFO")
    add_trace_id_middleware(app)

    # Anywhere else
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Fetched credentials", extra={"secret_path": "database/homepage"})
"""

from libs.core.common.logging.config import (
    TraceIDFilter,
    configure_logging,
    is_logging_configured,
)
from libs.core.common.logging.context import (
    TRACE_ID_HEADER,
    clear_trace_id,
    generate_trace_id,
    get_trace_id,
    set_trace_id,
)
from libs.core.common.logging.formatter import JSONFormatter
from libs.core.common.logging.middleware import ASGITraceIDMiddleware, add_trace_id_middleware

__all__ = [
    # Configuration
    "configure_logging",
    "is_logging_configured",
    "TraceIDFilter",
    # Trace ID management
    "generate_trace_id",
    "get_trace_id",
    "set_trace_id",
    "clear_trace_id",
    "TRACE_ID_HEADER",
    # Middleware
    "ASGITraceIDMiddleware",
    "add_trace_id_middleware",
    # Formatter
    "JSONFormatter",
]
