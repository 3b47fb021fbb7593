"""Prometheus metrics definitions for the homepage backend.

All metrics are registered on the default registry, which also carries the
process and platform collectors exported at /metrics.

Usage:
    from apps.homepage_backend.metrics import health_checks_total

    health_checks_total.labels(status="healthy").inc()
"""

from __future__ import annotations

from collections.abc import Callable

from prometheus_client import Counter, Gauge, Histogram

# ============================================================================
# HTTP Metrics
# ============================================================================

http_requests_total = Counter(
    "homepage_backend_http_requests_total",
    "Total number of HTTP requests",
    ["method", "status"],
)

http_request_duration_seconds = Histogram(
    "homepage_backend_http_request_duration_seconds",
    "HTTP request duration",
    ["method"],
)

# ============================================================================
# Health Metrics
# ============================================================================

health_checks_total = Counter(
    "homepage_backend_health_checks_total",
    "Total health checks by outcome",
    ["status"],  # healthy, unhealthy
)

database_connection_status = Gauge(
    "homepage_backend_database_connection_status",
    "Database connection status from the last health check (1=connected, 0=disconnected)",
)

# ============================================================================
# Startup / Secrets Metrics
# ============================================================================

secret_fallback_total = Counter(
    "homepage_backend_secret_fallback_total",
    "Times database credentials fell back to environment/placeholder values",
)

# ============================================================================
# Certificate Watcher Metrics
# ============================================================================

cert_change_events_total = Counter(
    "homepage_backend_cert_change_events_total",
    "Certificate file change events accepted by the watcher",
    ["kind"],  # modified, created
)

cert_events_dropped_total = Counter(
    "homepage_backend_cert_events_dropped_total",
    "Certificate change events dropped because the event queue was full",
)

cert_reload_pending = Gauge(
    "homepage_backend_cert_reload_pending",
    "Whether a certificate reload signal is currently pending (1=pending)",
)


def observe_request(method: str, path: str, status_code: int, duration: float) -> None:
    """Request observer plugged into the trace ID middleware."""
    http_requests_total.labels(method=method, status=str(status_code)).inc()
    http_request_duration_seconds.labels(method=method).observe(duration)


def bind_reload_signal(is_pending: Callable[[], bool]) -> None:
    """Sample the pending gauge from the shared signal at scrape time."""
    cert_reload_pending.set_function(lambda: 1.0 if is_pending() else 0.0)
