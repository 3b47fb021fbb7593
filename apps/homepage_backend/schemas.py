"""Response models for the homepage backend API."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response (GET /health, GET /api/health)."""

    status: Literal["healthy", "unhealthy"]
    database: Literal["connected", "disconnected"]


class ExampleResponse(BaseModel):
    """Demo payload (GET /api/example)."""

    message: str
    timestamp: datetime


class TLSStatusResponse(BaseModel):
    """Certificate watcher status (GET /health/tls)."""

    mtls_enabled: bool
    watcher_state: str
    reload_pending: bool
    last_reload_signal_at: datetime | None = None
    dropped_events: int
