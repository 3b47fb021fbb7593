"""Root and health endpoints.

Health checks the database with ``SELECT 1`` and reports 200/503. The same
handler is mounted at /health and /api/health (the latter for ingress health checks).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, PlainTextResponse

from apps.homepage_backend.app_context import AppContext
from apps.homepage_backend.config import HomepageBackendConfig
from apps.homepage_backend.dependencies import get_config, get_context
from apps.homepage_backend.metrics import database_connection_status, health_checks_total
from apps.homepage_backend.schemas import HealthResponse, TLSStatusResponse
from libs.core.common.db_pool import check_connection

logger = logging.getLogger(__name__)

router = APIRouter()

ROOT_BANNER = "Homepage Backend API"


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Static banner."""
    return ROOT_BANNER


@router.get("/health", tags=["health"], response_model=HealthResponse)
@router.get("/api/health", tags=["health"], response_model=HealthResponse)
async def health_check(ctx: AppContext = Depends(get_context)) -> JSONResponse:
    """
    Report database connectivity.

    Returns:
        200 {"status": "healthy", "database": "connected"} when SELECT 1 succeeds,
        503 {"status": "unhealthy", "database": "disconnected"} otherwise
    """
    if await check_connection(ctx.db_pool):
        database_connection_status.set(1)
        health_checks_total.labels(status="healthy").inc()
        body = HealthResponse(status="healthy", database="connected")
        return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump())

    database_connection_status.set(0)
    health_checks_total.labels(status="unhealthy").inc()
    body = HealthResponse(status="unhealthy", database="disconnected")
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body.model_dump())


@router.get("/health/tls", tags=["health"])
async def tls_status(
    ctx: AppContext = Depends(get_context),
    config: HomepageBackendConfig = Depends(get_config),
) -> TLSStatusResponse:
    """Expose the advisory certificate reload state. Nothing is reloaded."""
    return TLSStatusResponse(**ctx.tls_status(config.enable_mtls))
