"""Application factory for the homepage backend.

Usage:
    # In tests
    from apps.homepage_backend.app_factory import create_app

    def test_health():
        app = create_app(context=mock_ctx, config=HomepageBackendConfig())
        client = TestClient(app)
        assert client.get("/health").status_code == 200

    # In production (main.py)
    app = create_app()
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from apps.homepage_backend import __version__
from apps.homepage_backend.config import get_config
from apps.homepage_backend.lifespan import shutdown_homepage_backend, startup_homepage_backend
from apps.homepage_backend.metrics import observe_request
from apps.homepage_backend.routes import example, health, metrics
from libs.core.common.logging import (
    add_trace_id_middleware,
    configure_logging,
    is_logging_configured,
)

if TYPE_CHECKING:
    from apps.homepage_backend.app_context import AppContext
    from apps.homepage_backend.config import HomepageBackendConfig

SERVICE_NAME = "homepage_backend"

logger = logging.getLogger(__name__)


def create_app(
    *,
    config: HomepageBackendConfig | None = None,
    context: AppContext | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Configuration to use; loaded from the environment at startup if None
        context: Pre-built AppContext (testing). When given, the startup stages
            (including logging setup) are skipped and nothing is closed on shutdown.

    Returns:
        FastAPI: Configured application instance
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "config", None) is None:
            app.state.config = get_config()

        if context is not None:
            yield
            return

        # Not yet configured when served as "uvicorn apps.homepage_backend.main:app"
        if not is_logging_configured():
            configure_logging(service_name=SERVICE_NAME, log_level=app.state.config.log_level)

        ctx = await startup_homepage_backend(app.state.config)
        app.state.context = ctx
        try:
            yield
        finally:
            await shutdown_homepage_backend(ctx)

    app = FastAPI(
        title="Homepage Backend",
        description="Backend API for the homepage",
        version=__version__,
        lifespan=lifespan,
    )

    # Injected resources are visible even when the lifespan is not run
    app.state.config = config
    app.state.context = context

    app.include_router(health.router)
    app.include_router(example.router)
    app.include_router(metrics.router)

    add_trace_id_middleware(app, on_complete=observe_request)

    return app
