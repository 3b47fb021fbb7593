"""FastAPI dependency providers for the homepage backend.

Usage:
    from apps.homepage_backend.dependencies import get_context, get_config

    @router.get("/example")
    async def example_route(
        ctx: AppContext = Depends(get_context),
        config: HomepageBackendConfig = Depends(get_config),
    ):
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from fastapi import Request

if TYPE_CHECKING:
    from apps.homepage_backend.app_context import AppContext
    from apps.homepage_backend.config import HomepageBackendConfig


def get_context(request: Request) -> AppContext:
    """Get the AppContext stored in app.state during startup.

    Raises:
        RuntimeError: If the lifespan did not initialize the context
    """
    ctx = getattr(request.app.state, "context", None)
    if ctx is None:
        raise RuntimeError(
            "AppContext not initialized in app.state. "
            "The lifespan context manager sets it before routes are served; "
            "check that startup completed."
        )
    return cast("AppContext", ctx)


def get_config(request: Request) -> HomepageBackendConfig:
    """Get the configuration stored in app.state during startup.

    Raises:
        RuntimeError: If config is not initialized in app.state
    """
    config = getattr(request.app.state, "config", None)
    if config is None:
        raise RuntimeError(
            "Config not initialized in app.state. "
            "The lifespan context manager loads it before routes are served."
        )
    return cast("HomepageBackendConfig", config)
