"""Lifespan startup/shutdown orchestration for the homepage backend.

Startup runs strictly in order and every stage is fatal on failure:

    credentials -> database_pool -> migrations -> cache -> cert_watcher

The certificate watcher is the exception: it only starts when mTLS is
enabled and a setup failure leaves the service running without it.

Shutdown releases resources in reverse order and never raises; a failure to
release one resource is logged and the rest are still released.
"""

from __future__ import annotations

import asyncio
import logging

import psycopg
from psycopg_pool import AsyncConnectionPool
from redis.exceptions import RedisError

from apps.homepage_backend.app_context import AppContext
from apps.homepage_backend.config import HomepageBackendConfig
from apps.homepage_backend.metrics import (
    bind_reload_signal,
    cert_change_events_total,
    cert_events_dropped_total,
    secret_fallback_total,
)
from libs.core.common.db_pool import close_db_pool, init_db_pool
from libs.core.common.exceptions import FatalStartupError
from libs.core.common.migrations import run_migrations
from libs.core.redis_client import close_cache_client, init_cache_client
from libs.platform.secrets import SecretManagerError, bootstrap_db_credentials
from libs.platform.security import CertificateWatcher, ReloadSignal, WatchEvent

logger = logging.getLogger(__name__)


def _record_cert_change(event: WatchEvent) -> None:
    cert_change_events_total.labels(kind=event.kind.value).inc()


def _log_stage_failure(stage: str, exc: BaseException) -> None:
    logger.critical(
        "Startup stage failed: %s",
        stage,
        extra={"stage": stage, "error_type": type(exc).__name__, "error": str(exc)},
    )


async def _start_cert_watcher(
    config: HomepageBackendConfig, signal: ReloadSignal
) -> CertificateWatcher | None:
    watcher = CertificateWatcher(
        config.tls_cert_path,
        config.tls_key_path,
        config.tls_ca_path or None,
        signal=signal,
        on_change=_record_cert_change,
        on_drop=cert_events_dropped_total.inc,
    )
    if not await watcher.start():
        logger.error("Certificate watcher failed to start; continuing without change detection")
        return None
    logger.info("Certificate watcher started")
    return watcher


async def startup_homepage_backend(config: HomepageBackendConfig) -> AppContext:
    """
    Bring up every resource the service needs.

    Raises:
        FatalStartupError: A stage failed; resources opened by earlier stages
            have been released
    """
    logger.info(
        "Homepage backend starting",
        extra={"port": config.server_port, "mtls_enabled": config.enable_mtls},
    )

    # Credentials are local to startup and dropped once the pool and
    # migrations have used them.
    try:
        credentials = await asyncio.to_thread(
            bootstrap_db_credentials, config, on_fallback=secret_fallback_total.inc
        )
    except SecretManagerError as exc:
        _log_stage_failure("credentials", exc)
        raise FatalStartupError("credentials", str(exc), cause=exc) from exc

    try:
        pool = await init_db_pool(credentials, config)
    except FatalStartupError as exc:
        _log_stage_failure(exc.stage, exc)
        raise

    try:
        await asyncio.to_thread(run_migrations, credentials, config)
        del credentials
        cache = await init_cache_client(config.redis_url, max_attempts=config.startup_max_attempts)
    except FatalStartupError as exc:
        _log_stage_failure(exc.stage, exc)
        await _release_pool(pool)
        raise

    reload_signal = ReloadSignal()
    bind_reload_signal(reload_signal.is_pending)

    watcher: CertificateWatcher | None = None
    if config.enable_mtls:
        watcher = await _start_cert_watcher(config, reload_signal)
    else:
        logger.info("mTLS disabled; certificate watcher not started")

    logger.info("Homepage backend started")
    return AppContext(db_pool=pool, cache=cache, reload_signal=reload_signal, cert_watcher=watcher)


async def _release_pool(pool: AsyncConnectionPool) -> None:
    try:
        await close_db_pool(pool)
    except (psycopg.Error, OSError, RuntimeError) as exc:
        logger.warning("Error closing database pool: %s", exc, extra={"error_type": type(exc).__name__})


async def shutdown_homepage_backend(ctx: AppContext) -> None:
    """Stop the watcher, close the cache, then close the database pool."""
    logger.info("Homepage backend shutting down")

    if ctx.cert_watcher is not None:
        try:
            await ctx.cert_watcher.stop()
        except (OSError, RuntimeError) as exc:
            logger.warning("Error stopping certificate watcher: %s", exc)

    if ctx.cache is not None:
        try:
            await close_cache_client(ctx.cache)
        except (RedisError, OSError, RuntimeError) as exc:
            logger.warning("Error closing cache connection: %s", exc)

    await _release_pool(ctx.db_pool)
    logger.info("Homepage backend shutdown complete")
