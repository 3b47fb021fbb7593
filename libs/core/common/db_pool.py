"""Database connection pool initialization.

Builds the service-wide psycopg 3 AsyncConnectionPool from the configured
host/port/database and credentials fetched at startup.

Key properties:
    - Fixed sizing (min 5, max 20, 30s acquire timeout, 600s idle timeout)
    - TLS is "require" when mTLS is enabled, "prefer" otherwise (never "disable")
    - Opening retries transient failures with bounded exponential backoff;
      exhausting the attempts raises DatabaseConnectionError (fatal at startup)
    - Credentials are passed through to the pool and not stored by this module

Usage:
    from libs.core.common.db_pool import init_db_pool, check_connection

    pool = await init_db_pool(credentials, config)
    healthy = await check_connection(pool)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

import psycopg
from psycopg_pool import AsyncConnectionPool, PoolTimeout
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from libs.core.common.exceptions import DatabaseConnectionError

if TYPE_CHECKING:
    from libs.platform.secrets.credentials import DbCredentials

logger = logging.getLogger(__name__)

POOL_MIN_SIZE = 5
POOL_MAX_SIZE = 20
POOL_ACQUIRE_TIMEOUT_SECONDS = 30.0
POOL_MAX_IDLE_SECONDS = 600.0
HEALTH_CHECK_TIMEOUT_SECONDS = 5.0
APPLICATION_NAME = "homepage_backend"


class DatabaseSettings(Protocol):
    """Settings consumed by the pool initializer."""

    database_host: str
    database_port: int
    database_name: str
    enable_mtls: bool
    startup_max_attempts: int


def ssl_mode_for(enable_mtls: bool) -> str:
    """Return the libpq sslmode for the mTLS flag."""
    return "require" if enable_mtls else "prefer"


def build_connection_kwargs(credentials: DbCredentials, settings: DatabaseSettings) -> dict[str, Any]:
    """Build libpq connection parameters from credentials and settings."""
    return {
        "host": settings.database_host,
        "port": settings.database_port,
        "dbname": settings.database_name,
        "user": credentials.username,
        "password": credentials.password,
        "sslmode": ssl_mode_for(settings.enable_mtls),
        "application_name": APPLICATION_NAME,
    }


async def _open_pool(connection_kwargs: dict[str, Any]) -> AsyncConnectionPool:
    pool = AsyncConnectionPool(
        kwargs=connection_kwargs,
        min_size=POOL_MIN_SIZE,
        max_size=POOL_MAX_SIZE,
        timeout=POOL_ACQUIRE_TIMEOUT_SECONDS,
        max_idle=POOL_MAX_IDLE_SECONDS,
        name=APPLICATION_NAME,
        open=False,
    )
    try:
        # wait=True: fail here, not on first request, if the DB is unreachable
        await pool.open(wait=True, timeout=POOL_ACQUIRE_TIMEOUT_SECONDS)
    except BaseException:
        await pool.close()
        raise
    return pool


async def init_db_pool(credentials: DbCredentials, settings: DatabaseSettings) -> AsyncConnectionPool:
    """
    Open the database connection pool.

    Args:
        credentials: Username/password from the credential bootstrap
        settings: Service configuration

    Returns:
        Opened AsyncConnectionPool

    Raises:
        DatabaseConnectionError: If the pool cannot be opened after all attempts
    """
    logger.info(
        "Initializing database connection pool",
        extra={
            "host": settings.database_host,
            "port": settings.database_port,
            "database": settings.database_name,
            "sslmode": ssl_mode_for(settings.enable_mtls),
        },
    )
    if settings.enable_mtls:
        logger.info("Enabling mTLS for database connection")

    connection_kwargs = build_connection_kwargs(credentials, settings)
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(settings.startup_max_attempts),
            wait=wait_exponential(multiplier=0.5, max=5),
            retry=retry_if_exception_type((PoolTimeout, psycopg.OperationalError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                pool = await _open_pool(connection_kwargs)
    except psycopg.Error as e:
        raise DatabaseConnectionError(
            f"Failed to connect to database {settings.database_host}:{settings.database_port}/"
            f"{settings.database_name}: {e}",
            cause=e,
        ) from e

    logger.info(
        "Database connection pool initialized successfully",
        extra={"min_size": POOL_MIN_SIZE, "max_size": POOL_MAX_SIZE},
    )
    return pool


async def check_connection(
    pool: AsyncConnectionPool, timeout: float = HEALTH_CHECK_TIMEOUT_SECONDS
) -> bool:
    """
    Probe the database with ``SELECT 1``.

    Returns:
        True if a connection was acquired and the query succeeded, False otherwise
        (pool exhausted, closed, or database unreachable)
    """
    try:
        async with pool.connection(timeout=timeout) as conn:
            cursor = await conn.execute("SELECT 1")
            await cursor.fetchone()
        return True
    except (psycopg.Error, OSError) as e:
        logger.warning(
            "Health check failed: %s",
            e,
            extra={"error_type": type(e).__name__},
        )
        return False


async def close_db_pool(pool: AsyncConnectionPool) -> None:
    """Close the pool, waiting for returned connections to be released."""
    await pool.close()
    logger.info("Database connection pool closed")


__all__ = [
    "POOL_MIN_SIZE",
    "POOL_MAX_SIZE",
    "POOL_ACQUIRE_TIMEOUT_SECONDS",
    "POOL_MAX_IDLE_SECONDS",
    "build_connection_kwargs",
    "check_connection",
    "close_db_pool",
    "init_db_pool",
    "ssl_mode_for",
]
