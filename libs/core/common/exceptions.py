"""
Exception hierarchy for the homepage backend.

This module defines the service-wide exceptions, organized so that startup
code can tell fatal failures apart from degraded operation.

Exception hierarchy:
    BackendError (base)
    ├── ConfigurationError - Environment/config could not be parsed
    └── FatalStartupError - A startup stage failed; the process must exit
        ├── DatabaseConnectionError - DB pool could not be opened
        ├── MigrationError - Schema migrations failed
        └── CacheConnectionError - Cache (Redis/ValKey) unreachable

Secret-store errors live in libs.platform.secrets.exceptions.
"""


class BackendError(Exception):
    """
    Base exception for all homepage backend errors.

    Example:
        >>> try:
        ...     config = get_config()
        ... except BackendError as e:
        ...     logger.error(f"Backend error: {e}")
    """

    pass


class ConfigurationError(BackendError):
    """
    Raised when required configuration is missing or malformed.

    Example:
        >>> if not 0 <= port <= 65535:
        ...     raise ConfigurationError(f"SERVER_PORT out of range: {port}")
    """

    pass


class FatalStartupError(BackendError):
    """
    Raised when a startup stage fails and the service must not serve traffic.

    Attributes:
        stage: Name of the startup stage that failed (e.g., "database_pool")
        cause: Underlying exception, if any

    Example:
        >>> raise FatalStartupError("migrations", "alembic upgrade failed")
        FatalStartupError: Startup stage 'migrations' failed: alembic upgrade failed
    """

    def __init__(self, stage: str, reason: str, cause: BaseException | None = None) -> None:
        super().__init__(f"Startup stage '{stage}' failed: {reason}")
        self.stage = stage
        self.reason = reason
        self.cause = cause


class DatabaseConnectionError(FatalStartupError):
    """Raised when the database pool cannot be opened."""

    def __init__(self, reason: str, cause: BaseException | None = None) -> None:
        super().__init__("database_pool", reason, cause)


class MigrationError(FatalStartupError):
    """Raised when schema migrations cannot be applied."""

    def __init__(self, reason: str, cause: BaseException | None = None) -> None:
        super().__init__("migrations", reason, cause)


class CacheConnectionError(FatalStartupError):
    """Raised when the cache connection cannot be established."""

    def __init__(self, reason: str, cause: BaseException | None = None) -> None:
        super().__init__("cache", reason, cause)


__all__ = [
    "BackendError",
    "ConfigurationError",
    "FatalStartupError",
    "DatabaseConnectionError",
    "MigrationError",
    "CacheConnectionError",
]
