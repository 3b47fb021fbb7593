"""Configuration module for the homepage backend.

This module centralizes all environment variable parsing into a single frozen
dataclass created once at startup and shared by reference afterwards.

Design Rationale:
    - Single source of truth for configuration
    - Explicit defaults for every variable
    - Ports and numeric limits are parsed strictly: a malformed value is a
      fatal configuration error rather than a silent default
    - Boolean flags are strict ("true", case-insensitive, is the only true value)
    - An optional .env file is merged first; real environment variables win

Usage:
    from apps.homepage_backend.config import get_config

    config = get_config()
    if config.enable_mtls:
        logger.info("mTLS enabled")
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from dotenv import find_dotenv, load_dotenv

from libs.core.common.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


# ============================================================================
# Helper Functions
# ============================================================================


def _get_str_env(name: str, default: str) -> str:
    return os.getenv(name, default)


def _get_int_env_strict(name: str, default: int, minimum: int, maximum: int | None = None) -> int:
    """Parse an int from the environment, raising on malformed or out-of-range values.

    Args:
        name: Environment variable name
        default: Value used when the variable is unset
        minimum: Smallest accepted value
        maximum: Largest accepted value (None for unbounded)

    Raises:
        ConfigurationError: If the value is not an integer or out of range
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError as e:
        raise ConfigurationError(f"Invalid integer for {name}={raw!r}") from e
    if value < minimum or (maximum is not None and value > maximum):
        bounds = f">= {minimum}" if maximum is None else f"in {minimum}..{maximum}"
        raise ConfigurationError(f"{name}={value} out of range (expected {bounds})")
    return value


def _get_float_env_strict(name: str, default: float, minimum: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw.strip())
    except ValueError as e:
        raise ConfigurationError(f"Invalid number for {name}={raw!r}") from e
    if value < minimum:
        raise ConfigurationError(f"{name}={value} out of range (expected >= {minimum})")
    return value


def _get_bool_env(name: str, default: bool) -> bool:
    """Parse a boolean flag: only "true" (case-insensitive) is True.

    Any other value, including typos, is False rather than an error.
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() == "true"


def _get_port_env(name: str, default: int) -> int:
    return _get_int_env_strict(name, default, minimum=0, maximum=65535)


# ============================================================================
# Configuration Dataclass
# ============================================================================


@dataclass(frozen=True)
class HomepageBackendConfig:
    """Configuration for the homepage backend.

    Attributes:
        # Server
        server_port: HTTP listen port
        log_level: Root log level
        shutdown_grace_seconds: Drain window for in-flight requests on shutdown

        # Database
        database_host / database_port / database_name: PostgreSQL location

        # Cache
        redis_url: Redis/ValKey URL

        # Vault
        vault_addr: Vault server URL
        vault_role_id / vault_secret_id: AppRole identifiers (empty = use VAULT_TOKEN)
        vault_kv_mount: KV v2 mount holding database/<database_name>
        vault_approle_mount: AppRole auth mount
        vault_allow_fallback: Allow env/placeholder credentials when the read fails

        # TLS
        enable_mtls: Require TLS to the database and watch certificate files
        tls_cert_path / tls_key_path / tls_ca_path: Certificate material paths

        # Startup
        startup_max_attempts: Attempts for secret store, database and cache
    """

    # Server
    server_port: int = 8000
    log_level: str = "INFO"
    shutdown_grace_seconds: float = 30.0

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "homepage"

    # Cache
    redis_url: str = "redis://valkey:6379"

    # Vault
    vault_addr: str = "http://vault:8200"
    vault_role_id: str = field(default="", repr=False)
    vault_secret_id: str = field(default="", repr=False)
    vault_kv_mount: str = "secret"
    vault_approle_mount: str = "approle"
    vault_allow_fallback: bool = True

    # TLS
    enable_mtls: bool = False
    tls_cert_path: str = "/vault/secrets/tls.crt"
    tls_key_path: str = "/vault/secrets/tls.key"
    tls_ca_path: str = "/vault/secrets/ca.crt"

    # Startup
    startup_max_attempts: int = 5


def get_config(load_env_file: bool = True) -> HomepageBackendConfig:
    """Load configuration from environment variables.

    Args:
        load_env_file: Merge a .env file from the working directory first
            (existing environment variables are never overridden)

    Returns:
        HomepageBackendConfig instance

    Raises:
        ConfigurationError: If a value cannot be parsed
    """
    if load_env_file:
        load_dotenv(dotenv_path=find_dotenv(usecwd=True), override=False)

    log_level = _get_str_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _VALID_LOG_LEVELS:
        raise ConfigurationError(f"Invalid LOG_LEVEL={log_level!r}")

    config = HomepageBackendConfig(
        server_port=_get_port_env("SERVER_PORT", 8000),
        log_level=log_level,
        shutdown_grace_seconds=_get_float_env_strict("SHUTDOWN_GRACE_SECONDS", 30.0, minimum=0.0),
        database_host=_get_str_env("DATABASE_HOST", "localhost"),
        database_port=_get_port_env("DATABASE_PORT", 5432),
        database_name=_get_str_env("DATABASE_NAME", "homepage"),
        redis_url=_get_str_env("REDIS_URL", "redis://valkey:6379"),
        vault_addr=_get_str_env("VAULT_ADDR", "http://vault:8200"),
        vault_role_id=_get_str_env("VAULT_ROLE_ID", ""),
        vault_secret_id=_get_str_env("VAULT_SECRET_ID", ""),
        vault_kv_mount=_get_str_env("VAULT_KV_MOUNT", "secret"),
        vault_approle_mount=_get_str_env("VAULT_APPROLE_MOUNT", "approle"),
        vault_allow_fallback=_get_bool_env("VAULT_ALLOW_FALLBACK", True),
        enable_mtls=_get_bool_env("ENABLE_MTLS", False),
        tls_cert_path=_get_str_env("TLS_CERT_PATH", "/vault/secrets/tls.crt"),
        tls_key_path=_get_str_env("TLS_KEY_PATH", "/vault/secrets/tls.key"),
        tls_ca_path=_get_str_env("TLS_CA_PATH", "/vault/secrets/ca.crt"),
        startup_max_attempts=_get_int_env_strict("STARTUP_MAX_ATTEMPTS", 5, minimum=1),
    )

    if not config.vault_allow_fallback:
        logger.info("Credential fallback disabled; secret read failures are fatal")

    return config


__all__ = [
    "HomepageBackendConfig",
    "get_config",
]
