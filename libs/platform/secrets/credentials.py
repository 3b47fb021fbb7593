"""
Database credential bootstrap.

Produces the username/password pair used to open the database pool:

    1. Build a VaultClient bound to the configured address.
    2. If both a role ID and a secret ID are configured, log in with AppRole.
       A login failure is fatal (raised as SecretAccessError).
       Otherwise rely on a token already supplied by the environment, warning
       when that token is not usable.
    3. Read KV v2 secret "database/<database_name>".
       - Read OK: extract string "username" and "password" fields; a missing or
         non-string field raises SecretFormatError (no fallback).
       - Read failed: log a warning and fall back to DATABASE_USER /
         DATABASE_PASSWORD, defaulting to "postgres"/"postgres". When fallback is
         disabled the read error is re-raised instead.

The returned credentials are meant to be consumed immediately by the pool
initializer and not cached anywhere.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from libs.platform.secrets.exceptions import SecretFormatError, SecretManagerError
from libs.platform.secrets.vault_backend import BACKEND, VaultClient

logger = logging.getLogger(__name__)

FALLBACK_USERNAME = "postgres"
FALLBACK_PASSWORD = "postgres"


class CredentialSettings(Protocol):
    """Settings consumed by the credential bootstrap."""

    vault_addr: str
    vault_role_id: str
    vault_secret_id: str
    vault_kv_mount: str
    vault_approle_mount: str
    vault_allow_fallback: bool
    database_name: str
    startup_max_attempts: int


@dataclass(frozen=True, slots=True)
class DbCredentials:
    """Database username/password pair. The password is kept out of repr()."""

    username: str
    password: str = field(repr=False)

    @classmethod
    def from_secret_data(cls, data: Mapping[str, Any], secret_path: str) -> DbCredentials:
        """
        Decode a secret payload into credentials.

        Args:
            data: Secret key/value data as returned by the store
            secret_path: Path the data came from (for error context)

        Raises:
            SecretFormatError: If "username" or "password" is missing or not a string
        """
        values: dict[str, str] = {}
        for key in ("username", "password"):
            value = data.get(key)
            if not isinstance(value, str):
                raise SecretFormatError(secret_name=secret_path, backend=BACKEND, field=key)
            values[key] = value
        return cls(username=values["username"], password=values["password"])

    @classmethod
    def from_env(cls) -> DbCredentials:
        """Credentials from DATABASE_USER / DATABASE_PASSWORD, or the placeholders."""
        return cls(
            username=os.getenv("DATABASE_USER", FALLBACK_USERNAME),
            password=os.getenv("DATABASE_PASSWORD", FALLBACK_PASSWORD),
        )


def secret_path_for(database_name: str) -> str:
    """Return the KV path holding credentials for a database."""
    return f"database/{database_name}"


def init_vault_client(
    settings: CredentialSettings,
    client_factory: Callable[..., VaultClient] = VaultClient,
) -> VaultClient:
    """
    Build a Vault client and authenticate it if AppRole identifiers are set.

    Args:
        settings: Service configuration
        client_factory: Callable building the client (injectable for tests)

    Returns:
        VaultClient ready for reads

    Raises:
        SecretAccessError: AppRole login failed (fatal at startup)
    """
    client = client_factory(
        settings.vault_addr,
        kv_mount=settings.vault_kv_mount,
        max_attempts=settings.startup_max_attempts,
    )

    if settings.vault_role_id and settings.vault_secret_id:
        client.login_approle(
            settings.vault_role_id,
            settings.vault_secret_id,
            mount_point=settings.vault_approle_mount,
        )
    else:
        logger.info(
            "AppRole identifiers not set, using token from environment (VAULT_TOKEN)",
            extra={"backend": BACKEND},
        )
        if not client.is_authenticated():
            logger.warning(
                "Vault token from environment is missing or not valid; secret read will likely fail",
                extra={"vault_url": settings.vault_addr, "backend": BACKEND},
            )
    return client


def fetch_db_credentials(
    settings: CredentialSettings,
    client: VaultClient,
    on_fallback: Callable[[], None] | None = None,
) -> DbCredentials:
    """
    Read database credentials from Vault, degrading to the environment on failure.

    Args:
        settings: Service configuration
        client: Authenticated (or token-bearing) Vault client
        on_fallback: Optional hook called when fallback credentials are used

    Returns:
        DbCredentials from Vault, or from the environment/placeholders

    Raises:
        SecretFormatError: Secret read succeeded but the payload is malformed
        SecretManagerError: Read failed and fallback is disabled
    """
    path = secret_path_for(settings.database_name)
    logger.info("Fetching database credentials from Vault", extra={"secret_path": path})

    try:
        data = client.read_secret_data(path)
    except SecretManagerError as e:
        if not settings.vault_allow_fallback:
            logger.error(
                "Failed to fetch credentials from Vault and fallback is disabled",
                extra={"secret_path": path, "error": str(e)},
            )
            raise
        logger.warning(
            "Failed to fetch credentials from Vault: %s. Using fallback.",
            e,
            extra={"secret_path": path, "error_type": type(e).__name__},
        )
        if on_fallback is not None:
            on_fallback()
        return DbCredentials.from_env()

    return DbCredentials.from_secret_data(data, path)


def bootstrap_db_credentials(
    settings: CredentialSettings,
    client_factory: Callable[..., VaultClient] = VaultClient,
    on_fallback: Callable[[], None] | None = None,
) -> DbCredentials:
    """Authenticate (when configured), fetch credentials and release the client."""
    client = init_vault_client(settings, client_factory=client_factory)
    try:
        return fetch_db_credentials(settings, client, on_fallback=on_fallback)
    finally:
        client.close()
