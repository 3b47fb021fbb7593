"""
Secret-store access for the homepage backend.

Quick Start:
    >>> from libs.platform.secrets import bootstrap_db_credentials
    >>> credentials = bootstrap_db_credentials(config)
    >>> credentials.username

Security Requirements:
    - Secret values NEVER logged (only paths)
    - Fallback to environment/placeholder credentials can be disabled
      (VAULT_ALLOW_FALLBACK=false) so production fails hard instead
"""

from libs.platform.secrets.credentials import (
    DbCredentials,
    bootstrap_db_credentials,
    fetch_db_credentials,
    init_vault_client,
    secret_path_for,
)
from libs.platform.secrets.exceptions import (
    SecretAccessError,
    SecretFormatError,
    SecretManagerError,
    SecretNotFoundError,
)
from libs.platform.secrets.vault_backend import VaultClient

__all__ = [
    # Client
    "VaultClient",
    # Bootstrap
    "DbCredentials",
    "bootstrap_db_credentials",
    "fetch_db_credentials",
    "init_vault_client",
    "secret_path_for",
    # Exceptions
    "SecretManagerError",
    "SecretNotFoundError",
    "SecretAccessError",
    "SecretFormatError",
]
