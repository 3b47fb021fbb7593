"""
HashiCorp Vault client for the homepage backend.

Thin wrapper around hvac that adds the two operations the service needs at
startup: AppRole login and reading a KV v2 secret as a dict. Transient
failures (Vault down, connection refused, timeouts) are retried with bounded
exponential backoff; everything else is mapped to the secret exception
hierarchy immediately.

Authentication:
    - AppRole: call login_approle(role_id, secret_id). hvac stores the
      returned client token on the client for subsequent calls.
    - Pre-supplied token: construct with token=None and hvac picks up
      VAULT_TOKEN (or ~/.vault-token) from the environment.

Security Considerations:
    - Secret values NEVER logged (only paths)
    - Token kept in memory only
    - TLS verification enabled by default

Usage Example:
    >>> client = VaultClient(vault_url="http://vault:8200", kv_mount="secret")
    >>> client.login_approle(role_id, secret_id)
    >>> data = client.read_secret_data("database/homepage")
    >>> data["username"]
"""

import logging
from typing import Any

import hvac
import requests
from hvac.exceptions import (
    Forbidden,
    InvalidPath,
    InvalidRequest,
    Unauthorized,
    VaultDown,
    VaultError,
)
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from libs.platform.secrets.exceptions import SecretAccessError, SecretNotFoundError

logger = logging.getLogger(__name__)

BACKEND = "vault"

# Failures worth retrying: the server may come up or the network may heal
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    VaultDown,
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
)


class VaultClient:
    """
    Vault client bound to a single server address.

    Attributes:
        vault_url: Vault server URL
        kv_mount: KV v2 secret engine mount point

    Example:
        >>> client = VaultClient("http://vault:8200", max_attempts=3)
        >>> client.is_authenticated()
        True
    """

    def __init__(
        self,
        vault_url: str,
        token: str | None = None,
        kv_mount: str = "secret",
        verify: bool = True,
        max_attempts: int = 3,
        timeout: int = 10,
    ) -> None:
        """
        Build an hvac client. No network call is made here.

        Args:
            vault_url: Vault server URL (e.g., "http://vault:8200")
            token: Explicit token. If None, hvac reads VAULT_TOKEN from the environment.
            kv_mount: KV v2 mount point holding the database secret. Default: "secret"
            verify: Verify TLS certificates. Default: True
            max_attempts: Attempts for transient failures (>= 1)
            timeout: Per-request HTTP timeout in seconds

        Raises:
            ValueError: If max_attempts < 1
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        self.vault_url = vault_url
        self.kv_mount = kv_mount
        self._max_attempts = max_attempts
        self._client = hvac.Client(url=vault_url, token=token, verify=verify, timeout=timeout)

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=0.5, max=5),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def is_authenticated(self) -> bool:
        """Return True if the client currently holds a usable token."""
        try:
            return bool(self._client.is_authenticated())
        except (VaultError, requests.exceptions.RequestException) as e:
            logger.warning(
                "Vault token check failed",
                extra={"vault_url": self.vault_url, "error": str(e), "backend": BACKEND},
            )
            return False

    def login_approle(self, role_id: str, secret_id: str, mount_point: str = "approle") -> None:
        """
        Authenticate with AppRole; the session token is kept on the client.

        Args:
            role_id: AppRole role ID
            secret_id: AppRole secret ID
            mount_point: Auth method mount point. Default: "approle"

        Raises:
            SecretAccessError: Login rejected, or Vault unreachable after retries
        """
        logger.info(
            "Authenticating to Vault using AppRole",
            extra={"vault_url": self.vault_url, "mount_point": mount_point, "backend": BACKEND},
        )
        try:
            for attempt in self._retrying():
                with attempt:
                    self._client.auth.approle.login(
                        role_id=role_id,
                        secret_id=secret_id,
                        mount_point=mount_point,
                    )
        except (InvalidRequest, Unauthorized, Forbidden) as e:
            raise SecretAccessError(
                secret_name="vault_auth",
                backend=BACKEND,
                reason=f"AppRole login rejected at {self.vault_url}: {e}",
            ) from e
        except TRANSIENT_ERRORS as e:
            raise SecretAccessError(
                secret_name="vault_auth",
                backend=BACKEND,
                reason=f"Vault unreachable at {self.vault_url} after {self._max_attempts} attempts: {e}",
            ) from e
        except requests.exceptions.RequestException as e:
            raise SecretAccessError(
                secret_name="vault_auth",
                backend=BACKEND,
                reason=f"HTTP error talking to Vault at {self.vault_url}: {e}",
            ) from e
        except VaultError as e:
            raise SecretAccessError(
                secret_name="vault_auth",
                backend=BACKEND,
                reason=f"AppRole login failed: {e}",
            ) from e

        logger.info("Successfully authenticated to Vault", extra={"backend": BACKEND})

    def read_secret_data(self, path: str) -> dict[str, Any]:
        """
        Read the latest version of a KV v2 secret.

        Args:
            path: Secret path below the mount (e.g., "database/homepage")

        Returns:
            The secret's key/value data

        Raises:
            SecretNotFoundError: Path missing, or the latest version was deleted
            SecretAccessError: Permission denied, Vault unreachable after retries, or HTTP failure
        """
        try:
            for attempt in self._retrying():
                with attempt:
                    response = self._client.secrets.kv.v2.read_secret_version(
                        path=path,
                        mount_point=self.kv_mount,
                        raise_on_deleted_version=True,
                    )
        except InvalidPath as e:
            raise SecretNotFoundError(
                secret_name=path,
                backend=BACKEND,
                additional_context=f"Verify path: vault kv get {self.kv_mount}/{path}",
            ) from e
        except (Forbidden, Unauthorized) as e:
            raise SecretAccessError(
                secret_name=path,
                backend=BACKEND,
                reason=f"Permission denied reading '{path}' from mount '{self.kv_mount}'",
            ) from e
        except TRANSIENT_ERRORS as e:
            raise SecretAccessError(
                secret_name=path,
                backend=BACKEND,
                reason=f"Vault unreachable after {self._max_attempts} attempts: {e}",
            ) from e
        except requests.exceptions.RequestException as e:
            raise SecretAccessError(
                secret_name=path,
                backend=BACKEND,
                reason=f"HTTP error reading '{path}': {e}",
            ) from e
        except VaultError as e:
            raise SecretAccessError(
                secret_name=path,
                backend=BACKEND,
                reason=f"Vault error reading '{path}': {e}",
            ) from e

        # KV v2 response structure: {data: {data: {key: value}, metadata: {...}}}
        # data is null for a deleted or destroyed version; an empty dict is returned as-is.
        secret_data = (response or {}).get("data", {}).get("data")
        if secret_data is None:
            raise SecretNotFoundError(
                secret_name=path,
                backend=BACKEND,
                additional_context="Secret version has no data (deleted or destroyed)",
            )

        logger.info("Secret loaded from Vault", extra={"secret_path": path, "backend": BACKEND})
        return dict(secret_data)

    def close(self) -> None:
        """Close the underlying HTTP adapter (connection pool)."""
        adapter = getattr(self._client, "adapter", None)
        if adapter and hasattr(adapter, "close"):
            adapter.close()
