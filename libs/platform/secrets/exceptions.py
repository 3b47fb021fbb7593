"""
Secret-store exception hierarchy.

Exception hierarchy:
    SecretManagerError (base)
    ├── SecretNotFoundError - Secret path doesn't exist in the store
    ├── SecretAccessError - Authentication, permission or connectivity failure
    └── SecretFormatError - Secret was read but its payload has the wrong shape

All exceptions carry the secret path and backend name, never the secret
value itself.
"""


class SecretManagerError(Exception):
    """
    Base exception for all secret-store errors.

    Attributes:
        secret_name: Path of the secret (e.g., "database/homepage")
        backend: Backend type (e.g., "vault")
        message: Human-readable error message (MUST NOT include secret values)

    Example:
        >>> str(SecretManagerError("Timeout", "database/homepage", "vault"))
        'Timeout (secret: database/homepage, backend: vault)'
    """

    def __init__(
        self,
        message: str,
        secret_name: str | None = None,
        backend: str | None = None,
    ) -> None:
        super().__init__(message)
        self.secret_name = secret_name
        self.backend = backend
        self.message = message

    def __str__(self) -> str:
        context_parts = []
        if self.secret_name:
            context_parts.append(f"secret: {self.secret_name}")
        if self.backend:
            context_parts.append(f"backend: {self.backend}")

        if context_parts:
            return f"{self.message} ({', '.join(context_parts)})"
        return self.message


def _require_text(field: str, value: object) -> None:
    if not isinstance(value, str) or not value:
        raise TypeError(f"{field} must be a non-empty string")


class SecretNotFoundError(SecretManagerError):
    """
    Raised when a requested secret doesn't exist in the store.

    Common causes:
    - Secret not yet written for this database (`vault kv put secret/database/<name> ...`)
    - Wrong KV mount point
    - Soft-deleted latest version

    Example:
        >>> raise SecretNotFoundError("database/homepage", "vault")
        SecretNotFoundError: Secret 'database/homepage' not found in VAULT
    """

    def __init__(
        self,
        secret_name: str,
        backend: str,
        additional_context: str | None = None,
    ) -> None:
        _require_text("secret_name", secret_name)
        _require_text("backend", backend)

        base_message = f"Secret '{secret_name}' not found in {backend.upper()}"
        if additional_context:
            base_message += f". {additional_context}"

        super().__init__(message=base_message, secret_name=secret_name, backend=backend)


class SecretAccessError(SecretManagerError):
    """
    Raised when the store cannot be reached or refuses access.

    This covers role-based login failures, expired or missing tokens,
    insufficient policies, sealed or unreachable servers.

    Resolution:
    - Check network: `curl $VAULT_ADDR/v1/sys/health`
    - Verify the AppRole: `vault read auth/approle/role/<role>`
    - Review the policy attached to the token

    Example:
        >>> raise SecretAccessError("vault_auth", "vault", "invalid role or secret ID")
    """

    def __init__(
        self,
        secret_name: str,
        backend: str,
        reason: str,
    ) -> None:
        _require_text("secret_name", secret_name)
        _require_text("backend", backend)
        _require_text("reason", reason)

        super().__init__(
            message=f"Access denied: {reason}",
            secret_name=secret_name,
            backend=backend,
        )
        self.reason = reason


class SecretFormatError(SecretManagerError):
    """
    Raised when a secret was read successfully but is malformed.

    This is a configuration error: the operator stored the wrong shape at
    the path, so falling back to other credentials would hide the mistake.

    Example:
        >>> raise SecretFormatError("database/homepage", "vault", "username")
        SecretFormatError: Missing or non-string field 'username' in secret
    """

    def __init__(
        self,
        secret_name: str,
        backend: str,
        field: str,
    ) -> None:
        _require_text("secret_name", secret_name)
        _require_text("backend", backend)

        super().__init__(
            message=f"Missing or non-string field '{field}' in secret",
            secret_name=secret_name,
            backend=backend,
        )
        self.field = field
