"""Tests for the VaultClient wrapper around hvac."""

from unittest.mock import MagicMock, patch

import pytest
import requests
from hvac.exceptions import (
    Forbidden,
    InvalidPath,
    InvalidRequest,
    Unauthorized,
    VaultDown,
    VaultError,
)

from libs.platform.secrets.exceptions import SecretAccessError, SecretNotFoundError
from libs.platform.secrets.vault_backend import VaultClient

# ================================================================================
# Fixtures
# ================================================================================


@pytest.fixture(autouse=True)
def fast_retry_sleep(monkeypatch):
    """Eliminate retry backoff delays in tests to keep the suite fast."""
    monkeypatch.setattr("tenacity.nap.sleep", lambda *args, **kwargs: None)


@pytest.fixture()
def mock_hvac_client():
    """Create a mock hvac client for testing."""
    client = MagicMock()
    client.is_authenticated.return_value = True
    client.secrets.kv.v2 = MagicMock()
    return client


@pytest.fixture()
def vault_client(mock_hvac_client):
    """Create a VaultClient with a mocked hvac client."""
    with patch("libs.platform.secrets.vault_backend.hvac.Client", return_value=mock_hvac_client):
        return VaultClient("http://vault:8200", kv_mount="secret", max_attempts=3)


# ================================================================================
# Test Initialization
# ================================================================================


class TestVaultClientInitialization:
    def test_init_passes_settings_to_hvac(self):
        """Test hvac client receives URL, token and TLS settings."""
        with patch("libs.platform.secrets.vault_backend.hvac.Client") as hvac_client:
            VaultClient("https://vault:8200", token="s.token", verify=False, timeout=3)

        hvac_client.assert_called_once_with(
            url="https://vault:8200", token="s.token", verify=False, timeout=3
        )

    def test_init_rejects_zero_attempts(self):
        with pytest.raises(ValueError, match="max_attempts"):
            VaultClient("http://vault:8200", max_attempts=0)

    def test_is_authenticated_false_on_error(self, vault_client, mock_hvac_client):
        """Test token check never raises."""
        mock_hvac_client.is_authenticated.side_effect = VaultDown("sealed")

        assert vault_client.is_authenticated() is False


# ================================================================================
# Test AppRole Login
# ================================================================================


class TestLoginAppRole:
    def test_login_success(self, vault_client, mock_hvac_client):
        vault_client.login_approle("role-1", "secret-1", mount_point="approle")

        mock_hvac_client.auth.approle.login.assert_called_once_with(
            role_id="role-1", secret_id="secret-1", mount_point="approle"
        )

    @pytest.mark.parametrize("error", [InvalidRequest("bad secret_id"), Unauthorized(), Forbidden()])
    def test_login_rejected_is_access_error(self, vault_client, mock_hvac_client, error):
        """Test rejected credentials are not retried."""
        mock_hvac_client.auth.approle.login.side_effect = error

        with pytest.raises(SecretAccessError) as exc_info:
            vault_client.login_approle("role-1", "secret-1")

        assert exc_info.value.secret_name == "vault_auth"
        assert mock_hvac_client.auth.approle.login.call_count == 1

    def test_login_retries_when_vault_down(self, vault_client, mock_hvac_client):
        mock_hvac_client.auth.approle.login.side_effect = [VaultDown("down"), None]

        vault_client.login_approle("role-1", "secret-1")

        assert mock_hvac_client.auth.approle.login.call_count == 2

    def test_login_unreachable_after_retries(self, vault_client, mock_hvac_client):
        mock_hvac_client.auth.approle.login.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(SecretAccessError, match="unreachable"):
            vault_client.login_approle("role-1", "secret-1")

        assert mock_hvac_client.auth.approle.login.call_count == 3

    def test_login_other_http_error_is_access_error(self, vault_client, mock_hvac_client):
        mock_hvac_client.auth.approle.login.side_effect = requests.exceptions.TooManyRedirects("loop")

        with pytest.raises(SecretAccessError, match="HTTP error"):
            vault_client.login_approle("role-1", "secret-1")

        assert mock_hvac_client.auth.approle.login.call_count == 1

    def test_secret_id_not_in_error(self, vault_client, mock_hvac_client):
        mock_hvac_client.auth.approle.login.side_effect = VaultError("boom")

        with pytest.raises(SecretAccessError) as exc_info:
            vault_client.login_approle("role-1", "super-secret-id")

        assert "super-secret-id" not in str(exc_info.value)


# ================================================================================
# Test Secret Read
# ================================================================================


class TestReadSecretData:
    def test_read_success(self, vault_client, mock_hvac_client):
        mock_hvac_client.secrets.kv.v2.read_secret_version.return_value = {
            "data": {"data": {"username": "app", "password": "pw"}, "metadata": {"version": 3}}
        }

        data = vault_client.read_secret_data("database/homepage")

        assert data == {"username": "app", "password": "pw"}
        mock_hvac_client.secrets.kv.v2.read_secret_version.assert_called_once_with(
            path="database/homepage", mount_point="secret", raise_on_deleted_version=True
        )

    def test_read_not_found(self, vault_client, mock_hvac_client):
        mock_hvac_client.secrets.kv.v2.read_secret_version.side_effect = InvalidPath()

        with pytest.raises(SecretNotFoundError) as exc_info:
            vault_client.read_secret_data("database/homepage")

        assert exc_info.value.secret_name == "database/homepage"

    def test_read_empty_data_returned_as_is(self, vault_client, mock_hvac_client):
        """Test an existing but empty secret is not reported as missing."""
        mock_hvac_client.secrets.kv.v2.read_secret_version.return_value = {"data": {"data": {}}}

        assert vault_client.read_secret_data("database/homepage") == {}

    def test_read_null_data_is_not_found(self, vault_client, mock_hvac_client):
        """Test a deleted version (data is null) is reported as missing."""
        mock_hvac_client.secrets.kv.v2.read_secret_version.return_value = {"data": {"data": None}}

        with pytest.raises(SecretNotFoundError, match="deleted or destroyed"):
            vault_client.read_secret_data("database/homepage")

    @pytest.mark.parametrize(
        "error",
        [
            requests.exceptions.ChunkedEncodingError("broken"),
            requests.exceptions.TooManyRedirects("loop"),
            requests.exceptions.JSONDecodeError("Expecting value", "<html>", 0),
        ],
    )
    def test_read_other_http_errors_are_access_errors(self, vault_client, mock_hvac_client, error):
        """Test non-transient HTTP failures map to SecretAccessError without retry."""
        mock_hvac_client.secrets.kv.v2.read_secret_version.side_effect = error

        with pytest.raises(SecretAccessError, match="HTTP error"):
            vault_client.read_secret_data("database/homepage")

        assert mock_hvac_client.secrets.kv.v2.read_secret_version.call_count == 1

    def test_read_permission_denied(self, vault_client, mock_hvac_client):
        mock_hvac_client.secrets.kv.v2.read_secret_version.side_effect = Forbidden()

        with pytest.raises(SecretAccessError, match="Permission denied"):
            vault_client.read_secret_data("database/homepage")

    def test_read_retries_before_failing(self, vault_client, mock_hvac_client):
        mock_hvac_client.secrets.kv.v2.read_secret_version.side_effect = VaultDown("down")

        with pytest.raises(SecretAccessError):
            vault_client.read_secret_data("database/homepage")

        assert mock_hvac_client.secrets.kv.v2.read_secret_version.call_count == 3

    def test_read_generic_vault_error(self, vault_client, mock_hvac_client):
        mock_hvac_client.secrets.kv.v2.read_secret_version.side_effect = VaultError("internal")

        with pytest.raises(SecretAccessError):
            vault_client.read_secret_data("database/homepage")

        assert mock_hvac_client.secrets.kv.v2.read_secret_version.call_count == 1


def test_close_closes_http_adapter(vault_client, mock_hvac_client):
    vault_client.close()

    mock_hvac_client.adapter.close.assert_called_once()
