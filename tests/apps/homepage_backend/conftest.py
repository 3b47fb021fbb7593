"""Shared pytest fixtures for homepage_backend tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from apps.homepage_backend.app_context import AppContext
from apps.homepage_backend.config import HomepageBackendConfig
from libs.platform.security import ReloadSignal

CONFIG_ENV_VARS = (
    "SERVER_PORT",
    "LOG_LEVEL",
    "SHUTDOWN_GRACE_SECONDS",
    "DATABASE_HOST",
    "DATABASE_PORT",
    "DATABASE_NAME",
    "REDIS_URL",
    "VAULT_ADDR",
    "VAULT_ROLE_ID",
    "VAULT_SECRET_ID",
    "VAULT_KV_MOUNT",
    "VAULT_APPROLE_MOUNT",
    "VAULT_ALLOW_FALLBACK",
    "ENABLE_MTLS",
    "TLS_CERT_PATH",
    "TLS_KEY_PATH",
    "TLS_CA_PATH",
    "STARTUP_MAX_ATTEMPTS",
)


@pytest.fixture()
def clean_env(monkeypatch):
    """Remove every configuration variable so defaults apply.

    Each variable is set before being deleted so monkeypatch records it and
    teardown also removes values a test loads from a .env file.
    """
    for name in CONFIG_ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


@pytest.fixture()
def test_config() -> HomepageBackendConfig:
    return HomepageBackendConfig()


@pytest.fixture()
def mock_context() -> AppContext:
    """AppContext with mocked pool and cache."""
    cache = MagicMock()
    cache.aclose = AsyncMock()
    return AppContext(db_pool=MagicMock(), cache=cache, reload_signal=ReloadSignal())
