"""Tests for homepage backend HTTP routes."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import psycopg
import pytest
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from apps.homepage_backend.app_factory import create_app
from apps.homepage_backend.config import HomepageBackendConfig
from libs.core.common.logging import TRACE_ID_HEADER
from libs.platform.security import WatcherState

CHECK_CONNECTION = "apps.homepage_backend.routes.health.check_connection"


@pytest.fixture()
def client(mock_context, test_config) -> TestClient:
    return TestClient(create_app(config=test_config, context=mock_context))


def _sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


def test_root_banner(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.text == "Homepage Backend API"
    assert response.headers["content-type"].startswith("text/plain")


class TestHealth:
    @pytest.mark.parametrize("path", ["/health", "/api/health"])
    def test_healthy(self, client, path):
        with patch(CHECK_CONNECTION, new=AsyncMock(return_value=True)):
            response = client.get(path)

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "connected"}

    @pytest.mark.parametrize("path", ["/health", "/api/health"])
    def test_unhealthy(self, client, path):
        with patch(CHECK_CONNECTION, new=AsyncMock(return_value=False)):
            response = client.get(path)

        assert response.status_code == 503
        assert response.json() == {"status": "unhealthy", "database": "disconnected"}

    def test_checks_shared_pool(self, client, mock_context):
        check = AsyncMock(return_value=True)
        with patch(CHECK_CONNECTION, new=check):
            client.get("/health")

        check.assert_awaited_once_with(mock_context.db_pool)

    def test_updates_metrics(self, client):
        before = _sample("homepage_backend_health_checks_total", {"status": "unhealthy"})

        with patch(CHECK_CONNECTION, new=AsyncMock(return_value=False)):
            client.get("/health")

        after = _sample("homepage_backend_health_checks_total", {"status": "unhealthy"})
        assert after == before + 1
        assert _sample("homepage_backend_database_connection_status") == 0.0

    def test_real_check_against_failing_pool(self, client, mock_context):
        """Pool acquisition errors surface as 503, not 500."""
        mock_context.db_pool.connection.side_effect = psycopg.OperationalError("closed")

        response = client.get("/health")

        assert response.status_code == 503


def test_example(client):
    response = client.get("/api/example")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Hello from the homepage backend!"
    timestamp = datetime.fromisoformat(body["timestamp"].replace("Z", "+00:00"))
    assert timestamp.tzinfo is not None
    assert abs(datetime.now(UTC) - timestamp) < timedelta(minutes=1)


def test_metrics_exposition(client):
    client.get("/")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "homepage_backend_http_requests_total" in response.text
    assert "python_info" in response.text


def test_requests_counted_by_middleware(client):
    before = _sample("homepage_backend_http_requests_total", {"method": "GET", "status": "200"})

    client.get("/")

    after = _sample("homepage_backend_http_requests_total", {"method": "GET", "status": "200"})
    assert after == before + 1


def test_trace_id_echoed(client):
    response = client.get("/", headers={TRACE_ID_HEADER: "trace-homepage"})

    assert response.headers[TRACE_ID_HEADER] == "trace-homepage"


class TestTLSStatus:
    def test_disabled(self, client):
        response = client.get("/health/tls")

        assert response.status_code == 200
        assert response.json() == {
            "mtls_enabled": False,
            "watcher_state": "disabled",
            "reload_pending": False,
            "last_reload_signal_at": None,
            "dropped_events": 0,
        }

    def test_watching_with_pending_reload(self, mock_context):
        watcher = MagicMock()
        watcher.state = WatcherState.SIGNAL_SET
        watcher.dropped_events = 2
        mock_context.cert_watcher = watcher
        mock_context.reload_signal.set()
        config = HomepageBackendConfig(enable_mtls=True)
        client = TestClient(create_app(config=config, context=mock_context))

        body = client.get("/health/tls").json()

        signalled_at = datetime.fromisoformat(body.pop("last_reload_signal_at"))
        assert signalled_at == mock_context.reload_signal.last_set_at
        assert body == {
            "mtls_enabled": True,
            "watcher_state": "signal_set",
            "reload_pending": True,
            "dropped_events": 2,
        }


def test_missing_context_raises(test_config):
    client = TestClient(create_app(config=test_config))

    with pytest.raises(RuntimeError, match="AppContext not initialized"):
        client.get("/health")
