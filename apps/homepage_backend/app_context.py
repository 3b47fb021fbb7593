"""Application context holding the resources created at startup.

The context is stored on ``app.state.context`` by the lifespan and handed to
route handlers through ``Depends(get_context)``. Tests build one directly
with mocks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from libs.platform.security import CertificateWatcher, ReloadSignal

if TYPE_CHECKING:
    from psycopg_pool import AsyncConnectionPool


@dataclass
class AppContext:
    """Shared service resources.

    Attributes:
        db_pool: Database connection pool (internally thread-safe, shared by all handlers)
        cache: redis.asyncio client, shared the same way
        reload_signal: Advisory certificate reload flag
        cert_watcher: Running certificate watcher, or None when mTLS is disabled
            or the watcher could not start
    """

    db_pool: AsyncConnectionPool | Any
    cache: Any
    reload_signal: ReloadSignal
    cert_watcher: CertificateWatcher | None = None

    def tls_status(self, mtls_enabled: bool) -> dict[str, Any]:
        """Snapshot of the certificate watcher state for the /health/tls endpoint."""
        watcher = self.cert_watcher
        return {
            "mtls_enabled": mtls_enabled,
            "watcher_state": watcher.state.value if watcher is not None else "disabled",
            "reload_pending": self.reload_signal.is_pending(),
            "last_reload_signal_at": self.reload_signal.last_set_at,
            "dropped_events": watcher.dropped_events if watcher is not None else 0,
        }
