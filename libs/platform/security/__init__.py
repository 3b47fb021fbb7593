"""TLS material change detection.

This package provides the advisory certificate reload signal and the
filesystem watcher that raises it.
"""

from __future__ import annotations

from libs.platform.security.cert_watcher import (
    CertificateWatcher,
    WatchEvent,
    WatchEventKind,
    WatcherState,
    classify_event,
)
from libs.platform.security.reload_signal import ReloadSignal

__all__ = [
    "CertificateWatcher",
    "ReloadSignal",
    "WatchEvent",
    "WatchEventKind",
    "WatcherState",
    "classify_event",
]
