"""Advisory certificate reload signal.

A ReloadSignal is a single boolean shared between the certificate watcher
(the only writer) and any number of readers such as health endpoints. It is
a signal, not a completion marker: the watcher clears it after a fixed delay
whether or not anything reloaded.
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime


class ReloadSignal:
    """Thread-safe pending-reload flag.

    Instances are created by the application and passed explicitly to the
    watcher and its readers; there is no process-wide instance.

    Example:
        >>> signal = ReloadSignal()
        >>> signal.is_pending()
        False
        >>> signal.set()
        >>> signal.is_pending()
        True
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending = False
        self._last_set_at: datetime | None = None
        self._trigger_count = 0

    def set(self) -> None:
        """Mark a reload as pending."""
        with self._lock:
            self._pending = True
            self._last_set_at = datetime.now(UTC)
            self._trigger_count += 1

    def clear(self) -> None:
        """Reset the flag to not pending."""
        with self._lock:
            self._pending = False

    def is_pending(self) -> bool:
        """Return True while a reload signal is outstanding."""
        with self._lock:
            return self._pending

    @property
    def last_set_at(self) -> datetime | None:
        """UTC time the signal was last set, or None if never."""
        with self._lock:
            return self._last_set_at

    @property
    def trigger_count(self) -> int:
        """Number of times the signal has been set since creation."""
        with self._lock:
            return self._trigger_count
