"""Certificate change watcher.

Watches the directories holding the TLS certificate, key and CA files and
raises a ReloadSignal when one of them is modified or replaced. Detection
only: nothing is reloaded, the signal is advisory and clears itself after a
fixed delay.

Threading model:
    - watchdog's Observer delivers filesystem events on its own OS thread.
    - Each relevant event is handed to the event loop with
      ``loop.call_soon_threadsafe`` and enqueued with ``put_nowait`` on a
      bounded asyncio.Queue. A full queue drops the event (logged + counted)
      so the observer thread never blocks.
    - A consumer task on the event loop sets the signal, holds it for
      ``clear_delay`` seconds, coalesces events that arrived meanwhile, then
      clears it.

Directories are watched (not files) so atomic replace-via-rename, as done by
secret injectors, is observed as a creation at the destination path.

Example:
    >>> signal = ReloadSignal()
    >>> watcher = CertificateWatcher("/vault/secrets/tls.crt", "/vault/secrets/tls.key",
    ...                              signal=signal)
    >>> await watcher.start()
    True
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from libs.platform.security.reload_signal import ReloadSignal

logger = logging.getLogger(__name__)

DEFAULT_CLEAR_DELAY_SECONDS = 5.0
DEFAULT_QUEUE_SIZE = 100
OBSERVER_JOIN_TIMEOUT_SECONDS = 5.0


class WatchEventKind(str, Enum):
    MODIFIED = "modified"
    CREATED = "created"


@dataclass(frozen=True, slots=True)
class WatchEvent:
    """A relevant filesystem change inside a watched directory."""

    path: str
    kind: WatchEventKind


class WatcherState(str, Enum):
    IDLE = "idle"
    WATCHING = "watching"
    SIGNAL_SET = "signal_set"
    SIGNAL_CLEARING = "signal_clearing"
    STOPPED = "stopped"


def _directory_of(path: str) -> str:
    return os.path.dirname(os.path.abspath(path))


def classify_event(event: FileSystemEvent, watched_dirs: Iterable[str]) -> WatchEvent | None:
    """
    Map a watchdog event to a WatchEvent, or None if it must be ignored.

    File modifications and creations count. A move counts as a creation when
    its destination lies in a watched directory (atomic replace). Deletions,
    moves out of the directory, open/close notifications and directory
    events are ignored.
    """
    if event.is_directory:
        return None

    if event.event_type == EVENT_TYPE_MODIFIED:
        return WatchEvent(path=os.fsdecode(event.src_path), kind=WatchEventKind.MODIFIED)
    if event.event_type == EVENT_TYPE_CREATED:
        return WatchEvent(path=os.fsdecode(event.src_path), kind=WatchEventKind.CREATED)
    if event.event_type == EVENT_TYPE_MOVED:
        dest_path = os.fsdecode(getattr(event, "dest_path", "") or "")
        if dest_path and _directory_of(dest_path) in set(watched_dirs):
            return WatchEvent(path=dest_path, kind=WatchEventKind.CREATED)
    return None


class _CertificateEventHandler(FileSystemEventHandler):
    """watchdog handler forwarding every event to the watcher (observer thread)."""

    def __init__(self, watcher: CertificateWatcher) -> None:
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        self._watcher.handle_filesystem_event(event)


class CertificateWatcher:
    """
    Best-effort watcher raising a ReloadSignal on certificate changes.

    Args:
        cert_path: TLS certificate file path
        key_path: TLS private key file path
        ca_path: Optional CA bundle path
        signal: Shared ReloadSignal to set/clear
        clear_delay: Seconds the signal stays set after a change
        queue_size: Capacity of the event queue between observer and consumer
        observer_factory: Callable returning a watchdog observer (injectable for tests)
        on_change: Optional hook called with each accepted WatchEvent
        on_drop: Optional hook called when an event is dropped (queue full)
    """

    def __init__(
        self,
        cert_path: str,
        key_path: str,
        ca_path: str | None = None,
        *,
        signal: ReloadSignal,
        clear_delay: float = DEFAULT_CLEAR_DELAY_SECONDS,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        observer_factory: Callable[[], Any] = Observer,
        on_change: Callable[[WatchEvent], None] | None = None,
        on_drop: Callable[[], None] | None = None,
    ) -> None:
        if queue_size < 1:
            raise ValueError("queue_size must be >= 1")
        if clear_delay < 0:
            raise ValueError("clear_delay must be >= 0")

        self.cert_path = cert_path
        self.key_path = key_path
        self.ca_path = ca_path
        self.signal = signal
        self.clear_delay = clear_delay

        paths = [p for p in (cert_path, key_path, ca_path) if p]
        # Preserve order, drop duplicates (all three usually share a directory)
        self.watched_directories: tuple[str, ...] = tuple(dict.fromkeys(_directory_of(p) for p in paths))

        self._queue: asyncio.Queue[WatchEvent] = asyncio.Queue(maxsize=queue_size)
        self._observer_factory = observer_factory
        self._on_change = on_change
        self._on_drop = on_drop

        self._state = WatcherState.IDLE
        self._loop: asyncio.AbstractEventLoop | None = None
        self._observer: Any = None
        self._task: asyncio.Task[None] | None = None
        self._dropped_events = 0

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def dropped_events(self) -> int:
        """Number of events dropped because the queue was full."""
        return self._dropped_events

    async def start(self) -> bool:
        """
        Start the observer thread and the consumer task.

        Returns:
            True if watching, False if setup failed (the watcher stays STOPPED
            and the caller carries on without certificate change detection)

        Raises:
            RuntimeError: If the watcher was already started
        """
        if self._state is not WatcherState.IDLE:
            raise RuntimeError(f"CertificateWatcher already started (state={self._state.value})")

        logger.info(
            "Starting certificate watcher",
            extra={"cert_path": self.cert_path, "key_path": self.key_path},
        )
        self._loop = asyncio.get_running_loop()
        observer = self._observer_factory()
        handler = _CertificateEventHandler(self)

        try:
            for directory in self.watched_directories:
                if not os.path.isdir(directory):
                    raise FileNotFoundError(f"Certificate directory does not exist: {directory}")
                observer.schedule(handler, directory, recursive=False)
            observer.daemon = True
            observer.start()
        except OSError as e:
            logger.error(
                "Failed to watch certificate directory: %s",
                e,
                extra={"directories": list(self.watched_directories)},
            )
            self._state = WatcherState.STOPPED
            return False

        self._observer = observer
        self._state = WatcherState.WATCHING
        self._task = asyncio.create_task(self.run(), name="certificate-watcher")
        logger.info("Watching directory", extra={"directories": list(self.watched_directories)})
        return True

    def handle_filesystem_event(self, event: FileSystemEvent) -> None:
        """Observer-thread entry point: classify and hand off without blocking."""
        watch_event = classify_event(event, self.watched_directories)
        if watch_event is None:
            return

        loop = self._loop
        if loop is None:
            return
        try:
            loop.call_soon_threadsafe(self.submit, watch_event)
        except RuntimeError:
            # Event loop already closed during shutdown
            logger.warning(
                "Certificate event received after event loop closed",
                extra={"path": watch_event.path},
            )

    def submit(self, event: WatchEvent) -> bool:
        """
        Enqueue an event without waiting (must run on the event loop thread).

        Returns:
            True if queued, False if dropped because the queue is full
        """
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self._dropped_events += 1
            logger.error(
                "Certificate event queue full, dropping event",
                extra={"path": event.path, "kind": event.kind.value, "dropped": self._dropped_events},
            )
            if self._on_drop is not None:
                self._on_drop()
            return False
        return True

    async def run(self) -> None:
        """Consumer loop; runs until cancelled."""
        while True:
            event = await self._queue.get()
            self._record_change(event)
            self.signal.set()
            self._state = WatcherState.SIGNAL_SET

            logger.info("Certificate reload triggered (graceful reload not implemented)")
            logger.warning("Manual restart may be required for full certificate rotation")

            await asyncio.sleep(self.clear_delay)

            # Events that arrived while the signal was held belong to this batch
            while not self._queue.empty():
                self._record_change(self._queue.get_nowait())

            self._state = WatcherState.SIGNAL_CLEARING
            self.signal.clear()
            self._state = WatcherState.WATCHING

    def _record_change(self, event: WatchEvent) -> None:
        logger.info(
            "Certificate file changed",
            extra={"path": event.path, "kind": event.kind.value},
        )
        if self._on_change is not None:
            self._on_change(event)

    async def stop(self) -> None:
        """Cancel the consumer task, stop the observer thread and drop any pending signal."""
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

        if self._observer is not None:
            self._observer.stop()
            await asyncio.to_thread(self._observer.join, OBSERVER_JOIN_TIMEOUT_SECONDS)
            self._observer = None

        self.signal.clear()
        self._state = WatcherState.STOPPED
        logger.info("Certificate watcher stopped")
