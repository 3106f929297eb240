"""Polling change watcher for a single file.

Network shares do not deliver reliable native change notifications, so the
watcher polls the file's stat signature (modification time, size, inode).
A content write, a size change, a replace-by-rename, a delete or a create
each change the signature and fire ``on_change`` once per poll.

``on_change`` runs on the watcher's daemon thread; callers filter and
debounce it (see ``FileSynchronizer``) before anything is marshaled to the
dataset's thread.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable

from sheetsync.core.logging import get_logger


logger = get_logger(__name__)

Signature = tuple[int, int, int] | None


def file_signature(path: Path) -> Signature:
    """(mtime_ns, size, inode) or None when the file does not exist."""
    try:
        stat = path.stat()
    except FileNotFoundError:
        return None
    return (stat.st_mtime_ns, stat.st_size, stat.st_ino)


class PollingFileWatcher:
    """Daemon thread comparing a file's signature every ``interval`` seconds."""

    def __init__(self, path: Path, on_change: Callable[[], None], interval: float = 0.25):
        self._path = Path(path)
        self._on_change = on_change
        self._interval = interval
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._last: Signature = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            logger.warning("watcher_already_started", path=str(self._path))
            return
        self.resync()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop, daemon=True, name=f"sheetsync-watch-{self._path.name}"
        )
        self._thread.start()
        logger.debug("watcher_started", path=str(self._path), interval=self._interval)

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            if self._thread.is_alive():
                logger.warning("watcher_did_not_stop", path=str(self._path))
        self._thread = None

    def resync(self) -> None:
        """Adopt the file's current state as the baseline (absorbs our own writes)."""
        with self._lock:
            self._last = file_signature(self._path)

    def poll(self) -> bool:
        """Check once; fire ``on_change`` if the signature moved.

        Returns:
            True if a change was detected.
        """
        with self._lock:
            current = file_signature(self._path)
            changed = current != self._last
            self._last = current
        if changed:
            logger.debug("file_change_detected", path=str(self._path))
            try:
                self._on_change()
            except Exception as e:
                logger.exception("watch_callback_failed", path=str(self._path), error=str(e))
        return changed

    def _loop(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                self.poll()
            except OSError as e:
                logger.warning("watch_poll_failed", path=str(self._path), error=str(e))


__all__ = ["PollingFileWatcher", "file_signature"]
